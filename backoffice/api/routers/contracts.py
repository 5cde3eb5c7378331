from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.orm import Session

from backoffice.api.deps import get_approved_user, get_attachment_store, get_db, require_roles
from backoffice.db.models.user import User as UserModel
from backoffice.schemas.contract import (
    ContractDetail,
    ContractStats,
    ContractUpdate,
    ContractUserAssociation,
    ContractUserUpdate,
    ContractUserUpsert,
    CustomerOption,
    EstateOption,
)
from backoffice.services import contract as contract_service
from backoffice.services import contract_user as contract_user_service
from backoffice.services.attachment_store import AttachmentStore

router = APIRouter(prefix="/contracts", tags=["contracts"])
options_router = APIRouter(prefix="/contract", tags=["contracts"])


@router.post("", response_model=ContractDetail, status_code=status.HTTP_201_CREATED)
def create_new_contract(
    customer_id: str | None = Form(None),
    estate_id: str | None = Form(None),
    contract_type: str | None = Form(None),
    contract_date: str | None = Form(None),
    amount: str | None = Form(None),
    duration_months: str | None = Form(None),
    payment_method: str | None = Form(None),
    commission: str | None = Form(None),
    notes: str | None = Form(None),
    creator_description: str | None = Form(None),
    users: str | None = Form(None, description="JSON array of user ids or {user_id, description, role}"),
    files: list[UploadFile] | None = File(None),
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Create a contract (multipart form).

    The new contract is always active. The current user is recorded as its
    creator; `users` adds collaborators. Uploaded `files` are stored as
    attachments and removed again if the contract is rejected.
    """
    draft = contract_service.ContractDraft(
        customer_id=customer_id,
        estate_id=estate_id,
        contract_type=contract_type,
        contract_date=contract_date,
        amount=amount,
        duration_months=duration_months,
        payment_method=payment_method,
        commission=commission,
        notes=notes,
        creator_description=creator_description,
    )
    return contract_service.create_contract(
        db, store, current_user, draft, uploads=files or [], users=users
    )


@router.get("", response_model=list[ContractDetail])
def get_all_contracts(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Get contracts, newest first.
    - Admin: every contract
    - Agent: the contracts they created
    """
    return contract_service.list_contracts(db, current_user)


@router.get("/stats", response_model=ContractStats)
def get_contract_stats(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """Contract totals over every contract (admin) or the current user's own."""
    return contract_service.get_contract_stats(db, current_user)


@router.get("/{contract_id}", response_model=ContractDetail)
def get_contract_by_id(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Get a contract by ID.
    - Admin: any contract
    - Others: contracts they created or are associated with
    """
    return contract_service.get_contract(db, current_user, contract_id)


@router.put("/{contract_id}", response_model=ContractDetail)
def update_contract_by_id(
    contract_id: int,
    contract_data: ContractUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Update a contract. Only its creator or an admin can update it.

    Fields not included in the request are not updated.
    """
    return contract_service.update_contract(db, current_user, contract_id, contract_data)


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contract_by_id(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Delete a contract and its user associations. Only admin users can delete contracts."""
    contract_service.delete_contract(db, current_user, contract_id)


@router.get("/{contract_id}/users", response_model=list[ContractUserAssociation])
def list_contract_users(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """Users associated with a contract, in the order they were added."""
    return contract_user_service.list_associations(db, current_user, contract_id)


@router.post("/{contract_id}/users", response_model=ContractUserAssociation)
def add_contract_user(
    contract_id: int,
    association_data: ContractUserUpsert,
    response: Response,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Add a user to a contract, or update the existing association in place.

    Returns 201 when a row is created and 200 when an existing one is updated.
    """
    association, created = contract_user_service.upsert_association(
        db, current_user, contract_id, association_data
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return association


@router.put("/{contract_id}/users/{user_id}", response_model=ContractUserAssociation)
def update_contract_user(
    contract_id: int,
    user_id: int,
    association_data: ContractUserUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """Update the description or role of an association. The creator's role is fixed."""
    return contract_user_service.update_association(
        db, current_user, contract_id, user_id, association_data
    )


@router.delete("/{contract_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_contract_user(
    contract_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    """Remove a user from a contract. The creator can never be removed."""
    contract_user_service.remove_association(db, current_user, contract_id, user_id)


@options_router.get("/customers", response_model=list[CustomerOption])
def get_customer_options(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Customers for the contract form's dropdown."""
    return contract_service.get_customer_options(db)


@options_router.get("/estates", response_model=list[EstateOption])
def get_estate_options(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Estates for the contract form's dropdown; estates under an active contract are left out."""
    return contract_service.get_available_estate_options(db)
