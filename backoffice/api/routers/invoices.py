from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from backoffice.api.deps import get_approved_user, get_attachment_store, get_db
from backoffice.db.models.user import User as UserModel
from backoffice.schemas.invoice import Invoice
from backoffice.schemas.pagination import PaginatedResponse
from backoffice.services import invoice as invoice_service
from backoffice.services.attachment_store import AttachmentStore

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED)
def create_invoice(
    description: str | None = Form(None),
    amount: str | None = Form(None),
    unit: str | None = Form(None),
    invoice_photo: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Create an invoice issued by the current user (multipart form, photo required).
    """
    invoice = invoice_service.create_invoice(
        db, store, current_user, description, amount, unit, invoice_photo
    )
    return Invoice.from_model(invoice)


@router.get("", response_model=PaginatedResponse[Invoice])
def list_invoices(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(20, ge=1, le=100, description="Number of items per page"),
    user_id: int | None = Query(None, description="Filter invoices by issuing user"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    invoices, total = invoice_service.list_invoices(db, page, page_size, user_id)
    return PaginatedResponse(
        items=[Invoice.from_model(invoice) for invoice in invoices],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{invoice_uuid}", response_model=Invoice)
def get_invoice(
    invoice_uuid: str,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    return Invoice.from_model(invoice_service.get_invoice(db, invoice_uuid))


@router.put("/{invoice_uuid}", response_model=Invoice)
def update_invoice(
    invoice_uuid: str,
    description: str | None = Form(None),
    amount: str | None = Form(None),
    unit: str | None = Form(None),
    invoice_photo: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    current_user: UserModel = Depends(get_approved_user),
):
    """
    Update an invoice. Only the issuer or an admin can update it.

    Sending a new photo replaces (and deletes) the old one.
    """
    invoice = invoice_service.update_invoice(
        db,
        store,
        current_user,
        invoice_uuid,
        description=description,
        amount=amount,
        unit=unit,
        photo=invoice_photo,
    )
    return Invoice.from_model(invoice)


@router.delete("/{invoice_uuid}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_uuid: str,
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    current_user: UserModel = Depends(get_approved_user),
):
    invoice_service.delete_invoice(db, store, current_user, invoice_uuid)
