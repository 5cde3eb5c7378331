import uuid

from sqlalchemy.orm import Session

from backoffice.db.models.invoice import Invoice as InvoiceModel
from backoffice.errors import NotFoundError


def get_invoice_by_uuid(db: Session, invoice_uuid: str) -> InvoiceModel | None:
    """Get an invoice by its public UUID."""
    return db.query(InvoiceModel).filter(InvoiceModel.uuid == invoice_uuid).first()


def create_invoice(
    db: Session,
    description: str,
    issued_by: int,
    amount: float,
    unit: str,
    invoice_photo_path: str,
) -> InvoiceModel:
    """Create a new invoice in the database. Pure data access - no business logic."""
    db_invoice = InvoiceModel(
        uuid=str(uuid.uuid4()),
        description=description,
        issued_by=issued_by,
        amount=amount,
        unit=unit,
        invoice_photo_path=invoice_photo_path,
    )
    db.add(db_invoice)
    db.commit()
    db.refresh(db_invoice)
    return db_invoice


def update_invoice(db: Session, invoice_uuid: str, **kwargs) -> InvoiceModel:
    """
    Update an invoice. Only updates fields that are explicitly provided.
    """
    invoice = get_invoice_by_uuid(db, invoice_uuid)
    if not invoice:
        raise NotFoundError("Invoice not found")

    if "description" in kwargs:
        invoice.description = kwargs["description"]
    if "amount" in kwargs:
        invoice.amount = kwargs["amount"]
    if "unit" in kwargs:
        invoice.unit = kwargs["unit"]
    if "invoice_photo_path" in kwargs:
        invoice.invoice_photo_path = kwargs["invoice_photo_path"]

    db.commit()
    db.refresh(invoice)
    return invoice


def get_invoices_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 20,
    issued_by: int | None = None,
) -> tuple[list[InvoiceModel], int]:
    """
    Get invoices with pagination, newest first.

    Args:
        page: Page number (1-indexed)
        page_size: Number of items per page
        issued_by: Optional filter by issuing user ID

    Returns:
        Tuple of (list of invoices, total count)
    """
    query = db.query(InvoiceModel)
    if issued_by is not None:
        query = query.filter(InvoiceModel.issued_by == issued_by)

    total = query.count()
    skip = (page - 1) * page_size
    invoices = (
        query.order_by(InvoiceModel.created_at.desc(), InvoiceModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return invoices, total


def delete_invoice(db: Session, invoice_uuid: str) -> None:
    """Delete an invoice from the database. Pure data access - no business logic."""
    invoice = get_invoice_by_uuid(db, invoice_uuid)
    if not invoice:
        raise NotFoundError("Invoice not found")

    db.delete(invoice)
    db.commit()
