import logging
import math

from fastapi import UploadFile
from sqlalchemy.orm import Session

import backoffice.repositories.invoice as invoice_repo
from backoffice.core.config import settings
from backoffice.db.models.invoice import Invoice as InvoiceModel
from backoffice.db.models.user import User as UserModel
from backoffice.domain.invoice_unit import parse_invoice_unit
from backoffice.domain.roles import is_admin
from backoffice.errors import DomainValidationError, ForbiddenError, NotFoundError
from backoffice.services.attachment_store import DOCUMENT_EXTENSIONS, AttachmentStore

logger = logging.getLogger(__name__)

INVOICE_CATEGORY = "invoices"


def _parse_amount(value: str) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise DomainValidationError("Amount must be a positive number") from None
    if not math.isfinite(amount) or amount <= 0:
        raise DomainValidationError("Amount must be a positive number")
    return amount


def _get_managed_invoice(db: Session, actor: UserModel, invoice_uuid: str) -> InvoiceModel:
    invoice = invoice_repo.get_invoice_by_uuid(db, invoice_uuid)
    if not invoice:
        raise NotFoundError("Invoice not found")
    if invoice.issued_by != actor.id and not is_admin(actor):
        raise ForbiddenError("Only the issuer or an admin can change this invoice")
    return invoice


def create_invoice(
    db: Session,
    store: AttachmentStore,
    actor: UserModel,
    description: str | None,
    amount: str | None,
    unit: str | None,
    photo: UploadFile | None,
) -> InvoiceModel:
    """
    Record an invoice issued by ``actor`` together with its photo.

    Raises:
        DomainValidationError: If a field or the photo is missing or malformed.
            A staged photo is deleted in that case.
    """
    if photo is None or not photo.filename:
        raise DomainValidationError("Invoice photo is required")
    staged = store.stage(
        photo,
        INVOICE_CATEGORY,
        allowed_extensions=DOCUMENT_EXTENSIONS,
        max_size=settings.max_attachment_size,
        prefix="invoice",
    )
    try:
        if not description or not description.strip() or not amount or not unit:
            raise DomainValidationError("Please provide description, amount, and unit")
        invoice = invoice_repo.create_invoice(
            db,
            description=description.strip(),
            issued_by=actor.id,
            amount=_parse_amount(amount),
            unit=parse_invoice_unit(unit).value,
            invoice_photo_path=staged.path,
        )
    except Exception:
        db.rollback()
        store.delete_path(staged.path)
        raise

    logger.info("Invoice %s created by user %s", invoice.uuid, actor.id)
    return invoice


def list_invoices(
    db: Session, page: int, page_size: int, user_id: int | None = None
) -> tuple[list[InvoiceModel], int]:
    return invoice_repo.get_invoices_paginated(db, page=page, page_size=page_size, issued_by=user_id)


def get_invoice(db: Session, invoice_uuid: str) -> InvoiceModel:
    invoice = invoice_repo.get_invoice_by_uuid(db, invoice_uuid)
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def update_invoice(
    db: Session,
    store: AttachmentStore,
    actor: UserModel,
    invoice_uuid: str,
    description: str | None = None,
    amount: str | None = None,
    unit: str | None = None,
    photo: UploadFile | None = None,
) -> InvoiceModel:
    """
    Update an invoice. Replacing the photo deletes the old file once the
    change is committed.
    """
    invoice = _get_managed_invoice(db, actor, invoice_uuid)
    old_photo_path = invoice.invoice_photo_path

    staged = None
    if photo is not None and photo.filename:
        staged = store.stage(
            photo,
            INVOICE_CATEGORY,
            allowed_extensions=DOCUMENT_EXTENSIONS,
            max_size=settings.max_attachment_size,
            prefix="invoice",
        )

    try:
        update_fields = {}
        if description is not None:
            if not description.strip():
                raise DomainValidationError("Description cannot be empty")
            update_fields["description"] = description.strip()
        if amount is not None:
            update_fields["amount"] = _parse_amount(amount)
        if unit is not None:
            update_fields["unit"] = parse_invoice_unit(unit).value
        if staged is not None:
            update_fields["invoice_photo_path"] = staged.path
        invoice = invoice_repo.update_invoice(db, invoice_uuid, **update_fields)
    except Exception:
        db.rollback()
        if staged is not None:
            store.delete_path(staged.path)
        raise

    if staged is not None:
        store.delete_path(old_photo_path)
    logger.info("Invoice %s updated by user %s", invoice_uuid, actor.id)
    return invoice


def delete_invoice(db: Session, store: AttachmentStore, actor: UserModel, invoice_uuid: str) -> None:
    invoice = _get_managed_invoice(db, actor, invoice_uuid)
    photo_path = invoice.invoice_photo_path
    invoice_repo.delete_invoice(db, invoice_uuid)
    store.delete_path(photo_path)
    logger.info("Invoice %s deleted by user %s", invoice_uuid, actor.id)
