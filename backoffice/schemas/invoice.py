from datetime import datetime
from pydantic import BaseModel, ConfigDict

from backoffice.db.models.invoice import Invoice as InvoiceModel


class Invoice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: str
    description: str
    issued_by: int
    issued_by_name: str | None = None
    issued_by_phone: str | None = None
    amount: float
    unit: str
    invoice_photo_path: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, invoice: InvoiceModel) -> "Invoice":
        item = cls.model_validate(invoice)
        if invoice.issuer is not None:
            item.issued_by_name = invoice.issuer.name
            item.issued_by_phone = invoice.issuer.phone_number
        return item
