from enum import Enum

from backoffice.errors import DomainValidationError


class InvoiceUnit(str, Enum):
    DOLLAR = "dollar"
    RIAL = "rial"
    TOMAN = "toman"


# Persian labels the front-end historically sent.
LEGACY_UNIT_LABELS: dict[str, InvoiceUnit] = {
    "دلار": InvoiceUnit.DOLLAR,
    "ریال": InvoiceUnit.RIAL,
    "تومان": InvoiceUnit.TOMAN,
}


def parse_invoice_unit(value: str) -> InvoiceUnit:
    """Accept either the current unit codes or the legacy labels."""
    value = value.strip()
    if value in LEGACY_UNIT_LABELS:
        return LEGACY_UNIT_LABELS[value]
    try:
        return InvoiceUnit(value.lower())
    except ValueError:
        allowed = ", ".join(u.value for u in InvoiceUnit)
        raise DomainValidationError(f"Invalid unit. Must be one of: {allowed}") from None
