from backoffice.db.models.role import Role
from backoffice.db.models.user import User
from backoffice.db.models.customer import Customer
from backoffice.db.models.estate import Estate
from backoffice.db.models.map_document import MapDocument
from backoffice.db.models.invoice import Invoice
from backoffice.db.models.contract import Contract, ContractUser

__all__ = ["Role", "User", "Customer", "Estate", "MapDocument", "Invoice", "Contract", "ContractUser"]
