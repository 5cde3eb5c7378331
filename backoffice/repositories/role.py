from sqlalchemy.orm import Session

from backoffice.db.models.role import Role as RoleModel


def get_role_by_name(db: Session, name: str) -> RoleModel | None:
    """Get one of the roles seeded by migration 001 by its name."""
    return db.query(RoleModel).filter(RoleModel.name == name).first()
