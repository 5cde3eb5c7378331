from sqlalchemy.orm import Session

from backoffice.db.models.map_document import MapDocument as MapDocumentModel
from backoffice.errors import NotFoundError


def get_map_by_id(db: Session, map_id: int) -> MapDocumentModel | None:
    """Get a map document by ID."""
    return db.query(MapDocumentModel).filter(MapDocumentModel.id == map_id).first()


def get_all_maps(db: Session) -> list[MapDocumentModel]:
    """Get all map documents, newest first."""
    return (
        db.query(MapDocumentModel)
        .order_by(MapDocumentModel.created_at.desc(), MapDocumentModel.id.desc())
        .all()
    )


def create_map(
    db: Session,
    title: str,
    description: str,
    file_path: str,
    file_type: str,
    file_size: int,
    uploaded_by: int,
) -> MapDocumentModel:
    """Create a new map document in the database. Pure data access - no business logic."""
    db_map = MapDocumentModel(
        title=title,
        description=description,
        file_path=file_path,
        file_type=file_type,
        file_size=file_size,
        uploaded_by=uploaded_by,
    )
    db.add(db_map)
    db.commit()
    db.refresh(db_map)
    return db_map


def update_map(
    db: Session,
    map_id: int,
    title: str | None = None,
    description: str | None = None,
) -> MapDocumentModel:
    """Update map metadata. Only provided fields will be updated."""
    db_map = get_map_by_id(db, map_id)
    if not db_map:
        raise NotFoundError("Map not found")

    if title is not None:
        db_map.title = title
    if description is not None:
        db_map.description = description

    db.commit()
    db.refresh(db_map)
    return db_map


def delete_map(db: Session, map_id: int) -> None:
    """Delete a map document from the database. Pure data access - no business logic."""
    db_map = get_map_by_id(db, map_id)
    if not db_map:
        raise NotFoundError("Map not found")

    db.delete(db_map)
    db.commit()
