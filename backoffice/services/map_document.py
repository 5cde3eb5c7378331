import logging

from fastapi import UploadFile
from sqlalchemy.orm import Session

import backoffice.repositories.map_document as map_repo
from backoffice.core.config import settings
from backoffice.db.models.map_document import MapDocument as MapDocumentModel
from backoffice.db.models.user import User as UserModel
from backoffice.errors import DomainValidationError, NotFoundError
from backoffice.schemas.map_document import MapDocumentUpdate
from backoffice.services.attachment_store import DOCUMENT_EXTENSIONS, AttachmentStore

logger = logging.getLogger(__name__)

MAP_CATEGORY = "maps"


def list_maps(db: Session) -> list[MapDocumentModel]:
    return map_repo.get_all_maps(db)


def get_map(db: Session, map_id: int) -> MapDocumentModel:
    db_map = map_repo.get_map_by_id(db, map_id)
    if not db_map:
        raise NotFoundError("Map not found")
    return db_map


def upload_map(
    db: Session,
    store: AttachmentStore,
    actor: UserModel,
    upload: UploadFile | None,
    title: str | None,
    description: str | None = None,
) -> MapDocumentModel:
    """
    Store a map file and record it.

    The staged file is deleted again if the record cannot be created.

    Raises:
        DomainValidationError: If the file or title is missing, or the file is not allowed.
    """
    if upload is None or not upload.filename:
        raise DomainValidationError("No file uploaded")
    staged = store.stage(
        upload,
        MAP_CATEGORY,
        allowed_extensions=DOCUMENT_EXTENSIONS,
        max_size=settings.max_map_size,
        prefix="map",
    )
    try:
        if not title or not title.strip():
            raise DomainValidationError("Title is required")
        db_map = map_repo.create_map(
            db,
            title=title.strip(),
            description=description or "",
            file_path=staged.path,
            file_type=staged.mime_type,
            file_size=staged.size,
            uploaded_by=actor.id,
        )
    except Exception:
        db.rollback()
        store.delete_path(staged.path)
        raise

    logger.info("Map %s uploaded by user %s (%d bytes)", db_map.id, actor.id, staged.size)
    return db_map


def update_map(db: Session, map_id: int, map_data: MapDocumentUpdate) -> MapDocumentModel:
    get_map(db, map_id)
    update_fields = map_data.model_dump(exclude_unset=True)
    if "title" in update_fields:
        if update_fields["title"] is None or not update_fields["title"].strip():
            raise DomainValidationError("Title is required")
        update_fields["title"] = update_fields["title"].strip()
    return map_repo.update_map(
        db,
        map_id,
        title=update_fields.get("title"),
        description=update_fields.get("description"),
    )


def delete_map(db: Session, store: AttachmentStore, actor: UserModel, map_id: int) -> None:
    """Delete the record, then the stored file (best effort)."""
    db_map = get_map(db, map_id)
    file_path = db_map.file_path
    map_repo.delete_map(db, map_id)
    store.delete_path(file_path)
    logger.info("Map %s deleted by user %s", map_id, actor.id)
