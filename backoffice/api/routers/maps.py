from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from backoffice.api.deps import get_approved_user, get_attachment_store, get_db, require_roles
from backoffice.db.models.user import User as UserModel
from backoffice.schemas.map_document import MapDocument, MapDocumentUpdate
from backoffice.services import map_document as map_service
from backoffice.services.attachment_store import AttachmentStore

router = APIRouter(prefix="/maps", tags=["maps"])


@router.get("", response_model=list[MapDocument])
def list_maps(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    return [MapDocument.from_model(m) for m in map_service.list_maps(db)]


@router.get("/{map_id}", response_model=MapDocument)
def get_map(
    map_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_approved_user),
):
    return MapDocument.from_model(map_service.get_map(db, map_id))


@router.post("/upload", response_model=MapDocument, status_code=status.HTTP_201_CREATED)
def upload_map(
    title: str | None = Form(None),
    description: str | None = Form(None),
    file: UploadFile | None = File(None),
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Upload a map (image, PDF or archive). Only admin users can upload maps.
    """
    db_map = map_service.upload_map(db, store, current_user, file, title, description)
    return MapDocument.from_model(db_map)


@router.put("/{map_id}", response_model=MapDocument)
def update_map(
    map_id: int,
    map_data: MapDocumentUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    return MapDocument.from_model(map_service.update_map(db, map_id, map_data))


@router.delete("/{map_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_map(
    map_id: int,
    db: Session = Depends(get_db),
    store: AttachmentStore = Depends(get_attachment_store),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """Delete a map and its stored file."""
    map_service.delete_map(db, store, current_user, map_id)
