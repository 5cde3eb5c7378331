from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from backoffice.db.models.map_document import MapDocument as MapDocumentModel


class MapDocument(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    file_path: str
    file_type: str
    file_size: int
    uploaded_by: int
    uploaded_by_name: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, map_document: MapDocumentModel) -> "MapDocument":
        item = cls.model_validate(map_document)
        item.uploaded_by_name = map_document.uploader.name if map_document.uploader else None
        return item


class MapDocumentUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
