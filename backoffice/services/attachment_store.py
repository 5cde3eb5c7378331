"""Attachment store: stages uploaded files on disk and removes them again.

Files are written to ``<root>/<category>/<prefix>_<ms>_<rand>_<safe-name><ext>``
and addressed by their public path ``<public_prefix>/<category>/<file>``,
which is what the database records.
"""

import logging
import random
import re
import time
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from pathlib import Path

from fastapi import UploadFile

from backoffice.errors import DomainValidationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({"jpeg", "jpg", "png", "gif", "bmp", "webp"})
DOCUMENT_EXTENSIONS = IMAGE_EXTENSIONS | {"pdf", "zip", "rar"}

CHUNK_SIZE = 64 * 1024
MAX_NAME_LENGTH = 50

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_؀-ۿ]")


@dataclass(frozen=True)
class StagedAttachment:
    original_name: str
    path: str
    size: int
    mime_type: str

    def as_record(self) -> dict:
        """The JSON record stored alongside the owning row."""
        return asdict(self)


def safe_file_stem(original_name: str) -> str:
    """Reduce a client file name to characters safe for the filesystem."""
    stem = Path(original_name).stem
    return _UNSAFE_NAME_CHARS.sub("_", stem)[:MAX_NAME_LENGTH] or "file"


def file_extension(original_name: str) -> str:
    return Path(original_name).suffix.lower().lstrip(".")


class AttachmentStore:
    """Stage uploads under ``root`` and delete them by public path."""

    def __init__(self, root: str | Path, public_prefix: str = "/uploads"):
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip("/")

    def _category_dir(self, category: str) -> Path:
        directory = self.root / category
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def resolve(self, public_path: str) -> Path | None:
        """Map a public path back to a file under ``root``; None if it points elsewhere."""
        prefix = f"{self.public_prefix}/"
        if not public_path or not public_path.startswith(prefix):
            return None
        candidate = (self.root / public_path[len(prefix):]).resolve()
        if self.root.resolve() not in candidate.parents:
            return None
        return candidate

    def stage(
        self,
        upload: UploadFile,
        category: str,
        allowed_extensions: Iterable[str] = DOCUMENT_EXTENSIONS,
        max_size: int | None = None,
        prefix: str = "file",
    ) -> StagedAttachment:
        """
        Write one upload to disk.

        Raises:
            DomainValidationError: If the file type is not allowed or the file
                exceeds ``max_size``. Nothing is left on disk in that case.
        """
        allowed = frozenset(allowed_extensions)
        original_name = upload.filename or ""
        extension = file_extension(original_name)
        mime_type = upload.content_type or ""
        if extension not in allowed or not any(token in mime_type.lower() for token in allowed):
            raise DomainValidationError(
                f"File type not allowed for '{original_name}'. Allowed: {', '.join(sorted(allowed))}"
            )

        filename = (
            f"{prefix}_{int(time.time() * 1000)}_{random.randint(0, 9999)}"
            f"_{safe_file_stem(original_name)}.{extension}"
        )
        target = self._category_dir(category) / filename

        size = 0
        try:
            with target.open("wb") as out:
                while chunk := upload.file.read(CHUNK_SIZE):
                    size += len(chunk)
                    if max_size is not None and size > max_size:
                        raise DomainValidationError(
                            f"File '{original_name}' exceeds the {max_size // (1024 * 1024)}MB limit"
                        )
                    out.write(chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise

        return StagedAttachment(
            original_name=original_name,
            path=f"{self.public_prefix}/{category}/{filename}",
            size=size,
            mime_type=mime_type,
        )

    def stage_many(
        self,
        uploads: Iterable[UploadFile],
        category: str,
        allowed_extensions: Iterable[str] = DOCUMENT_EXTENSIONS,
        max_size: int | None = None,
        prefix: str = "file",
    ) -> list[StagedAttachment]:
        """Stage every upload, or none: earlier files are discarded if a later one fails."""
        staged: list[StagedAttachment] = []
        try:
            for upload in uploads:
                staged.append(
                    self.stage(
                        upload,
                        category,
                        allowed_extensions=allowed_extensions,
                        max_size=max_size,
                        prefix=prefix,
                    )
                )
        except BaseException:
            self.discard(staged)
            raise
        return staged

    def delete_path(self, public_path: str | None) -> bool:
        """
        Best-effort delete of one stored file.

        Failures are logged as a cleanup warning and never raised.
        Returns True when the file is gone afterwards.
        """
        if not public_path:
            return True
        target = self.resolve(public_path)
        if target is None:
            logger.warning("Cleanup warning: refusing to delete %s outside the upload root", public_path)
            return False
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Cleanup warning: could not delete %s: %s", public_path, exc)
            return False
        return True

    def discard(self, attachments: Iterable[StagedAttachment | dict | str]) -> None:
        """Best-effort delete of staged attachments, records or public paths."""
        for attachment in attachments:
            if isinstance(attachment, StagedAttachment):
                path = attachment.path
            elif isinstance(attachment, dict):
                path = attachment.get("path")
            else:
                path = attachment
            self.delete_path(path)
