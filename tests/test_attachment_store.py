import io
import logging

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from backoffice.errors import DomainValidationError
from backoffice.services.attachment_store import (
    IMAGE_EXTENSIONS,
    AttachmentStore,
    safe_file_stem,
)


def _upload(name: str, content: bytes = b"data", content_type: str = "application/pdf") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=name,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def store(tmp_path) -> AttachmentStore:
    return AttachmentStore(tmp_path / "uploads")


def test_safe_file_stem():
    assert safe_file_stem("my deed (final).pdf") == "my_deed__final_"
    assert safe_file_stem("سند.pdf") == "سند"
    assert safe_file_stem(".pdf") == "_pdf"
    assert len(safe_file_stem("x" * 200 + ".pdf")) == 50


def test_stage_writes_file_under_category(store):
    staged = store.stage(_upload("Deed.PDF", b"%PDF-1.4"), "contracts", prefix="contract")
    assert staged.path.startswith("/uploads/contracts/contract_")
    assert staged.path.endswith("_Deed.pdf")
    assert staged.size == 8
    assert staged.mime_type == "application/pdf"
    assert store.resolve(staged.path).read_bytes() == b"%PDF-1.4"
    assert staged.as_record() == {
        "original_name": "Deed.PDF",
        "path": staged.path,
        "size": 8,
        "mime_type": "application/pdf",
    }


def test_stage_rejects_extension(store):
    with pytest.raises(DomainValidationError):
        store.stage(_upload("run.exe", content_type="application/pdf"), "contracts")


def test_stage_rejects_mismatched_mime(store):
    with pytest.raises(DomainValidationError):
        store.stage(_upload("photo.png", content_type="text/html"), "id-photos", IMAGE_EXTENSIONS)


def test_stage_rejects_oversized_file_and_leaves_nothing(store):
    with pytest.raises(DomainValidationError):
        store.stage(_upload("big.pdf", b"x" * 2048), "contracts", max_size=1024)
    assert list((store.root / "contracts").iterdir()) == []


def test_stage_many_is_all_or_nothing(store):
    uploads = [_upload("a.pdf"), _upload("b.pdf"), _upload("c.exe")]
    with pytest.raises(DomainValidationError):
        store.stage_many(uploads, "contracts")
    assert list((store.root / "contracts").iterdir()) == []


def test_delete_path(store):
    staged = store.stage(_upload("a.pdf"), "contracts")
    assert store.delete_path(staged.path) is True
    assert not store.resolve(staged.path).exists()
    # Already gone
    assert store.delete_path(staged.path) is True
    assert store.delete_path(None) is True


def test_delete_path_outside_root_refused(store, caplog):
    with caplog.at_level(logging.WARNING, logger="backoffice.services.attachment_store"):
        assert store.delete_path("/uploads/../../etc/passwd") is False
        assert store.delete_path("/etc/passwd") is False
    assert "Cleanup warning" in caplog.text


def test_discard_accepts_records_and_paths(store):
    first = store.stage(_upload("a.pdf"), "contracts")
    second = store.stage(_upload("b.pdf"), "contracts")
    third = store.stage(_upload("c.pdf"), "contracts")
    store.discard([first, second.as_record(), third.path])
    assert list((store.root / "contracts").iterdir()) == []
