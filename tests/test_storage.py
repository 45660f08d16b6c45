"""
Attachment store: image transform, key generation, fan-out upload with
compensation, and the S3/local backends.
"""

import io
import os
from unittest.mock import MagicMock

import pytest
from PIL import Image

from core.exceptions import UploadError
from core.storage import (
    FileUpload,
    LocalAttachmentStore,
    S3AttachmentStore,
    StoredFile,
    generate_unique_key,
    process_image,
)
from tests.factories import PDF_BYTES, make_png


class TestProcessImage:
    def test_wide_image_is_shrunk_to_max_width(self):
        out = process_image(make_png(1000, 400), max_width=500, quality=90)
        with Image.open(io.BytesIO(out)) as img:
            assert img.format == "JPEG"
            assert img.size == (500, 200)

    def test_small_image_keeps_its_size(self):
        out = process_image(make_png(300, 200), max_width=500, quality=90)
        with Image.open(io.BytesIO(out)) as img:
            assert img.size == (300, 200)

    def test_rgba_is_flattened_for_jpeg(self):
        buf = io.BytesIO()
        Image.new("RGBA", (50, 50), (0, 0, 255, 128)).save(buf, format="PNG")
        out = process_image(buf.getvalue(), max_width=500, quality=90)
        with Image.open(io.BytesIO(out)) as img:
            assert img.mode == "RGB"


class TestGenerateUniqueKey:
    def test_keeps_readable_stem_and_extension(self):
        key = generate_unique_key("Motor Front.PDF")
        assert key.startswith("Motor-Front-")
        assert key.endswith(".pdf")

    def test_extension_override(self):
        assert generate_unique_key("photo.png", ".jpg").endswith(".jpg")

    def test_keys_are_unique(self):
        keys = {generate_unique_key("a.png") for _ in range(50)}
        assert len(keys) == 50

    def test_path_components_are_dropped(self):
        assert "/" not in generate_unique_key("../../etc/passwd")


class TestStoredFile:
    def test_image_classification(self):
        assert StoredFile(url="u", key="k", content_type="image/jpeg").file_type == "image"

    def test_everything_else_is_pdf(self):
        assert StoredFile(url="u", key="k", content_type="application/pdf").file_type == "pdf"


class TestUpload:
    def test_image_is_reencoded_before_store(self, store):
        stored = store.upload(FileUpload(filename="pump.png", content_type="image/png", data=make_png()))
        assert stored.content_type == "image/jpeg"
        assert stored.key.endswith(".jpg")
        data, content_type = store.objects[stored.key]
        assert content_type == "image/jpeg"
        with Image.open(io.BytesIO(data)) as img:
            assert img.width == 500

    def test_pdf_is_stored_unchanged(self, store):
        stored = store.upload(FileUpload(filename="bill.pdf", content_type="application/pdf", data=PDF_BYTES))
        assert store.objects[stored.key] == (PDF_BYTES, "application/pdf")
        assert stored.file_type == "pdf"

    def test_undecodable_image_is_an_upload_error(self, store):
        with pytest.raises(UploadError):
            store.upload(FileUpload(filename="x.png", content_type="image/png", data=b"not an image"))


class TestUploadMany:
    def test_returns_results_in_input_order(self, store):
        files = [
            FileUpload(filename=f"f{i}.pdf", content_type="application/pdf", data=PDF_BYTES)
            for i in range(4)
        ]
        stored = store.upload_many(files)
        assert [s.key.split("-")[0] for s in stored] == ["f0", "f1", "f2", "f3"]

    def test_empty_list(self, store):
        assert store.upload_many([]) == []

    def test_failure_discards_successful_uploads(self, store):
        store.fail_stems = {"broken"}
        files = [
            FileUpload(filename="ok.pdf", content_type="application/pdf", data=PDF_BYTES),
            FileUpload(filename="broken.pdf", content_type="application/pdf", data=PDF_BYTES),
        ]
        with pytest.raises(UploadError) as exc_info:
            store.upload_many(files)

        assert exc_info.value.status_code == 400
        assert "broken.pdf" in exc_info.value.detail
        assert store.objects == {}
        assert len(store.deleted) == 1

    def test_discard_reports_undeletable_keys(self, store):
        store.objects["a"] = (b"", "x")
        store.fail_delete_keys = {"b"}
        assert store.discard(["a", "b"]) == ["b"]


class TestS3AttachmentStore:
    def test_put_and_delete(self):
        client = MagicMock()
        s3_store = S3AttachmentStore("workshop-files", "ap-south-1", client=client)

        stored = s3_store.store(PDF_BYTES, "application/pdf", "bill-1.pdf")

        client.put_object.assert_called_once_with(
            Bucket="workshop-files", Key="bill-1.pdf", Body=PDF_BYTES, ContentType="application/pdf"
        )
        assert stored.url == "https://workshop-files.s3.ap-south-1.amazonaws.com/bill-1.pdf"
        assert stored.key == "bill-1.pdf"

        s3_store.delete("bill-1.pdf")
        client.delete_object.assert_called_once_with(Bucket="workshop-files", Key="bill-1.pdf")

    def test_requires_bucket(self):
        with pytest.raises(RuntimeError):
            S3AttachmentStore("", "ap-south-1", client=MagicMock())


class TestLocalAttachmentStore:
    def test_store_and_delete(self, tmp_path):
        local = LocalAttachmentStore(str(tmp_path), base_url="/uploads/")
        stored = local.store(b"hello", "application/pdf", "note.pdf")

        assert stored.url == "/uploads/note.pdf"
        assert (tmp_path / "note.pdf").read_bytes() == b"hello"

        local.delete("note.pdf")
        assert not os.path.exists(tmp_path / "note.pdf")

    def test_delete_missing_file_is_quiet(self, tmp_path):
        LocalAttachmentStore(str(tmp_path)).delete("nothing-here.pdf")
