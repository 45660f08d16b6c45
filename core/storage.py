import io
import logging
import os
import re
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import List, Optional

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

from core.config import settings
from core.exceptions import UploadError

logger = logging.getLogger(__name__)


class FileUpload(BaseModel):
    """A file received from a client, fully read into memory."""
    filename: str
    content_type: str
    data: bytes

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


class StoredFile(BaseModel):
    url: str
    key: str
    content_type: str

    @property
    def file_type(self) -> str:
        # Anything that is not an image is kept as a document
        return "image" if self.content_type.startswith("image/") else "pdf"


def generate_unique_key(filename: str, extension: Optional[str] = None) -> str:
    """
    Build a collision-free storage key that keeps the original file name
    readable, e.g. ``motor-front-1718000000000-3f2a9c1d.jpg``.
    """
    stem, ext = os.path.splitext(os.path.basename(filename or "file"))
    stem = re.sub(r"[^A-Za-z0-9_.-]+", "-", stem).strip("-") or "file"
    ts = int(time.time() * 1000)
    uid = uuid.uuid4().hex[:8]
    return f"{stem}-{ts}-{uid}{extension if extension is not None else ext.lower()}"


def process_image(data: bytes, max_width: int, quality: int) -> bytes:
    """Shrink an image to ``max_width`` and re-encode it as JPEG."""
    with Image.open(io.BytesIO(data)) as img:
        img = img.convert("RGB")
        if img.width > max_width:
            height = max(1, round(img.height * max_width / img.width))
            img = img.resize((max_width, height), Image.LANCZOS)
        out = io.BytesIO()
        img.save(out, format="JPEG", quality=quality)
        return out.getvalue()


class AttachmentStore:
    """
    Object storage for uploaded attachments.

    Subclasses implement ``store`` and ``delete``; the upload helpers on this
    class take care of the pre-store image transform, concurrent fan-out and
    compensation when part of a batch fails.
    """

    def __init__(self, max_width: int = 500, quality: int = 90, max_workers: int = 5):
        self.max_width = max_width
        self.quality = quality
        self.max_workers = max_workers

    def store(self, data: bytes, content_type: str, filename: str) -> StoredFile:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def upload(self, file: FileUpload) -> StoredFile:
        data, content_type, extension = file.data, file.content_type, None
        if file.is_image:
            try:
                data = process_image(file.data, self.max_width, self.quality)
            except (UnidentifiedImageError, OSError) as e:
                raise UploadError(f"Could not process image '{file.filename}': {e}")
            content_type, extension = "image/jpeg", ".jpg"

        key = generate_unique_key(file.filename, extension)
        return self.store(data, content_type, key)

    def upload_many(self, files: List[FileUpload]) -> List[StoredFile]:
        """
        Upload all files concurrently and return them in input order.

        If any upload fails, the files that did get stored are deleted again
        and an UploadError is raised.
        """
        if not files:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(files))) as executor:
            futures = [executor.submit(self.upload, f) for f in files]

        stored, errors = [], []
        for file, future in zip(files, futures):
            try:
                stored.append(future.result())
            except Exception as e:
                logger.error(f"Failed to upload '{file.filename}': {e}")
                errors.append(file.filename)

        if errors:
            self.discard([s.key for s in stored])
            raise UploadError(f"File upload failed: {', '.join(errors)}")

        logger.info(f"Uploaded {len(stored)} file(s)")
        return stored

    def discard(self, keys: List[str]) -> List[str]:
        """Delete keys without raising; returns the keys that could not be deleted."""
        failed = []
        for key in keys:
            try:
                self.delete(key)
            except Exception as e:
                logger.warning(f"Could not delete stored object {key}: {e}")
                failed.append(key)
        return failed


class S3AttachmentStore(AttachmentStore):
    def __init__(self, bucket: str, region: str, client=None, **kwargs):
        super().__init__(**kwargs)
        if not bucket:
            raise RuntimeError("AWS_BUCKET_NAME not configured")
        self.bucket = bucket
        self.region = region
        if client is None:
            import boto3
            from botocore.client import Config

            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                config=Config(signature_version="s3v4"),
            )
        self.client = client

    def store(self, data: bytes, content_type: str, filename: str) -> StoredFile:
        self.client.put_object(
            Bucket=self.bucket,
            Key=filename,
            Body=data,
            ContentType=content_type,
        )
        url = f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{filename}"
        logger.debug(f"Stored s3://{self.bucket}/{filename}")
        return StoredFile(url=url, key=filename, content_type=content_type)

    def delete(self, key: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=key)
        logger.debug(f"Deleted s3://{self.bucket}/{key}")


class LocalAttachmentStore(AttachmentStore):
    def __init__(self, directory: str, base_url: str = "/uploads", **kwargs):
        super().__init__(**kwargs)
        self.directory = directory
        self.base_url = base_url.rstrip("/")

    def store(self, data: bytes, content_type: str, filename: str) -> StoredFile:
        path = os.path.join(self.directory, filename)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        return StoredFile(url=f"{self.base_url}/{filename}", key=filename, content_type=content_type)

    def delete(self, key: str) -> None:
        path = os.path.join(self.directory, key)
        if os.path.exists(path):
            os.remove(path)


@lru_cache
def get_attachment_store() -> AttachmentStore:
    """Dependency returning the configured store (built once per process)."""
    options = {
        "max_width": settings.IMAGE_MAX_WIDTH,
        "quality": settings.IMAGE_JPEG_QUALITY,
        "max_workers": settings.UPLOAD_WORKERS,
    }
    if settings.STORAGE_BACKEND == "s3":
        return S3AttachmentStore(settings.AWS_BUCKET_NAME, settings.AWS_BUCKET_REGION, **options)
    return LocalAttachmentStore(settings.LOCAL_STORAGE_DIR, settings.LOCAL_STORAGE_BASE_URL, **options)


def read_uploads(files, max_files: Optional[int] = None) -> List[FileUpload]:
    """Read FastAPI ``UploadFile`` objects into memory, skipping empty form parts."""
    uploads = []
    for file in files or []:
        if not file.filename:
            continue
        uploads.append(FileUpload(
            filename=file.filename,
            content_type=file.content_type or "application/octet-stream",
            data=file.file.read(),
        ))

    max_files = max_files or settings.MAX_UPLOAD_FILES
    if len(uploads) > max_files:
        raise UploadError(f"Too many files: at most {max_files} allowed")
    return uploads
