# object storage for product images: upload a file, get back a public URL
import os
import shutil
import uuid
from pathlib import Path

from utils.config import settings
from utils.errors import StoreError
from utils.logger import get_logger

_logger = get_logger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


class ImageBucket:
    """A directory standing in for the 'product-images' bucket."""

    def __init__(self, root: str = settings.bucket_dir):
        self.root = root

    def public_url(self, object_name: str) -> str:
        return Path(os.path.abspath(os.path.join(self.root, object_name))).as_uri()

    def upload(self, file_path: str) -> str:
        """Copy a local image into the bucket under a random name; return its URL."""
        ext = os.path.splitext(file_path)[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise StoreError(f"Unsupported image type: {ext or 'none'}")
        if not os.path.isfile(file_path):
            raise StoreError(f"Image not found: {file_path}")

        os.makedirs(self.root, exist_ok=True)
        object_name = f"{uuid.uuid4().hex}{ext}"
        try:
            shutil.copyfile(file_path, os.path.join(self.root, object_name))
        except OSError as exc:
            _logger.error(f"Error uploading image {file_path}: {exc}")
            raise StoreError("Error uploading image.") from exc
        _logger.info(f"Uploaded {file_path} as {object_name}")
        return self.public_url(object_name)
