# app/integrations/storage.py
"""Local disk storage for uploaded profile and attachment images"""
import re
import secrets
import time
from pathlib import Path

from fastapi import UploadFile
from loguru import logger
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.exceptions.storage import InvalidUploadError

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/jpg"}
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class LocalImageStorage:
    """Stores images under a directory and names them uniquely"""

    def __init__(self, directory: str, max_size: int):
        self.directory = Path(directory)
        self.max_size = max_size

    def ensure_directory(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    @staticmethod
    def unique_filename(original_name: str) -> str:
        safe_name = _UNSAFE_CHARS.sub("_", Path(original_name or "image").name) or "image"
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}-{safe_name}"

    async def save(self, upload: UploadFile) -> str:
        """Validate and write the upload; returns the stored filename"""
        if upload.content_type not in ALLOWED_IMAGE_TYPES:
            raise InvalidUploadError("Invalid file type. Only JPEG, PNG and JPG are allowed.")

        content = await upload.read(self.max_size + 1)
        if not content:
            raise InvalidUploadError("No file uploaded")
        if len(content) > self.max_size:
            raise InvalidUploadError(f"File too large. Maximum size is {self.max_size} bytes.")

        filename = self.unique_filename(upload.filename)
        target = self.ensure_directory() / filename
        await run_in_threadpool(target.write_bytes, content)

        logger.info(f"Image stored: {filename} ({len(content)} bytes)")
        return filename


image_storage = LocalImageStorage(settings.UPLOAD_DIR, settings.MAX_UPLOAD_SIZE)
