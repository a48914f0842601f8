"""Image management utilities."""

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List, Dict, Any
import logging

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".webp": "image/webp",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}

DEFAULT_ALLOWED_TYPES = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
)


class UploadValidationError(ValueError):
    """Upload rejected before processing (type or size)."""


@dataclass
class StoredImage:
    """Location of a processed image on disk."""
    file_id: str
    filename: str
    path: Path
    url: str


class ImageManager:
    """Manage processed question images on disk."""

    def __init__(
        self,
        upload_dir: str = "./data/uploads",
        max_file_size_mb: int = 10,
        allowed_types: Optional[List[str]] = None,
        extension: str = ".webp",
        url_prefix: str = "/api/uploads",
    ):
        self.upload_dir = Path(upload_dir).resolve()
        self.max_file_size = max_file_size_mb * 1024 * 1024
        self.allowed_types = tuple(allowed_types or DEFAULT_ALLOWED_TYPES)
        self.extension = extension
        self.url_prefix = url_prefix.rstrip("/")

        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def validate_upload(self, filename: str, content_type: Optional[str], size: int):
        """Check MIME type and size of an incoming file."""
        if content_type not in self.allowed_types:
            raise UploadValidationError(
                f"Unsupported file type: {content_type}. Only images are accepted."
            )

        if size > self.max_file_size:
            raise UploadValidationError(
                f"File too large (max {self.max_file_size // (1024 * 1024)} MB): {filename}"
            )

    def new_image(self) -> StoredImage:
        """Allocate a fresh random identifier and its storage location."""
        file_id = str(uuid.uuid4())
        return self.locate(file_id)

    def locate(self, file_id: str) -> StoredImage:
        """Storage location for an existing identifier."""
        filename = f"{file_id}{self.extension}"
        return StoredImage(
            file_id=file_id,
            filename=filename,
            path=self.resolve(filename),
            url=f"{self.url_prefix}/{filename}",
        )

    def resolve(self, filename: str) -> Path:
        """Map a stored filename to a path inside the upload directory."""
        path = (self.upload_dir / filename).resolve()
        if self.upload_dir not in path.parents:
            raise ValueError(f"Invalid file path: {filename}")
        return path

    def filename_from_url(self, file_url: str) -> str:
        return file_url.rsplit("/", 1)[-1]

    def write(self, stored: StoredImage, data: bytes) -> Path:
        """Write processed bytes to their storage location."""
        with open(stored.path, "wb") as f:
            f.write(data)
        return stored.path

    def read(self, filename: str) -> bytes:
        """Read a stored file. Raises FileNotFoundError if missing."""
        path = self.resolve(filename)
        with open(path, "rb") as f:
            return f.read()

    def content_type(self, filename: str) -> str:
        return CONTENT_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")

    def delete_file(self, filename: str) -> bool:
        """Delete a stored file. Failures are logged, never raised."""
        try:
            path = self.resolve(filename)
            if path.exists():
                path.unlink()
                return True
        except Exception as e:
            logger.warning(f"Failed to delete {filename}: {e}")
        return False

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage statistics."""
        count = 0
        size = 0
        for filepath in self.upload_dir.iterdir():
            if filepath.is_file():
                count += 1
                size += filepath.stat().st_size

        return {
            "upload_dir": str(self.upload_dir),
            "upload_count": count,
            "upload_size_mb": round(size / (1024 * 1024), 2),
        }
