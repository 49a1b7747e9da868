import logging
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from hanzicard.domain.constants import JPEG_QUALITY, STORAGE_MAX_DIMENSION
from hanzicard.domain.errors import PhotoStorageError
from hanzicard.domain.interfaces import PhotoFileStore


class FilesystemPhotoStore(PhotoFileStore):
    """Stores captured photos as ``<id>.jpg`` under one directory."""

    def __init__(self, directory: Path, max_dimension: int = STORAGE_MAX_DIMENSION):
        self.directory = directory
        self.max_dimension = max_dimension
        self.logger = logging.getLogger(__name__)
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, image: bytes, photo_id: str) -> str:
        filename = f"{photo_id}.jpg"
        try:
            img = Image.open(BytesIO(image)).convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise PhotoStorageError("Failed to compress image") from e

        if max(img.size) > self.max_dimension:
            img.thumbnail((self.max_dimension, self.max_dimension))

        try:
            img.save(self.directory / filename, format="JPEG", quality=JPEG_QUALITY)
        except OSError as e:
            raise PhotoStorageError("Failed to save image") from e

        self.logger.debug(f"[photos] saved {filename}")
        return filename

    def load(self, path: str) -> bytes | None:
        file_path = self.directory / path
        try:
            return file_path.read_bytes()
        except OSError:
            return None

    def delete(self, path: str) -> None:
        (self.directory / path).unlink()
