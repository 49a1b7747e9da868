# Infrastructure Storage Package
from .json_store import JsonCardRepository
from .photo_store import FilesystemPhotoStore

__all__ = ["JsonCardRepository", "FilesystemPhotoStore"]
