# backend/intake/__init__.py
from .file_intake import FileIntake, IncomingFile, StoredFile, create_file_intake

__all__ = ["FileIntake", "IncomingFile", "StoredFile", "create_file_intake"]
