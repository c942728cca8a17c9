"""
Storage backends for Sacco records.

``SaccoStorage`` defines the interface; ``MemStorage`` keeps records in
process and ``SQLiteStorage`` persists them to a database file.  Use
``create_storage`` to build the backend named in the settings.
"""

from typing import Optional

from ..core.config import settings
from .base import SaccoStorage
from .memory import MemStorage
from .sqlite import SQLiteStorage

__all__ = ["SaccoStorage", "MemStorage", "SQLiteStorage", "create_storage"]


def create_storage(backend: Optional[str] = None, db_path: Optional[str] = None) -> SaccoStorage:
    """Instantiate the storage backend by name (``sqlite`` or ``memory``).

    Raises ``ValueError`` for an unknown backend name.
    """
    backend = (backend or settings.storage_backend).lower()
    if backend == "memory":
        return MemStorage()
    if backend == "sqlite":
        return SQLiteStorage(db_path)
    raise ValueError(f"Unknown storage backend: {backend!r}")
