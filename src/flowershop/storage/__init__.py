"""Storage backends for flowershop."""

from pathlib import Path

from ..config import Settings
from .database import DatabaseStorage
from .memory import MemStorage
from .protocol import Storage

_SQLITE_FILE_PREFIX = "sqlite:///"


def create_storage(settings: Settings) -> Storage:
    """Build the storage backend selected by the settings.

    The parent directory is created for file-based SQLite URLs.
    """
    if settings.storage == "memory":
        return MemStorage()

    url = settings.database_url
    if url.startswith(_SQLITE_FILE_PREFIX) and ":memory:" not in url:
        db_path = url[len(_SQLITE_FILE_PREFIX):]
        if db_path:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return DatabaseStorage.from_url(url, echo=settings.echo_sql)


__all__ = [
    "Storage",
    "MemStorage",
    "DatabaseStorage",
    "create_storage",
]
