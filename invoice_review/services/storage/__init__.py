from .base import BlobStoreBase, InvoiceStoreBase
from .memory import InMemoryBlobStore, InMemoryInvoiceStore
from .sqlite import SQLiteBlobStore, SQLiteInvoiceStore

SQLITE_PREFIX = "sqlite:///"
MEMORY_URL = "memory://"


def build_stores(database_url: str) -> tuple[InvoiceStoreBase, BlobStoreBase]:
    """
    Create the invoice and file stores for a DATABASE_URL.

    Supported forms:
        sqlite:///relative/path.db, sqlite:////absolute/path.db
        memory://
    """
    if database_url == MEMORY_URL:
        return InMemoryInvoiceStore(), InMemoryBlobStore()

    if database_url.startswith(SQLITE_PREFIX):
        db_path = database_url[len(SQLITE_PREFIX):]
        if not db_path:
            raise ValueError("DATABASE_URL is missing the SQLite file path")
        return SQLiteInvoiceStore(db_path), SQLiteBlobStore(db_path)

    raise ValueError(f"Unsupported DATABASE_URL: {database_url!r} (expected sqlite:///<path> or memory://)")


__all__ = [
    "BlobStoreBase",
    "InvoiceStoreBase",
    "InMemoryBlobStore",
    "InMemoryInvoiceStore",
    "SQLiteBlobStore",
    "SQLiteInvoiceStore",
    "build_stores",
]
