"""
Abstract base classes for invoice and file storage.

Defines the interface that all storage backends must implement,
enabling dependency injection and easy swapping of storage backends.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ...models.invoice import BlobInfo, InvoiceQuery


class InvoiceStoreBase(ABC):
    """
    Durable keyed storage for invoice documents.

    Documents are plain dicts in wire form (camelCase keys, "_id" identity,
    ISO timestamps). Record-level rules live in InvoiceService; stores only
    persist and query.

    Implementations:
    - In-memory storage (for testing/demo)
    - SQLite (for single-instance deployments)
    """

    @abstractmethod
    def insert(self, document: dict) -> None:
        """
        Insert a new document. The document already carries its "_id".

        Raises:
            DuplicateFileId: another document references the same fileId
        """
        pass

    @abstractmethod
    def get(self, invoice_id: str) -> Optional[dict]:
        """
        Get a document by ID.

        Returns:
            The document, or None if not found.
        """
        pass

    @abstractmethod
    def find(self, query: InvoiceQuery) -> list:
        """
        List documents matching the query, in insertion order.

        Both filters are case-insensitive substring matches and are ANDed.
        """
        pass

    @abstractmethod
    def replace(self, invoice_id: str, document: dict) -> bool:
        """
        Replace a stored document.

        Returns:
            True if successful, False if the document was not found
        """
        pass

    @abstractmethod
    def delete(self, invoice_id: str) -> bool:
        """
        Delete a document.

        Returns:
            True if successful, False if the document was not found
        """
        pass


class BlobStoreBase(ABC):
    """Storage for original PDF bytes, keyed by an opaque file id"""

    @abstractmethod
    def put(self, file_name: str, content: bytes, content_type: str = "application/pdf") -> BlobInfo:
        """Store bytes under a newly generated file id (never reused)"""
        pass

    @abstractmethod
    def get_info(self, file_id: str) -> Optional[BlobInfo]:
        """Metadata for a stored file, or None if not found"""
        pass

    @abstractmethod
    def open(self, file_id: str) -> Optional[bytes]:
        """Stored bytes, or None if not found"""
        pass

    @abstractmethod
    def delete(self, file_id: str) -> None:
        """
        Delete a stored file.

        Raises:
            NotFound: no file with this id
        """
        pass
