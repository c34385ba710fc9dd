"""
In-memory invoice and file storage (for tests and demos).
"""
import copy
from datetime import datetime, UTC
from typing import Dict, Optional

from .base import BlobStoreBase, InvoiceStoreBase
from ...core.errors import DuplicateFileId, NotFound
from ...models.ids import new_object_id
from ...models.invoice import BlobInfo, InvoiceQuery


def _contains(haystack: Optional[str], needle: str) -> bool:
    return needle.casefold() in (haystack or "").casefold()


class InMemoryInvoiceStore(InvoiceStoreBase):
    def __init__(self):
        # dicts keep insertion order, which is the listing order
        self._invoices: Dict[str, dict] = {}

    def insert(self, document: dict) -> None:
        file_id = document["fileId"]
        if any(doc["fileId"] == file_id for doc in self._invoices.values()):
            raise DuplicateFileId(file_id)
        self._invoices[document["_id"]] = copy.deepcopy(document)

    def get(self, invoice_id: str) -> Optional[dict]:
        return copy.deepcopy(self._invoices.get(invoice_id))

    def find(self, query: InvoiceQuery) -> list:
        return [copy.deepcopy(doc) for doc in self._invoices.values() if self._matches(doc, query)]

    @staticmethod
    def _matches(document: dict, query: InvoiceQuery) -> bool:
        if query.vendor_name is not None and not _contains(document["vendor"].get("name"), query.vendor_name):
            return False
        if query.invoice_number is not None and not _contains(
            document["invoiceInfo"].get("number"), query.invoice_number
        ):
            return False
        return True

    def replace(self, invoice_id: str, document: dict) -> bool:
        if invoice_id not in self._invoices:
            return False
        self._invoices[invoice_id] = copy.deepcopy(document)
        return True

    def delete(self, invoice_id: str) -> bool:
        return self._invoices.pop(invoice_id, None) is not None


class InMemoryBlobStore(BlobStoreBase):
    def __init__(self):
        self._files: Dict[str, tuple[BlobInfo, bytes]] = {}

    def put(self, file_name: str, content: bytes, content_type: str = "application/pdf") -> BlobInfo:
        info = BlobInfo(
            file_id=new_object_id(),
            file_name=file_name,
            content_type=content_type,
            length=len(content),
            uploaded_at=datetime.now(UTC),
        )
        self._files[info.file_id] = (info, content)
        return info

    def get_info(self, file_id: str) -> Optional[BlobInfo]:
        entry = self._files.get(file_id)
        return entry[0] if entry else None

    def open(self, file_id: str) -> Optional[bytes]:
        entry = self._files.get(file_id)
        return entry[1] if entry else None

    def delete(self, file_id: str) -> None:
        if self._files.pop(file_id, None) is None:
            raise NotFound("File not found", f"No stored file with id {file_id}")
