"""
Record-level rules for invoices on top of the storage backends.

The stores persist documents; this service owns everything that makes a
document a valid InvoiceRecord: identity, timestamps, protected fields,
validation, and removing the source PDF together with its record.
"""

from datetime import datetime, UTC

from loguru import logger
from pydantic import ValidationError

from .storage import BlobStoreBase, InvoiceStoreBase
from ..core.errors import NotFound, StorageFailure, ValidationFailed
from ..models.ids import is_valid_object_id, new_object_id
from ..models.invoice import (
    PROTECTED_FIELDS,
    ExtractedInvoice,
    InvoiceCreate,
    InvoiceQuery,
    InvoiceRecord,
    InvoiceUpdate,
)


def validation_failed(exc: ValidationError, message: str = "Invalid invoice data") -> ValidationFailed:
    """Convert a pydantic ValidationError into a reportable ValidationFailed"""
    errors = [{"loc": [str(part) for part in err["loc"]], "msg": err["msg"]} for err in exc.errors()]
    return ValidationFailed(message, errors=errors)


class InvoiceService:
    def __init__(self, invoices: InvoiceStoreBase, blobs: BlobStoreBase):
        self.invoices = invoices
        self.blobs = blobs

    @staticmethod
    def _require_valid_id(invoice_id: str):
        if not is_valid_object_id(invoice_id):
            raise ValidationFailed(
                "Invalid Invoice ID format",
                errors=[{"loc": ["id"], "msg": "Invalid Invoice ID format"}],
            )

    @staticmethod
    def _to_document(record: InvoiceRecord) -> dict:
        return record.model_dump(mode="json", by_alias=True)

    @staticmethod
    def _from_document(document: dict) -> InvoiceRecord:
        return InvoiceRecord.model_validate(document)

    def _insert(self, payload: ExtractedInvoice, file_id: str, file_name: str) -> InvoiceRecord:
        now = datetime.now(UTC)
        record = InvoiceRecord(
            id=new_object_id(),
            file_id=file_id,
            file_name=file_name,
            vendor=payload.vendor,
            invoice_info=payload.invoice_info,
            line_items=payload.line_items,
            extracted_at=now,
            last_updated_at=now,
        )
        self.invoices.insert(self._to_document(record))

        logger.info(
            "Invoice created",
            invoice_id=record.id,
            file_id=file_id,
            vendor=record.vendor.name,
            invoice_number=record.invoice_info.number,
        )
        return record

    def create(self, payload: InvoiceCreate) -> InvoiceRecord:
        """Create a record from a manual-entry payload for an uploaded file"""
        if self.blobs.get_info(payload.file_id) is None:
            raise ValidationFailed(
                "File not found",
                errors=[{"loc": ["body", "fileId"], "msg": f"No uploaded file with id {payload.file_id}"}],
            )
        return self._insert(payload, payload.file_id, payload.file_name)

    def create_from_extraction(self, payload: ExtractedInvoice, file_id: str, file_name: str) -> InvoiceRecord:
        """Create a record from extractor output for an uploaded file"""
        return self._insert(payload, file_id, file_name)

    def get(self, invoice_id: str) -> InvoiceRecord:
        self._require_valid_id(invoice_id)
        document = self.invoices.get(invoice_id)
        if document is None:
            raise NotFound("Invoice not found")
        return self._from_document(document)

    def search(self, query: InvoiceQuery | None = None) -> list[InvoiceRecord]:
        documents = self.invoices.find(query or InvoiceQuery())
        return [self._from_document(doc) for doc in documents]

    def update(self, invoice_id: str, changes: InvoiceUpdate) -> InvoiceRecord:
        """
        Apply a partial update.

        vendor and invoiceInfo patches are merged field by field into the
        stored objects; lineItems replaces the whole list. Protected fields
        never reach this point (InvoiceUpdate drops them) and are filtered
        again here in case a caller builds the patch by hand.
        """
        current = self.get(invoice_id).model_dump()
        patch = changes.model_dump(exclude_unset=True)
        changed_fields = sorted(patch)

        for key in ("vendor", "invoice_info"):
            if isinstance(patch.get(key), dict):
                current[key] = {**current[key], **patch.pop(key)}

        current.update({key: value for key, value in patch.items() if key not in PROTECTED_FIELDS})
        current["last_updated_at"] = datetime.now(UTC)

        try:
            updated = InvoiceRecord.model_validate(current)
        except ValidationError as e:
            raise validation_failed(e) from e

        if not self.invoices.replace(invoice_id, self._to_document(updated)):
            raise NotFound("Invoice not found")

        logger.info("Invoice updated", invoice_id=invoice_id, fields=changed_fields)
        return updated

    def delete(self, invoice_id: str) -> None:
        """
        Delete a record and its source PDF.

        The file goes first. If the blob store fails the record is kept and
        a StorageFailure is raised. A file that is already gone (left over
        from an earlier attempt whose record delete failed) does not block
        the record delete.
        """
        record = self.get(invoice_id)

        if not is_valid_object_id(record.file_id):
            logger.error("Invoice references a malformed fileId", invoice_id=invoice_id, file_id=record.file_id)
            raise StorageFailure(
                "Failed to delete invoice",
                f"Stored fileId {record.file_id!r} is not a valid file reference",
            )

        try:
            self.blobs.delete(record.file_id)
        except NotFound:
            logger.warning("Source file already removed", invoice_id=invoice_id, file_id=record.file_id)
        except StorageFailure as e:
            logger.error("Could not delete source file", invoice_id=invoice_id, file_id=record.file_id)
            raise StorageFailure("Failed to delete invoice", e.details) from e

        if not self.invoices.delete(invoice_id):
            raise NotFound("Invoice not found")

        logger.info("Invoice deleted", invoice_id=invoice_id, file_id=record.file_id)
