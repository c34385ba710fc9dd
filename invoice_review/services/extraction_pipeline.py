"""
Upload-to-record orchestration.

Runs structured extraction, confirms the uploaded file still exists, then
creates the invoice record. Nothing is persisted before the last step, so a
failure earlier leaves no partial state behind. No step is retried.
"""

from loguru import logger

from .extraction import ExtractionFailure, InvoiceExtractor
from .invoice_service import InvoiceService
from .storage import BlobStoreBase
from ..core.errors import NotFound
from ..models.invoice import InvoiceRecord, ModelSelector


class ExtractionPipeline:
    def __init__(self, extractor: InvoiceExtractor, blobs: BlobStoreBase, invoices: InvoiceService):
        self.extractor = extractor
        self.blobs = blobs
        self.invoices = invoices

    async def run(self, file_id: str, model: str | ModelSelector, extracted_text: str) -> InvoiceRecord:
        """
        Extract and persist an invoice for a previously uploaded file.

        Args:
            file_id: Blob reference returned by the upload endpoint
            model: Model selector ("gemini" or "groq")
            extracted_text: Text already pulled from the PDF by /parse-pdf

        Returns:
            The persisted InvoiceRecord

        Raises:
            ExtractionFailed: the extractor reported a failure
            NotFound: the uploaded file no longer exists
            ValidationFailed: an invoice already exists for this file
        """
        logger.info("Starting invoice extraction", file_id=file_id, model=getattr(model, "value", model), text_chars=len(extracted_text or ""))

        # 1. Structured extraction
        result = await self.extractor.extract(extracted_text, model)
        if isinstance(result, ExtractionFailure):
            logger.warning(
                "Invoice extraction failed",
                file_id=file_id,
                error_kind=result.error_kind,
                details=result.details,
            )
            raise result.to_exception()

        # 2. Resolve the source file
        blob = self.blobs.get_info(file_id)
        if blob is None:
            raise NotFound("File not found", "PDF file not found in storage for extraction.")

        # 3. Persist
        return self.invoices.create_from_extraction(result, file_id=file_id, file_name=blob.file_name)
