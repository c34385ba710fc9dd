"""
Error kinds surfaced to API callers.

Every failure an operation can report is one of these. The API layer maps
them to HTTP responses in a single place (see api/main.py), so services only
raise and never build responses themselves.
"""

from typing import Any


class InvoiceReviewError(Exception):
    """Base class for all reported failures"""

    kind: str = "ServerError"
    status_code: int = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or message


class ValidationFailed(InvoiceReviewError):
    """Malformed or missing input, with per-field detail"""

    kind = "ValidationError"
    status_code = 400

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


class DuplicateFileId(ValidationFailed):
    """A record already references this blob"""

    def __init__(self, file_id: str):
        super().__init__(
            "An invoice already exists for this file",
            errors=[{"loc": ["fileId"], "msg": f"fileId {file_id} is already referenced by an invoice"}],
        )
        self.file_id = file_id


class NotFound(InvoiceReviewError):
    kind = "NotFoundError"
    status_code = 404


class StorageFailure(InvoiceReviewError):
    kind = "StorageFailure"
    status_code = 500


class PdfParseFailed(InvoiceReviewError):
    """Uploaded bytes could not be read as a PDF"""

    kind = "PdfParseFailure"
    status_code = 500


# Extraction failure kinds (values of ExtractionFailure.error_kind)
EXTRACTION_UNCONFIGURED = "ExtractionUnconfigured"
EXTRACTION_PARSE_FAILURE = "ExtractionParseFailure"
EXTRACTION_TRANSPORT_FAILURE = "ExtractionTransportFailure"
UNSUPPORTED_MODEL = "UnsupportedModel"
INVALID_INPUT = ValidationFailed.kind

EXTRACTION_STATUS_CODES = {
    EXTRACTION_UNCONFIGURED: 500,
    EXTRACTION_PARSE_FAILURE: 500,
    EXTRACTION_TRANSPORT_FAILURE: 500,
    UNSUPPORTED_MODEL: 400,
    INVALID_INPUT: 400,
}


class ExtractionFailed(InvoiceReviewError):
    """
    Raised by the extraction pipeline when the extractor returns a failure.

    Carries the extractor's tagged result unchanged: `error` is the short
    human-readable label and `details` the longer explanation.
    """

    def __init__(self, error_kind: str, error: str, details: str):
        super().__init__(error, details)
        self.kind = error_kind
        self.status_code = EXTRACTION_STATUS_CODES.get(error_kind, 500)
        self.error = error
