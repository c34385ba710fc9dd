from fastapi import Request, UploadFile

from ..core.config import Settings
from ..core.errors import ValidationFailed
from ..services.extraction import InvoiceExtractor
from ..services.extraction_pipeline import ExtractionPipeline
from ..services.invoice_service import InvoiceService
from ..services.storage import BlobStoreBase

# Services are built once in create_app() and kept on app.state.


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_blob_store(request: Request) -> BlobStoreBase:
    return request.app.state.blob_store


def get_invoice_service(request: Request) -> InvoiceService:
    return request.app.state.invoice_service


def get_extractor(request: Request) -> InvoiceExtractor:
    return request.app.state.extractor


def get_pipeline(request: Request) -> ExtractionPipeline:
    return request.app.state.pipeline


async def read_upload(file: UploadFile | None, max_bytes: int) -> bytes:
    """Read an uploaded file, enforcing the upload size cap"""
    if file is None:
        raise ValidationFailed("No file uploaded", errors=[{"loc": ["body", "file"], "msg": "Field required"}])

    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise ValidationFailed(
            f"File too large (max {limit_mb}MB)",
            errors=[{"loc": ["body", "file"], "msg": f"File exceeds the {limit_mb}MB upload limit"}],
        )
    return content
