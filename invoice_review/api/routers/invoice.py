from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status
from loguru import logger

from ..deps import get_blob_store, get_invoice_service, get_pipeline, get_settings, read_upload
from ...core.config import Settings
from ...core.errors import NotFound, ValidationFailed
from ...models.ids import is_valid_object_id
from ...models.invoice import (
    CamelModel,
    FileId,
    InvoiceCreate,
    InvoiceQuery,
    InvoiceRecord,
    InvoiceUpdate,
)
from ...services.extraction_pipeline import ExtractionPipeline
from ...services.invoice_service import InvoiceService
from ...services.storage import BlobStoreBase

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


class UploadResponse(CamelModel):
    file_id: str
    file_name: str


class ExtractRequest(CamelModel):
    """Request body for /api/invoices/extract"""
    file_id: FileId
    model: str
    extracted_text: str


class ExtractResponse(CamelModel):
    success: bool = True
    invoice: InvoiceRecord


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload(
    file: UploadFile = File(None),
    blobs: BlobStoreBase = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
):
    """Store an uploaded PDF and return the fileId used to reference it"""
    content = await read_upload(file, settings.max_upload_bytes)
    file_name = file.filename or "upload.pdf"

    info = blobs.put(file_name, content, file.content_type or "application/pdf")
    logger.info("File uploaded", file_id=info.file_id, file_name=file_name, size_bytes=info.length)

    return UploadResponse(file_id=info.file_id, file_name=info.file_name)


@router.get("/files/{file_id}")
async def download_file(file_id: str, blobs: BlobStoreBase = Depends(get_blob_store)):
    """Serve the original PDF, e.g. for the review screen's viewer"""
    if not is_valid_object_id(file_id):
        raise ValidationFailed("Invalid fileId format", errors=[{"loc": ["path", "file_id"], "msg": "Invalid fileId format"}])

    info = blobs.get_info(file_id)
    content = blobs.open(file_id) if info else None
    if info is None or content is None:
        raise NotFound("File not found")

    return Response(
        content=content,
        media_type=info.content_type,
        headers={"Content-Disposition": f"inline; filename*=UTF-8''{quote(info.file_name)}"},
    )


@router.post("/extract", response_model=ExtractResponse)
async def extract(req: ExtractRequest, pipeline: ExtractionPipeline = Depends(get_pipeline)):
    """
    Extract structured fields from already-parsed invoice text and store
    them as a new invoice for the uploaded file.

    Example request:
    {
        "fileId": "3f2c9a4e5b6d4c1f8e7a6b5c4d3e2f10",
        "model": "gemini",
        "extractedText": "INVOICE #123 ... Total: 400.00 USD"
    }

    Failures answer {"success": false, "error": ..., "details": ...}.
    """
    record = await pipeline.run(req.file_id, req.model, req.extracted_text)
    return ExtractResponse(success=True, invoice=record)


@router.post("", response_model=InvoiceRecord, status_code=status.HTTP_201_CREATED)
async def create_invoice(payload: InvoiceCreate, service: InvoiceService = Depends(get_invoice_service)):
    """Create an invoice from manually entered data"""
    return service.create(payload)


@router.get("", response_model=list[InvoiceRecord])
async def list_invoices(
    vendor_name: str | None = Query(None, alias="vendorName"),
    invoice_number: str | None = Query(None, alias="invoiceNumber"),
    service: InvoiceService = Depends(get_invoice_service),
):
    """List invoices, optionally filtered by vendor name and/or invoice number (substring, case-insensitive)"""
    return service.search(InvoiceQuery(vendor_name=vendor_name, invoice_number=invoice_number))


@router.get("/{invoice_id}", response_model=InvoiceRecord)
async def get_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    return service.get(invoice_id)


@router.put("/{invoice_id}", response_model=InvoiceRecord)
async def update_invoice(
    invoice_id: str,
    changes: InvoiceUpdate,
    service: InvoiceService = Depends(get_invoice_service),
):
    """Partial update; fileId, fileName and extractedAt cannot be changed"""
    return service.update(invoice_id, changes)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    """Delete an invoice together with its uploaded PDF"""
    service.delete(invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
