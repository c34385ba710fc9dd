from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from ..deps import get_settings, read_upload
from ...core.config import Settings
from ...services.pdf_text import extract_pdf_text

router = APIRouter(prefix="/api", tags=["pdf"])


class ParsePdfResponse(BaseModel):
    success: bool
    text: str


@router.post("/parse-pdf", response_model=ParsePdfResponse)
async def parse_pdf(file: UploadFile = File(None), settings: Settings = Depends(get_settings)):
    """
    Extract raw text from an uploaded PDF.

    The text is returned to the client, which sends it back with /extract;
    nothing is stored here. Unreadable files answer
    {"success": false, "error": ..., "details": ...}.
    """
    content = await read_upload(file, settings.max_upload_bytes)
    text = await run_in_threadpool(extract_pdf_text, content)
    return ParsePdfResponse(success=True, text=text)
