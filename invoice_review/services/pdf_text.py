"""
Plain-text extraction from PDF bytes.
"""

import io

import pdfplumber
from loguru import logger

from ..core.errors import PdfParseFailed


def extract_pdf_text(pdf_bytes: bytes) -> str:
    """
    Extract the text of every page, pages separated by newlines.

    Pages without a text layer (scans) contribute nothing, so a scanned
    PDF yields an empty string rather than an error.

    Raises:
        PdfParseFailed: empty input, or bytes that are not a readable PDF
    """
    if not pdf_bytes:
        raise PdfParseFailed("Failed to parse PDF", "Uploaded file is empty.")

    text_parts = []
    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)
    except Exception as e:
        logger.error(f"Error parsing PDF: {type(e).__name__}", size_bytes=len(pdf_bytes), error=str(e))
        details = str(e) or f"{type(e).__name__} while reading the PDF."
        raise PdfParseFailed("Failed to parse PDF", details) from e

    text = "\n".join(text_parts)
    logger.info("Extracted PDF text", pages_with_text=len(text_parts), chars=len(text))
    return text
