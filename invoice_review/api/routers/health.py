from fastapi import APIRouter, Depends

from ..deps import get_extractor
from ... import __version__
from ...services.extraction import InvoiceExtractor

router = APIRouter(tags=["system"])


@router.get("/")
async def root():
    return {"status": "ok", "message": "API is running..."}


@router.get("/health")
async def health(extractor: InvoiceExtractor = Depends(get_extractor)):
    """Service status plus which extraction models are usable"""
    return {
        "status": "ok",
        "version": __version__,
        "providers": extractor.provider_status(),
    }
