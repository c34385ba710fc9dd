import time

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from .. import __version__
from ..core.config import Settings, settings as default_settings
from ..core.errors import InvoiceReviewError, ValidationFailed
from ..core.logging import setup_logging
from ..services.extraction import InvoiceExtractor
from ..services.extraction_pipeline import ExtractionPipeline
from ..services.invoice_service import InvoiceService
from ..services.storage import BlobStoreBase, InvoiceStoreBase, build_stores
from .routers import health, invoice, pdf


def error_body(exc: InvoiceReviewError) -> dict:
    """
    One error envelope for every route.

    Upload/extract callers read success/error/details, CRUD callers read
    message; both sets of keys are always present.
    """
    body = {
        "success": False,
        "kind": exc.kind,
        "error": exc.message,
        "message": exc.message,
        "details": exc.details,
    }
    if isinstance(exc, ValidationFailed):
        body["errors"] = exc.errors
    return body


def create_app(
    app_settings: Settings | None = None,
    *,
    invoice_store: InvoiceStoreBase | None = None,
    blob_store: BlobStoreBase | None = None,
    extractor: InvoiceExtractor | None = None,
) -> FastAPI:
    """
    Build the API with its services.

    Stores and the extractor are created from settings unless passed in
    (tests inject in-memory stores and fake providers this way).
    """
    cfg = app_settings or default_settings
    setup_logging(cfg)

    if invoice_store is None or blob_store is None:
        default_invoices, default_blobs = build_stores(cfg.database_url)
        invoice_store = invoice_store or default_invoices
        blob_store = blob_store or default_blobs
    extractor = extractor or InvoiceExtractor.from_settings(cfg)

    app = FastAPI(title="Invoice Review API", version=__version__)

    invoice_service = InvoiceService(invoice_store, blob_store)
    app.state.settings = cfg
    app.state.blob_store = blob_store
    app.state.invoice_service = invoice_service
    app.state.extractor = extractor
    app.state.pipeline = ExtractionPipeline(extractor, blob_store, invoice_service)

    @app.exception_handler(InvoiceReviewError)
    async def invoice_review_error_handler(request: Request, exc: InvoiceReviewError):
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Request failed",
            kind=exc.kind,
            error=exc.message,
            details=exc.details,
            path=request.url.path,
            status=exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(part) for part in err["loc"]], "msg": err["msg"]}
            for err in exc.errors()
        ]
        logger.warning("Validation error", path=request.url.path, errors=errors)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(ValidationFailed("Invalid request", errors=errors)),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unexpected error: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "kind": "ServerError",
                "error": "Server error",
                "message": "Internal server error",
                "details": "An unexpected error occurred.",
            },
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return response

    # Configure CORS to allow frontend access
    # CORS_ORIGINS can be set in .env as comma-separated list
    # Example: CORS_ORIGINS=http://localhost:3000,https://your-frontend.com
    allowed_origins = [origin.strip() for origin in cfg.cors_origins.split(",") if origin.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(pdf.router)
    app.include_router(invoice.router)

    logger.info(
        "Invoice Review API configured",
        database_url=cfg.database_url,
        providers=extractor.provider_status(),
    )
    return app


def run():
    """Run the API server using uvicorn; the app is built at startup, not on import."""
    import uvicorn

    uvicorn.run(
        "invoice_review.api.main:create_app",
        factory=True,
        host=default_settings.host,
        port=default_settings.port,
    )
