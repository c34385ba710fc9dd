"""
Structured-data extraction: invoice text in, ExtractedInvoice out.

InvoiceExtractor is built once at startup from Settings and injected into
the extraction pipeline. It never raises; every failure comes back as a
tagged ExtractionFailure.
"""

from typing import Dict, Optional

import httpx
from loguru import logger

from .prompt import build_invoice_prompt
from .providers import GeminiProvider, LLMProvider, MalformedProviderResponse
from .response_parser import parse_invoice_response
from .results import ExtractionFailure, ExtractionResult
from ...core.config import Settings
from ...core.errors import (
    EXTRACTION_TRANSPORT_FAILURE,
    EXTRACTION_UNCONFIGURED,
    INVALID_INPUT,
    UNSUPPORTED_MODEL,
)
from ...models.invoice import ModelSelector

# Selectors with a working provider implementation
IMPLEMENTED_MODELS = frozenset({ModelSelector.GEMINI})

_DISPLAY_NAMES = {
    ModelSelector.GEMINI: "Gemini",
    ModelSelector.GROQ: "Groq",
}


def describe_provider_error(provider: str, exc: Exception) -> str:
    """Best-effort detail: status and reason, else the error text, else a generic message"""
    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        reason = response.reason_phrase or "Unknown"
        detail = f"{provider} API error: Status {response.status_code} - {reason}"
        try:
            message = response.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            message = None
        if message:
            detail += f" ({message})"
        return detail

    if str(exc):
        return f"{provider} API error: {exc}"

    if isinstance(exc, httpx.TimeoutException):
        return f"{provider} API error: request timed out"

    return f"An unknown error occurred during {provider} extraction."


class InvoiceExtractor:
    """
    Dispatches extraction to the provider for a model selector.

    Args:
        providers: Configured provider per selector. A missing or None entry
            means the provider has no credentials.
        max_input_chars: Invoice text longer than this is truncated before
            prompting (None disables truncation).
    """

    def __init__(
        self,
        providers: Optional[Dict[ModelSelector, Optional[LLMProvider]]] = None,
        max_input_chars: Optional[int] = None,
    ):
        self.providers = dict(providers or {})
        self.max_input_chars = max_input_chars

    @classmethod
    def from_settings(cls, settings: Settings) -> "InvoiceExtractor":
        providers: Dict[ModelSelector, Optional[LLMProvider]] = {ModelSelector.GEMINI: None}

        if settings.gemini_api_key:
            providers[ModelSelector.GEMINI] = GeminiProvider(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                base_url=settings.gemini_base_url,
                timeout=settings.llm_timeout_seconds,
            )
        else:
            logger.warning(
                "Gemini API key not provided. Gemini extraction will be unavailable. "
                "Set GEMINI_API_KEY to enable it."
            )

        if settings.groq_api_key:
            logger.info("GROQ_API_KEY is set but Groq extraction is not implemented yet")

        return cls(providers=providers, max_input_chars=settings.llm_max_input_chars)

    def provider_status(self) -> Dict[str, str]:
        """Availability of each selector, for the health endpoint"""
        status = {}
        for selector in ModelSelector:
            if selector not in IMPLEMENTED_MODELS:
                status[selector.value] = "not_implemented"
            elif self.providers.get(selector) is None:
                status[selector.value] = "unconfigured"
            else:
                status[selector.value] = "configured"
        return status

    async def extract(self, text: str, model: str | ModelSelector) -> ExtractionResult:
        """
        Extract structured invoice data from text with the selected model.

        Makes at most one provider call and never raises.
        """
        try:
            selector = ModelSelector(model)
        except ValueError:
            return ExtractionFailure(
                error_kind=UNSUPPORTED_MODEL,
                error="Invalid model type",
                details=f"Invalid model type provided for extraction: {model!r}. "
                        f"Expected one of: {', '.join(m.value for m in ModelSelector)}.",
            )

        display_name = _DISPLAY_NAMES[selector]

        if selector not in IMPLEMENTED_MODELS:
            return ExtractionFailure(
                error_kind=UNSUPPORTED_MODEL,
                error=f"{display_name} API not yet implemented",
                details=f"{display_name} API not yet implemented or package not available.",
            )

        provider = self.providers.get(selector)
        if provider is None:
            return ExtractionFailure(
                error_kind=EXTRACTION_UNCONFIGURED,
                error=f"{display_name} extraction failed",
                details=f"{display_name} API key not configured or model not initialized.",
            )

        if not text or not text.strip():
            return ExtractionFailure(
                error_kind=INVALID_INPUT,
                error=f"{display_name} extraction failed",
                details="No invoice text provided for extraction.",
            )

        prompt = build_invoice_prompt(text, self.max_input_chars)

        try:
            raw_text = await provider.generate(prompt)
        except (httpx.HTTPError, MalformedProviderResponse) as e:
            logger.error(f"Error during {display_name} API call", error_type=type(e).__name__, error=str(e))
            return ExtractionFailure(
                error_kind=EXTRACTION_TRANSPORT_FAILURE,
                error=f"{display_name} extraction failed",
                details=describe_provider_error(display_name, e),
            )
        except Exception as e:
            logger.exception(f"Unexpected error during {display_name} API call")
            return ExtractionFailure(
                error_kind=EXTRACTION_TRANSPORT_FAILURE,
                error=f"{display_name} extraction failed",
                details=describe_provider_error(display_name, e),
            )

        result = parse_invoice_response(raw_text, provider=display_name)
        if isinstance(result, ExtractionFailure):
            return result

        logger.info(
            f"Successfully extracted invoice data with {display_name}",
            vendor=result.vendor.name,
            invoice_number=result.invoice_info.number,
            line_items=len(result.line_items),
        )
        return result
