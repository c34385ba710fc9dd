from .extractor import InvoiceExtractor, describe_provider_error
from .providers import GeminiProvider, LLMProvider, MalformedProviderResponse
from .response_parser import parse_invoice_response, unwrap_fenced_json
from .results import ExtractionFailure, ExtractionResult

__all__ = [
    "ExtractionFailure",
    "ExtractionResult",
    "GeminiProvider",
    "InvoiceExtractor",
    "LLMProvider",
    "MalformedProviderResponse",
    "describe_provider_error",
    "parse_invoice_response",
    "unwrap_fenced_json",
]
