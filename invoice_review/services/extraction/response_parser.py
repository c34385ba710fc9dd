"""
Turn a model's raw text answer into an ExtractedInvoice.

Every provider's response goes through parse_invoice_response, so fence
unwrapping and schema checks behave the same whichever model answered.
"""

import json
import re

from loguru import logger
from pydantic import ValidationError

from .results import ExtractionFailure, ExtractionResult
from ...core.errors import EXTRACTION_PARSE_FAILURE
from ...models.invoice import ExtractedInvoice

FENCED_JSON_RE = re.compile(r"```json[ \t]*\r?\n(.*?)\s*```", re.DOTALL | re.IGNORECASE)

SNIPPET_LENGTH = 200


def unwrap_fenced_json(text: str) -> str:
    """
    Return the interior of the first ```json fenced block, or the text
    unchanged when there is none.
    """
    match = FENCED_JSON_RE.search(text)
    if match:
        return match.group(1)
    return text


def _snippet(text: str) -> str:
    if len(text) <= SNIPPET_LENGTH:
        return text
    return text[:SNIPPET_LENGTH] + "..."


def _summarize_errors(exc: ValidationError, limit: int = 5) -> str:
    parts = []
    for err in exc.errors()[:limit]:
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    if len(exc.errors()) > limit:
        parts.append(f"... {len(exc.errors()) - limit} more")
    return "; ".join(parts)


def parse_invoice_response(raw_text: str, provider: str = "Gemini") -> ExtractionResult:
    """
    Parse a provider's answer.

    Args:
        raw_text: Text exactly as returned by the model
        provider: Display name used in failure messages

    Returns:
        ExtractedInvoice on success, otherwise an ExtractionParseFailure
        whose details include a snippet of the offending text.
    """
    error_label = f"{provider} extraction failed"
    text = unwrap_fenced_json(raw_text or "").strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse {provider} response as JSON", error=str(e), response_chars=len(text))
        return ExtractionFailure(
            error_kind=EXTRACTION_PARSE_FAILURE,
            error=error_label,
            details=f"Invalid JSON response from {provider}: {_snippet(text)}",
        )

    if not isinstance(data, dict):
        return ExtractionFailure(
            error_kind=EXTRACTION_PARSE_FAILURE,
            error=error_label,
            details=f"Expected a JSON object from {provider}, got {type(data).__name__}: {_snippet(text)}",
        )

    try:
        return ExtractedInvoice.model_validate(data)
    except ValidationError as e:
        summary = _summarize_errors(e)
        logger.warning(f"{provider} response did not match invoice schema", errors=summary)
        return ExtractionFailure(
            error_kind=EXTRACTION_PARSE_FAILURE,
            error=error_label,
            details=f"Response from {provider} did not match the invoice schema ({summary}): {_snippet(text)}",
        )
