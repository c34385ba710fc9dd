from dataclasses import dataclass
from typing import Union

from ...core.errors import ExtractionFailed
from ...models.invoice import ExtractedInvoice


@dataclass(frozen=True)
class ExtractionFailure:
    """
    Tagged failure returned by the extractor instead of raising.

    error_kind is one of the extraction kinds in core.errors, error a short
    label ("Gemini extraction failed"), details the explanation shown to the
    user.
    """

    error_kind: str
    error: str
    details: str

    def to_exception(self) -> ExtractionFailed:
        return ExtractionFailed(self.error_kind, self.error, self.details)


ExtractionResult = Union[ExtractedInvoice, ExtractionFailure]
