"""
Integration tests against the real Gemini API.

These tests require a Gemini key:
- Set GEMINI_API_KEY in .env

Run with: pytest --run-integration
If the key is not configured, tests will be skipped.
"""

import asyncio

import pytest

from invoice_review.core.config import settings
from invoice_review.models.invoice import ExtractedInvoice
from invoice_review.services.extraction import InvoiceExtractor

skip_if_no_gemini = pytest.mark.skipif(
    not settings.gemini_api_key,
    reason="Gemini not configured (set GEMINI_API_KEY)",
)

SIMPLE_INVOICE = """
INVOICE #123
Acme Supplies Ltd
1 Market Street, Springfield
Date: 2024-03-01    Due: 2024-03-31

Widgets      4 x 50.00    200.00
Gadgets      2 x 100.00   200.00

Total: 400.00 USD
"""


@skip_if_no_gemini
@pytest.mark.integration
def test_gemini_extracts_simple_invoice():
    extractor = InvoiceExtractor.from_settings(settings)

    result = asyncio.run(extractor.extract(SIMPLE_INVOICE, "gemini"))

    assert isinstance(result, ExtractedInvoice), f"Extraction failed: {result}"
    assert "Acme" in result.vendor.name
    assert "123" in result.invoice_info.number
    assert result.invoice_info.total_amount == pytest.approx(400.0)
    assert result.invoice_info.currency
    assert len(result.line_items) >= 1
