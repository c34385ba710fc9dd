"""
Prompt sent to the language model for invoice extraction.

The model is asked for exactly the InvoiceRecord payload fields, with
YYYY-MM-DD dates and a JSON-only answer. Models still wrap answers in
```json fences from time to time; response_parser handles that.
"""

INVOICE_PROMPT_TEMPLATE = """\
Extract the following structured data from this invoice text.

Return a single JSON object with exactly this structure:
{{
  "vendor": {{"name": string, "address": string, "taxId": string | null}},
  "invoiceInfo": {{
    "number": string,
    "date": "YYYY-MM-DD",
    "dueDate": "YYYY-MM-DD",
    "totalAmount": number,
    "currency": string
  }},
  "lineItems": [
    {{"description": string, "quantity": integer, "unitPrice": number, "total": number}}
  ]
}}

Rules:
1. Ensure all dates are in YYYY-MM-DD format.
2. Numbers must be plain JSON numbers without currency symbols or thousands separators.
3. currency should be an ISO 4217 code (e.g. "USD", "EUR").
4. Return the data as a JSON object only, with no explanation.

INVOICE TEXT:
---
{invoice_text}
---
"""


def build_invoice_prompt(invoice_text: str, max_chars: int | None = None) -> str:
    """Fill the extraction template, truncating very long invoice text"""
    if max_chars is not None and len(invoice_text) > max_chars:
        invoice_text = invoice_text[:max_chars]
    return INVOICE_PROMPT_TEMPLATE.format(invoice_text=invoice_text)
