"""
Pytest configuration and shared fixtures.

Registers the integration marker and builds isolated apps backed by
in-memory storage, so no test touches a real database file or the real
Gemini API unless --run-integration is given.
"""

import pytest
from fastapi.testclient import TestClient

from invoice_review.api.main import create_app
from invoice_review.core.config import Settings

GEMINI_TEST_BASE_URL = "https://gemini.test/v1beta"
GEMINI_TEST_ENDPOINT = f"{GEMINI_TEST_BASE_URL}/models/gemini-1.5-flash:generateContent"


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against the real Gemini API"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring a real Gemini API key"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def make_settings(**overrides) -> Settings:
    """Settings for an isolated test app (in-memory storage, no provider keys)"""
    values = {
        "DATABASE_URL": "memory://",
        "GEMINI_API_KEY": None,
        "GROQ_API_KEY": None,
        "GEMINI_BASE_URL": GEMINI_TEST_BASE_URL,
        "GEMINI_MODEL": "gemini-1.5-flash",
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


def gemini_reply(text: str) -> dict:
    """A generateContent response body whose answer is `text`"""
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ]
    }


@pytest.fixture
def client():
    """Client for an app with in-memory storage and no Gemini key"""
    return TestClient(create_app(make_settings()))


@pytest.fixture
def gemini_client():
    """Client for an app with in-memory storage and a (fake) Gemini key"""
    return TestClient(create_app(make_settings(GEMINI_API_KEY="test-key")))


@pytest.fixture
def extracted_payload():
    """What a well-behaved model returns for a simple invoice"""
    return {
        "vendor": {"name": "Acme Supplies Ltd", "address": "1 Market St, Springfield", "taxId": "GB123456789"},
        "invoiceInfo": {
            "number": "INV-123",
            "date": "2024-03-01",
            "dueDate": "2024-03-31",
            "totalAmount": 400.0,
            "currency": "USD",
        },
        "lineItems": [
            {"description": "Widgets", "quantity": 4, "unitPrice": 50.0, "total": 200.0},
            {"description": "Gadgets", "quantity": 2, "unitPrice": 100.0, "total": 200.0},
        ],
    }


@pytest.fixture
def sample_pdf_bytes():
    return build_pdf("Invoice #123 Acme Supplies Ltd Total: 400.00 USD")


def build_pdf(text: str) -> bytes:
    """
    Build a minimal one-page PDF showing `text` in Helvetica.

    Offsets in the xref table are computed, so the result is a
    well-formed file that pdfplumber reads without repair.
    """
    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    stream = f"BT /F1 12 Tf 72 720 Td ({escaped}) Tj ET".encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n".encode()
    out += f"startxref\n{xref_offset}\n%%EOF\n".encode()
    return bytes(out)
