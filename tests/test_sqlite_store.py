"""
Tests for SQLite-based invoice and file storage.

This test suite verifies that the SQLite stores:
- Persist records and files across instances
- Search by vendor name / invoice number like the in-memory store
- Enforce one record per uploaded file
"""

import os
import sqlite3
import tempfile

import pytest

from invoice_review.core.errors import DuplicateFileId, NotFound
from invoice_review.models.invoice import InvoiceQuery
from invoice_review.services.storage import (
    InMemoryBlobStore,
    InMemoryInvoiceStore,
    SQLiteBlobStore,
    SQLiteInvoiceStore,
    build_stores,
)
from invoice_review.services.storage.sqlite import _SQLiteDatabase


@pytest.fixture
def db_path():
    """Create a temporary database file for testing"""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    # Cleanup
    if os.path.exists(path):
        os.remove(path)


@pytest.fixture
def store(db_path):
    return SQLiteInvoiceStore(db_path)


@pytest.fixture
def blobs(db_path):
    return SQLiteBlobStore(db_path)


def make_document(invoice_id: str, file_id: str, vendor: str = "Acme Supplies Ltd", number: str = "INV-001") -> dict:
    return {
        "_id": invoice_id,
        "fileId": file_id,
        "fileName": "invoice.pdf",
        "vendor": {"name": vendor, "address": "1 Market St", "taxId": None},
        "invoiceInfo": {
            "number": number,
            "date": "2024-03-01",
            "dueDate": "2024-03-31",
            "totalAmount": 400.0,
            "currency": "USD",
        },
        "lineItems": [],
        "extractedAt": "2024-03-01T10:00:00Z",
        "lastUpdatedAt": "2024-03-01T10:00:00Z",
    }


def test_insert_persists_to_db(store, db_path):
    store.insert(make_document("1" * 32, "a" * 32))

    conn = sqlite3.connect(db_path)
    row = conn.execute("SELECT file_id, vendor_name, invoice_number FROM invoices WHERE id = ?", ("1" * 32,)).fetchone()
    conn.close()

    assert row == ("a" * 32, "Acme Supplies Ltd", "INV-001")


def test_get_returns_stored_document(store):
    document = make_document("1" * 32, "a" * 32)
    store.insert(document)

    assert store.get("1" * 32) == document
    assert store.get("2" * 32) is None


def test_records_survive_new_instance(db_path):
    SQLiteInvoiceStore(db_path).insert(make_document("1" * 32, "a" * 32))

    reopened = SQLiteInvoiceStore(db_path)

    assert reopened.get("1" * 32)["vendor"]["name"] == "Acme Supplies Ltd"


def test_duplicate_file_id_is_rejected(store):
    store.insert(make_document("1" * 32, "a" * 32))

    with pytest.raises(DuplicateFileId):
        store.insert(make_document("2" * 32, "a" * 32))

    assert store.get("2" * 32) is None


@pytest.mark.parametrize("store_factory", ["sqlite", "memory"])
def test_find_filters_match_across_backends(db_path, store_factory):
    store = SQLiteInvoiceStore(db_path) if store_factory == "sqlite" else InMemoryInvoiceStore()
    store.insert(make_document("1" * 32, "a" * 32, "Acme Supplies Ltd", "INV-001"))
    store.insert(make_document("2" * 32, "b" * 32, "Globex Corporation", "INV-002"))
    store.insert(make_document("3" * 32, "c" * 32, "ACME Tooling", "GX-100"))

    def ids(**filters):
        return [doc["_id"][0] for doc in store.find(InvoiceQuery(**filters))]

    assert ids() == ["1", "2", "3"]
    assert ids(vendor_name="acme") == ["1", "3"]
    assert ids(invoice_number="inv") == ["1", "2"]
    assert ids(vendor_name="acme", invoice_number="gx") == ["3"]
    assert ids(vendor_name="%") == []
    assert ids(vendor_name="  ") == ["1", "2", "3"]


@pytest.mark.parametrize("store_factory", ["sqlite", "memory"])
def test_find_folds_non_ascii_case_across_backends(db_path, store_factory):
    store = SQLiteInvoiceStore(db_path) if store_factory == "sqlite" else InMemoryInvoiceStore()
    store.insert(make_document("1" * 32, "a" * 32, "Müller GmbH", "RÉF-001"))
    store.insert(make_document("2" * 32, "b" * 32, "ÉCOLE Supplies", "INV-002"))
    store.insert(make_document("3" * 32, "c" * 32, "Straße Bau AG", "INV-003"))

    def ids(**filters):
        return [doc["_id"][0] for doc in store.find(InvoiceQuery(**filters))]

    assert ids(vendor_name="MÜLLER") == ["1"]
    assert ids(vendor_name="école") == ["2"]
    assert ids(vendor_name="STRASSE") == ["3"]
    assert ids(invoice_number="réf") == ["1"]
    assert ids(vendor_name="müller", invoice_number="inv") == []


def test_replace_updates_document_and_search_columns(store):
    store.insert(make_document("1" * 32, "a" * 32))
    updated = make_document("1" * 32, "a" * 32, vendor="Initech")

    assert store.replace("1" * 32, updated) is True
    assert store.get("1" * 32)["vendor"]["name"] == "Initech"
    assert [doc["_id"] for doc in store.find(InvoiceQuery(vendor_name="initech"))] == ["1" * 32]
    assert store.find(InvoiceQuery(vendor_name="acme")) == []


def test_replace_unknown_returns_false(store):
    assert store.replace("9" * 32, make_document("9" * 32, "f" * 32)) is False


def test_delete_removes_document(store):
    store.insert(make_document("1" * 32, "a" * 32))

    assert store.delete("1" * 32) is True
    assert store.get("1" * 32) is None
    assert store.delete("1" * 32) is False


def test_blob_round_trip(blobs):
    info = blobs.put("invoice.pdf", b"%PDF-1.4 content")

    assert len(info.file_id) == 32
    stored = blobs.get_info(info.file_id)
    assert stored.file_name == "invoice.pdf"
    assert stored.content_type == "application/pdf"
    assert stored.length == len(b"%PDF-1.4 content")
    assert blobs.open(info.file_id) == b"%PDF-1.4 content"


def test_blob_delete(blobs):
    info = blobs.put("invoice.pdf", b"%PDF")

    blobs.delete(info.file_id)

    assert blobs.get_info(info.file_id) is None
    assert blobs.open(info.file_id) is None
    with pytest.raises(NotFound):
        blobs.delete(info.file_id)


def test_blobs_survive_new_instance(db_path):
    info = SQLiteBlobStore(db_path).put("invoice.pdf", b"%PDF persisted")

    assert SQLiteBlobStore(db_path).open(info.file_id) == b"%PDF persisted"


def test_build_stores_from_database_url(db_path):
    invoices, blobs = build_stores(f"sqlite:///{db_path}")
    assert isinstance(invoices, SQLiteInvoiceStore)
    assert isinstance(blobs, SQLiteBlobStore)
    assert invoices.db_path == db_path

    invoices, blobs = build_stores("memory://")
    assert isinstance(invoices, InMemoryInvoiceStore)
    assert isinstance(blobs, InMemoryBlobStore)


@pytest.mark.parametrize("url", ["mongodb://localhost/invoices", "sqlite:///", ""])
def test_build_stores_rejects_unsupported_urls(url):
    with pytest.raises(ValueError):
        build_stores(url)


def test_sqlite_database_base_is_abstract(db_path):
    with pytest.raises(TypeError):
        _SQLiteDatabase(db_path)
