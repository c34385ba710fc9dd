"""
SQLite-based invoice and file storage.

Both stores can share one database file. Invoices are kept as JSON
documents next to the indexed columns that search needs; uploaded PDFs are
kept as BLOBs.
"""

import json
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, UTC
from typing import Iterator, Optional

from loguru import logger

from .base import BlobStoreBase, InvoiceStoreBase
from ...core.errors import DuplicateFileId, NotFound, StorageFailure
from ...models.ids import new_object_id
from ...models.invoice import BlobInfo, InvoiceQuery


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


class _SQLiteDatabase(ABC):
    """Connection handling shared by the SQLite stores"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        with self._connect() as conn:
            self._init_schema(conn)

    @abstractmethod
    def _init_schema(self, conn: sqlite3.Connection):
        pass

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """
        Open a connection for one operation.

        Commits on success; any sqlite error is rolled back and re-raised
        as StorageFailure.
        """
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            logger.error("Could not open SQLite database", db_path=self.db_path, error=str(e))
            raise StorageFailure("Storage unavailable", str(e)) from e

        conn.row_factory = sqlite3.Row
        # Unicode case folding for search; SQLite lower() is ASCII-only
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("SQLite operation failed", db_path=self.db_path, error=str(e))
            raise StorageFailure("Storage operation failed", str(e)) from e
        finally:
            conn.close()


class SQLiteInvoiceStore(_SQLiteDatabase, InvoiceStoreBase):
    """
    SQLite-backed invoice store with persistent storage.

    Listing order is insertion order (rowid).
    """

    def _init_schema(self, conn: sqlite3.Connection):
        conn.execute("""
            CREATE TABLE IF NOT EXISTS invoices (
                id TEXT PRIMARY KEY,
                file_id TEXT NOT NULL UNIQUE,
                vendor_name TEXT,
                invoice_number TEXT,
                document TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_invoices_vendor_name
            ON invoices(vendor_name)
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_invoices_invoice_number
            ON invoices(invoice_number)
        """)

    @staticmethod
    def _search_columns(document: dict) -> tuple:
        return (
            document.get("vendor", {}).get("name"),
            document.get("invoiceInfo", {}).get("number"),
        )

    @staticmethod
    def _where_clause(query: InvoiceQuery) -> tuple[str, list]:
        """Translate an InvoiceQuery into a WHERE clause and its parameters"""
        conditions = []
        params = []
        if query.vendor_name is not None:
            conditions.append("instr(casefold(vendor_name), casefold(?)) > 0")
            params.append(query.vendor_name)
        if query.invoice_number is not None:
            conditions.append("instr(casefold(invoice_number), casefold(?)) > 0")
            params.append(query.invoice_number)

        if not conditions:
            return "", params
        return "WHERE " + " AND ".join(conditions), params

    def insert(self, document: dict) -> None:
        vendor_name, invoice_number = self._search_columns(document)
        with self._connect() as conn:
            try:
                conn.execute("""
                    INSERT INTO invoices (id, file_id, vendor_name, invoice_number, document)
                    VALUES (?, ?, ?, ?, ?)
                """, (document["_id"], document["fileId"], vendor_name, invoice_number, json.dumps(document)))
            except sqlite3.IntegrityError as e:
                if "file_id" in str(e):
                    raise DuplicateFileId(document["fileId"]) from e
                raise

    def get(self, invoice_id: str) -> Optional[dict]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT document FROM invoices WHERE id = ?", (invoice_id,)
            ).fetchone()

        if row is None:
            return None
        return json.loads(row["document"])

    def find(self, query: InvoiceQuery) -> list:
        where, params = self._where_clause(query)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT document FROM invoices {where} ORDER BY rowid", params
            ).fetchall()

        return [json.loads(row["document"]) for row in rows]

    def replace(self, invoice_id: str, document: dict) -> bool:
        vendor_name, invoice_number = self._search_columns(document)
        with self._connect() as conn:
            cursor = conn.execute("""
                UPDATE invoices
                SET vendor_name = ?,
                    invoice_number = ?,
                    document = ?
                WHERE id = ?
            """, (vendor_name, invoice_number, json.dumps(document), invoice_id))
            rows_affected = cursor.rowcount

        return rows_affected > 0

    def delete(self, invoice_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,))
            rows_affected = cursor.rowcount

        return rows_affected > 0


class SQLiteBlobStore(_SQLiteDatabase, BlobStoreBase):
    """Uploaded PDFs stored as BLOBs with their metadata"""

    def _init_schema(self, conn: sqlite3.Connection):
        conn.execute("""
            CREATE TABLE IF NOT EXISTS blobs (
                id TEXT PRIMARY KEY,
                file_name TEXT NOT NULL,
                content_type TEXT NOT NULL,
                length INTEGER NOT NULL,
                uploaded_at TEXT NOT NULL,
                content BLOB NOT NULL
            )
        """)

    @staticmethod
    def _row_to_info(row: sqlite3.Row) -> BlobInfo:
        return BlobInfo(
            file_id=row["id"],
            file_name=row["file_name"],
            content_type=row["content_type"],
            length=row["length"],
            uploaded_at=datetime.fromisoformat(row["uploaded_at"]),
        )

    def put(self, file_name: str, content: bytes, content_type: str = "application/pdf") -> BlobInfo:
        info = BlobInfo(
            file_id=new_object_id(),
            file_name=file_name,
            content_type=content_type,
            length=len(content),
            uploaded_at=datetime.now(UTC),
        )
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO blobs (id, file_name, content_type, length, uploaded_at, content)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                info.file_id,
                info.file_name,
                info.content_type,
                info.length,
                info.uploaded_at.isoformat(),
                sqlite3.Binary(content),
            ))
        return info

    def get_info(self, file_id: str) -> Optional[BlobInfo]:
        with self._connect() as conn:
            row = conn.execute("""
                SELECT id, file_name, content_type, length, uploaded_at
                FROM blobs
                WHERE id = ?
            """, (file_id,)).fetchone()

        return self._row_to_info(row) if row else None

    def open(self, file_id: str) -> Optional[bytes]:
        with self._connect() as conn:
            row = conn.execute("SELECT content FROM blobs WHERE id = ?", (file_id,)).fetchone()

        return bytes(row["content"]) if row else None

    def delete(self, file_id: str) -> None:
        with self._connect() as conn:
            rows_affected = conn.execute("DELETE FROM blobs WHERE id = ?", (file_id,)).rowcount

        if rows_affected == 0:
            raise NotFound("File not found", f"No stored file with id {file_id}")
