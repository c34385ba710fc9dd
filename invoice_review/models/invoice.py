import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .ids import is_valid_object_id

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _check_iso_date(value: str) -> str:
    if not _ISO_DATE_RE.match(value):
        raise ValueError("Invalid date format (YYYY-MM-DD)")
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Invalid calendar date: {value}")
    return value


def _check_file_id(value: str) -> str:
    if not is_valid_object_id(value):
        raise ValueError("Invalid fileId format")
    return value


IsoDate = Annotated[str, AfterValidator(_check_iso_date)]
FileId = Annotated[str, AfterValidator(_check_file_id)]
RequiredText = Annotated[str, Field(min_length=1)]
PositiveAmount = Annotated[float, Field(gt=0)]


class ModelSelector(str, Enum):
    GEMINI = "gemini"
    GROQ = "groq"


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class Vendor(CamelModel):
    name: RequiredText
    address: RequiredText
    tax_id: str | None = None


class InvoiceInfo(CamelModel):
    number: RequiredText
    date: IsoDate
    due_date: IsoDate
    total_amount: PositiveAmount
    currency: RequiredText


class LineItem(CamelModel):
    description: RequiredText
    quantity: int = Field(gt=0)
    unit_price: PositiveAmount
    total: PositiveAmount


class ExtractedInvoice(CamelModel):
    """Structured payload produced by the extractor"""

    vendor: Vendor
    invoice_info: InvoiceInfo
    line_items: list[LineItem] = Field(default_factory=list)


class InvoiceCreate(ExtractedInvoice):
    """
    Body of a manual create request.

    Server-owned fields (_id, extractedAt, lastUpdatedAt) are ignored if sent.
    `model` is accepted for parity with the extraction payload and only
    checked, never stored.
    """

    model_config = ConfigDict(extra="ignore")

    file_id: FileId
    file_name: RequiredText
    model: ModelSelector | None = None


class InvoiceRecord(ExtractedInvoice):
    id: str = Field(alias="_id")
    file_id: str
    file_name: str
    extracted_at: datetime
    last_updated_at: datetime


class VendorPatch(CamelModel):
    name: RequiredText | None = None
    address: RequiredText | None = None
    tax_id: str | None = None


class InvoiceInfoPatch(CamelModel):
    number: RequiredText | None = None
    date: IsoDate | None = None
    due_date: IsoDate | None = None
    total_amount: PositiveAmount | None = None
    currency: RequiredText | None = None


class InvoiceUpdate(CamelModel):
    """
    Partial update. Unknown keys, including the protected fileId, fileName,
    extractedAt, lastUpdatedAt and _id, are dropped on parse.
    """

    model_config = ConfigDict(extra="ignore")

    vendor: VendorPatch | None = None
    invoice_info: InvoiceInfoPatch | None = None
    line_items: list[LineItem] | None = None


PROTECTED_FIELDS = frozenset({"id", "file_id", "file_name", "extracted_at", "last_updated_at"})


@dataclass(frozen=True)
class InvoiceQuery:
    """Search options; unset filters match everything"""

    vendor_name: str | None = None
    invoice_number: str | None = None

    def __post_init__(self):
        # blank query-string values behave like absent ones
        object.__setattr__(self, "vendor_name", (self.vendor_name or "").strip() or None)
        object.__setattr__(self, "invoice_number", (self.invoice_number or "").strip() or None)


class BlobInfo(CamelModel):
    file_id: str
    file_name: str
    content_type: str = "application/pdf"
    length: int = 0
    uploaded_at: datetime
