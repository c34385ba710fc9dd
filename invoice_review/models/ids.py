"""
Identifiers for invoice records and stored files.

Both stores hand out the same id format so a record's fileId can be checked
before it is used as a blob reference.
"""

import re
import uuid

_OBJECT_ID_RE = re.compile(r"[0-9a-f]{32}")


def new_object_id() -> str:
    return uuid.uuid4().hex


def is_valid_object_id(value) -> bool:
    return isinstance(value, str) and bool(_OBJECT_ID_RE.fullmatch(value))
