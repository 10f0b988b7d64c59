"""
Column-label conventions.

A column's *label* is the text in the header row; its *key* is the field name
records use. The mapping is computed once per label and cached, and a schema
can override it per column, so every table's label→key table is fixed by the
time the first row is read.

Rules:
    - ``ID`` is the identity column (key ``id``)
    - A label ending in `` JSON`` holds serialized structured data; the suffix
      is dropped from the key (``Address JSON`` → ``address``)
    - A label starting with ``Is `` / ``Has ``, or one of ``Active``,
      ``Enabled``, ``Verified``, holds a boolean
    - Keys are the label's words title-cased, joined, first letter lowered
      (``Credentialing Status`` → ``credentialingStatus``,
      ``Provider ID`` → ``providerId``)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

ID_LABEL = "ID"
ID_KEY = "id"
CREATED_AT_KEY = "createdAt"
UPDATED_AT_KEY = "updatedAt"

JSON_SUFFIX = " JSON"
BOOLEAN_PREFIXES = ("Is ", "Has ")
BOOLEAN_LABELS = frozenset({"Active", "Enabled", "Verified"})

_WORD_SPLIT = re.compile(r"[\s_\-/]+")
_NON_ALNUM = re.compile(r"[^0-9A-Za-z]")


class ColumnKind(str, Enum):
    """How a column's cells are coerced on read and write."""

    TEXT = "text"
    JSON = "json"
    BOOLEAN = "boolean"


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """One header label with its record key and coercion kind."""

    label: str
    key: str
    kind: ColumnKind = ColumnKind.TEXT

    @property
    def is_identity(self) -> bool:
        return self.key == ID_KEY


def is_json_label(label: str) -> bool:
    return label.endswith(JSON_SUFFIX)


def is_boolean_label(label: str) -> bool:
    return label.startswith(BOOLEAN_PREFIXES) or label in BOOLEAN_LABELS


def derive_key(label: str) -> str:
    """Turn header text into a record key."""
    text = label.strip()
    if is_json_label(text):
        text = text[: -len(JSON_SUFFIX)]
    words = [_NON_ALNUM.sub("", w) for w in _WORD_SPLIT.split(text)]
    joined = "".join(w[:1].upper() + w[1:].lower() for w in words if w)
    return joined[:1].lower() + joined[1:]


@lru_cache(maxsize=2048)
def column_spec(label: str, key: str | None = None) -> ColumnSpec:
    """Build (and memoize) the spec for a header label."""
    if is_json_label(label):
        kind = ColumnKind.JSON
    elif is_boolean_label(label):
        kind = ColumnKind.BOOLEAN
    else:
        kind = ColumnKind.TEXT
    return ColumnSpec(label=label, key=key or derive_key(label), kind=kind)


__all__ = [
    "ID_LABEL",
    "ID_KEY",
    "CREATED_AT_KEY",
    "UPDATED_AT_KEY",
    "ColumnKind",
    "ColumnSpec",
    "column_spec",
    "derive_key",
    "is_boolean_label",
    "is_json_label",
]
