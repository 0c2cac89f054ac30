"""Column semantics inference from column names and declared types."""

import logging
from functools import lru_cache
from typing import Tuple

from .models import SemanticKind


logger = logging.getLogger(__name__)


# Evaluated top to bottom, first match wins. Each rule is
# (patterns that must all be present, alternative patterns, kind); a rule
# matches when every required pattern and at least one alternative occur.
# Specific names come before generic ones ("first_name" before "name").
NAME_RULES: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...], SemanticKind], ...] = (
    ((), ("email",), SemanticKind.EMAIL),
    ((), ("first_name", "firstname"), SemanticKind.FIRST_NAME),
    ((), ("last_name", "lastname"), SemanticKind.LAST_NAME),
    (("name",), ("user",), SemanticKind.FULL_NAME),
    ((), ("name",), SemanticKind.GENERIC_NAME),
    ((), ("phone", "tel"), SemanticKind.PHONE),
    ((), ("address",), SemanticKind.ADDRESS),
    ((), ("city",), SemanticKind.CITY),
    ((), ("state",), SemanticKind.STATE),
    ((), ("zip", "postal"), SemanticKind.ZIPCODE),
    ((), ("company", "organization"), SemanticKind.COMPANY),
    ((), ("url", "website"), SemanticKind.URL),
    ((), ("birth",), SemanticKind.BIRTH_DATE),
    ((), ("description", "content"), SemanticKind.LOREM_PARAGRAPH),
    ((), ("title",), SemanticKind.LOREM_TITLE),
    ((), ("password", "hash"), SemanticKind.PASSWORD_HASH),
)

TYPE_DEFAULTS = {
    "varchar": SemanticKind.LOREM_TEXT,
    "char": SemanticKind.LOREM_TEXT,
    "text": SemanticKind.LOREM_TEXT,
    "int": SemanticKind.INTEGER,
    "bigint": SemanticKind.INTEGER,
    "smallint": SemanticKind.INTEGER,
    "tinyint": SemanticKind.INTEGER,
    "mediumint": SemanticKind.INTEGER,
    "decimal": SemanticKind.DECIMAL,
    "float": SemanticKind.DECIMAL,
    "double": SemanticKind.DECIMAL,
    "date": SemanticKind.DATE,
    "datetime": SemanticKind.DATETIME,
    "timestamp": SemanticKind.DATETIME,
    "time": SemanticKind.TIME,
}


@lru_cache(maxsize=4096)
def classify(column_name: str, data_type: str, full_column_type: str = "") -> SemanticKind:
    """Map a column's name and type metadata to a SemanticKind."""
    column_lower = column_name.lower()

    for required, alternatives, kind in NAME_RULES:
        if all(p in column_lower for p in required) and any(p in column_lower for p in alternatives):
            return kind

    if "enum" in (full_column_type or "").lower():
        return SemanticKind.ENUM

    return TYPE_DEFAULTS.get((data_type or "").lower(), SemanticKind.LOREM_TEXT)
