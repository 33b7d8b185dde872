"""Column semantic inference from names and declared types.

Pure functions: nothing here touches the database.
"""

import re
from collections.abc import Iterable

from schemascope.models import Column, InferredSemantic

BOOLEAN_PREFIXES = ("is_", "has_", "can_", "should_", "will_", "allow_", "enable_", "disable_")
BOOLEAN_SUFFIXES = ("_flag", "_enabled", "_disabled", "_active", "_deleted", "_visible", "_hidden", "_required")
BOOLEAN_NAMES = frozenset(
    {"active", "enabled", "disabled", "deleted", "visible", "hidden", "published", "approved", "verified", "confirmed"}
)
SMALL_INTEGER_TYPES = frozenset({"tinyint", "smallint", "bit", "boolean", "bool", "int2", "int1"})

GUID_NAMES = frozenset(
    {
        "uuid",
        "guid",
        "correlation_id",
        "tracking_id",
        "external_id",
        "request_id",
        "session_id",
        "transaction_id",
    }
)
GUID_SUFFIXES = ("_uuid", "_guid")

# char(36), nchar(36), varchar(36), nvarchar(36), character(36), character varying(36)
_GUID_STRING_TYPE = re.compile(r"^(n?(var)?char|character(\s+varying)?)\s*\(\s*36\s*\)$", re.IGNORECASE)
_GUID_NATIVE_TYPES = frozenset({"uuid", "uniqueidentifier"})


def base_type(declared_type: str) -> str:
    """Strip length, precision and modifiers from a declared type.

    Args:
        declared_type: Type as declared, e.g. 'TINYINT(1) UNSIGNED'

    Returns:
        Lowercased base type, e.g. 'tinyint'
    """
    lowered = declared_type.strip().lower()
    lowered = lowered.split("(", 1)[0].strip()
    return lowered.split()[0] if lowered else ""


def is_small_integer_type(declared_type: str) -> bool:
    """Check whether a declared type can hold a 0/1 boolean"""
    return base_type(declared_type) in SMALL_INTEGER_TYPES


def is_guid_compatible_type(declared_type: str) -> bool:
    """Check whether a declared type can hold a GUID"""
    normalized = declared_type.strip().lower()
    return normalized in _GUID_NATIVE_TYPES or bool(_GUID_STRING_TYPE.match(normalized))


def is_boolean_name(column_name: str) -> bool:
    name = column_name.lower()
    return name.startswith(BOOLEAN_PREFIXES) or name.endswith(BOOLEAN_SUFFIXES) or name in BOOLEAN_NAMES


def is_guid_name(column_name: str) -> bool:
    name = column_name.lower()
    return name in GUID_NAMES or name.endswith(GUID_SUFFIXES)


def infer_from_name(column_name: str, declared_type: str) -> InferredSemantic:
    """Infer a candidate semantic from a column's name and declared type.

    Both the name pattern and the type must agree. The boolean and GUID type
    families do not overlap, so at most one candidate can match.

    Args:
        column_name: Column name
        declared_type: Declared native type

    Returns:
        BOOLEAN, GUID, or UNRESOLVED when neither candidate matches
    """
    if is_boolean_name(column_name) and is_small_integer_type(declared_type):
        return InferredSemantic.BOOLEAN
    if is_guid_name(column_name) and is_guid_compatible_type(declared_type):
        return InferredSemantic.GUID
    return InferredSemantic.UNRESOLVED


def apply_name_inference(columns: Iterable[Column]) -> int:
    """Resolve every unresolved column whose name and type match a pattern.

    Args:
        columns: Columns to classify in place

    Returns:
        Number of columns resolved
    """
    resolved = 0
    for column in columns:
        if column.is_resolved:
            continue
        semantic = infer_from_name(column.name, column.data_type)
        if semantic is not InferredSemantic.UNRESOLVED:
            column.resolve(semantic)
            resolved += 1
    return resolved
