"""Tests for name and type based column inference"""

import pytest

from schemascope.inference.name_patterns import (
    apply_name_inference,
    base_type,
    infer_from_name,
    is_guid_compatible_type,
    is_small_integer_type,
)
from schemascope.models import Column, InferredSemantic


@pytest.mark.parametrize(
    "name",
    [
        "is_active",
        "has_children",
        "can_edit",
        "should_notify",
        "will_expire",
        "allow_comments",
        "enable_sync",
        "disable_alerts",
        "sent_flag",
        "email_enabled",
        "sms_disabled",
        "user_active",
        "row_deleted",
        "is_visible",
        "comment_hidden",
        "field_required",
        "active",
        "published",
        "approved",
        "confirmed",
    ],
)
def test_boolean_names_with_small_integer_type(name: str) -> None:
    assert infer_from_name(name, "tinyint") is InferredSemantic.BOOLEAN


@pytest.mark.parametrize("declared_type", ["tinyint", "smallint", "bit", "boolean", "bool", "int2", "int1"])
def test_boolean_candidate_types(declared_type: str) -> None:
    assert infer_from_name("is_deleted", declared_type) is InferredSemantic.BOOLEAN


def test_boolean_name_requires_small_integer_type() -> None:
    assert infer_from_name("is_active", "integer") is InferredSemantic.UNRESOLVED
    assert infer_from_name("is_active", "varchar(5)") is InferredSemantic.UNRESOLVED


def test_small_integer_type_requires_boolean_name() -> None:
    assert infer_from_name("quantity", "tinyint") is InferredSemantic.UNRESOLVED
    # Only prefixes count, not substrings
    assert infer_from_name("this_is_flagged", "bit") is InferredSemantic.UNRESOLVED


def test_declared_type_modifiers_are_ignored() -> None:
    """MySQL reports tinyint(1) and unsigned variants in COLUMN_TYPE"""
    assert infer_from_name("is_active", "tinyint(1)") is InferredSemantic.BOOLEAN
    assert infer_from_name("is_active", "TINYINT(3) UNSIGNED") is InferredSemantic.BOOLEAN


def test_matching_is_case_insensitive() -> None:
    assert infer_from_name("IS_ACTIVE", "TINYINT") is InferredSemantic.BOOLEAN
    assert infer_from_name("Order_UUID", "CHAR(36)") is InferredSemantic.GUID


@pytest.mark.parametrize(
    "name",
    [
        "uuid",
        "guid",
        "order_uuid",
        "customer_guid",
        "correlation_id",
        "tracking_id",
        "external_id",
        "request_id",
        "session_id",
        "transaction_id",
    ],
)
def test_guid_names(name: str) -> None:
    assert infer_from_name(name, "char(36)") is InferredSemantic.GUID


@pytest.mark.parametrize(
    "declared_type",
    [
        "char(36)",
        "varchar(36)",
        "character(36)",
        "uuid",
        "uniqueidentifier",
        "nvarchar(36)",
        "nchar(36)",
        "character varying(36)",
        "CHAR( 36 )",
    ],
)
def test_guid_compatible_types(declared_type: str) -> None:
    assert is_guid_compatible_type(declared_type)
    assert infer_from_name("request_id", declared_type) is InferredSemantic.GUID


@pytest.mark.parametrize("declared_type", ["char(32)", "varchar(255)", "text", "binary(16)", "varchar"])
def test_guid_incompatible_types(declared_type: str) -> None:
    assert not is_guid_compatible_type(declared_type)
    assert infer_from_name("uuid", declared_type) is InferredSemantic.UNRESOLVED


def test_plain_id_columns_are_not_guids() -> None:
    assert infer_from_name("user_id", "char(36)") is InferredSemantic.UNRESOLVED


def test_base_type() -> None:
    assert base_type("TINYINT(1) UNSIGNED") == "tinyint"
    assert base_type("  smallint ") == "smallint"
    assert base_type("") == ""
    assert is_small_integer_type("int2")
    assert not is_small_integer_type("bigint")


def test_apply_name_inference_resolves_and_counts() -> None:
    columns = [
        Column(table_name="users", name="is_active", data_type="bit"),
        Column(table_name="users", name="external_id", data_type="uniqueidentifier"),
        Column(table_name="users", name="name", data_type="nvarchar(100)"),
    ]

    assert apply_name_inference(columns) == 2

    assert columns[0].inferred_as_boolean
    assert not columns[0].inferred_as_guid
    assert columns[1].inferred_as_guid
    assert not columns[2].is_resolved


def test_apply_name_inference_skips_resolved_columns() -> None:
    column = Column(table_name="users", name="is_active", data_type="bit")
    column.resolve(InferredSemantic.BOOLEAN)

    assert apply_name_inference([column]) == 0
    assert column.inferred_as_boolean
