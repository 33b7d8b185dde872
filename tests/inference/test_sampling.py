"""Tests for the data sampling analyzers"""

import logging
import uuid
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from schemascope.database.backends import BackendKind
from schemascope.database.session import CatalogSession
from schemascope.errors import SamplingQueryError
from schemascope.inference import sampling
from schemascope.inference.sampling import (
    analyze_boolean_columns,
    analyze_guid_columns,
    build_boolean_query,
    build_guid_query,
    is_boolean_sample,
    is_guid_sample,
)
from schemascope.models import Column, InferredSemantic, Table


def _guids(count: int) -> list[str]:
    return [str(uuid.uuid4()) for _ in range(count)]


def _users_table(session: CatalogSession) -> Table:
    columns = [
        Column(schema_name="main", table_name="users", name=name, data_type=data_type)
        for name, data_type in [
            ("id", "INTEGER"),
            ("is_active", "TINYINT"),
            ("archived", "SMALLINT"),
            ("status_code", "SMALLINT"),
            ("external_id", "CHAR(36)"),
            ("session_token", "CHAR(36)"),
            ("api_key", "VARCHAR(36)"),
        ]
    ]
    return Table(schema_name="main", name="users", columns=columns)


# ============================================================================
# Boolean decisions
# ============================================================================


def test_boolean_zero_and_one_confirmed() -> None:
    assert is_boolean_sample([0, 1])


def test_boolean_extra_value_not_confirmed() -> None:
    assert not is_boolean_sample([0, 1, 2])


def test_boolean_all_null_not_confirmed() -> None:
    assert not is_boolean_sample([])
    assert not is_boolean_sample([None])


def test_boolean_single_value_confirmed() -> None:
    assert is_boolean_sample([1])


def test_boolean_accepts_driver_numeric_types() -> None:
    assert is_boolean_sample([True, False])
    assert is_boolean_sample([Decimal("0"), Decimal("1")])


def test_boolean_accepts_bit_bytes() -> None:
    assert is_boolean_sample([b"\x00", b"\x01"])
    assert not is_boolean_sample([b"\x00", b"\x02"])


def test_boolean_rejects_strings() -> None:
    assert not is_boolean_sample(["0", "1"])


# ============================================================================
# GUID decisions
# ============================================================================


def test_guid_nine_valid_not_confirmed() -> None:
    assert not is_guid_sample(_guids(9))


def test_guid_ten_valid_confirmed() -> None:
    assert is_guid_sample(_guids(10))


def test_guid_ten_valid_plus_blank_not_confirmed() -> None:
    assert not is_guid_sample([*_guids(10), ""])
    assert not is_guid_sample([*_guids(10), "   "])


def test_guid_blank_vetoes_regardless_of_count() -> None:
    assert not is_guid_sample(["\t", *_guids(50)])


def test_guid_invalid_values_do_not_count() -> None:
    assert not is_guid_sample([*_guids(9), "not-a-guid", "also-not"])


def test_guid_native_uuid_values_count() -> None:
    assert is_guid_sample([uuid.uuid4() for _ in range(10)])


def test_guid_nulls_are_ignored() -> None:
    assert is_guid_sample([None, *_guids(10), None])


def test_guid_undecodable_bytes_do_not_count() -> None:
    assert not is_guid_sample([*_guids(9), b"\xff\xfe"])
    assert is_guid_sample([*_guids(10), b"\xff\xfe"])


# ============================================================================
# Query text
# ============================================================================


def test_queries_use_limit_and_double_quotes() -> None:
    session = CatalogSession(MagicMock(), BackendKind.POSTGRESQL)
    table = Table(schema_name="sales", name="orders")

    assert build_boolean_query(session, table, "is_paid") == (
        'SELECT DISTINCT "is_paid" FROM "sales"."orders" WHERE "is_paid" IS NOT NULL LIMIT 3'
    )
    assert build_guid_query(session, table, "ref") == (
        'SELECT "ref" FROM "sales"."orders" WHERE "ref" IS NOT NULL LIMIT 100'
    )


def test_queries_use_top_and_brackets_on_sqlserver() -> None:
    session = CatalogSession(MagicMock(), BackendKind.SQLSERVER)
    table = Table(schema_name="dbo", name="orders")

    assert build_boolean_query(session, table, "is_paid") == (
        "SELECT DISTINCT TOP 3 [is_paid] FROM [dbo].[orders] WHERE [is_paid] IS NOT NULL"
    )
    assert build_guid_query(session, table, "ref") == "SELECT TOP 100 [ref] FROM [dbo].[orders] WHERE [ref] IS NOT NULL"


def test_queries_use_backticks_on_mysql() -> None:
    session = CatalogSession(MagicMock(), BackendKind.MYSQL)
    table = Table(schema_name="shop", name="orders")

    assert build_boolean_query(session, table, "is_paid").startswith("SELECT DISTINCT `is_paid` FROM `shop`.`orders`")


# ============================================================================
# Analyzers against a real database
# ============================================================================


def test_analyze_boolean_columns(shop_session: CatalogSession) -> None:
    table = _users_table(shop_session)

    confirmed = analyze_boolean_columns(shop_session, table, table.columns)

    # is_active holds 0/1 too, but it is not resolved yet so it is sampled here
    assert confirmed == ["is_active", "archived"]
    assert table.get_column("archived").inferred_as_boolean
    assert not table.get_column("status_code").is_resolved


def test_analyze_guid_columns(shop_session: CatalogSession) -> None:
    table = _users_table(shop_session)

    confirmed = analyze_guid_columns(shop_session, table, table.columns)

    assert confirmed == ["external_id", "session_token"]
    assert table.get_column("session_token").inferred_as_guid
    # One blank value among the samples
    assert not table.get_column("api_key").is_resolved


def test_resolved_columns_are_not_sampled(shop_session: CatalogSession) -> None:
    table = _users_table(shop_session)
    table.get_column("is_active").resolve(InferredSemantic.BOOLEAN)

    with patch.object(sampling, "sample_boolean_column", wraps=sampling.sample_boolean_column) as sampler:
        analyze_boolean_columns(shop_session, table, table.columns)

    sampled = [call.args[2].name for call in sampler.call_args_list]
    assert sampled == ["archived", "status_code"]


def test_only_compatible_types_are_sampled(shop_session: CatalogSession) -> None:
    table = _users_table(shop_session)

    with patch.object(sampling, "sample_guid_column", wraps=sampling.sample_guid_column) as sampler:
        analyze_guid_columns(shop_session, table, table.columns)

    sampled = [call.args[2].name for call in sampler.call_args_list]
    assert sampled == ["external_id", "session_token", "api_key"]


def test_sampling_failure_leaves_column_unresolved(caplog: pytest.LogCaptureFixture) -> None:
    session = MagicMock(spec=CatalogSession)
    session.kind = BackendKind.POSTGRESQL
    session.quote.side_effect = lambda name: f'"{name}"'
    session.qualified_name.return_value = '"public"."users"'
    session.sample.side_effect = [SamplingQueryError("users", "is_hidden", "permission denied"), [0, 1]]

    table = Table(
        schema_name="public",
        name="users",
        columns=[
            Column(table_name="users", name="is_hidden", data_type="smallint"),
            Column(table_name="users", name="deleted_flag", data_type="smallint"),
        ],
    )

    with caplog.at_level(logging.WARNING, logger="schemascope.inference.sampling"):
        confirmed = analyze_boolean_columns(session, table, table.columns)

    assert confirmed == ["deleted_flag"]
    assert not table.columns[0].is_resolved
    session.recover.assert_called_once()
    assert "permission denied" in caplog.text
