import pytest

from app.ai_feature.schema_context import fetch_schema_context, fold_schema_rows


def test_fold_groups_columns_per_table():
    rows = [
        {"table_name": "customers", "column_name": "id", "data_type": "integer", "is_nullable": "NO"},
        {"table_name": "customers", "column_name": "email", "data_type": "text", "is_nullable": "YES"},
        {"table_name": "orders", "column_name": "total", "data_type": "numeric", "is_nullable": "NO"},
    ]
    assert fold_schema_rows(rows) == (
        "customers: id (integer), email (text, nullable)\n"
        "orders: total (numeric)"
    )


def test_fold_reads_upper_case_sqlserver_keys():
    rows = [
        {"TABLE_NAME": "Sales", "COLUMN_NAME": "Amount", "DATA_TYPE": "money", "IS_NULLABLE": "YES"},
    ]
    assert fold_schema_rows(rows) == "Sales: Amount (money, nullable)"


def test_fold_of_nothing_is_empty():
    assert fold_schema_rows([]) == ""


@pytest.mark.asyncio
async def test_fetch_closes_handle(fake_backend):
    fake_backend.schema_rows = [
        {"table_name": "t", "column_name": "id", "data_type": "int", "is_nullable": "NO"},
    ]
    context = await fetch_schema_context(
        "postgresql", "postgresql://localhost/db", fake_backend.create_connection
    )

    assert context == "t: id (int)"
    assert len(fake_backend.created) == 1
    assert fake_backend.created[0].closed == 1


@pytest.mark.asyncio
async def test_fetch_swallows_backend_failures(fake_backend):
    fake_backend.schema_error = "permission denied for information_schema"
    context = await fetch_schema_context(
        "postgresql", "postgresql://localhost/db", fake_backend.create_connection
    )

    assert context == ""
    assert fake_backend.created[0].closed == 1


@pytest.mark.asyncio
async def test_fetch_swallows_unsupported_backend(fake_backend):
    context = await fetch_schema_context("oracle", "x", fake_backend.create_connection)
    assert context == ""
    assert fake_backend.created == []
