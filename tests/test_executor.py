from decimal import Decimal

import pytest
from sqlalchemy import create_engine, exc

from datachat.core.errors import ConnectivityError, ExecutionError
from datachat.nl2sql.executor import QueryExecutor


@pytest.fixture()
def connection(target_db_url):
    engine = create_engine(target_db_url)
    with engine.connect() as conn:
        yield conn
    engine.dispose()


def test_columns_follow_first_row_keys(connection):
    result = QueryExecutor().execute(connection, "SELECT customer, amount FROM orders ORDER BY id")

    assert result.columns == ["customer", "amount"]
    assert result.rows == [["ada", 10.5], ["grace", 19.5]]
    assert result.row_count == 2
    assert result.truncated is False
    assert result.duration_ms >= 0
    assert result.records() == [
        {"customer": "ada", "amount": 10.5},
        {"customer": "grace", "amount": 19.5},
    ]


def test_zero_rows_give_empty_columns(connection):
    result = QueryExecutor().execute(connection, "SELECT * FROM orders WHERE amount > 1000")

    assert result.columns == []
    assert result.rows == []
    assert result.row_count == 0
    assert result.records() == []


def test_row_cap_truncates(connection):
    result = QueryExecutor(max_rows=1).execute(connection, "SELECT id FROM orders ORDER BY id")

    assert result.rows == [[1]]
    assert result.row_count == 1
    assert result.truncated is True


def test_sql_text_reaches_database_unchanged(connection):
    result = QueryExecutor().execute(
        connection,
        "SELECT customer FROM orders WHERE customer LIKE '%a%' AND ':x' = ':x' ORDER BY id",
    )

    assert [row[0] for row in result.rows] == ["ada", "grace"]


def test_database_errors_become_execution_errors(connection):
    with pytest.raises(ExecutionError, match="no such table"):
        QueryExecutor().execute(connection, "SELECT * FROM missing_table")


def test_invalidated_connection_is_a_connectivity_error():
    error = exc.OperationalError("SELECT 1", {}, Exception("server closed the connection"))
    error.connection_invalidated = True

    class BrokenConnection:
        def exec_driver_sql(self, sql, execution_options=None):
            raise error

    with pytest.raises(ConnectivityError, match="server closed the connection"):
        QueryExecutor().execute(BrokenConnection(), "SELECT 1")


def test_decimal_cells_become_floats():
    assert QueryExecutor._convert(Decimal("12.25")) == 12.25
    assert QueryExecutor._convert("12.25") == "12.25"
