from types import SimpleNamespace

from datachat.nl2sql.schema_introspector import (
    SCHEMA_QUERY,
    describe_schema,
    list_tables,
    render_column,
    render_schema,
)


def _column(table, name, data_type, nullable="YES", default=None, pk=False):
    return {
        "table_name": table,
        "column_name": name,
        "data_type": data_type,
        "is_nullable": nullable,
        "column_default": default,
        "is_primary_key": pk,
    }


class FakeConnection:
    """Records executed statements and returns canned catalog rows."""

    def __init__(self, rows):
        self.rows = rows
        self.executed = []

    def execute(self, statement, parameters=None):
        self.executed.append((statement, parameters))
        rows = self.rows
        return SimpleNamespace(mappings=lambda: SimpleNamespace(all=lambda: list(rows)))


def test_render_column_includes_constraints_and_default():
    column = _column("users", "id", "integer", nullable="NO", default="nextval('users_id_seq'::regclass)", pk=True)

    assert render_column(column) == (
        "id integer NOT NULL PRIMARY KEY DEFAULT nextval('users_id_seq'::regclass)"
    )


def test_render_column_plain_nullable():
    assert render_column(_column("users", "email", "text")) == "email text"


def test_render_schema_groups_by_table_in_name_order():
    rows = [
        _column("users", "id", "integer", nullable="NO", pk=True),
        _column("users", "email", "text", nullable="NO"),
        _column("orders", "id", "integer", nullable="NO", pk=True),
        _column("orders", "amount", "numeric"),
    ]

    assert render_schema(rows) == (
        "Table orders:\n"
        "  id integer NOT NULL PRIMARY KEY,\n"
        "  amount numeric\n"
        "\n"
        "Table users:\n"
        "  id integer NOT NULL PRIMARY KEY,\n"
        "  email text NOT NULL"
    )


def test_render_schema_is_empty_for_empty_database():
    assert render_schema([]) == ""


def test_describe_schema_queries_requested_schema():
    connection = FakeConnection([_column("orders", "id", "integer", nullable="NO", pk=True)])

    description = describe_schema(connection, "analytics")

    assert description == "Table orders:\n  id integer NOT NULL PRIMARY KEY"
    statement, parameters = connection.executed[0]
    assert statement is SCHEMA_QUERY
    assert parameters == {"schema": "analytics"}


def test_schema_query_reads_information_schema():
    sql = str(SCHEMA_QUERY)

    assert "information_schema.columns" in sql
    assert "PRIMARY KEY" in sql
    assert "ORDER BY c.table_name, c.ordinal_position" in sql


def test_list_tables_returns_first_column():
    class TablesConnection:
        def execute(self, statement, parameters=None):
            self.parameters = parameters
            return iter([("customers",), ("orders",)])

    connection = TablesConnection()

    assert list_tables(connection) == ["customers", "orders"]
    assert connection.parameters == {"schema": "public"}
