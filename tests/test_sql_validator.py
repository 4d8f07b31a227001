import pytest

from datachat.core.errors import SQLValidationError
from datachat.nl2sql.sql_validator import SQLSafetyValidator, validate_sql


@pytest.fixture()
def validator():
    return SQLSafetyValidator()


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT * FROM orders",
        "  select id, amount from orders where amount > 10 order by amount desc limit 5",
        "SELECT customer, SUM(amount) AS total FROM orders GROUP BY customer",
        "SELECT * FROM orders;",
        "SELECT o.id FROM orders o JOIN customers c ON c.id = o.customer_id",
        "SELECT id FROM orders UNION SELECT id FROM refunds",
        "SELECT created_at, updated_by FROM audit_log",
        "SELECT * FROM updates",
        "SELECT count(*) FROM (SELECT id FROM orders WHERE amount > 0) sub",
    ],
)
def test_accepts_read_only_selects(validator, sql):
    validator.validate(sql)
    assert validator.is_safe(sql)


def test_rejects_non_string(validator):
    with pytest.raises(SQLValidationError, match="must be a string"):
        validator.validate(None)


@pytest.mark.parametrize(
    "sql",
    [
        "DELETE FROM orders",
        "UPDATE orders SET amount = 0",
        "WITH recent AS (SELECT * FROM orders) SELECT * FROM recent",
        "EXPLAIN SELECT * FROM orders",
        "",
    ],
)
def test_rejects_statements_not_starting_with_select(validator, sql):
    with pytest.raises(SQLValidationError, match="only SELECT"):
        validator.validate(sql)


def test_rejects_stacked_statements(validator):
    with pytest.raises(SQLValidationError, match="multiple SQL statements"):
        validator.validate("SELECT 1; DROP TABLE orders")


def test_rejects_stacked_statements_without_keywords(validator):
    with pytest.raises(SQLValidationError, match="multiple SQL statements"):
        validator.validate("SELECT 1; SELECT 2")


@pytest.mark.parametrize(
    "sql, keyword",
    [
        ("SELECT * FROM orders WHERE note = 'drop'", "drop"),
        ("SELECT * FROM t WHERE x IN (SELECT 1) AND 'delete' = 'delete'", "delete"),
        ("SELECT truncate FROM t", "truncate"),
        ("SELECT * FROM t -- grant", "grant"),
        ("SELECT exec FROM procs", "exec"),
    ],
)
def test_rejects_blocked_keywords_as_whole_words(validator, sql, keyword):
    with pytest.raises(SQLValidationError) as excinfo:
        validator.validate(sql)
    assert excinfo.value.reason == f"forbidden keyword '{keyword}'"


def test_keyword_match_is_case_insensitive(validator):
    with pytest.raises(SQLValidationError, match="forbidden keyword 'insert'"):
        validator.validate("SELECT * FROM orders WHERE x = 'INSERT'")


def test_rejects_blocked_server_functions(validator):
    with pytest.raises(SQLValidationError, match="pg_sleep"):
        validator.validate("SELECT pg_sleep(10)")


@pytest.mark.parametrize(
    "sql, function",
    [
        ("SELECT nextval('orders_id_seq')", "nextval"),
        ("SELECT setval('orders_id_seq', 1)", "setval"),
        ("SELECT lo_from_bytea(0, 'abc')", "lo_from_bytea"),
        ("SELECT id, lo_unlink(id) FROM orders", "lo_unlink"),
        ("SELECT pg_advisory_lock(1)", "pg_advisory_lock"),
        ("SELECT pg_advisory_xact_lock(1)", "pg_advisory_xact_lock"),
    ],
)
def test_rejects_state_changing_functions(validator, sql, function):
    assert not validator.is_safe(sql)
    with pytest.raises(SQLValidationError, match=function):
        validator.validate(sql)


def test_rejects_file_access_functions_inside_subqueries(validator):
    with pytest.raises(SQLValidationError, match="pg_read_file"):
        validator.validate("SELECT * FROM (SELECT pg_read_file('/etc/passwd') AS f) sub")


def test_rejects_select_into(validator):
    with pytest.raises(SQLValidationError, match="INTO"):
        validator.validate("SELECT * INTO backup_orders FROM orders")


def test_error_message_is_prefixed(validator):
    with pytest.raises(SQLValidationError) as excinfo:
        validator.validate("DROP TABLE orders")
    assert str(excinfo.value).startswith("Unsafe SQL query rejected:")
    assert isinstance(excinfo.value, ValueError)


def test_custom_keyword_list():
    validator = SQLSafetyValidator(blocked_keywords=["secret"])

    validator.validate("SELECT * FROM orders WHERE note = 'drop'")
    assert not validator.is_safe("SELECT secret FROM vault")


def test_module_level_helper_uses_default_rules():
    validate_sql("SELECT 1")
    with pytest.raises(SQLValidationError):
        validate_sql("SELECT 1; SELECT 2")
