import logging

import pytest

from datachat.core.log import log_context, timeit
from datachat.core.log.context import ContextFilter


def test_scope_binds_and_restores_context():
    log_context.bind(request="r1")
    try:
        with log_context.scope(project_id="proj-1", stage=None):
            assert log_context.as_dict() == {"request": "r1", "project_id": "proj-1"}
        assert log_context.as_dict() == {"request": "r1"}
    finally:
        log_context.clear()


def test_context_filter_renders_bound_values():
    record = logging.LogRecord("datachat", logging.INFO, __file__, 1, "hello", None, None)

    with log_context.scope(project_id="proj-1"):
        ContextFilter().filter(record)

    assert record.context == "project_id=proj-1 "


def test_context_filter_keeps_context_rendered_by_producer():
    record = logging.LogRecord("datachat", logging.INFO, __file__, 1, "hello", None, None)
    record.context = "project_id=proj-1 "

    ContextFilter().filter(record)

    assert record.context == "project_id=proj-1 "


def test_timeit_logs_success_with_count(caplog):
    logger = logging.getLogger("datachat.tests.timing")

    with caplog.at_level(logging.INFO, logger=logger.name):
        with timeit("Query execution", logger=logger) as timer:
            timer.set_count(1200)

    assert "Query execution completed in" in caplog.text
    assert "(1,200 rows)" in caplog.text


def test_timeit_logs_failure_and_reraises(caplog):
    logger = logging.getLogger("datachat.tests.timing")

    with caplog.at_level(logging.INFO, logger=logger.name):
        with pytest.raises(RuntimeError):
            with timeit("Schema introspection", logger=logger):
                raise RuntimeError("boom")

    assert "Schema introspection failed after" in caplog.text
