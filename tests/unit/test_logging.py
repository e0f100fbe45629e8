"""Unit tests for the JSON log formatter and cleanup log context."""

import json
import logging

from newsreel.main.log_context import bound_log_context, get_log_context, new_run_id
from newsreel.main.logging import ContextJSONFormatter


def _record(message="hello", **extra):
    record = logging.LogRecord(
        name="newsreel.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_bound_context_is_attached():
    with bound_log_context(run_id="abc123", user_id="u-1", feed_id=None):
        payload = json.loads(ContextJSONFormatter().format(_record()))

    assert payload["run_id"] == "abc123"
    assert payload["user_id"] == "u-1"
    assert "feed_id" not in payload
    assert payload["message"] == "hello"
    assert payload["level"] == "info"


def test_context_is_restored_after_block():
    with bound_log_context(user_id="outer"):
        with bound_log_context(feed_id="inner"):
            assert get_log_context() == {"user_id": "outer", "feed_id": "inner"}
        assert get_log_context() == {"user_id": "outer"}

    assert get_log_context() == {}


def test_extra_fields_are_serialized():
    payload = json.loads(ContextJSONFormatter().format(_record(articles_deleted=5)))

    assert payload["articles_deleted"] == 5


def test_run_ids_are_unique():
    assert new_run_id() != new_run_id()
