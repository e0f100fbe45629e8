"""Per-task logging context for cleanup runs, stored in a ContextVar."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator
from uuid import uuid4


_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the current logging context."""
    context = _log_context.get()
    return dict(context) if context else {}


@contextmanager
def bound_log_context(**values: Any) -> Iterator[Dict[str, Any]]:
    """Bind values for the duration of a block and restore the previous context after."""
    token = _log_context.set({**get_log_context(), **{k: v for k, v in values.items() if v is not None}})
    try:
        yield get_log_context()
    finally:
        _log_context.reset(token)


def new_run_id() -> str:
    return uuid4().hex[:12]
