import contextvars
import threading
from contextlib import contextmanager
from typing import Optional

_cancel_event = threading.Event()

_scoped_event_ctx: contextvars.ContextVar[Optional[threading.Event]] = contextvars.ContextVar(
    "cancel_event", default=None
)


def cancel() -> None:
    _cancel_event.set()


def reset() -> None:
    _cancel_event.clear()


def is_cancelled() -> bool:
    return _cancel_event.is_set()


def default_event() -> threading.Event:
    """The process-wide cancellation event used when no event is injected."""
    return _cancel_event


@contextmanager
def cancel_scope(event: threading.Event):
    """Binds `event` as the cancellation signal for cluster calls made in the current context.

    Each thread gets its own context, so setting `event` aborts only the calls
    made inside this block.
    """
    token = _scoped_event_ctx.set(event)
    try:
        yield event
    finally:
        _scoped_event_ctx.reset(token)


def scoped_event() -> Optional[threading.Event]:
    return _scoped_event_ctx.get()
