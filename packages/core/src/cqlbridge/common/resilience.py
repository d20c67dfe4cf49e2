"""
Resilience Module: bounded retry around every cluster call.

All cluster access goes through a single `ResilientExecutor`. It owns the one
cluster session (created lazily, exactly once) and retries operations that
fail because no host of the cluster is reachable, e.g. during a rolling
restart, until a per-call deadline expires.

Features:
- Lazily created, thread-safe, memoized session
- Reconnection delays taken from the cluster's reconnection policy
- Per-call deadline measured from the start of the call
- Cancellable waits between attempts, per call or process-wide
- A trace id bound for the duration of each call
"""
import threading
import time
from typing import Callable, Iterator, Optional, TypeVar

from cqlbridge_sdk import ClusterClient, ClusterSession, ClusterUnavailableError, OperationCancelledError
from cqlbridge.common import cancellation
from cqlbridge.common.logger import call_trace, get_logger

logger = get_logger("resilience")

T = TypeVar("T")


class ResilientExecutor:
    """Runs operations against the cluster session, retrying while the cluster is unavailable.

    Only `ClusterUnavailableError` is retried. Every other error propagates
    from the first attempt.
    """

    def __init__(
        self,
        client: ClusterClient,
        retry_timeout: float,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            client: The cluster client used to open the session.
            retry_timeout: Seconds a single call may keep retrying.
            cancel_event: Event aborting retry waits. Defaults to the process-wide cancellation event.
            clock: Monotonic clock, in seconds.
        """
        if retry_timeout < 0:
            raise ValueError(f"retry_timeout must not be negative: {retry_timeout}")
        self._client = client
        self._retry_timeout = retry_timeout
        self._cancel_event = cancel_event if cancel_event is not None else cancellation.default_event()
        self._clock = clock
        self._session: Optional[ClusterSession] = None
        self._session_lock = threading.Lock()

    @property
    def retry_timeout(self) -> float:
        return self._retry_timeout

    @property
    def client(self) -> ClusterClient:
        return self._client

    def session(self) -> ClusterSession:
        """Returns the cluster session, connecting on first use.

        A failed connect is not memoized; the next call tries again.
        """
        session = self._session
        if session is None:
            with self._session_lock:
                if self._session is None:
                    logger.info("Opening cluster session")
                    self._session = self._client.connect()
                session = self._session
        return session

    def run(self, operation: Callable[[ClusterSession], T], cancel_event: Optional[threading.Event] = None) -> T:
        """Runs `operation` against the session.

        Args:
            operation: Callable receiving the cluster session.
            cancel_event: Event aborting this call's retry waits. Defaults to the event bound
                by `cancellation.cancel_scope`, then to the executor's event.

        Raises:
            ClusterUnavailableError: if no host became reachable before the deadline.
            OperationCancelledError: if cancelled while waiting to retry.
        """
        event = self._cancel_event_for(cancel_event)
        with call_trace():
            schedule = self._client.new_reconnection_schedule()
            deadline = self._clock() + self._retry_timeout
            last_delay: Optional[float] = None
            while True:
                try:
                    return operation(self.session())
                except ClusterUnavailableError as e:
                    time_left = deadline - self._clock()
                    if time_left <= 0:
                        logger.error(f"Cluster still unavailable after {self._retry_timeout:.3f}s, giving up")
                        raise

                    last_delay = _next_delay(schedule, last_delay, time_left)
                    delay = min(last_delay, time_left)
                    logger.warning(e.diagnostic(10))
                    logger.warning(f"Reconnecting in {int(delay * 1000)}ms")
                    if event.wait(delay):
                        raise OperationCancelledError("Interrupted while waiting to reconnect") from e

    def _cancel_event_for(self, cancel_event: Optional[threading.Event]) -> threading.Event:
        if cancel_event is not None:
            return cancel_event
        scoped = cancellation.scoped_event()
        return scoped if scoped is not None else self._cancel_event

    def close(self) -> None:
        with self._session_lock:
            self._session = None
        self._client.close()


def _next_delay(schedule: Iterator[float], last_delay: Optional[float], time_left: float) -> float:
    """Next delay of the schedule; an exhausted schedule repeats its last delay."""
    delay = next(schedule, None)
    if delay is None:
        return last_delay if last_delay is not None else time_left
    return max(float(delay), 0.0)
