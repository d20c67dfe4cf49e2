import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from cqlbridge.common import cancellation
from cqlbridge.common.resilience import ResilientExecutor, _next_delay
from cqlbridge_sdk import ClusterUnavailableError, OperationCancelledError
from cqlbridge_sdk.testing import FakeClusterClient


def _unavailable():
    return ClusterUnavailableError(
        "All host(s) tried for query failed",
        {"10.0.0.1:9042": ConnectionRefusedError("Connection refused")},
    )


class TestResilientExecutor:

    def test_returns_value_after_one_unavailable(self, executor):
        calls = []

        def operation(session):
            calls.append(session)
            if len(calls) == 1:
                raise _unavailable()
            return "ok"

        assert executor.run(operation) == "ok"
        assert len(calls) == 2

    def test_gives_up_at_deadline(self, cancel_event):
        # Arrange
        client = FakeClusterClient(reconnection_delays=(0.05,))
        executor = ResilientExecutor(client, retry_timeout=0.2, cancel_event=cancel_event)
        attempts = []

        def operation(session):
            attempts.append(time.monotonic())
            raise _unavailable()

        # Act
        start = time.monotonic()
        with pytest.raises(ClusterUnavailableError) as exc_info:
            executor.run(operation)
        elapsed = time.monotonic() - start

        # Assert
        assert len(attempts) >= 2
        assert elapsed < 0.5
        assert "10.0.0.1:9042" in exc_info.value.errors

    def test_waits_follow_schedule_and_deadline(self):
        # deadline = 1.0; the second wait is clamped to the time left
        clock = iter([0.0, 0.1, 0.8, 1.0]).__next__
        cancel_event = MagicMock()
        cancel_event.wait.return_value = False
        executor = ResilientExecutor(
            FakeClusterClient(reconnection_delays=(0.5,)), retry_timeout=1.0, cancel_event=cancel_event, clock=clock
        )

        def operation(session):
            raise _unavailable()

        with pytest.raises(ClusterUnavailableError):
            executor.run(operation)

        assert [call.args[0] for call in cancel_event.wait.call_args_list] == [0.5, pytest.approx(0.2)]

    def test_zero_timeout_does_not_retry(self, cluster_client, cancel_event):
        executor = ResilientExecutor(cluster_client, retry_timeout=0, cancel_event=cancel_event)
        operation = MagicMock(side_effect=_unavailable())

        with pytest.raises(ClusterUnavailableError):
            executor.run(operation)

        assert operation.call_count == 1

    def test_other_errors_are_not_retried(self, executor):
        operation = MagicMock(side_effect=PermissionError("bad credentials"))

        with pytest.raises(PermissionError):
            executor.run(operation)

        assert operation.call_count == 1

    def test_cancel_during_wait(self, executor, cancel_event):
        cancel_event.set()
        operation = MagicMock(side_effect=_unavailable())

        with pytest.raises(OperationCancelledError) as exc_info:
            executor.run(operation)

        assert operation.call_count == 1
        assert isinstance(exc_info.value.__cause__, ClusterUnavailableError)

    def test_connect_failure_is_retried(self, cluster_session, cancel_event):
        client = FakeClusterClient(cluster_session, connect_failures=1)
        executor = ResilientExecutor(client, retry_timeout=1.0, cancel_event=cancel_event)

        assert executor.run(lambda session: session.get_partitioner())
        assert client.connect_count == 2

    def test_session_created_once_under_concurrency(self, cluster_session, cancel_event):
        # Arrange
        barrier = threading.Barrier(8)

        class SlowClient(FakeClusterClient):
            def connect(self):
                time.sleep(0.05)
                return super().connect()

        client = SlowClient(cluster_session)
        executor = ResilientExecutor(client, retry_timeout=1.0, cancel_event=cancel_event)

        def get_session():
            barrier.wait()
            return executor.session()

        # Act
        with ThreadPoolExecutor(max_workers=8) as pool:
            sessions = list(pool.map(lambda _: get_session(), range(8)))

        # Assert
        assert client.connect_count == 1
        assert all(session is cluster_session for session in sessions)

    def test_logs_diagnostic_and_delay(self, executor, caplog):
        caplog.set_level(logging.WARNING)
        calls = []

        def operation(session):
            calls.append(1)
            if len(calls) == 1:
                raise _unavailable()
            return None

        executor.run(operation)

        messages = [record.getMessage() for record in caplog.records]
        assert any("10.0.0.1:9042" in message for message in messages)
        assert any(message.startswith("Reconnecting in ") for message in messages)

    def test_close_drops_session(self, executor, cluster_client):
        executor.session()
        executor.close()

        assert cluster_client.closed
        executor.session()
        assert cluster_client.connect_count == 2

    def test_negative_timeout_rejected(self, cluster_client):
        with pytest.raises(ValueError):
            ResilientExecutor(cluster_client, retry_timeout=-1)


def test_exhausted_schedule_repeats_last_delay():
    schedule = iter([0.1])
    assert _next_delay(schedule, None, 5.0) == 0.1
    assert _next_delay(schedule, 0.1, 5.0) == 0.1


def test_empty_schedule_waits_out_remaining_time():
    assert _next_delay(iter([]), None, 0.3) == 0.3


def test_process_wide_cancellation(cluster_client):
    executor = ResilientExecutor(cluster_client, retry_timeout=1.0)
    operation = MagicMock(side_effect=_unavailable())

    cancellation.cancel()
    try:
        assert cancellation.is_cancelled()
        with pytest.raises(OperationCancelledError):
            executor.run(operation)
    finally:
        cancellation.reset()

    assert not cancellation.is_cancelled()


def _fails_twice():
    attempts = []

    def operation(session):
        attempts.append(1)
        if len(attempts) <= 2:
            raise _unavailable()
        return "ok"

    return operation


class TestPerCallCancellation:

    def _run_pair(self, call):
        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = {name: pool.submit(call, name) for name in ("a", "b")}
            return {name: future.result() for name, future in futures.items()}

    def test_cancel_event_argument_targets_one_call(self, cluster_client, cancel_event):
        # Arrange
        executor = ResilientExecutor(cluster_client, retry_timeout=5.0, cancel_event=cancel_event)
        events = {"a": threading.Event(), "b": threading.Event()}
        events["a"].set()

        def call(name):
            try:
                return executor.run(_fails_twice(), cancel_event=events[name])
            except OperationCancelledError:
                return "cancelled"

        # Act
        results = self._run_pair(call)

        # Assert
        assert results == {"a": "cancelled", "b": "ok"}
        assert not cancel_event.is_set()

    def test_cancel_scope_targets_one_thread(self, cluster_client, cancel_event):
        # Arrange
        executor = ResilientExecutor(cluster_client, retry_timeout=5.0, cancel_event=cancel_event)
        events = {"a": threading.Event(), "b": threading.Event()}

        def call(name):
            operation = _fails_twice()

            def cancelled_midway(session):
                # a caller elsewhere cancels "a" while its call is in flight
                if name == "a":
                    events["a"].set()
                return operation(session)

            with cancellation.cancel_scope(events[name]):
                try:
                    return executor.run(cancelled_midway)
                except OperationCancelledError:
                    return "cancelled"

        # Act
        results = self._run_pair(call)

        # Assert
        assert results == {"a": "cancelled", "b": "ok"}

    def test_argument_wins_over_scope(self, executor):
        scoped = threading.Event()
        scoped.set()

        with cancellation.cancel_scope(scoped):
            assert executor.run(_fails_twice(), cancel_event=threading.Event()) == "ok"

    def test_scope_is_unbound_on_exit(self):
        event = threading.Event()

        with cancellation.cancel_scope(event) as bound:
            assert bound is event
            assert cancellation.scoped_event() is event

        assert cancellation.scoped_event() is None


class TestReconnectionSchedule:

    def _executor(self, cancel_event):
        clock = iter(range(100)).__next__
        return ResilientExecutor(
            FakeClusterClient(reconnection_delays=(0.1, 0.2, 0.3)),
            retry_timeout=50.0,
            cancel_event=cancel_event,
            clock=clock,
        )

    def _failing(self, failures):
        attempts = []

        def operation(session):
            attempts.append(1)
            if len(attempts) <= failures:
                raise _unavailable()
            return "ok"

        return operation

    def test_schedule_advances_within_a_call_and_restarts_per_call(self):
        # Arrange
        cancel_event = MagicMock()
        cancel_event.wait.return_value = False
        executor = self._executor(cancel_event)

        # Act
        assert executor.run(self._failing(4)) == "ok"
        first_call = [call.args[0] for call in cancel_event.wait.call_args_list]
        cancel_event.wait.reset_mock()
        assert executor.run(self._failing(2)) == "ok"
        second_call = [call.args[0] for call in cancel_event.wait.call_args_list]

        # Assert
        assert first_call == [0.1, 0.2, 0.3, 0.3]
        assert second_call == [0.1, 0.2]
