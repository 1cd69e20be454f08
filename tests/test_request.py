"""Request unit tests"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from formstate.config import RequestConfig
from formstate.enums import RequestStatus
from formstate.errors import RequestCancelledError, RequestNotConfiguredError
from formstate.request import CancelToken, Request


def run(coro):
    return asyncio.run(coro)


def test_initial_state():
    request = Request()

    assert request.status == RequestStatus.INIT
    assert request.data == []
    assert request.error is None
    assert request.loading is False


def test_fetch_without_operation_raises():
    request = Request()

    with pytest.raises(RequestNotConfiguredError):
        run(request.fetch())


def test_fetch_success():
    request = Request()
    request.set(AsyncMock(return_value=[{"id": 1, "name": "Test"}]))

    run(request.fetch())

    assert request.status == RequestStatus.SUCCESS
    assert request.data == [{"id": 1, "name": "Test"}]


def test_fetch_failure_calls_handler():
    error = ValueError("boom")
    handler = Mock()
    request = Request()
    request.set(AsyncMock(side_effect=error), handler)

    run(request.fetch())

    assert request.status == RequestStatus.ERROR
    assert request.error is error
    assert request.data == []
    handler.assert_called_once_with(error)


def test_failing_handler_does_not_propagate():
    request = Request()
    request.set(AsyncMock(side_effect=ValueError("boom")), Mock(side_effect=RuntimeError))

    run(request.fetch())

    assert request.status == RequestStatus.ERROR


def test_params_are_merged_and_remembered():
    operation = AsyncMock(return_value="ok")
    request = Request()
    request.set(operation)

    run(request.fetch({"page": 1, "size": 10}))
    run(request.fetch({"page": 2}))

    operation.assert_awaited_with(page=2, size=10)
    assert request.last_params == {"page": 2, "size": 10}


def test_single_flight():
    calls = []

    async def operation():
        calls.append(1)
        await asyncio.sleep(0.01)
        return "done"

    async def scenario(request):
        await asyncio.gather(request.fetch(), request.fetch())

    request = Request()
    request.set(operation)
    run(scenario(request))

    assert len(calls) == 1
    assert request.status == RequestStatus.SUCCESS
    assert request.data == "done"


class TestSet:
    """Tests for set and configure"""

    def test_set_resets_state(self):
        request = Request()
        request.set(AsyncMock(return_value=[1]))
        run(request.fetch())

        request.set(AsyncMock(return_value=[2]))

        assert request.status == RequestStatus.INIT
        assert request.data == []

    def test_single_use_rejects_second_set(self):
        first = AsyncMock(return_value="first")
        request = Request()
        request.configure(id="users", once=True)
        request.set(first)
        request.set(AsyncMock(return_value="second"))

        run(request.fetch())

        assert request.token == "users"
        assert request.single_use is True
        assert request.data == "first"

    def test_configure_rejects_zero_retries(self):
        with pytest.raises(ValueError):
            Request().configure(retries=0)


class TestCancel:
    """Tests for cancellation"""

    def test_cancel_without_token_is_noop(self):
        request = Request()
        request.cancel()

        assert request.status == RequestStatus.INIT

    def test_token_is_injected(self):
        operation = AsyncMock(return_value="ok")
        token = CancelToken()
        request = Request()
        request.set(operation)
        request.set_cancel(token)

        run(request.fetch({"q": "x"}))

        operation.assert_awaited_once_with(q="x", cancel_token=token)

    def test_cancel_sets_status(self):
        token = CancelToken()
        request = Request()
        request.set(AsyncMock())
        request.set_cancel(token)

        request.cancel()

        assert token.cancelled is True
        assert request.status == RequestStatus.CANCELED

    def test_late_result_does_not_overwrite_canceled(self):
        async def operation(cancel_token):
            await asyncio.sleep(0.01)
            return "late"

        async def scenario(request):
            task = asyncio.create_task(request.fetch())
            await asyncio.sleep(0)
            request.cancel()
            await task

        request = Request()
        request.set(operation)
        request.set_cancel(CancelToken())
        run(scenario(request))

        assert request.status == RequestStatus.CANCELED
        assert request.data == []

    def test_cooperative_operation_stops(self):
        handler = Mock()

        async def operation(cancel_token):
            await cancel_token.wait()
            cancel_token.raise_if_cancelled()

        async def scenario(request):
            task = asyncio.create_task(request.fetch())
            await asyncio.sleep(0)
            request.cancel()
            await task

        request = Request()
        request.set(operation, handler)
        request.set_cancel(CancelToken())
        run(scenario(request))

        assert request.status == RequestStatus.CANCELED
        assert request.error is None
        handler.assert_not_called()

    def test_fetch_after_cancel_uses_fresh_token(self):
        seen = []

        async def operation(cancel_token):
            seen.append(cancel_token)
            return "ok"

        original = CancelToken()
        request = Request()
        request.set(operation)
        request.set_cancel(original)
        request.cancel()

        run(request.fetch())

        assert request.status == RequestStatus.SUCCESS
        assert seen[0] is not original
        assert seen[0].cancelled is False
        assert request.cancel_token is seen[0]

    def test_raise_if_cancelled(self):
        token = CancelToken()
        token.raise_if_cancelled()

        token.cancel("stop")

        with pytest.raises(RequestCancelledError, match="stop"):
            token.raise_if_cancelled()

    def test_cancelled_task_leaves_pending(self):
        delays = iter([1, 0])

        async def operation():
            await asyncio.sleep(next(delays))
            return "done"

        async def scenario(request):
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(request.fetch(), 0.01)
            assert request.status == RequestStatus.CANCELED

            await request.fetch()

        request = Request()
        request.set(operation)
        run(scenario(request))

        assert request.status == RequestStatus.SUCCESS
        assert request.data == "done"


class TestRefetchAndReset:
    """Tests for refetch and reset"""

    def test_refetch_reuses_last_params(self):
        operation = AsyncMock(return_value="ok")
        request = Request()
        request.set(operation)
        run(request.fetch({"page": 3}))

        run(request.refetch())

        assert operation.await_count == 2
        operation.assert_awaited_with(page=3)

    def test_refetch_cancels_in_flight_fetch(self):
        results = iter(["stale", "fresh"])

        async def operation(cancel_token):
            value = next(results)
            if value == "stale":
                await asyncio.sleep(0.02)
            return value

        async def scenario(request):
            task = asyncio.create_task(request.fetch())
            await asyncio.sleep(0)
            await request.refetch()
            await task

        request = Request()
        request.set(operation)
        request.set_cancel(CancelToken())
        run(scenario(request))

        assert request.status == RequestStatus.SUCCESS
        assert request.data == "fresh"

    def test_reset_keeps_operation(self):
        operation = AsyncMock(return_value="ok")
        request = Request()
        request.set(operation)
        run(request.fetch())

        request.reset()

        assert request.status == RequestStatus.INIT
        assert request.data == []
        assert request.error is None
        run(request.fetch())
        assert operation.await_count == 2


class TestRetry:
    """Tests for the retry policy"""

    def test_retries_until_success(self):
        operation = AsyncMock(side_effect=[ValueError("1"), ValueError("2"), "ok"])
        request = Request(RequestConfig(retries=3, initial_delay=0))
        request.set(operation)

        run(request.fetch())

        assert operation.await_count == 3
        assert request.status == RequestStatus.SUCCESS
        assert request.data == "ok"

    def test_gives_up_after_last_attempt(self):
        handler = Mock()
        operation = AsyncMock(side_effect=ValueError("down"))
        request = Request()
        request.configure(retries=2, initial_delay=0)
        request.set(operation, handler)

        run(request.fetch())

        assert operation.await_count == 2
        assert request.status == RequestStatus.ERROR
        handler.assert_called_once()

    def test_default_config_does_not_retry(self):
        operation = AsyncMock(side_effect=ValueError("down"))
        request = Request()
        request.set(operation)

        run(request.fetch())

        assert operation.await_count == 1
