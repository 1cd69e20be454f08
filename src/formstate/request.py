"""Asynchronous request lifecycle with single-flight fetch and cancellation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from .config import RequestConfig
from .consts import CANCEL_TOKEN_PARAM
from .enums import RequestStatus
from .errors import RequestCancelledError, RequestNotConfiguredError
from .utils import BackoffStrategy, retry_async

logger = logging.getLogger(__name__)

Operation = Callable[..., Awaitable[Any]]
ErrorHandler = Callable[[Exception], Any]


class CancelToken:
    """Cooperative cancellation signal handed to a running operation.

    Cancelling only records intent. Operations that care poll ``cancelled``,
    call ``raise_if_cancelled()`` or await ``wait()``.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        self.reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RequestCancelledError(self.reason or "Operation was cancelled")

    async def wait(self) -> None:
        await self._event.wait()


def log_error(error: Exception) -> None:
    logger.error(f"Request failed: {error}")


class Request:
    """Tracks one asynchronous operation.

    Status lifecycle::

        init --fetch--> pending --ok--> success
        pending --failure--> error
        any --cancel (token set)--> canceled
        any --reset--> init

    While ``pending`` a second ``fetch()`` returns without invoking the
    operation again. A result that arrives after ``cancel()``, ``reset()``
    or a newer fetch is discarded.
    """

    def __init__(self, config: Optional[RequestConfig] = None):
        config = config or RequestConfig()
        self.status = RequestStatus.INIT
        self.data: Any = []
        self.error: Optional[Exception] = None
        self._token: Optional[str] = None
        self._single_use = False
        self._operation: Optional[Operation] = None
        self._error_handler: ErrorHandler = log_error
        self._cancel_token: Optional[CancelToken] = None
        self._last_params: dict[str, Any] = {}
        self._generation = 0
        self._retries = config.retries
        self._initial_delay = config.initial_delay
        self._backoff: BackoffStrategy = config.backoff

    def __repr__(self) -> str:
        return f"Request(token={self._token!r}, status={self.status.value})"

    @property
    def loading(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def single_use(self) -> bool:
        return self._single_use

    @property
    def last_params(self) -> dict[str, Any]:
        return dict(self._last_params)

    @property
    def cancel_token(self) -> Optional[CancelToken]:
        """The live token.

        A cancelled token is replaced by a fresh one on the next fetch, so
        read this property instead of keeping the token given to
        ``set_cancel``.
        """
        return self._cancel_token

    def configure(
        self,
        id: Optional[str] = None,
        once: bool = False,
        retries: Optional[int] = None,
        initial_delay: Optional[float] = None,
        backoff: Optional[BackoffStrategy] = None,
    ) -> None:
        """Set the token, the single-use flag and the retry policy.

        Call before ``set``.
        """
        self._token = id
        self._single_use = once
        if retries is not None:
            if retries < 1:
                raise ValueError("retries must be at least 1")
            self._retries = retries
        if initial_delay is not None:
            self._initial_delay = initial_delay
        if backoff is not None:
            self._backoff = backoff

    def set(self, operation: Operation, error_handler: Optional[ErrorHandler] = None) -> None:
        if self._single_use and self._operation is not None:
            logger.warning(f"Request {self._token} is single-use and already set")
            return

        self.reset()
        self._operation = operation
        if error_handler is not None:
            self._error_handler = error_handler

    def set_cancel(self, cancel_token: CancelToken) -> None:
        """Install a cancel token. It stays live until cancelled; see ``cancel_token``."""
        self._cancel_token = cancel_token

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self.status == RequestStatus.PENDING

    def _prepare_operation(self) -> Operation:
        if self._retries <= 1:
            return self._operation

        cancel_token = self._cancel_token
        return retry_async(
            times=self._retries,
            initial_delay=self._initial_delay,
            backoff=self._backoff,
            should_stop=lambda: cancel_token is not None and cancel_token.cancelled,
        )(self._operation)

    async def fetch(self, params: Optional[Mapping[str, Any]] = None) -> None:
        """Run the operation unless a fetch is already in flight.

        The remembered params (merged with ``params``) are passed as keyword
        arguments; the cancel token, when set, is added as ``cancel_token``.
        Failures are stored in ``error`` and handed to the error handler,
        they never propagate.

        Raises:
            RequestNotConfiguredError: If no operation was set
        """
        if self._operation is None:
            raise RequestNotConfiguredError(f"Request {self._token} has no operation")

        if self.status == RequestStatus.PENDING:
            logger.debug(f"Request {self._token} already pending, skipping fetch")
            return

        self.status = RequestStatus.PENDING
        self._generation += 1
        generation = self._generation

        if params:
            self._last_params.update(params)
        call_params = dict(self._last_params)

        if self._cancel_token is not None:
            if self._cancel_token.cancelled:
                self._cancel_token = CancelToken()
            call_params[CANCEL_TOKEN_PARAM] = self._cancel_token

        operation = self._prepare_operation()

        try:
            result = await operation(**call_params)
        except asyncio.CancelledError:
            if self._is_current(generation):
                self.status = RequestStatus.CANCELED
            logger.debug(f"Request {self._token} task was cancelled")
            raise
        except Exception as e:
            if not self._is_current(generation):
                logger.debug(f"Request {self._token} failed after being superseded: {e}")
                return

            self.error = e
            self.status = RequestStatus.ERROR
            self.data = []
            try:
                self._error_handler(e)
            except Exception:
                logger.exception(f"Error handler of request {self._token} raised")
            return

        if not self._is_current(generation):
            logger.debug(f"Request {self._token} resolved after being superseded, result dropped")
            return

        self.data = result
        self.status = RequestStatus.SUCCESS

    def cancel(self) -> None:
        if self._cancel_token is None:
            logger.warning(f"Request {self._token} has no cancel token, cancel ignored")
            return

        self._cancel_token.cancel()
        self.status = RequestStatus.CANCELED

    async def refetch(self) -> None:
        if self._cancel_token is not None:
            self.cancel()
        self.data = []
        await self.fetch()

    def reset(self) -> None:
        self.status = RequestStatus.INIT
        self.data = []
        self.error = None
