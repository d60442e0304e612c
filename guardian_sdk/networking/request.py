"""
Request execution engine.

A GuardianAPIRequest is a plain description of one HTTP call and how to turn
its response into a value. Two free functions run it:

- ``run_blocking(request)`` waits for the response and returns the value or
  raises a GuardianException
- ``run_async(request, callback, executor)`` returns a PendingRequest at once
  and delivers the outcome to the callback exactly once
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from ..types.errors import (
    CancelledRequestError,
    GuardianException,
    InvalidResponseError,
    ValidationError,
)
from .serializer import JsonSerializer
from .transport import HttpCall, HttpResponse, HttpTransport

logger = logging.getLogger(__name__)


T = TypeVar('T')
R = TypeVar('R')

METHODS_REQUIRING_BODY = ('POST', 'PUT', 'PATCH')
ERROR_BODY_KEYS = ('errorCode', 'error', 'message')


class Callback(ABC, Generic[T]):
    """Receives the outcome of an asynchronous request."""

    @abstractmethod
    def on_success(self, value: T) -> None:
        pass

    @abstractmethod
    def on_failure(self, error: GuardianException) -> None:
        pass


class FunctionCallback(Callback[T]):
    """Callback built from two plain functions, either may be omitted."""

    def __init__(self,
                 on_success: Optional[Callable[[T], None]] = None,
                 on_failure: Optional[Callable[[GuardianException], None]] = None):
        self._on_success = on_success
        self._on_failure = on_failure

    def on_success(self, value: T) -> None:
        if self._on_success is not None:
            self._on_success(value)

    def on_failure(self, error: GuardianException) -> None:
        if self._on_failure is not None:
            self._on_failure(error)


class GuardianAPIRequest(Generic[T]):
    """One Guardian API call and the parser of its response."""

    def __init__(self,
                 transport: HttpTransport,
                 method: str,
                 url: str,
                 parser: Callable[[Any], T],
                 serializer: Optional[JsonSerializer] = None):
        self.transport = transport
        self.method = method.upper()
        self.url = url
        self.serializer = serializer or JsonSerializer()
        self._parser = parser
        self._headers: Dict[str, str] = {}
        self._query: Dict[str, str] = {}
        self._parameters: Dict[str, Any] = {}
        self._body: Any = None

    def set_header(self, name: str, value: str) -> "GuardianAPIRequest[T]":
        self._headers[name] = value
        return self

    def set_bearer(self, token: str) -> "GuardianAPIRequest[T]":
        return self.set_header('Authorization', f"Bearer {token}")

    def set_query_parameter(self, name: str, value: Any) -> "GuardianAPIRequest[T]":
        self._query[name] = str(value)
        return self

    def set_parameter(self, name: str, value: Any) -> "GuardianAPIRequest[T]":
        """Add a body field. Cannot be combined with ``set_body``."""
        if self._body is not None:
            raise ValidationError("Cannot add body parameters to a request with an explicit body",
                                  field=name)
        self._parameters[name] = value
        return self

    def set_body(self, body: Any) -> "GuardianAPIRequest[T]":
        """Set the whole body. Cannot be combined with ``set_parameter``."""
        if self._parameters:
            raise ValidationError("Cannot set an explicit body on a request with body parameters")
        self._body = body
        return self

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def _payload(self) -> Any:
        if self._body is not None:
            return self._body
        if self._parameters:
            return self._parameters
        return None

    def build_call(self) -> HttpCall:
        """
        Build the HTTP call.

        Raises:
            ValidationError: on a GET with a body, or a POST/PUT/PATCH without one
        """
        payload = self._payload()
        if self.method == 'GET' and payload is not None:
            raise ValidationError("GET requests cannot have a body")
        if self.method in METHODS_REQUIRING_BODY and not payload:
            raise ValidationError(f"{self.method} requests must have a non-empty body")

        headers = dict(self._headers)
        body = None
        if payload is not None:
            body = self.serializer.serialize(payload)
            headers.setdefault('Content-Type', self.serializer.content_type)

        return HttpCall(method=self.method, url=self.url, headers=headers,
                        params=dict(self._query), body=body)

    def parse_response(self, response: HttpResponse) -> T:
        """Turn a response into the request's value or raise the classified error."""
        if not response.is_successful:
            raise self._error(response)

        payload = None
        if response.body:
            try:
                payload = self.serializer.deserialize(response.body)
            except Exception as e:
                raise InvalidResponseError("Response body is not valid JSON",
                                           status_code=response.status,
                                           error_body=response.text, cause=e)

        try:
            return self._parser(payload)
        except GuardianException:
            raise
        except Exception as e:
            raise InvalidResponseError(f"Unable to parse response: {e}",
                                       status_code=response.status,
                                       error_body=payload, cause=e)

    def _error(self, response: HttpResponse) -> GuardianException:
        try:
            body = self.serializer.deserialize(response.body) if response.body else None
        except Exception as e:
            logger.debug(f"Unparseable error body from {self.url} (HTTP {response.status})")
            return GuardianException.unparseable(response.status, response.text or None, cause=e)

        if isinstance(body, dict) and any(key in body for key in ERROR_BODY_KEYS):
            error = GuardianException.from_error_body(body, status_code=response.status)
            logger.debug(f"Guardian error from {self.url}: {error}")
            return error
        return GuardianException.unparseable(response.status, response.text or None)

    def with_parser(self, parser: Callable[[Any], R]) -> "GuardianAPIRequest[R]":
        """Copy of this request with a different response parser."""
        clone = copy.copy(self)
        clone._headers = dict(self._headers)
        clone._query = dict(self._query)
        clone._parameters = dict(self._parameters)
        clone._parser = parser
        return clone

    def execute(self) -> T:
        return run_blocking(self)

    def start(self, callback: Optional[Callback[T]] = None,
              executor: Optional[Executor] = None) -> "PendingRequest[T]":
        return run_async(self, callback, executor)

    def __repr__(self) -> str:
        return f"GuardianAPIRequest({self.method} {self.url})"


class _Delivery(Generic[T]):
    """Single-use slot: the first outcome wins, later ones are dropped."""

    def __init__(self, callback: Optional[Callback[T]], executor: Optional[Executor]):
        self._callback = callback
        self._executor = executor
        self._lock = threading.Lock()
        self._used = False

    def claim(self) -> bool:
        with self._lock:
            if self._used:
                return False
            self._used = True
            return True

    def dispatch(self, fn: Callable[..., None], arg: Any) -> None:
        if self._callback is None:
            return
        if self._executor is not None:
            self._executor.submit(self._invoke, fn, arg)
        else:
            self._invoke(fn, arg)

    @staticmethod
    def _invoke(fn: Callable[..., None], arg: Any) -> None:
        try:
            fn(arg)
        except Exception:
            logger.exception("Unhandled error in request callback")


class PendingRequest(Generic[T]):
    """Handle on a request started with ``run_async``."""

    def __init__(self, request: GuardianAPIRequest[T],
                 callback: Optional[Callback[T]] = None,
                 executor: Optional[Executor] = None):
        self.request = request
        self._callback = callback
        self._delivery: _Delivery[T] = _Delivery(callback, executor)
        self._future: "Future[T]" = Future()
        self._transport_future: Optional[Future] = None

    def _attach(self, transport_future: Future) -> None:
        self._transport_future = transport_future
        transport_future.add_done_callback(self._on_transport_done)

    def _on_transport_done(self, transport_future: Future) -> None:
        if transport_future.cancelled():
            self._fail(CancelledRequestError())
            return

        error = transport_future.exception()
        if error is not None:
            if not isinstance(error, GuardianException):
                error = GuardianException.from_transport_error(error)
            self._fail(error)
            return

        try:
            value = self.request.parse_response(transport_future.result())
        except GuardianException as e:
            self._fail(e)
            return
        except Exception as e:
            self._fail(InvalidResponseError(f"Unable to parse response: {e!r}", cause=e))
            return
        self._succeed(value)

    def _succeed(self, value: T) -> bool:
        if not self._delivery.claim():
            return False
        self._future.set_result(value)
        if self._callback is not None:
            self._delivery.dispatch(self._callback.on_success, value)
        return True

    def _fail(self, error: GuardianException) -> bool:
        if not self._delivery.claim():
            return False
        self._future.set_exception(error)
        if self._callback is not None:
            self._delivery.dispatch(self._callback.on_failure, error)
        return True

    def cancel(self) -> bool:
        """
        Abort the request. The callback receives a CancelledRequestError.

        Returns:
            False when the request had already completed
        """
        if not self._fail(CancelledRequestError()):
            return False
        if self._transport_future is not None:
            self._transport_future.cancel()
        logger.debug(f"Cancelled {self.request!r}")
        return True

    def done(self) -> bool:
        return self._future.done()

    def cancelled(self) -> bool:
        return self.done() and isinstance(self._future.exception(), CancelledRequestError)

    def result(self, timeout: Optional[float] = None) -> T:
        """Wait for the value; raises the request's GuardianException on failure."""
        return self._future.result(timeout)

    def exception(self, timeout: Optional[float] = None) -> Optional[GuardianException]:
        return self._future.exception(timeout)


def run_blocking(request: GuardianAPIRequest[T]) -> T:
    """
    Run ``request`` and wait for its value.

    Raises:
        GuardianException: on transport, protocol or parsing failures
        RuntimeError: when called from the transport thread, which would deadlock
    """
    if request.transport.in_transport_thread():
        raise RuntimeError("Blocking requests cannot run on the transport thread; use run_async")

    call = request.build_call()
    future = request.transport.submit(call)
    try:
        response = future.result()
    except GuardianException:
        raise
    except Exception as e:
        raise GuardianException.from_transport_error(e)
    return request.parse_response(response)


def run_async(request: GuardianAPIRequest[T],
              callback: Optional[Callback[T]] = None,
              executor: Optional[Executor] = None) -> PendingRequest[T]:
    """
    Start ``request`` without waiting.

    Exactly one of ``on_success`` / ``on_failure`` is invoked, once. Callbacks
    run on the transport thread unless ``executor`` is given.
    """
    pending = PendingRequest(request, callback, executor)
    call = request.build_call()
    try:
        transport_future = request.transport.submit(call)
    except RuntimeError as e:
        pending._fail(GuardianException.from_transport_error(e))
        return pending
    pending._attach(transport_future)
    return pending


def map_request(request: GuardianAPIRequest[T], fn: Callable[[T], R]) -> GuardianAPIRequest[R]:
    """
    Compose a post-processing step onto ``request``.

    A GuardianException raised by ``fn`` fails the request.
    """
    parser = request._parser

    def mapped(payload: Any) -> R:
        return fn(parser(payload))

    return request.with_parser(mapped)
