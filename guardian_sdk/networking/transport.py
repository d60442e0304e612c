"""
HTTP transport for the Guardian API.

A single aiohttp ClientSession lives on a private event loop running in a
daemon thread. Calls are submitted from any other thread and complete as
``concurrent.futures.Future`` objects, so callers only ever block or
receive callbacks, they never await.
"""

import asyncio
import locale
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp

from ..types.errors import GuardianException
from ..util.encoding import mask_sensitive_data, safe_json_decode, safe_json_encode
from .client_info import ClientInfo

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 30.0
SENSITIVE_BODY_KEYS = ('token', 'challenge_response', 'secret', 'recovery_code')
SENSITIVE_HEADERS = ('authorization', 'mfa-dpop')


@dataclass(frozen=True)
class HttpCall:
    """One HTTP exchange to perform."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


@dataclass(frozen=True)
class HttpResponse:
    status: int
    headers: Dict[str, str]
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode('utf-8', errors='replace')

    @property
    def is_successful(self) -> bool:
        return 200 <= self.status < 300


def default_language() -> str:
    """Accept-Language value derived from the process locale."""
    try:
        language = locale.getlocale()[0]
    except ValueError:
        language = None
    if not language or language in ('C', 'POSIX'):
        return "en"
    return language.split('.')[0].replace('_', '-')


def _mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    return {
        name: mask_sensitive_data(value, show_first=4, show_last=0)
        if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


def _loggable_body(body: Optional[bytes]) -> str:
    if not body:
        return ""
    text = body.decode('utf-8', errors='replace')
    data = safe_json_decode(text)
    if not isinstance(data, dict):
        return text
    masked = {
        key: mask_sensitive_data(value) if key in SENSITIVE_BODY_KEYS and isinstance(value, str) else value
        for key, value in data.items()
    }
    return safe_json_encode(masked)


class HttpTransport:
    """Runs HTTP calls on a dedicated event-loop thread."""

    def __init__(self,
                 client_info: Optional[ClientInfo] = None,
                 timeout: float = DEFAULT_TIMEOUT,
                 logging_enabled: bool = False,
                 language: Optional[str] = None):
        self.client_info = client_info or ClientInfo()
        self.timeout = timeout
        self.logging_enabled = logging_enabled
        self.default_headers = {
            'Auth0-Client': self.client_info.to_header(),
            'User-Agent': self.client_info.user_agent(),
            'Accept-Language': language or default_language(),
        }
        self._session: Optional[aiohttp.ClientSession] = None
        self._lock = threading.Lock()
        self._closed = False
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name="guardian-transport", daemon=True)
        self._thread.start()

        logger.debug(f"HTTP transport started (timeout={timeout}s)")

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def closed(self) -> bool:
        return self._closed

    def in_transport_thread(self) -> bool:
        """True when called from the transport's own worker thread."""
        return threading.current_thread() is self._thread

    def submit(self, call: HttpCall) -> "Future[HttpResponse]":
        """
        Schedule ``call`` on the transport thread.

        Network failures complete the future with a TransportError.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("HTTP transport is closed")
            return asyncio.run_coroutine_threadsafe(self._perform(call), self._loop)

    def _get_session(self) -> aiohttp.ClientSession:
        # only touched from the loop thread
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.default_headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def _perform(self, call: HttpCall) -> HttpResponse:
        logger.debug(f"--> {call.method} {call.url}")
        if self.logging_enabled:
            logger.info(f"--> {call.method} {call.url} headers={_mask_headers(call.headers)} "
                        f"body={_loggable_body(call.body)}")

        try:
            async with self._get_session().request(
                call.method,
                call.url,
                headers=call.headers,
                params=call.params or None,
                data=call.body,
            ) as resp:
                body = await resp.read()
                response = HttpResponse(status=resp.status, headers=dict(resp.headers), body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.warning(f"<-- {call.method} {call.url} failed: {e!r}")
            raise GuardianException.from_transport_error(e)

        logger.debug(f"<-- {response.status} {call.url}")
        if self.logging_enabled:
            logger.info(f"<-- {response.status} {call.url} body={_loggable_body(response.body)}")
        return response

    async def _close_session(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    def close(self, timeout: float = 5.0) -> None:
        """Close the session and stop the worker thread. Safe to call twice."""
        if self.in_transport_thread():
            raise RuntimeError("HTTP transport cannot be closed from its own thread")

        with self._lock:
            if self._closed:
                return
            self._closed = True

        try:
            asyncio.run_coroutine_threadsafe(self._close_session(), self._loop).result(timeout)
        except Exception as e:
            logger.warning(f"Error closing HTTP session: {e}")
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._loop.close()
            logger.debug("HTTP transport closed")

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
