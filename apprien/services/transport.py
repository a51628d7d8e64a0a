"""
HTTP transport used by the Apprien backend connection.

A transport starts a request and hands back a request object right away.
The connection polls ``is_done`` and decides for itself how long to wait,
so giving up on a request never cancels it: the request keeps running in
the background and its result is dropped.
"""

import asyncio
from collections.abc import Mapping
from enum import Enum
from typing import Protocol

import httpx
from structlog import get_logger

from apprien.config import settings

logger = get_logger(__name__)


class RequestOutcome(str, Enum):
    """State of a transport request."""

    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    PROTOCOL_ERROR = "protocol_error"  # Error status or unreadable response
    CONNECTION_ERROR = "connection_error"  # No response at all


class TransportRequest(Protocol):
    """A request that has been sent and may or may not have completed."""

    method: str
    url: str
    headers: dict[str, str]
    data: dict[str, str] | None
    params: dict[str, str] | None

    @property
    def is_done(self) -> bool: ...

    @property
    def outcome(self) -> RequestOutcome: ...

    @property
    def status_code(self) -> int | None: ...

    @property
    def text(self) -> str: ...

    @property
    def error(self) -> str | None: ...


class Transport(Protocol):
    """Starts HTTP requests without waiting for them."""

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> TransportRequest: ...


class HttpxRequest:
    """Transport request executed by an httpx client."""

    def __init__(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> None:
        self.method = method
        self.url = url
        # Copies, so later config changes never leak into a sent request
        self.headers = dict(headers or {})
        self.data = dict(data) if data is not None else None
        self.params = dict(params) if params is not None else None

        self._outcome = RequestOutcome.IN_PROGRESS
        self._status_code: int | None = None
        self._text = ""
        self._error: str | None = None

    @property
    def is_done(self) -> bool:
        return self._outcome is not RequestOutcome.IN_PROGRESS

    @property
    def outcome(self) -> RequestOutcome:
        return self._outcome

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def text(self) -> str:
        return self._text

    @property
    def error(self) -> str | None:
        return self._error

    def abort(self, reason: str) -> None:
        """Finish a request that will never get a response."""
        if not self.is_done:
            self._error = reason
            self._outcome = RequestOutcome.CONNECTION_ERROR

    async def perform(self, client: httpx.AsyncClient) -> None:
        """Execute the request and record how it ended."""
        try:
            response = await client.request(
                self.method,
                self.url,
                headers=self.headers,
                data=self.data,
                params=self.params,
            )
            self._status_code = response.status_code
            self._text = response.text
        except httpx.TransportError as exc:
            self._error = str(exc) or type(exc).__name__
            self._outcome = RequestOutcome.CONNECTION_ERROR
            return
        except httpx.HTTPError as exc:
            self._error = str(exc) or type(exc).__name__
            self._outcome = RequestOutcome.PROTOCOL_ERROR
            return
        except asyncio.CancelledError:
            self.abort("cancelled")
            raise
        except Exception as exc:
            # Request could not be built or sent, e.g. a non-ASCII header value
            logger.warning("apprien_request_not_sent", url=self.url, error=str(exc))
            self._error = str(exc) or type(exc).__name__
            self._outcome = RequestOutcome.CONNECTION_ERROR
            return

        if response.status_code >= 400:
            self._error = response.reason_phrase
            self._outcome = RequestOutcome.PROTOCOL_ERROR
        else:
            self._outcome = RequestOutcome.SUCCESS


class HttpxTransport:
    """
    Transport over ``httpx.AsyncClient``.

    Must be used from a running event loop. Requests run as tasks that
    the transport keeps referenced until they finish, including requests
    nobody is waiting for anymore.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout if timeout is not None else settings.transport_timeout
        self._pending: dict[asyncio.Task[None], HttpxRequest] = {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @property
    def pending_count(self) -> int:
        """Requests still running, waited on or not."""
        return len(self._pending)

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
    ) -> HttpxRequest:
        request = HttpxRequest(method, url, headers=headers, data=data, params=params)
        task = asyncio.get_running_loop().create_task(request.perform(self._get_client()))
        self._pending[task] = request
        task.add_done_callback(self._forget)
        logger.debug("apprien_request_sent", method=method, url=url)
        return request

    def _forget(self, task: asyncio.Task[None]) -> None:
        self._pending.pop(task, None)

    async def aclose(self) -> None:
        """
        Abort requests still in flight and close the owned client.

        Aborted requests finish as connection errors, including ones whose
        task never got to run.
        """
        in_flight = list(self._pending.items())
        for task, request in in_flight:
            task.cancel()
            request.abort("cancelled")
        if in_flight:
            await asyncio.gather(*(task for task, _ in in_flight), return_exceptions=True)
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
