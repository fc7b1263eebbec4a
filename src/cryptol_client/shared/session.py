"""Session and transport layer for the Cryptol remote API.

A :class:`TransportSession` owns one HTTP connection pool and one
:class:`Session`. Requests go out one at a time: the server threads its
interpreter context through the ``state`` handle, so each request must see the
handle produced by the previous one.
"""

import itertools
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import anyio
import httpx
import pydantic

from cryptol_client.shared._httpx_utils import DEFAULT_TIMEOUT, CryptolHttpClientFactory, create_cryptol_http_client
from cryptol_client.shared.exceptions import TransportError, TransportErrorKind, ValidationError
from cryptol_client.types import (
    JSONRPCError,
    JSONRPCNotification,
    JSONRPCReply,
    JSONRPCReplyAdapter,
    JSONRPCRequest,
    JSONRPCResponse,
    RequestId,
    ServerResult,
)

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Client-side view of one conversation with the server.

    Attributes:
        endpoint: URL requests are posted to
        state: Server-issued state handle, None until the first successful call
    """

    endpoint: str
    state: str | None = None
    _request_ids: "itertools.count[int]" = field(default_factory=lambda: itertools.count(1), repr=False)

    def next_request_id(self) -> RequestId:
        """Return a fresh request id. Ids increase strictly and never repeat within a session."""
        return next(self._request_ids)


class TransportSession:
    """Carries requests for one :class:`Session` over HTTP.

    ``send`` is the only coroutine that waits on the network. It never
    retries; a failure whose effect on the server is unknown is reported with
    ``TransportError.outcome_unknown`` set and the state handle left as it was.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float | timedelta = DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
        max_occupancy: int | None = None,
        httpx_client_factory: CryptolHttpClientFactory = create_cryptol_http_client,
    ) -> None:
        self.session = Session(_check_endpoint(endpoint))
        self.timeout = timeout.total_seconds() if isinstance(timeout, timedelta) else timeout
        self.headers = headers or {}
        self.max_occupancy = max_occupancy
        self._httpx_client_factory = httpx_client_factory
        self._client: httpx.AsyncClient | None = None
        self._closed = False
        self._lock = anyio.Lock()
        self._last_request_id: RequestId = 0

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def state(self) -> str | None:
        return self.session.state

    async def connect(self) -> Session:
        """Open the connection pool and start from a fresh server context.

        Any state handle left over from an earlier connection is dropped; use
        ``reconnect`` to keep it.
        """
        if self._client is not None:
            raise ValidationError(f"Already connected to {self.session.endpoint}")
        self.session.state = None
        self._client = self._open_client()
        self._closed = False
        logger.info(f"Connected to Cryptol server at {self.session.endpoint}")
        return self.session

    async def reconnect(self) -> Session:
        """Replace the connection pool, keeping the current state handle.

        The next request continues in the same server context, provided the
        server still knows the handle.
        """
        await self._close_client()
        self._client = self._open_client()
        self._closed = False
        logger.info(f"Reconnected to {self.session.endpoint} (state={self.session.state})")
        return self.session

    async def disconnect(self) -> None:
        """Release the connection. Later calls to ``send`` fail with SESSION_CLOSED."""
        self._closed = True
        await self._close_client()
        logger.info(f"Disconnected from {self.session.endpoint}")

    def forget_state(self) -> None:
        """Drop the state handle so the next request starts from a fresh server context."""
        self.session.state = None

    async def send(self, request: JSONRPCRequest, timeout: float | None = None) -> JSONRPCReply:
        """Send a request and wait for the reply with the same id.

        On success the session adopts the state handle from the reply before
        it is returned.

        Raises:
            ValidationError: if the request id was already used, the request
                was built against a state handle that is no longer current, or
                the timeout is not positive
            TransportError: if no well-formed, matching reply arrived
        """
        _check_timeout(timeout)
        async with self._lock:
            client = self._require_client()
            if request.id <= self._last_request_id:
                raise ValidationError(
                    f"Request id {request.id} is not newer than the last id sent ({self._last_request_id})"
                )
            if request.state != self.session.state:
                raise ValidationError(
                    f"Request {request.id} was built against state {request.state!r}, "
                    f"but the session is at {self.session.state!r}"
                )

            self._last_request_id = request.id
            logger.debug(f"Sending {request.method!r} (id={request.id}, state={request.state})")
            response = await self._post(client, request, timeout)
            reply = self._parse_reply(response)

            self._check_correlation(request, reply)
            if isinstance(reply, JSONRPCResponse):
                result = self._parse_result(reply)
                self.session.state = result.state
                logger.debug(f"Reply to {request.method!r} (id={reply.id}), new state={result.state}")
            else:
                logger.debug(f"Error reply to {request.method!r} (id={reply.id}): {reply.error.message}")
            return reply

    async def notify(self, notification: JSONRPCNotification, timeout: float | None = None) -> None:
        """Send a notification. Whatever the server writes back is ignored."""
        _check_timeout(timeout)
        async with self._lock:
            client = self._require_client()
            logger.debug(f"Sending notification {notification.method!r}")
            response = await self._post(client, notification, timeout)
            if response.is_error:
                raise TransportError(
                    TransportErrorKind.HTTP_STATUS,
                    f"Server answered {notification.method!r} with HTTP {response.status_code}",
                    outcome_unknown=True,
                )

    def _open_client(self) -> httpx.AsyncClient:
        return self._httpx_client_factory(
            max_occupancy=self.max_occupancy,
            headers=self.headers,
            timeout=httpx.Timeout(self.timeout),
        )

    async def _close_client(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            reason = "has been disconnected" if self._closed else "is not connected"
            raise TransportError(
                TransportErrorKind.SESSION_CLOSED,
                f"Session with {self.session.endpoint} {reason}",
            )
        return self._client

    async def _post(
        self,
        client: httpx.AsyncClient,
        message: JSONRPCRequest | JSONRPCNotification,
        timeout: float | None,
    ) -> httpx.Response:
        timeout = self.timeout if timeout is None else timeout
        body: dict[str, Any] = message.model_dump(by_alias=True, mode="json")
        try:
            with anyio.fail_after(timeout):
                return await client.post(self.session.endpoint, json=body, timeout=httpx.Timeout(timeout))
        except httpx.ConnectTimeout as exc:
            raise self._failure(TransportErrorKind.TIMEOUT, f"Timed out connecting: {exc}", False) from exc
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise self._failure(
                TransportErrorKind.TIMEOUT,
                f"Timed out after {timeout} seconds waiting for {message.method!r}",
                True,
            ) from exc
        except (httpx.ConnectError, httpx.UnsupportedProtocol, httpx.InvalidURL) as exc:
            raise self._failure(TransportErrorKind.CONNECTION_FAILED, f"Could not connect: {exc}", False) from exc
        except httpx.TransportError as exc:
            raise self._failure(
                TransportErrorKind.CONNECTION_LOST,
                f"Connection lost during {message.method!r}: {exc}",
                True,
            ) from exc
        except httpx.DecodingError as exc:
            raise self._failure(
                TransportErrorKind.MALFORMED_RESPONSE,
                f"Could not decode the reply to {message.method!r}: {exc}",
                True,
            ) from exc
        except httpx.RequestError as exc:
            raise self._failure(
                TransportErrorKind.CONNECTION_LOST,
                f"Request {message.method!r} failed: {exc}",
                True,
            ) from exc

    def _failure(self, kind: TransportErrorKind, message: str, outcome_unknown: bool) -> TransportError:
        logger.warning(f"{message} ({self.session.endpoint}, state={self.session.state})")
        return TransportError(kind, message, outcome_unknown=outcome_unknown)

    def _parse_reply(self, response: httpx.Response) -> JSONRPCReply:
        try:
            return JSONRPCReplyAdapter.validate_json(response.content)
        except pydantic.ValidationError as exc:
            if response.is_error:
                raise self._failure(
                    TransportErrorKind.HTTP_STATUS,
                    f"HTTP {response.status_code} without a JSON-RPC reply: {response.text[:200]}",
                    True,
                ) from exc
            raise self._failure(
                TransportErrorKind.MALFORMED_RESPONSE,
                f"Malformed reply: {response.text[:200]}",
                True,
            ) from exc

    def _check_correlation(self, request: JSONRPCRequest, reply: JSONRPCReply) -> None:
        # A null id is only legal on errors for requests the server could not read.
        if isinstance(reply, JSONRPCError) and reply.id is None:
            return
        if reply.id != request.id:
            raise self._failure(
                TransportErrorKind.CORRELATION_MISMATCH,
                f"Reply id {reply.id!r} does not match outstanding request id {request.id}",
                True,
            )

    def _parse_result(self, reply: JSONRPCResponse) -> ServerResult:
        try:
            return ServerResult.model_validate(reply.result)
        except pydantic.ValidationError as exc:
            raise self._failure(
                TransportErrorKind.MALFORMED_RESPONSE,
                f"Reply {reply.id} carries no usable state handle: {exc}",
                True,
            ) from exc


def _check_endpoint(endpoint: str) -> str:
    try:
        url = httpx.URL(endpoint)
    except httpx.InvalidURL as exc:
        raise ValidationError(f"Invalid server URL {endpoint!r}: {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ValidationError(f"Server URL must be an absolute http(s) URL, got {endpoint!r}")
    return endpoint


def _check_timeout(timeout: float | None) -> None:
    if timeout is not None and not timeout > 0:
        raise ValidationError(f"Timeout must be a positive number of seconds, got {timeout!r}")
