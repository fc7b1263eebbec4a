from __future__ import annotations

import os
from types import TracebackType
from typing import Any

import anyio
from typing_extensions import Self

from cryptol_client import types
from cryptol_client.client.config import ClientSettings
from cryptol_client.client.requests import RequestBuilder
from cryptol_client.client.responses import (
    interpret_answer,
    interpret_focused_module,
    interpret_names,
    interpret_proof,
    interpret_reply,
    interpret_type,
    interpret_value,
)
from cryptol_client.shared._httpx_utils import CryptolHttpClientFactory, create_cryptol_http_client
from cryptol_client.shared.exceptions import ValidationError
from cryptol_client.shared.session import TransportSession
from cryptol_client.shared.values import Opaque, ProofVerdict, RemoteValue, SatVerdict, Shape, TypedValue
from cryptol_client.utilities.logging import get_logger

PRELUDE = "Cryptol"

logger = get_logger(__name__)


async def connect(
    url: str | None = None,
    settings: ClientSettings | None = None,
    httpx_client_factory: CryptolHttpClientFactory = create_cryptol_http_client,
    **overrides: Any,
) -> CryptolClient:
    """Connect to a running Cryptol server.

    Args:
        url: Server URL. Falls back to ``settings``, then to CRYPTOL_SERVER_URL
            and the other CRYPTOL_* environment variables.
        settings: Explicit settings; built from the environment when omitted.
        httpx_client_factory: Creates the underlying httpx.AsyncClient.
        **overrides: Individual ClientSettings fields to override.

    Raises:
        ValidationError: if an override names no ClientSettings field
        pydantic.ValidationError: if an override has an invalid value

    Returns:
        A connected client. When ``settings.load_prelude`` is set the Cryptol
        prelude is loaded first, which also yields the initial state handle.
    """
    settings = settings or ClientSettings()
    if url is not None:
        overrides["server_url"] = url
    if overrides:
        unknown = sorted(set(overrides) - set(ClientSettings.model_fields))
        if unknown:
            raise ValidationError(f"Unknown client setting(s): {', '.join(unknown)}")
        settings = ClientSettings.model_validate({**settings.model_dump(), **overrides})

    client = CryptolClient(settings, httpx_client_factory=httpx_client_factory)
    await client.connect()
    return client


class CryptolClient:
    """A stateful conversation with a Cryptol server.

    Each operation builds one request, sends it, and interprets the reply;
    the only state carried between operations is the server's state handle.

    Example:
        async with await connect("http://localhost:8080/") as cryptol:
            await cryptol.load_module("SuiteB")
            digest = await cryptol.call("sha384", "0x0001", hint=BitVectorShape(384))
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        httpx_client_factory: CryptolHttpClientFactory = create_cryptol_http_client,
    ) -> None:
        self.settings = settings or ClientSettings()
        self._transport = TransportSession(
            self.settings.endpoint,
            timeout=self.settings.request_timeout,
            headers=self.settings.headers,
            max_occupancy=self.settings.max_occupancy,
            httpx_client_factory=httpx_client_factory,
        )
        self._builder = RequestBuilder(self._transport.session)
        self._lock = anyio.Lock()

    async def __aenter__(self) -> Self:
        if not self._transport.is_connected:
            await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    @property
    def endpoint(self) -> str:
        return self._transport.session.endpoint

    @property
    def state(self) -> str | None:
        """The server state handle the next request will run against."""
        return self._transport.state

    async def connect(self) -> None:
        await self._transport.connect()
        if self.settings.load_prelude:
            try:
                await self.load_module(PRELUDE)
            except BaseException:
                await self._transport.disconnect()
                raise

    async def reconnect(self) -> None:
        """Open a fresh connection after a transport failure.

        The state handle is kept. When there is none yet and the prelude is
        configured, the prelude is loaded again to obtain one.
        """
        async with self._lock:
            await self._transport.reconnect()
            if self.state is None and self.settings.load_prelude:
                reply = await self._transport.send(self._builder.load_module(PRELUDE))
                interpret_reply(reply)

    async def disconnect(self) -> None:
        await self._transport.disconnect()

    async def load_module(self, name: str, timeout: float | None = None) -> None:
        """Load a module from the server's search path, making it the focused module."""
        async with self._lock:
            reply = await self._transport.send(self._builder.load_module(name), timeout)
        interpret_reply(reply)
        logger.info(f"Loaded module {name}")

    async def load_file(self, path: str | os.PathLike[str], timeout: float | None = None) -> None:
        """Load a Cryptol source file from the server's file system."""
        async with self._lock:
            reply = await self._transport.send(self._builder.load_file(path), timeout)
        interpret_reply(reply)
        logger.info(f"Loaded file {path}")

    async def evaluate(
        self,
        expression: str,
        hint: Shape | None = None,
        timeout: float | None = None,
    ) -> RemoteValue:
        """Evaluate a Cryptol expression in the current context."""
        async with self._lock:
            reply = await self._transport.send(self._builder.evaluate_expression(expression), timeout)
        return interpret_value(interpret_reply(reply), hint)

    async def call(
        self,
        function: str | Opaque,
        *arguments: RemoteValue | str,
        hint: Shape | None = None,
        timeout: float | None = None,
    ) -> RemoteValue:
        """Apply a function to arguments.

        Arguments may be decoded values or Cryptol source text such as ``"1 : [16]"``.
        """
        async with self._lock:
            reply = await self._transport.send(self._builder.call(function, arguments), timeout)
        return interpret_value(interpret_reply(reply), hint)

    async def evaluate_typed(
        self,
        expression: str,
        hint: Shape | None = None,
        timeout: float | None = None,
    ) -> TypedValue:
        """Evaluate an expression and keep the Cryptol type the server reports for it."""
        async with self._lock:
            reply = await self._transport.send(self._builder.evaluate_expression(expression), timeout)
        return interpret_answer(interpret_reply(reply), hint)

    async def call_typed(
        self,
        function: str | Opaque,
        *arguments: RemoteValue | str,
        hint: Shape | None = None,
        timeout: float | None = None,
    ) -> TypedValue:
        async with self._lock:
            reply = await self._transport.send(self._builder.call(function, arguments), timeout)
        return interpret_answer(interpret_reply(reply), hint)

    async def check_type(self, expression: str, timeout: float | None = None) -> types.TypeDescription:
        async with self._lock:
            reply = await self._transport.send(self._builder.check_type(expression), timeout)
        return interpret_type(interpret_reply(reply))

    async def prove(
        self,
        expression: str,
        solver: str = "z3",
        hash_consing: bool = True,
        timeout: float | None = None,
    ) -> ProofVerdict:
        """Try to prove that a property holds for every input."""
        verdict = await self._prove_or_satisfy(expression, "prove", solver, hash_consing, 1, timeout)
        return verdict  # type: ignore[return-value]

    async def safe(
        self,
        expression: str,
        solver: str = "z3",
        hash_consing: bool = True,
        timeout: float | None = None,
    ) -> ProofVerdict:
        """Check that an expression cannot raise a run-time error for any input."""
        verdict = await self._prove_or_satisfy(expression, "safe", solver, hash_consing, 1, timeout)
        return verdict  # type: ignore[return-value]

    async def sat(
        self,
        expression: str,
        solver: str = "z3",
        count: int | None = 1,
        hash_consing: bool = True,
        timeout: float | None = None,
    ) -> SatVerdict:
        """Search for up to ``count`` satisfying assignments; None asks for all of them."""
        verdict = await self._prove_or_satisfy(expression, "sat", solver, hash_consing, count, timeout)
        return verdict  # type: ignore[return-value]

    async def focused_module(self, timeout: float | None = None) -> types.FocusedModule:
        async with self._lock:
            reply = await self._transport.send(self._builder.focused_module(), timeout)
        return interpret_focused_module(interpret_reply(reply))

    async def names(self, timeout: float | None = None) -> list[types.NameInfo]:
        """List the names in scope in the current context."""
        async with self._lock:
            reply = await self._transport.send(self._builder.visible_names(), timeout)
        return interpret_names(interpret_reply(reply))

    async def reset(self, timeout: float | None = None) -> None:
        """Ask the server to forget the current context and start over from an empty one."""
        async with self._lock:
            if self.state is not None:
                await self._transport.notify(self._builder.clear_state(), timeout)
            self._transport.forget_state()
        logger.info("Reset server state")

    async def _prove_or_satisfy(
        self,
        expression: str,
        query_type: types.QueryType,
        solver: str,
        hash_consing: bool,
        count: int | None,
        timeout: float | None,
    ) -> ProofVerdict | SatVerdict:
        async with self._lock:
            request = self._builder.prove_or_satisfy(expression, query_type, solver, hash_consing, count)
            reply = await self._transport.send(request, timeout)
        return interpret_proof(interpret_reply(reply), query_type)
