"""Utilities for creating standardized httpx AsyncClient instances."""

from typing import Any, Protocol

import httpx

__all__ = ["CryptolHttpClientFactory", "create_cryptol_http_client"]

DEFAULT_TIMEOUT = 60.0 * 60.0
MAX_OCCUPANCY = "max-occupancy"


class CryptolHttpClientFactory(Protocol):
    def __call__(self, **kwargs: Any) -> httpx.AsyncClient: ...


def create_cryptol_http_client(max_occupancy: int | None = None, **kwargs: Any) -> httpx.AsyncClient:
    """Create an httpx AsyncClient with the defaults used to talk to a Cryptol server.

    Defaults:
    - follow_redirects=True (always enabled)
    - a one hour timeout, since proofs and large evaluations can run for a long time
    - a ``Connection: keep-alive`` header

    Args:
        max_occupancy: Optional concurrency hint. It is forwarded to the server
            as the ``Max-Occupancy`` header and caps the connection pool.
        Any keyword argument supported by httpx.AsyncClient (e.g. headers,
        timeout, transport, verify). Defaults are applied unless overridden.

    Returns:
        Configured httpx.AsyncClient instance.

    Note:
        The returned AsyncClient must be closed with ``aclose()`` (or used as an
        async context manager) to release its connections.

    Examples:
        async with create_cryptol_http_client() as client:
            response = await client.post("http://localhost:8080/", json=payload)

        # Shorter timeout and a tighter pool
        client = create_cryptol_http_client(max_occupancy=4, timeout=httpx.Timeout(30.0))
    """
    headers = {"Connection": "keep-alive", **(kwargs.pop("headers", None) or {})}
    if max_occupancy is not None:
        headers[MAX_OCCUPANCY] = str(max_occupancy)
        kwargs.setdefault("limits", httpx.Limits(max_connections=max_occupancy))

    default_kwargs: dict[str, Any] = {
        "timeout": httpx.Timeout(DEFAULT_TIMEOUT),
    }
    default_kwargs.update(kwargs)
    default_kwargs["headers"] = headers
    default_kwargs["follow_redirects"] = True
    return httpx.AsyncClient(**default_kwargs)
