"""Builders for the requests understood by the Cryptol remote API."""

import os
from collections.abc import Iterable
from typing import Any

from cryptol_client import types
from cryptol_client.shared.codec import encode
from cryptol_client.shared.exceptions import CodecError, ValidationError
from cryptol_client.shared.session import Session
from cryptol_client.shared.values import Opaque, RemoteValue


def _require_text(what: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{what} must be a non-empty string, got {value!r}")
    return value


class RequestBuilder:
    """Builds requests stamped with a fresh id and the session's current state handle.

    Building never performs I/O. Invalid parameters raise ValidationError
    before anything is sent.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def build(self, method: types.Method, params: dict[str, Any]) -> types.JSONRPCRequest:
        return types.JSONRPCRequest(
            id=self.session.next_request_id(),
            method=method,
            params={"state": self.session.state, **params},
        )

    def load_module(self, name: str) -> types.JSONRPCRequest:
        return self.build(types.LOAD_MODULE, {"module name": _require_text("Module name", name)})

    def load_file(self, path: str | os.PathLike[str]) -> types.JSONRPCRequest:
        if isinstance(path, os.PathLike):
            path = os.fspath(path)
        return self.build(types.LOAD_FILE, {"file": _require_text("File path", path)})

    def evaluate_expression(self, expression: str) -> types.JSONRPCRequest:
        return self.build(types.EVALUATE_EXPRESSION, {"expression": _require_text("Expression", expression)})

    def call(self, function: str | Opaque, arguments: Iterable[RemoteValue | str]) -> types.JSONRPCRequest:
        name = _require_text("Function name", function.identifier if isinstance(function, Opaque) else function)
        try:
            encoded = [encode(argument) for argument in arguments]
        except CodecError as exc:
            raise ValidationError(f"Cannot pass argument to {name!r}: {exc}") from exc
        return self.build(types.CALL, {"function": name, "arguments": encoded})

    def check_type(self, expression: str) -> types.JSONRPCRequest:
        return self.build(types.CHECK_TYPE, {"expression": _require_text("Expression", expression)})

    def prove_or_satisfy(
        self,
        expression: str,
        query_type: types.QueryType,
        prover: str = "z3",
        hash_consing: bool = True,
        result_count: int | None = 1,
    ) -> types.JSONRPCRequest:
        """Build a ``prove or satisfy`` request.

        ``result_count`` only matters for ``sat`` queries; None asks for every
        satisfying assignment.
        """
        if query_type not in ("prove", "sat", "safe"):
            raise ValidationError(f"Unknown query type {query_type!r}")
        if result_count is not None and (isinstance(result_count, bool) or result_count < 1):
            raise ValidationError(f"Result count must be at least 1, got {result_count!r}")
        return self.build(
            types.PROVE_OR_SATISFY,
            {
                "expression": _require_text("Property", expression),
                "prover": _require_text("Prover", prover),
                "query type": query_type,
                "hash consing": "true" if hash_consing else "false",
                "result count": "all" if result_count is None else result_count,
            },
        )

    def focused_module(self) -> types.JSONRPCRequest:
        return self.build(types.FOCUSED_MODULE, {})

    def visible_names(self) -> types.JSONRPCRequest:
        return self.build(types.VISIBLE_NAMES, {})

    def clear_state(self) -> types.JSONRPCNotification:
        if self.session.state is None:
            raise ValidationError("There is no server state to clear")
        return types.JSONRPCNotification(method=types.CLEAR_STATE, params={"state to clear": self.session.state})
