"""Turning server replies into values, verdicts and errors."""

import re
from collections.abc import Callable
from typing import Any, TypeVar

import pydantic

from cryptol_client import types
from cryptol_client.shared.codec import decode
from cryptol_client.shared.exceptions import (
    ApplicationError,
    ApplicationErrorKind,
    TransportError,
    TransportErrorKind,
)
from cryptol_client.shared.values import (
    Counterexample,
    ProofVerdict,
    Proved,
    RemoteValue,
    Satisfiable,
    SatVerdict,
    Shape,
    TypedValue,
    Unknown,
    Unsatisfiable,
)
from cryptol_client.utilities.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_NAMES: pydantic.TypeAdapter[list[types.NameInfo]] = pydantic.TypeAdapter(list[types.NameInfo])

_KIND_BY_CODE: dict[int, ApplicationErrorKind] = {
    types.MODULE_PARSE_ERROR: ApplicationErrorKind.PARSE,
    types.RENAMER_ERROR: ApplicationErrorKind.UNKNOWN_IDENTIFIER,
    types.TYPE_CHECKING_FAILED: ApplicationErrorKind.TYPE,
    types.EVAL_POLYMORPHIC: ApplicationErrorKind.TYPE,
    types.UNWANTED_DEFAULTS: ApplicationErrorKind.TYPE,
}

# Checked in order against the diagnostic text when the code alone is not conclusive
_KIND_BY_TEXT: list[tuple[re.Pattern[str], ApplicationErrorKind]] = [
    (re.compile(r"parse error", re.IGNORECASE), ApplicationErrorKind.PARSE),
    (
        re.compile(r"not in scope|undefined (name|variable)|unbound", re.IGNORECASE),
        ApplicationErrorKind.UNKNOWN_IDENTIFIER,
    ),
    (
        re.compile(r"type mismatch|type error|unsolvable constraint|unsolved constraint|kind mismatch", re.IGNORECASE),
        ApplicationErrorKind.TYPE,
    ),
    (
        re.compile(r"run-time error|evaluation|division by 0|invalid index", re.IGNORECASE),
        ApplicationErrorKind.EVALUATION,
    ),
]


def classify_error(error: types.ErrorData) -> ApplicationErrorKind:
    """Map a server error onto a semantic kind, by code first and diagnostic text second."""
    kind = _KIND_BY_CODE.get(error.code)
    if kind is not None:
        return kind
    for pattern, text_kind in _KIND_BY_TEXT:
        if pattern.search(error.message):
            return text_kind
    return ApplicationErrorKind.OTHER


def interpret_reply(reply: types.JSONRPCReply) -> types.ServerResult:
    """Return the result envelope of a successful reply.

    Raises:
        ApplicationError: if the server reported that the request failed
        TransportError: if a successful reply carries no valid envelope
    """
    if isinstance(reply, types.JSONRPCError):
        stdout, stderr = _captured_output(reply.error)
        kind = classify_error(reply.error)
        logger.debug(f"Server error {reply.error.code} classified as {kind.value}")
        raise ApplicationError(kind, reply.error, stdout=stdout, stderr=stderr)
    return _validate(types.ServerResult.model_validate, reply.result, "result")


def interpret_value(result: types.ServerResult, hint: Shape | None = None) -> RemoteValue:
    """Decode the value answered by ``evaluate expression`` or ``call``."""
    return interpret_answer(result, hint).value


def interpret_answer(result: types.ServerResult, hint: Shape | None = None) -> TypedValue:
    """Decode an evaluation answer, keeping the type the server reported alongside the value."""
    answer = _validate(types.EvaluationAnswer.model_validate, result.answer, "evaluation answer")
    return TypedValue(decode(answer.value, hint), answer.type_string, answer.type)


def interpret_type(result: types.ServerResult) -> types.TypeDescription:
    return _validate(types.TypeDescription.model_validate, result.answer, "type answer")


def interpret_focused_module(result: types.ServerResult) -> types.FocusedModule:
    return _validate(types.FocusedModule.model_validate, result.answer, "focused module answer")


def interpret_names(result: types.ServerResult) -> list[types.NameInfo]:
    return _validate(_NAMES.validate_python, result.answer, "visible names answer")


def interpret_proof(result: types.ServerResult, query_type: types.QueryType) -> ProofVerdict | SatVerdict:
    """Turn a ``prove or satisfy`` answer into a verdict.

    ``prove`` and ``safe`` queries yield Proved, Counterexample or Unknown;
    ``sat`` queries yield Satisfiable, Unsatisfiable or Unknown.
    """
    answer = _validate(types.ProofAnswer.model_validate, result.answer, "proof answer")
    match answer.result:
        case "unsatisfiable":
            return Unsatisfiable() if query_type == "sat" else Proved()
        case "invalid":
            if answer.counterexample is None:
                raise _malformed("Invalid result carries no counterexample")
            return Counterexample(
                tuple(decode(arg.expr) for arg in answer.counterexample),
                answer.counterexample_type or "predicate falsified",
            )
        case "satisfied":
            if answer.models is None:
                raise _malformed("Satisfied result carries no models")
            return Satisfiable(tuple(tuple(decode(arg.expr) for arg in model) for model in answer.models))
        case "offline":
            return Unknown(f"offline query: {answer.query}" if answer.query else "offline query")
        case other:
            logger.warning(f"Unrecognised prove or satisfy result {other!r}")
            return Unknown(other)


def _captured_output(error: types.ErrorData) -> tuple[str, str]:
    data = error.data if isinstance(error.data, dict) else {}
    stdout, stderr = data.get("stdout"), data.get("stderr")
    return (stdout if isinstance(stdout, str) else "", stderr if isinstance(stderr, str) else "")


def _malformed(message: str) -> TransportError:
    return TransportError(TransportErrorKind.MALFORMED_RESPONSE, message, outcome_unknown=False)


def _validate(validator: Callable[[Any], T], payload: Any, what: str) -> T:
    try:
        return validator(payload)
    except pydantic.ValidationError as exc:
        raise _malformed(f"Malformed {what}: {exc}") from exc
