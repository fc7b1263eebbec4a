"""Conversion between Python values and the server's JSON value encoding.

Bit vectors travel as tagged objects whose magnitude is a hex (or base64)
string, so no width is ever squeezed through a JSON number:

    {"expression": "bits", "encoding": "hex", "width": 384, "data": "5d13bb..."}

Everything here is pure and safe to call from any thread.
"""

import base64
import binascii
from collections.abc import Mapping
from typing import Any

from cryptol_client.shared.exceptions import CodecError
from cryptol_client.shared.values import (
    Bit,
    BitShape,
    BitVector,
    BitVectorShape,
    Integer,
    IntegerShape,
    Opaque,
    OpaqueShape,
    Record,
    RecordShape,
    RemoteValue,
    Sequence,
    SequenceShape,
    Shape,
    Tuple,
    TupleShape,
    Unit,
    UnitShape,
)

__all__ = ["encode", "decode", "decode_bits"]


def encode(value: RemoteValue | str) -> Any:
    """Encode a value as the JSON the server expects.

    A plain ``str`` is passed through untouched and is read by the server as
    Cryptol source text, e.g. ``"0x0001"`` or ``"[1, 2, 3] : [3][8]"``.

    Raises:
        CodecError: if the value is not something the server can represent
    """
    match value:
        case str():
            return value
        case Bit(bit):
            return bool(bit)
        case Integer(number):
            return int(number)
        case Unit():
            return {"expression": "unit"}
        case BitVector():
            return {"expression": "bits", "encoding": "hex", "width": value.width, "data": value.hex()}
        case Sequence(elements):
            return {"expression": "sequence", "data": [encode(e) for e in elements]}
        case Tuple(elements):
            return {"expression": "tuple", "data": [encode(e) for e in elements]}
        case Record(fields):
            return {"expression": "record", "data": {name: encode(v) for name, v in fields.items()}}
        case Opaque(identifier):
            return {"expression": "variable", "identifier": identifier}
        case _:
            raise CodecError(f"Cannot encode {type(value).__name__} as a Cryptol value")


def decode(payload: Any, hint: Shape | None = None) -> RemoteValue:
    """Decode a JSON value from the server, checking it against an optional shape hint.

    Args:
        payload: The decoded JSON of a single value
        hint: Expected structure of the value; ``None`` accepts any shape

    Raises:
        CodecError: if the payload is malformed, uses an unsupported tag, or
            does not match ``hint``
    """
    return _decode(payload, hint)


def _decode(payload: Any, hint: Shape | None) -> RemoteValue:
    # bool first: it is a subclass of int
    if isinstance(payload, bool):
        _expect(hint, BitShape, "a bit")
        return Bit(payload)
    if isinstance(payload, int):
        _expect(hint, IntegerShape, "an integer")
        return Integer(payload)
    if not isinstance(payload, Mapping):
        raise CodecError(f"Unsupported value shape: {type(payload).__name__} {payload!r:.80}")

    tag = payload.get("expression")
    match tag:
        case "unit":
            _expect(hint, UnitShape, "unit")
            return Unit()
        case "bits":
            _expect(hint, BitVectorShape, "a bit vector")
            bits = decode_bits(payload)
            if isinstance(hint, BitVectorShape) and hint.width is not None and hint.width != bits.width:
                raise CodecError(f"Expected a bit vector of width {hint.width}, got width {bits.width}")
            return bits
        case "sequence":
            _expect(hint, SequenceShape, "a sequence")
            items = _data_list(payload, "sequence")
            element_hint = None
            if isinstance(hint, SequenceShape):
                if hint.length is not None and hint.length != len(items):
                    raise CodecError(f"Expected a sequence of length {hint.length}, got length {len(items)}")
                element_hint = hint.element
            return Sequence(tuple(_decode(item, element_hint) for item in items))
        case "tuple":
            _expect(hint, TupleShape, "a tuple")
            items = _data_list(payload, "tuple")
            if isinstance(hint, TupleShape):
                if len(hint.elements) != len(items):
                    raise CodecError(f"Expected a tuple of arity {len(hint.elements)}, got arity {len(items)}")
                return Tuple(tuple(_decode(item, h) for item, h in zip(items, hint.elements)))
            return Tuple(tuple(_decode(item, None) for item in items))
        case "record":
            _expect(hint, RecordShape, "a record")
            data = payload.get("data")
            if not isinstance(data, Mapping):
                raise CodecError(f"Record payload must carry an object, got {data!r:.80}")
            field_hints: Mapping[str, Shape | None] = hint.fields if isinstance(hint, RecordShape) else {}
            missing = [name for name in field_hints if name not in data]
            if missing:
                raise CodecError(f"Record is missing required field(s): {', '.join(sorted(missing))}")
            return Record({name: _decode(v, field_hints.get(name)) for name, v in data.items()})
        case "variable":
            _expect(hint, OpaqueShape, "an opaque value")
            identifier = payload.get("identifier")
            if not isinstance(identifier, str):
                raise CodecError(f"Opaque value must carry a string identifier, got {identifier!r:.80}")
            return Opaque(identifier)
        case _:
            raise CodecError(f"Unsupported value shape: expression tag {tag!r}")


def decode_bits(payload: Mapping[str, Any]) -> BitVector:
    """Decode a ``bits`` payload, enforcing that the magnitude fits the declared width."""
    width = payload.get("width")
    if isinstance(width, bool) or not isinstance(width, int) or width < 0:
        raise CodecError(f"Bit vector width must be a non-negative integer, got {width!r}")

    data = payload.get("data")
    if not isinstance(data, str):
        raise CodecError(f"Bit vector data must be a string, got {data!r:.80}")

    encoding = payload.get("encoding")
    if encoding == "hex":
        if data and not all(c in "0123456789abcdefABCDEF" for c in data):
            raise CodecError(f"Invalid hex digits in bit vector data {data!r:.80}")
        magnitude = int(data, 16) if data else 0
    elif encoding == "base64":
        try:
            raw = base64.b64decode(data.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise CodecError(f"Invalid base64 bit vector data {data!r:.80}") from exc
        magnitude = int.from_bytes(raw, byteorder="big")
    else:
        raise CodecError(f"Unsupported bit vector encoding {encoding!r}")

    if magnitude.bit_length() > width:
        raise CodecError(f"Value {magnitude:#x} exceeds declared bit vector width {width}")
    return BitVector(width, magnitude)


def _expect(hint: Shape | None, kind: type, description: str) -> None:
    if hint is not None and not isinstance(hint, kind):
        raise CodecError(f"Expected {_describe(hint)}, got {description}")


def _describe(hint: Shape) -> str:
    return {
        BitShape: "a bit",
        UnitShape: "unit",
        IntegerShape: "an integer",
        OpaqueShape: "an opaque value",
        BitVectorShape: "a bit vector",
        SequenceShape: "a sequence",
        TupleShape: "a tuple",
        RecordShape: "a record",
    }.get(type(hint), type(hint).__name__)


def _data_list(payload: Mapping[str, Any], what: str) -> list[Any]:
    data = payload.get("data")
    if not isinstance(data, list):
        raise CodecError(f"{what.capitalize()} payload must carry a list, got {data!r:.80}")
    return data
