"""Python representations of Cryptol values, shape hints and proof verdicts."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeAlias

from cryptol_client.shared.exceptions import CodecError, ValidationError


@dataclass(frozen=True)
class Bit:
    value: bool


@dataclass(frozen=True)
class Unit:
    pass


@dataclass(frozen=True)
class Integer:
    value: int


@dataclass(frozen=True)
class BitVector:
    """A fixed-width unsigned bit vector of any width.

    Attributes:
        width: Number of bits
        value: Unsigned magnitude, ``0 <= value < 2 ** width``
    """

    width: int
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.width, bool) or not isinstance(self.width, int) or self.width < 0:
            raise CodecError(f"Bit vector width must be a non-negative integer, got {self.width!r}")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise CodecError(f"Bit vector value must be an integer, got {self.value!r}")
        if self.value < 0 or self.value.bit_length() > self.width:
            raise CodecError(f"Value {self.value:#x} does not fit in a bit vector of width {self.width}")

    def hex(self) -> str:
        """Zero-padded hexadecimal digits of the value, as the server writes them."""
        digits = (self.width + 3) // 4
        return f"{self.value:0{digits}x}" if digits else ""

    def to_bytes(self) -> bytes:
        return self.value.to_bytes((self.width + 7) // 8, byteorder="big")

    def __int__(self) -> int:
        return self.value

    def __len__(self) -> int:
        return self.width


@dataclass(frozen=True)
class Sequence:
    elements: tuple["RemoteValue", ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))

    def __iter__(self):
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)


@dataclass(frozen=True)
class Tuple:
    elements: tuple["RemoteValue", ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))

    def __iter__(self):
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)


@dataclass(frozen=True, eq=False)
class Record:
    fields: Mapping[str, "RemoteValue"]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __getitem__(self, name: str) -> "RemoteValue":
        return self.fields[name]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return dict(self.fields) == dict(other.fields)

    __hash__ = None  # type: ignore[assignment]


@dataclass(frozen=True)
class Opaque:
    """A server-side value the client cannot inspect, such as a function."""

    identifier: str


RemoteValue: TypeAlias = Bit | Unit | Integer | BitVector | Sequence | Tuple | Record | Opaque


@dataclass(frozen=True)
class TypedValue:
    """A decoded value together with the Cryptol type the server reported for it.

    Attributes:
        value: The decoded value
        type_string: The type as Cryptol prints it, e.g. ``"[384]"``
        type: The structured type schema, as sent by the server
    """

    value: RemoteValue
    type_string: str | None = None
    type: Any = field(default=None, compare=False)


def _check_count(name: str, value: int | None) -> None:
    if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
        raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")


@dataclass(frozen=True)
class BitShape:
    pass


@dataclass(frozen=True)
class UnitShape:
    pass


@dataclass(frozen=True)
class IntegerShape:
    pass


@dataclass(frozen=True)
class OpaqueShape:
    pass


@dataclass(frozen=True)
class BitVectorShape:
    width: int | None = None

    def __post_init__(self) -> None:
        _check_count("Bit vector width", self.width)


@dataclass(frozen=True)
class SequenceShape:
    element: "Shape | None" = None
    length: int | None = None

    def __post_init__(self) -> None:
        _check_count("Sequence length", self.length)


@dataclass(frozen=True)
class TupleShape:
    elements: tuple["Shape | None", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))


@dataclass(frozen=True)
class RecordShape:
    fields: Mapping[str, "Shape | None"] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if any(not isinstance(name, str) or not name for name in self.fields):
            raise ValidationError("Record shape field names must be non-empty strings")
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    __hash__ = None  # type: ignore[assignment]


Shape: TypeAlias = (
    BitShape | UnitShape | IntegerShape | OpaqueShape | BitVectorShape | SequenceShape | TupleShape | RecordShape
)


@dataclass(frozen=True)
class Proved:
    pass


@dataclass(frozen=True)
class Counterexample:
    """Arguments that falsify a property, or that trigger a safety violation.

    Attributes:
        values: One value per argument of the property
        kind: ``"predicate falsified"`` or ``"safety violation"``
    """

    values: tuple[RemoteValue, ...]
    kind: str = "predicate falsified"


@dataclass(frozen=True)
class Satisfiable:
    models: tuple[tuple[RemoteValue, ...], ...]


@dataclass(frozen=True)
class Unsatisfiable:
    pass


@dataclass(frozen=True)
class Unknown:
    """The solver gave no answer. ``reason`` carries what the server reported."""

    reason: str


ProofVerdict: TypeAlias = Proved | Counterexample | Unknown
SatVerdict: TypeAlias = Satisfiable | Unsatisfiable | Unknown
