"""A client for the Cryptol remote API.

Use :func:`cryptol_client.connect` to open a session with a running
``cryptol-remote-api`` server:

```python
from cryptol_client import BitVectorShape, connect

async with await connect("http://localhost:8080/") as cryptol:
    await cryptol.load_module("SuiteB")
    digest = await cryptol.call("sha384", "0x0001", hint=BitVectorShape(384))
    print(f"{digest.value:#x}")
```
"""

from . import types
from .client.config import ClientSettings
from .client.session import CryptolClient, connect
from .shared.codec import decode, encode
from .shared.exceptions import (
    ApplicationError,
    ApplicationErrorKind,
    CodecError,
    CryptolClientError,
    TransportError,
    TransportErrorKind,
    ValidationError,
)
from .shared.values import (
    Bit,
    BitShape,
    BitVector,
    BitVectorShape,
    Counterexample,
    Integer,
    IntegerShape,
    Opaque,
    OpaqueShape,
    ProofVerdict,
    Proved,
    Record,
    RecordShape,
    RemoteValue,
    Satisfiable,
    SatVerdict,
    Sequence,
    SequenceShape,
    Shape,
    Tuple,
    TupleShape,
    TypedValue,
    Unit,
    UnitShape,
    Unknown,
    Unsatisfiable,
)
from .types import FocusedModule, NameInfo, TypeDescription

__all__ = [
    "ApplicationError",
    "ApplicationErrorKind",
    "Bit",
    "BitShape",
    "BitVector",
    "BitVectorShape",
    "ClientSettings",
    "CodecError",
    "Counterexample",
    "CryptolClient",
    "CryptolClientError",
    "FocusedModule",
    "Integer",
    "IntegerShape",
    "NameInfo",
    "Opaque",
    "OpaqueShape",
    "ProofVerdict",
    "Proved",
    "Record",
    "RecordShape",
    "RemoteValue",
    "Satisfiable",
    "SatVerdict",
    "Sequence",
    "SequenceShape",
    "Shape",
    "TransportError",
    "TransportErrorKind",
    "Tuple",
    "TupleShape",
    "TypeDescription",
    "TypedValue",
    "Unit",
    "UnitShape",
    "Unknown",
    "Unsatisfiable",
    "ValidationError",
    "connect",
    "decode",
    "encode",
    "types",
]
