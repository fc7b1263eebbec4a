"""Wire types for the Cryptol remote API.

The server speaks JSON-RPC 2.0 over HTTP. Every request carries the opaque
``state`` handle of the interpreter context it should run in, and every
successful reply returns the handle of the context it produced.
"""

from typing import Annotated, Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

JSONRPC_VERSION: Final[str] = "2.0"

# Standard JSON-RPC error codes
PARSE_ERROR: Final[int] = -32700
INVALID_REQUEST: Final[int] = -32600
METHOD_NOT_FOUND: Final[int] = -32601
INVALID_PARAMS: Final[int] = -32602
INTERNAL_ERROR: Final[int] = -32603

# Cryptol server error codes
EVAL_POLYMORPHIC: Final[int] = 20200
UNWANTED_DEFAULTS: Final[int] = 20210
MODULE_NOT_FOUND: Final[int] = 20500
MODULE_PARSE_ERROR: Final[int] = 20540
RENAMER_ERROR: Final[int] = 20700
TYPE_CHECKING_FAILED: Final[int] = 20730

RequestId = Annotated[int, Field(strict=True)]

# Method names, reproduced exactly as the server spells them
LOAD_MODULE: Final = "load module"
LOAD_FILE: Final = "load file"
EVALUATE_EXPRESSION: Final = "evaluate expression"
CALL: Final = "call"
CHECK_TYPE: Final = "check type"
PROVE_OR_SATISFY: Final = "prove or satisfy"
FOCUSED_MODULE: Final = "focused module"
VISIBLE_NAMES: Final = "visible names"
CLEAR_STATE: Final = "clear state"

Method = Literal[
    "load module",
    "load file",
    "evaluate expression",
    "call",
    "check type",
    "prove or satisfy",
    "focused module",
    "visible names",
]

NotificationMethod = Literal["clear state"]

QueryType = Literal["prove", "sat", "safe"]


class JSONRPCBase(BaseModel):
    """Base class for all JSON-RPC messages."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION


class JSONRPCRequest(JSONRPCBase):
    """A request that expects a response."""

    model_config = ConfigDict(frozen=True)

    id: RequestId
    method: Method
    params: dict[str, Any]

    @property
    def state(self) -> str | None:
        return self.params.get("state")


class JSONRPCNotification(JSONRPCBase):
    """A notification which does not expect a response."""

    model_config = ConfigDict(frozen=True)

    method: NotificationMethod
    params: dict[str, Any]


class ErrorData(BaseModel):
    """Error information in a JSON-RPC error response."""

    model_config = ConfigDict(extra="allow")

    code: int
    message: str
    data: Any | None = None


class JSONRPCResponse(JSONRPCBase):
    """A successful (non-error) response to a request."""

    id: RequestId
    result: dict[str, Any]


class JSONRPCError(JSONRPCBase):
    """A response to a request that indicates an error occurred."""

    id: RequestId | None = None
    error: ErrorData


JSONRPCReply = JSONRPCResponse | JSONRPCError

JSONRPCReplyAdapter: TypeAdapter[JSONRPCReply] = TypeAdapter(JSONRPCReply)


class ServerResult(BaseModel):
    """The envelope carried in the ``result`` of every successful reply.

    Example:
        ``{"answer": [], "state": "a4909ccf-...", "stderr": "", "stdout": ""}``
    """

    model_config = ConfigDict(extra="allow")

    answer: Any = None
    state: str
    stdout: str = ""
    stderr: str = ""


class EvaluationAnswer(BaseModel):
    """Answer to ``evaluate expression`` and ``call``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    value: Any
    type: Any | None = None
    type_string: Annotated[str | None, Field(alias="type string")] = None


class TypeSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    forall: list[Any] = []
    propositions: list[Any] = []
    type: Any


class TypeDescription(BaseModel):
    """Answer to ``check type``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type_schema: Annotated[TypeSchema, Field(alias="type schema")]


class FocusedModule(BaseModel):
    """Answer to ``focused module``. ``module`` is None when nothing is focused."""

    model_config = ConfigDict(extra="allow")

    module: str | None = None
    parameterized: bool = False


class NameInfo(BaseModel):
    """One entry of the ``visible names`` answer."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    type_string: Annotated[str, Field(alias="type string")]
    type: Any | None = None
    module: str | None = None
    parameter: bool = False
    infix: bool = False
    documentation: str | None = None


class ModelValue(BaseModel):
    """One argument of a counterexample or satisfying model."""

    model_config = ConfigDict(extra="allow")

    type: Any | None = None
    expr: Any


class ProofAnswer(BaseModel):
    """Answer to ``prove or satisfy``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    result: str
    counterexample_type: Annotated[str | None, Field(alias="counterexample type")] = None
    counterexample: list[ModelValue] | None = None
    models: list[list[ModelValue]] | None = None
    query: str | None = None
