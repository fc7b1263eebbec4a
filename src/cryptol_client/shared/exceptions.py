from enum import Enum

from cryptol_client.types import ErrorData


class CryptolClientError(Exception):
    """Base class for every error raised by the Cryptol client."""


class ValidationError(CryptolClientError):
    """Raised for malformed input before any network activity takes place."""


class CodecError(CryptolClientError):
    """Raised when a value payload does not match its declared or expected shape."""


class TransportErrorKind(str, Enum):
    CONNECTION_FAILED = "connection-failed"
    CONNECTION_LOST = "connection-lost"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed-response"
    HTTP_STATUS = "http-status"
    CORRELATION_MISMATCH = "correlation-mismatch"
    SESSION_CLOSED = "session-closed"


class TransportError(CryptolClientError):
    """Exception raised when a request could not be carried to or from the server.

    Attributes:
        kind: What went wrong on the wire
        outcome_unknown: True when the request may already have been applied by
            the server, so the session's state handle could be behind the
            server's. The client never retries such a request on its own.
    """

    kind: TransportErrorKind
    outcome_unknown: bool

    def __init__(self, kind: TransportErrorKind, message: str, *, outcome_unknown: bool = False):
        super().__init__(message)
        self.kind = kind
        self.outcome_unknown = outcome_unknown


class ApplicationErrorKind(str, Enum):
    PARSE = "parse"
    TYPE = "type"
    EVALUATION = "evaluation"
    UNKNOWN_IDENTIFIER = "unknown-identifier"
    OTHER = "other"


class ApplicationError(CryptolClientError):
    """Exception raised when the server accepted a request but could not carry it out.

    It wraps the ErrorData received from the server and keeps the diagnostic
    text exactly as the server produced it.

    Attributes:
        kind: Semantic category of the failure
        error: The ErrorData object received from the server
        stdout: Interpreter output captured while handling the request
        stderr: Interpreter error output captured while handling the request
    """

    kind: ApplicationErrorKind
    error: ErrorData

    def __init__(
        self,
        kind: ApplicationErrorKind,
        error: ErrorData,
        stdout: str = "",
        stderr: str = "",
    ):
        super().__init__(error.message)
        self.kind = kind
        self.error = error
        self.stdout = stdout
        self.stderr = stderr

    @property
    def code(self) -> int:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message
