from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UNKNOWN_ACTION = "unknown_action"
    TRANSPORT_ERROR = "transport_error"
    NLU_ENGINE_ERROR = "nlu_engine_error"
    MALFORMED_EVENT = "malformed_event"
    TIMEOUT = "timeout"
    ACTION_ERROR = "action_error"


class BridgeError(Exception):
    kind: ErrorKind = ErrorKind.ACTION_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SessionNotFoundError(BridgeError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class UnknownActionError(BridgeError):
    kind = ErrorKind.UNKNOWN_ACTION

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"No handler registered for action: {action}")


class NluEngineError(BridgeError):
    kind = ErrorKind.NLU_ENGINE_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class DispatchTimeoutError(BridgeError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, stage: str, timeout: float):
        self.stage = stage
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for {stage}")


class ContinuationError(BridgeError):
    """Raised when a continuation is resumed more than once."""
