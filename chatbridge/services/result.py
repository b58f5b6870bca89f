from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, Optional, TypeVar

if TYPE_CHECKING:
    from chatbridge.services.errors import BridgeError

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of a dispatch loop or an outbound send.

    `error_code` holds an ErrorKind value on failure. A failed send may
    still carry the response body in `value`.
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str = "unknown", value: Optional[T] = None) -> "Result[T]":
        return Result(ok=False, value=value, error=error, error_code=code)

    @staticmethod
    def from_error(exc: "BridgeError") -> "Result[T]":
        return Result(ok=False, error=exc.message, error_code=exc.kind.value)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default
