from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class DecisionType(str, Enum):
    MERGE = "merge"
    MSG = "msg"
    ACTION = "action"
    STOP = "stop"
    ERROR = "error"


@dataclass
class Decision:
    type: DecisionType
    action: Optional[str] = None
    message: Optional[str] = None
    entities: dict[str, Any] = field(default_factory=dict)
    confidence: Optional[float] = None
    quickreplies: Optional[list[str]] = None
    error: Optional[str] = None


class NluEngine(ABC):
    """Abstract base class for NLU engines."""

    @abstractmethod
    async def decide(
        self,
        session_id: str,
        message: Optional[str],
        context: dict[str, Any],
    ) -> Decision:
        """Return the next step for the session given the current context.

        `message` is the user utterance on the first turn of a dispatch
        loop and None afterwards. Raises NluEngineError when the engine
        cannot be reached or answers with something unusable.
        """
        pass
