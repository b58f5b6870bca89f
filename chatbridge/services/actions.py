"""Action registry and continuation plumbing.

Handlers come in four shapes, tagged by ActionKind:

    SIDE_EFFECT   (session_id, context, payload, done)
    MERGE         (session_id, context, entities, message, done)
    CONTINUATION  (session_id, context, done)
    ERROR         (session_id, context, error)

`done` is a Continuation. It must be called exactly once, with no
argument to keep the context or with a replacement context. Handlers
may be plain functions or coroutine functions; `done` may be called
from the handler body or later from a task the handler scheduled.
"""

import asyncio
import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from chatbridge.logging_config import get_logger
from chatbridge.services.errors import ContinuationError, UnknownActionError

logger = get_logger("actions")


class ActionKind(str, Enum):
    SIDE_EFFECT = "side_effect"
    MERGE = "merge"
    CONTINUATION = "continuation"
    ERROR = "error"


RESERVED_ACTIONS = {
    "say": ActionKind.SIDE_EFFECT,
    "merge": ActionKind.MERGE,
    "error": ActionKind.ERROR,
}


@dataclass
class ActionInvocation:
    session_id: str
    action_name: str
    context: dict[str, Any]
    payload: Any = None
    entities: dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class ActionSpec:
    name: str
    kind: ActionKind
    handler: Callable[..., Any]


class Continuation:
    """One-shot resume signal handed to action handlers."""

    def __init__(self, context: dict[str, Any]):
        self._context = context
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def called(self) -> bool:
        return self._future.done()

    @property
    def abandoned(self) -> bool:
        """True once the dispatcher stopped waiting, e.g. after a turn timeout."""
        return self._future.cancelled()

    def __call__(self, context: Optional[Mapping[str, Any]] = None) -> None:
        if self._future.cancelled():
            logger.warning("Continuation called after the turn was abandoned, ignoring")
            return
        if self._future.done():
            raise ContinuationError("Continuation called more than once")
        if context is None:
            self._future.set_result(self._context)
            return
        if not isinstance(context, Mapping):
            raise TypeError(f"Continuation expects a mapping, got {type(context).__name__}")
        self._future.set_result(dict(context))

    async def wait(self) -> dict[str, Any]:
        return await self._future


class ActionRegistry:
    """Maps action names to handlers of a declared kind.

    Usage:
        registry = ActionRegistry()

        @registry.action("list_schedule")
        def list_schedule(session_id, context, done):
            done(context)

        registry.register("say", say, ActionKind.SIDE_EFFECT)
    """

    def __init__(self) -> None:
        self._actions: dict[str, ActionSpec] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    @property
    def names(self) -> list[str]:
        return sorted(self._actions)

    def register(
        self,
        name: str,
        handler: Callable[..., Any],
        kind: ActionKind = ActionKind.CONTINUATION,
    ) -> ActionSpec:
        """Register a handler. Reserved names must use their fixed kind."""
        if not callable(handler):
            raise TypeError(f"Handler for {name!r} is not callable")

        expected = RESERVED_ACTIONS.get(name)
        if expected is not None and kind != expected:
            raise ValueError(f"Action {name!r} must be registered as {expected.value}, got {kind.value}")
        if kind == ActionKind.ERROR and name != "error":
            raise ValueError("Only the 'error' action may use the error kind")

        spec = ActionSpec(name=name, kind=kind, handler=handler)
        self._actions[name] = spec
        return spec

    def action(self, name: str, kind: ActionKind = ActionKind.CONTINUATION) -> Callable:
        """Decorator form of register()."""

        def decorator(handler: Callable[..., Any]) -> Callable[..., Any]:
            self.register(name, handler, kind)
            return handler

        return decorator

    def say(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        self.register("say", handler, ActionKind.SIDE_EFFECT)
        return handler

    def merge(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        self.register("merge", handler, ActionKind.MERGE)
        return handler

    def error(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        self.register("error", handler, ActionKind.ERROR)
        return handler

    def get(self, name: str) -> ActionSpec:
        spec = self._actions.get(name)
        if spec is None:
            raise UnknownActionError(name)
        return spec

    def find(self, name: str) -> Optional[ActionSpec]:
        return self._actions.get(name)

    def missing_reserved(self) -> list[str]:
        """Reserved actions the NLU engine may ask for but nobody registered."""
        return [name for name in RESERVED_ACTIONS if name not in self._actions]


async def invoke(spec: ActionSpec, invocation: ActionInvocation) -> Optional[dict[str, Any]]:
    """Run a handler and wait for its continuation.

    Returns the context handed to `done`, or None for ERROR handlers
    which have no continuation. Handler exceptions propagate.
    """
    if spec.kind == ActionKind.ERROR:
        outcome = spec.handler(invocation.session_id, invocation.context, invocation.error)
        if inspect.isawaitable(outcome):
            await outcome
        return None

    done = Continuation(invocation.context)

    if spec.kind == ActionKind.SIDE_EFFECT:
        outcome = spec.handler(invocation.session_id, invocation.context, invocation.payload, done)
    elif spec.kind == ActionKind.MERGE:
        outcome = spec.handler(
            invocation.session_id, invocation.context, invocation.entities, invocation.message, done
        )
    else:
        outcome = spec.handler(invocation.session_id, invocation.context, done)

    if inspect.isawaitable(outcome):
        await outcome

    return await done.wait()
