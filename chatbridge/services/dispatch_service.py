import asyncio
import copy
from typing import Any, Awaitable, Optional, TypeVar

from chatbridge.logging_config import LoggerAdapter, get_logger, session_logger
from chatbridge.services.actions import ActionInvocation, ActionKind, ActionRegistry, ActionSpec, invoke
from chatbridge.services.errors import (
    BridgeError,
    DispatchTimeoutError,
    ErrorKind,
    NluEngineError,
    UnknownActionError,
)
from chatbridge.services.nlu.base import Decision, DecisionType, NluEngine
from chatbridge.services.result import Result
from chatbridge.services.state_machine import DispatchState, begin_action, fail, finish, resume

logger = get_logger("dispatch")

T = TypeVar("T")


class ActionDispatcher:
    """Runs the decide/execute loop between the NLU engine and registered actions.

    Each call to run_actions works on its own copy of the context, so a
    failed loop leaves the caller's context untouched. Callers must not
    run two loops for the same session at once; ConversationService
    queues them per user.
    """

    def __init__(
        self,
        engine: NluEngine,
        registry: ActionRegistry,
        max_turns: Optional[int] = None,
        turn_timeout: Optional[float] = None,
    ):
        self.engine = engine
        self.registry = registry
        self.max_turns = max_turns
        self.turn_timeout = turn_timeout

    async def run_actions(
        self,
        session_id: str,
        message: Optional[str],
        context: dict[str, Any],
    ) -> Result[dict]:
        """Drive the loop until the engine says stop or something fails.

        Returns Result.success(final_context) or Result.failure with the
        ErrorKind value as error_code.
        """
        log = session_logger(logger, session_id)
        state = DispatchState.AWAITING_NLU_DECISION
        pending_message = message
        turns = 0

        try:
            context = copy.deepcopy(dict(context))
            while True:
                if self.max_turns is not None and turns >= self.max_turns:
                    log.warning("Max turns reached, halting", context={"turns": turns})
                    state = finish(state)
                    return Result.success(context)

                decision = await self._bounded(
                    self.engine.decide(session_id, pending_message, context), "nlu decision"
                )
                pending_message = None
                turns += 1

                if decision.type == DecisionType.STOP:
                    state = finish(state)
                    log.info("Dispatch done", context={"turns": turns})
                    return Result.success(context)

                if decision.type == DecisionType.ERROR:
                    raise NluEngineError(decision.error or "NLU engine reported an error")

                spec, invocation = self._plan(session_id, decision, message, context)
                state = begin_action(state)
                log.debug(
                    f"Executing action {spec.name}",
                    context={"turn": turns, "kind": spec.kind.value},
                )
                context = await self._bounded(invoke(spec, invocation), f"action {spec.name}")
                state = resume(state)

        except NluEngineError as e:
            state = fail(state)
            log.error(f"NLU engine error: {e.message}")
            await self._report_error(session_id, context, e, log)
            return Result.from_error(e)

        except BridgeError as e:
            state = fail(state)
            log.error(f"Dispatch failed: {e.message}", context={"kind": e.kind.value})
            return Result.from_error(e)

        except Exception as e:
            state = fail(state)
            log.error(f"Action raised: {e}", exc_info=True)
            return Result.failure(str(e) or type(e).__name__, ErrorKind.ACTION_ERROR.value)

    def _plan(
        self,
        session_id: str,
        decision: Decision,
        message: Optional[str],
        context: dict[str, Any],
    ) -> tuple[ActionSpec, ActionInvocation]:
        if decision.type == DecisionType.MERGE:
            name = "merge"
        elif decision.type == DecisionType.MSG:
            name = "say"
        else:
            name = decision.action or ""

        spec = self.registry.get(name)
        if spec.kind == ActionKind.ERROR:
            raise UnknownActionError(name)

        invocation = ActionInvocation(
            session_id=session_id,
            action_name=name,
            context=context,
            payload=decision,
            entities=decision.entities,
            message=message,
        )
        return spec, invocation

    async def _bounded(self, awaitable: Awaitable[T], stage: str) -> T:
        if self.turn_timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout=self.turn_timeout)
        except asyncio.TimeoutError:
            raise DispatchTimeoutError(stage, self.turn_timeout) from None

    async def _report_error(
        self,
        session_id: str,
        context: dict[str, Any],
        error: NluEngineError,
        log: LoggerAdapter,
    ) -> None:
        spec = self.registry.find("error")
        if spec is None:
            return
        invocation = ActionInvocation(
            session_id=session_id,
            action_name="error",
            context=context,
            error=error,
        )
        try:
            await invoke(spec, invocation)
        except Exception as e:
            log.error(f"Error handler raised: {e}", exc_info=True)
