from enum import Enum


class DispatchState(str, Enum):
    AWAITING_NLU_DECISION = "awaiting_nlu_decision"
    EXECUTING_ACTION = "executing_action"
    DONE = "done"
    FAILED = "failed"


VALID_TRANSITIONS = {
    DispatchState.AWAITING_NLU_DECISION: [
        DispatchState.EXECUTING_ACTION,
        DispatchState.DONE,
        DispatchState.FAILED,
    ],
    DispatchState.EXECUTING_ACTION: [DispatchState.AWAITING_NLU_DECISION, DispatchState.FAILED],
    DispatchState.DONE: [],
    DispatchState.FAILED: [],
}

TERMINAL_STATES = (DispatchState.DONE, DispatchState.FAILED)


class InvalidTransitionError(Exception):
    def __init__(self, from_state: DispatchState, to_state: DispatchState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


def can_transition(from_state: DispatchState, to_state: DispatchState) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_state, [])
    return to_state in allowed


def transition(from_state: DispatchState, to_state: DispatchState) -> DispatchState:
    """Perform state transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(from_state, to_state)
    return to_state


def is_terminal(state: DispatchState) -> bool:
    return state in TERMINAL_STATES


def begin_action(current_state: DispatchState) -> DispatchState:
    """NLU picked something to run."""
    return transition(current_state, DispatchState.EXECUTING_ACTION)


def resume(current_state: DispatchState) -> DispatchState:
    """Action continuation fired, ask the NLU engine again."""
    return transition(current_state, DispatchState.AWAITING_NLU_DECISION)


def finish(current_state: DispatchState) -> DispatchState:
    """NLU engine said stop."""
    return transition(current_state, DispatchState.DONE)


def fail(current_state: DispatchState) -> DispatchState:
    return transition(current_state, DispatchState.FAILED)
