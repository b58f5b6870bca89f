from chatbridge.services.actions import (
    ActionInvocation,
    ActionKind,
    ActionRegistry,
    ActionSpec,
    Continuation,
    invoke,
)
from chatbridge.services.conversation_service import ConversationService
from chatbridge.services.dispatch_service import ActionDispatcher
from chatbridge.services.errors import (
    BridgeError,
    ContinuationError,
    DispatchTimeoutError,
    ErrorKind,
    NluEngineError,
    SessionNotFoundError,
    UnknownActionError,
)
from chatbridge.services.event_router import InboundEvent, extract_event, extract_events
from chatbridge.services.messenger_service import MessengerService
from chatbridge.services.result import Result
from chatbridge.services.session_store import Session, SessionStore
from chatbridge.services.state_machine import DispatchState, InvalidTransitionError
