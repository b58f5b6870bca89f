"""Business logic of the TV schedule bot."""

from typing import Any, Optional

from chatbridge.logging_config import get_logger
from chatbridge.services.actions import ActionKind, ActionRegistry, Continuation
from chatbridge.services.errors import SessionNotFoundError
from chatbridge.services.messenger_service import MessengerService
from chatbridge.services.nlu.base import Decision
from chatbridge.services.session_store import SessionStore
from chatbridge.services.templates import build_schedule_elements

logger = get_logger("schedule_actions")

MERGED_ENTITIES = ("show", "datetime")


def first_entity_value(entities: Optional[dict], entity: str) -> Optional[Any]:
    """Value of the first extracted entity with this name, or None."""
    if not entities:
        return None
    values = entities.get(entity)
    if not isinstance(values, list) or not values:
        return None
    first = values[0]
    value = first.get("value") if isinstance(first, dict) else None
    if not value:
        return None
    return value.get("value") if isinstance(value, dict) else value


def build_schedule_registry(store: SessionStore, messenger: MessengerService) -> ActionRegistry:
    registry = ActionRegistry()

    async def recipient_for(session_id: str) -> Optional[str]:
        try:
            session = await store.get(session_id)
        except SessionNotFoundError:
            logger.warning(f"Couldn't find user for session: {session_id}")
            return None
        return session.external_user_id

    @registry.say
    async def say(session_id: str, context: dict, decision: Decision, done: Continuation) -> None:
        recipient_id = await recipient_for(session_id)
        if recipient_id and decision.message:
            if decision.quickreplies:
                result = await messenger.send_quick_replies(recipient_id, decision.message, decision.quickreplies)
            else:
                result = await messenger.send_text(recipient_id, decision.message)
            if not result.ok:
                logger.error(
                    f"An error occurred while forwarding the response to {recipient_id}: {result.error}"
                )
        done()

    @registry.merge
    def merge(session_id: str, context: dict, entities: dict, message: Optional[str], done: Continuation) -> None:
        for name in MERGED_ENTITIES:
            value = first_entity_value(entities, name)
            if value is not None:
                context[name] = value
        logger.debug(f"Merged context for {session_id}: {context}")
        done(context)

    @registry.error
    def error(session_id: str, context: dict, err: BaseException) -> None:
        logger.error(f"Wit error for session {session_id}: {err}")

    @registry.action("lookup_tonights_schedule")
    def lookup_tonights_schedule(session_id: str, context: dict, done: Continuation) -> None:
        done(context)

    @registry.action("list_schedule", ActionKind.CONTINUATION)
    async def list_schedule(session_id: str, context: dict, done: Continuation) -> None:
        recipient_id = await recipient_for(session_id)
        if recipient_id:
            result = await messenger.send_carousel(recipient_id, build_schedule_elements())
            if not result.ok:
                logger.error(f"Schedule carousel to {recipient_id} failed: {result.error}")
        done(context)

    @registry.action("set_reminder")
    def set_reminder(session_id: str, context: dict, done: Continuation) -> None:
        logger.info(
            "Set reminder",
            extra={"context": {"session_id": session_id, "show": context.get("show")}},
        )
        done(context)

    return registry
