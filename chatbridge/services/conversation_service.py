import asyncio
from typing import Any, Callable, Optional

from chatbridge.logging_config import get_logger
from chatbridge.services.dispatch_service import ActionDispatcher
from chatbridge.services.errors import SessionNotFoundError
from chatbridge.services.event_router import InboundEvent
from chatbridge.services.messenger_service import MessengerService
from chatbridge.services.result import Result
from chatbridge.services.session_store import SessionStore

logger = get_logger("conversation_service")

ATTACHMENT_NOTICE = "Sorry I can only process text messages for now."
FAILURE_NOTICE = "Oops! Got an error from Wit"


class ConversationService:
    """Turns one inbound event into one dispatch loop for the sender's session.

    Events from the same user are queued and handled in arrival order.
    The stored context is replaced only when the loop succeeds.
    """

    def __init__(
        self,
        store: SessionStore,
        dispatcher: ActionDispatcher,
        messenger: MessengerService,
        reset_when: Optional[Callable[[dict[str, Any]], bool]] = None,
        failure_notice: Optional[str] = FAILURE_NOTICE,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.messenger = messenger
        self.reset_when = reset_when
        self.failure_notice = failure_notice

    async def handle_event(self, event: InboundEvent) -> Optional[Result[dict]]:
        """Process one event. Returns the dispatch result, or None if nothing ran."""
        sender = event.external_user_id

        async with self.store.user_lock(sender):
            session_id = await self.store.resolve_or_create(sender)

            if event.is_attachment_only:
                result = await self.messenger.send_text(sender, ATTACHMENT_NOTICE)
                if not result.ok:
                    logger.warning(f"Attachment notice to {sender} failed: {result.error}")
                return None

            if not event.text:
                return None

            try:
                session = await self.store.get(session_id)
            except SessionNotFoundError:
                logger.warning(f"Session {session_id} vanished before dispatch, recreating")
                session_id = await self.store.resolve_or_create(sender)
                session = await self.store.get(session_id)

            logger.info(
                "Dispatching message",
                extra={"context": {"session_id": session_id, "sender": sender}},
            )
            result = await self.dispatcher.run_actions(session_id, event.text, session.context)

            if not result.ok:
                logger.error(
                    f"Dispatch failed for session {session_id}: {result.error}",
                    extra={"context": {"session_id": session_id, "kind": result.error_code}},
                )
                await self._notify_failure(sender)
                return result

            await self._persist(session_id, result.value)
            logger.info("Waiting for further messages", extra={"context": {"session_id": session_id}})
            return result

    async def handle_events(self, events: list[InboundEvent]) -> list[Optional[Result[dict]]]:
        """Process a batch concurrently. Per-user order is kept by the user lock."""
        return await asyncio.gather(*(self.handle_event(event) for event in events))

    async def _persist(self, session_id: str, context: dict[str, Any]) -> None:
        try:
            if self.reset_when is not None and self.reset_when(context):
                await self.store.delete(session_id)
                return
            await self.store.replace_context(session_id, context)
        except SessionNotFoundError:
            logger.warning(f"Session {session_id} deleted during dispatch, dropping context")

    async def _notify_failure(self, sender: str) -> None:
        if not self.failure_notice:
            return
        result = await self.messenger.send_text(sender, self.failure_notice)
        if not result.ok:
            logger.warning(f"Failure notice to {sender} failed: {result.error}")
