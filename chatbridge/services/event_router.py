from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from chatbridge.logging_config import get_logger
from chatbridge.schemas.messenger import MessagingEvent, MessengerWebhook, WebhookEntry
from chatbridge.services.errors import ErrorKind

logger = get_logger("event_router")


@dataclass(frozen=True)
class InboundEvent:
    external_user_id: str
    text: Optional[str]
    is_attachment_only: bool = False


def _drop(reason: str, **context: Any) -> None:
    logger.debug(
        f"Ignoring webhook event: {reason}",
        extra={"context": {"kind": ErrorKind.MALFORMED_EVENT.value, **context}},
    )


def _to_inbound(raw: Any, page_id: str) -> Optional[InboundEvent]:
    try:
        event = MessagingEvent.model_validate(raw)
    except ValidationError as e:
        _drop("invalid messaging event", errors=e.error_count())
        return None

    if event.recipient.id != page_id:
        _drop("recipient is not this page", recipient_id=event.recipient.id)
        return None

    if event.postback is not None:
        if not event.postback.payload:
            _drop("postback without payload")
            return None
        return InboundEvent(external_user_id=event.sender.id, text=event.postback.payload)

    if event.message is None:
        _drop("no message or postback")
        return None

    if event.message.is_echo:
        _drop("echo of our own message")
        return None

    if event.message.attachments:
        return InboundEvent(
            external_user_id=event.sender.id,
            text=event.message.text,
            is_attachment_only=True,
        )

    if not event.message.text:
        _drop("message without text")
        return None

    return InboundEvent(external_user_id=event.sender.id, text=event.message.text)


def extract_events(payload: Any, page_id: str) -> list[InboundEvent]:
    """All relevant events in a Messenger webhook delivery, in order.

    Anything that does not belong to `page_id` or lacks a sender,
    recipient and message/postback is skipped. Never raises.
    """
    if not page_id or not isinstance(payload, dict):
        _drop("no payload or page id configured")
        return []

    try:
        webhook = MessengerWebhook.model_validate(payload)
    except ValidationError as e:
        _drop("invalid webhook body", errors=e.error_count())
        return []

    if webhook.object != "page":
        _drop("not a page subscription", object=webhook.object)
        return []

    events: list[InboundEvent] = []
    for raw_entry in webhook.entry:
        try:
            entry = WebhookEntry.model_validate(raw_entry)
        except ValidationError as e:
            _drop("invalid webhook entry", errors=e.error_count())
            continue
        if entry.id != str(page_id):
            _drop("entry for another page", entry_id=entry.id)
            continue
        for raw in entry.messaging:
            inbound = _to_inbound(raw, str(page_id))
            if inbound is not None:
                events.append(inbound)
    return events


def extract_event(payload: Any, page_id: str) -> Optional[InboundEvent]:
    """First relevant event of the delivery, or None."""
    events = extract_events(payload, page_id)
    return events[0] if events else None
