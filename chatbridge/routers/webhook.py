import json
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse

from chatbridge.config import Settings
from chatbridge.dependencies import get_conversation_service, get_settings
from chatbridge.logging_config import get_logger
from chatbridge.schemas.messenger import WebhookResponse
from chatbridge.services.conversation_service import ConversationService
from chatbridge.services.event_router import extract_events

logger = get_logger("webhook")

router = APIRouter()


async def parse_webhook_payload(request: Request) -> Optional[dict]:
    """
    Parse a Messenger delivery with tolerant decoding.
    Returns dict or None.
    """
    try:
        return await request.json()
    except Exception as e:
        logger.warning(f"Standard request.json() failed: {e}, fallback decoding")

    raw = await request.body()
    for enc in ("utf-8", "latin-1"):
        try:
            return json.loads(raw.decode(enc, errors="replace"))
        except ValueError:
            continue

    logger.error("Failed to decode Messenger webhook payload after fallbacks")
    return None


@router.get("/fb", response_class=PlainTextResponse)
def verify_webhook(
    mode: Optional[str] = Query(default=None, alias="hub.mode"),
    verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    settings: Settings = Depends(get_settings),
):
    """Messenger subscription handshake."""
    if not settings.fb_verify_token:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="FB_VERIFY_TOKEN not configured",
        )
    if mode == "subscribe" and verify_token == settings.fb_verify_token:
        return PlainTextResponse(challenge or "")
    logger.warning(f"Webhook verification failed: mode={mode}")
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Verification failed")


@router.post("/fb", response_model=WebhookResponse)
async def handle_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    conversations: ConversationService = Depends(get_conversation_service),
):
    """
    Acknowledge every delivery. Relevant events are dispatched after the
    response is sent; malformed or foreign events are dropped.
    """
    try:
        body = await parse_webhook_payload(request)
        events = extract_events(body, settings.fb_page_id)
    except Exception as e:
        logger.error(f"Messenger webhook error: {e}", exc_info=True)
        return WebhookResponse(success=True, message="Ignored")

    if not events:
        return WebhookResponse(success=True, message="No actionable content")

    logger.info(f"Messenger webhook received {len(events)} event(s)")
    background_tasks.add_task(conversations.handle_events, events)
    return WebhookResponse(success=True, events=len(events))
