from typing import Any, Optional

import httpx

from chatbridge.logging_config import get_logger
from chatbridge.services.errors import ErrorKind
from chatbridge.services.result import Result
from chatbridge.services.templates import (
    build_generic_template,
    build_image_message,
    build_quick_replies_message,
    build_text_message,
)

logger = get_logger("messenger_service")


class MessengerService:
    """Service for sending messages through the Messenger Send API.

    Every send returns a Result. It is a failure when the HTTP call
    failed or when Facebook answered with an `error` object, and in
    both cases `value` holds whatever body came back.
    """

    BASE_URL = "https://graph.facebook.com/v2.6/me/messages"

    def __init__(
        self,
        page_token: str,
        api_url: Optional[str] = None,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.page_token = page_token
        self.api_url = api_url or self.BASE_URL
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def _make_request(self, data: dict) -> Result[dict]:
        """POST to the Send API and normalize the outcome."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    params={"access_token": self.page_token},
                    json=data,
                )
        except httpx.HTTPError as e:
            logger.error(f"Messenger API error: {e}")
            return Result.failure(str(e), ErrorKind.TRANSPORT_ERROR.value)

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            logger.warning(f"Messenger rejected message: {message}")
            return Result.failure(message or "Messenger error", ErrorKind.TRANSPORT_ERROR.value, value=body)

        if response.status_code >= 400:
            logger.warning(f"Messenger HTTP {response.status_code}: {response.text[:200]}")
            return Result.failure(
                f"Messenger HTTP {response.status_code}", ErrorKind.TRANSPORT_ERROR.value, value=body
            )

        if not isinstance(body, dict):
            return Result.failure("Messenger returned a non-JSON body", ErrorKind.TRANSPORT_ERROR.value)

        return Result.success(body)

    async def send(self, recipient_id: str, message: dict[str, Any]) -> Result[dict]:
        """Send a raw message payload to a recipient."""
        data = {
            "recipient": {"id": recipient_id},
            "message": message,
        }
        result = await self._make_request(data)
        if result.ok:
            logger.debug(f"Sent message to {recipient_id}: {result.value}")
        return result

    async def send_text(self, recipient_id: str, text: str) -> Result[dict]:
        return await self.send(recipient_id, build_text_message(text))

    async def send_quick_replies(self, recipient_id: str, text: str, replies: list[str]) -> Result[dict]:
        return await self.send(recipient_id, build_quick_replies_message(text, replies))

    async def send_image(self, recipient_id: str, image_url: str) -> Result[dict]:
        return await self.send(recipient_id, build_image_message(image_url))

    async def send_carousel(self, recipient_id: str, elements: list[dict]) -> Result[dict]:
        return await self.send(recipient_id, build_generic_template(elements))
