from typing import Any, Optional

import httpx

from chatbridge.logging_config import get_logger
from chatbridge.services.errors import NluEngineError
from chatbridge.services.nlu.base import Decision, DecisionType, NluEngine

logger = get_logger("nlu.wit")


class WitEngine(NluEngine):
    """Wit.ai converse API client."""

    def __init__(
        self,
        access_token: str,
        api_url: str = "https://api.wit.ai",
        api_version: str = "20160330",
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.api_version = api_version
        self.converse_url = f"{api_url.rstrip('/')}/converse"
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": f"application/vnd.wit.{self.api_version}+json",
            "Content-Type": "application/json",
        }

    async def decide(
        self,
        session_id: str,
        message: Optional[str],
        context: dict[str, Any],
    ) -> Decision:
        """Ask Wit.ai for the next converse step."""
        params = {"v": self.api_version, "session_id": session_id}
        if message:
            params["q"] = message

        logger.debug(f"Wit converse request: session_id={session_id}, has_message={bool(message)}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(
                    self.converse_url,
                    params=params,
                    headers=self._headers(),
                    json=context,
                )
        except httpx.HTTPError as e:
            logger.error(f"Wit request failed: {e}")
            raise NluEngineError(f"Wit request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Wit error: {response.status_code} - {response.text[:200]}")
            raise NluEngineError(
                f"Wit API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise NluEngineError("Wit returned a non-JSON body") from e

        logger.debug(f"Wit converse response: {data}")
        return parse_converse_response(data)


def parse_converse_response(data: Any) -> Decision:
    """Turn a converse API body into a Decision."""
    if not isinstance(data, dict):
        raise NluEngineError("Wit response is not an object")

    if data.get("error"):
        return Decision(type=DecisionType.ERROR, error=str(data["error"]))

    raw_type = data.get("type")
    if not raw_type:
        raise NluEngineError("Couldn't find type in Wit response")

    try:
        decision_type = DecisionType(raw_type)
    except ValueError as e:
        raise NluEngineError(f"Unknown Wit response type: {raw_type}") from e

    if decision_type == DecisionType.ACTION and not data.get("action"):
        raise NluEngineError("Wit action response without action name")

    entities = data.get("entities")
    return Decision(
        type=decision_type,
        action=data.get("action"),
        message=data.get("msg"),
        entities=entities if isinstance(entities, dict) else {},
        confidence=data.get("confidence"),
        quickreplies=data.get("quickreplies"),
        error=data.get("error") if decision_type == DecisionType.ERROR else None,
    )
