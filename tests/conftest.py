import copy

import pytest

from chatbridge.services.errors import ErrorKind
from chatbridge.services.messenger_service import MessengerService
from chatbridge.services.nlu.base import Decision, DecisionType, NluEngine
from chatbridge.services.result import Result
from chatbridge.services.session_store import SessionStore


class ScriptedEngine(NluEngine):
    """NLU engine that replays a fixed list of decisions (or raises queued exceptions)."""

    def __init__(self, decisions=None):
        self.decisions = list(decisions or [])
        self.calls = []

    async def decide(self, session_id, message, context):
        self.calls.append((session_id, message, copy.deepcopy(context)))
        if not self.decisions:
            return Decision(type=DecisionType.STOP)
        decision = self.decisions.pop(0)
        if isinstance(decision, Exception):
            raise decision
        return decision


class RecordingMessenger(MessengerService):
    """MessengerService that records payloads instead of calling Facebook."""

    def __init__(self, fail: bool = False):
        super().__init__(page_token="test-token")
        self.fail = fail
        self.sent = []

    async def _make_request(self, data: dict) -> Result[dict]:
        self.sent.append(data)
        if self.fail:
            body = {"error": {"message": "(#100) No matching user found"}}
            return Result.failure("(#100) No matching user found", ErrorKind.TRANSPORT_ERROR.value, value=body)
        return Result.success({"recipient_id": data["recipient"]["id"], "message_id": f"mid.{len(self.sent)}"})

    def sent_to(self, recipient_id: str) -> list[dict]:
        return [data["message"] for data in self.sent if data["recipient"]["id"] == recipient_id]


def action(name: str) -> Decision:
    return Decision(type=DecisionType.ACTION, action=name)


def stop() -> Decision:
    return Decision(type=DecisionType.STOP)


def msg(text: str, quickreplies=None) -> Decision:
    return Decision(type=DecisionType.MSG, message=text, quickreplies=quickreplies)


def merge(entities: dict) -> Decision:
    return Decision(type=DecisionType.MERGE, entities=entities)


def messenger_payload(sender="u1", text=None, page_id="PAGE", postback=None, attachments=None):
    message = {}
    if text is not None:
        message["text"] = text
    if attachments is not None:
        message["attachments"] = attachments
    event = {"sender": {"id": sender}, "recipient": {"id": page_id}, "timestamp": 1458692752478}
    if postback is not None:
        event["postback"] = {"payload": postback}
    else:
        event["message"] = {"mid": "mid.1457764197618:41d102a3e1ae206a38", **message}
    return {"object": "page", "entry": [{"id": page_id, "time": 1458692752478, "messaging": [event]}]}


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def messenger():
    return RecordingMessenger()


@pytest.fixture
def mock_env(monkeypatch):
    """Set test environment variables."""
    monkeypatch.setenv("WIT_TOKEN", "test-key")
    monkeypatch.setenv("FB_PAGE_ID", "PAGE")
    monkeypatch.setenv("FB_PAGE_TOKEN", "test-token")
    monkeypatch.setenv("FB_VERIFY_TOKEN", "verify-me")
