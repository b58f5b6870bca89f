import json

import httpx
import pytest

from chatbridge.services.errors import ErrorKind
from chatbridge.services.messenger_service import MessengerService
from chatbridge.services.templates import build_schedule_elements


def make_service(handler) -> tuple[MessengerService, list]:
    requests = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    service = MessengerService(
        page_token="page-token",
        api_url="https://graph.facebook.com/v2.6/me/messages",
        transport=httpx.MockTransport(recording_handler),
    )
    return service, requests


class TestSend:
    @pytest.mark.asyncio
    async def test_success_returns_body(self):
        service, requests = make_service(
            lambda request: httpx.Response(200, json={"recipient_id": "u1", "message_id": "mid.1"})
        )

        result = await service.send_text("u1", "Hello!")

        assert result.ok is True
        assert result.value == {"recipient_id": "u1", "message_id": "mid.1"}

        request = requests[0]
        assert request.method == "POST"
        assert request.url.params["access_token"] == "page-token"
        assert json.loads(request.content) == {"recipient": {"id": "u1"}, "message": {"text": "Hello!"}}

    @pytest.mark.asyncio
    async def test_embedded_error_in_200_is_failure(self):
        body = {"error": {"message": "(#100) No matching user found", "code": 100}}
        service, _ = make_service(lambda request: httpx.Response(200, json=body))

        result = await service.send_text("u1", "Hello!")

        assert result.ok is False
        assert result.error == "(#100) No matching user found"
        assert result.error_code == ErrorKind.TRANSPORT_ERROR.value
        assert result.value == body

    @pytest.mark.asyncio
    async def test_http_error_status_is_failure(self):
        service, _ = make_service(lambda request: httpx.Response(503, json={"status": "unavailable"}))

        result = await service.send_text("u1", "Hello!")

        assert result.ok is False
        assert result.error_code == ErrorKind.TRANSPORT_ERROR.value
        assert result.value == {"status": "unavailable"}

    @pytest.mark.asyncio
    async def test_network_error_is_failure(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        service, _ = make_service(fail)

        result = await service.send_text("u1", "Hello!")

        assert result.ok is False
        assert result.error_code == ErrorKind.TRANSPORT_ERROR.value
        assert "connection refused" in result.error
        assert result.value is None

    @pytest.mark.asyncio
    async def test_non_json_body_is_failure(self):
        service, _ = make_service(lambda request: httpx.Response(200, text="<html>oops</html>"))

        result = await service.send_text("u1", "Hello!")

        assert result.ok is False
        assert result.error_code == ErrorKind.TRANSPORT_ERROR.value


class TestMessageHelpers:
    @pytest.mark.asyncio
    async def test_carousel(self):
        service, requests = make_service(lambda request: httpx.Response(200, json={"message_id": "mid.1"}))

        await service.send_carousel("u1", build_schedule_elements())

        message = json.loads(requests[0].content)["message"]
        payload = message["attachment"]["payload"]
        assert message["attachment"]["type"] == "template"
        assert payload["template_type"] == "generic"
        assert len(payload["elements"]) == 3
        assert payload["elements"][2]["title"] == "11:10PM - Breaking Bad"
        assert payload["elements"][0]["buttons"][1] == {
            "type": "postback",
            "title": "Set Reminder",
            "payload": "Set reminder for The Bone Collector",
        }

    @pytest.mark.asyncio
    async def test_image(self):
        service, requests = make_service(lambda request: httpx.Response(200, json={"message_id": "mid.1"}))

        await service.send_image("u1", "https://example.com/poster.jpg")

        message = json.loads(requests[0].content)["message"]
        assert message == {"attachment": {"type": "image", "payload": {"url": "https://example.com/poster.jpg"}}}

    @pytest.mark.asyncio
    async def test_quick_replies(self):
        service, requests = make_service(lambda request: httpx.Response(200, json={"message_id": "mid.1"}))

        await service.send_quick_replies("u1", "Which show?", ["Breaking Bad", "The Last Panthers"])

        message = json.loads(requests[0].content)["message"]
        assert message["text"] == "Which show?"
        assert [reply["title"] for reply in message["quick_replies"]] == ["Breaking Bad", "The Last Panthers"]
