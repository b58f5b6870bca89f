import pytest

from conftest import RecordingMessenger, ScriptedEngine, action, merge, msg, stop
from chatbridge.services.conversation_service import ConversationService
from chatbridge.services.dispatch_service import ActionDispatcher
from chatbridge.services.errors import ErrorKind
from chatbridge.services.event_router import InboundEvent
from chatbridge.services.nlu.base import Decision, DecisionType
from chatbridge.services.schedule_actions import build_schedule_registry, first_entity_value


def make_bot(store, messenger, decisions):
    registry = build_schedule_registry(store, messenger)
    engine = ScriptedEngine(decisions)
    dispatcher = ActionDispatcher(engine, registry, max_turns=5)
    return ConversationService(store, dispatcher, messenger), engine


class TestFirstEntityValue:
    def test_plain_value(self):
        entities = {"show": [{"value": "Breaking Bad", "confidence": 0.92}]}
        assert first_entity_value(entities, "show") == "Breaking Bad"

    def test_nested_value(self):
        entities = {"datetime": [{"value": {"value": "2016-04-20T19:30:00.000-04:00", "grain": "minute"}}]}
        assert first_entity_value(entities, "datetime") == "2016-04-20T19:30:00.000-04:00"

    def test_missing(self):
        assert first_entity_value({}, "show") is None
        assert first_entity_value(None, "show") is None
        assert first_entity_value({"show": []}, "show") is None
        assert first_entity_value({"show": "Breaking Bad"}, "show") is None


class TestScheduleBot:
    def test_registers_the_bot_actions(self, store, messenger):
        registry = build_schedule_registry(store, messenger)

        assert registry.names == [
            "error",
            "list_schedule",
            "lookup_tonights_schedule",
            "merge",
            "say",
            "set_reminder",
        ]
        assert registry.missing_reserved() == []

    @pytest.mark.asyncio
    async def test_schedule_tonight_sends_one_carousel(self, store, messenger):
        service, _ = make_bot(store, messenger, [action("list_schedule"), stop()])

        result = await service.handle_event(InboundEvent("u1", "schedule tonight"))

        assert result.ok is True
        assert result.value == {}
        assert len(messenger.sent) == 1
        sent = messenger.sent_to("u1")
        assert len(sent) == 1
        assert sent[0]["attachment"]["payload"]["template_type"] == "generic"

    @pytest.mark.asyncio
    async def test_nonexistent_action_fails_without_bot_messages(self, store, messenger):
        registry = build_schedule_registry(store, messenger)
        dispatcher = ActionDispatcher(ScriptedEngine([action("nonexistent_action")]), registry)
        session_id = await store.resolve_or_create("u1")

        result = await dispatcher.run_actions(session_id, "hello", {})

        assert result.ok is False
        assert result.error_code == ErrorKind.UNKNOWN_ACTION.value
        assert messenger.sent == []

    @pytest.mark.asyncio
    async def test_say_sends_text_and_quick_replies(self, store, messenger):
        service, _ = make_bot(
            store,
            messenger,
            [msg("Here you go"), msg("Which show?", quickreplies=["Breaking Bad"]), stop()],
        )

        await service.handle_event(InboundEvent("u1", "hi"))

        sent = messenger.sent_to("u1")
        assert sent[0] == {"text": "Here you go"}
        assert sent[1]["text"] == "Which show?"
        assert sent[1]["quick_replies"][0]["payload"] == "Breaking Bad"

    @pytest.mark.asyncio
    async def test_say_continues_after_transport_error(self, store):
        messenger = RecordingMessenger(fail=True)
        service, engine = make_bot(store, messenger, [msg("Hello"), action("lookup_tonights_schedule"), stop()])

        result = await service.handle_event(InboundEvent("u1", "hi"))

        assert result.ok is True
        assert len(engine.calls) == 3

    @pytest.mark.asyncio
    async def test_merge_then_set_reminder(self, store, messenger):
        entities = {"show": [{"value": "Breaking Bad"}], "datetime": [{"value": "2016-04-20T23:10:00"}]}
        service, _ = make_bot(store, messenger, [merge(entities), action("set_reminder"), stop()])

        result = await service.handle_event(InboundEvent("u1", "Set reminder for Breaking Bad"))

        assert result.value == {"show": "Breaking Bad", "datetime": "2016-04-20T23:10:00"}
        session_id = await store.find_by_user("u1")
        assert (await store.get(session_id)).context == result.value

    @pytest.mark.asyncio
    async def test_wit_error_runs_error_action_and_notifies(self, store, messenger):
        service, _ = make_bot(store, messenger, [Decision(type=DecisionType.ERROR, error="boom")])

        result = await service.handle_event(InboundEvent("u1", "hi"))

        assert result.error_code == ErrorKind.NLU_ENGINE_ERROR.value
        assert messenger.sent_to("u1") == [{"text": "Oops! Got an error from Wit"}]
