from functools import lru_cache

from chatbridge.config import Settings, settings
from chatbridge.services.conversation_service import ConversationService
from chatbridge.services.dispatch_service import ActionDispatcher
from chatbridge.services.messenger_service import MessengerService
from chatbridge.services.nlu import NluEngine, WitEngine
from chatbridge.services.schedule_actions import build_schedule_registry
from chatbridge.services.session_store import SessionStore


def get_settings() -> Settings:
    return settings


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore()


@lru_cache
def get_messenger_service() -> MessengerService:
    return MessengerService(
        page_token=settings.fb_page_token,
        api_url=settings.fb_graph_url,
        timeout_seconds=settings.http_timeout_seconds,
    )


@lru_cache
def get_nlu_engine() -> NluEngine:
    return WitEngine(
        access_token=settings.wit_token,
        api_url=settings.wit_api_url,
        api_version=settings.wit_api_version,
        timeout_seconds=settings.http_timeout_seconds,
    )


@lru_cache
def get_dispatcher() -> ActionDispatcher:
    registry = build_schedule_registry(get_session_store(), get_messenger_service())
    return ActionDispatcher(
        engine=get_nlu_engine(),
        registry=registry,
        max_turns=settings.dispatch_max_turns,
        turn_timeout=settings.dispatch_turn_timeout_seconds,
    )


@lru_cache
def get_conversation_service() -> ConversationService:
    return ConversationService(
        store=get_session_store(),
        dispatcher=get_dispatcher(),
        messenger=get_messenger_service(),
    )
