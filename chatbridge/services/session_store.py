import asyncio
import copy
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from chatbridge.logging_config import get_logger
from chatbridge.services.errors import SessionNotFoundError

logger = get_logger("session_store")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    session_id: str
    external_user_id: str
    context: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


class _UserLock:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.holders = 0


class SessionStore:
    """In-memory registry of conversation sessions.

    Sessions are keyed by a generated id and indexed by the external
    (chat platform) user id, one session per user. Mutations of the
    registry go through a single asyncio.Lock.

    `user_lock` gives callers a FIFO queue per external user, which is
    how dispatch loops for the same user are kept strictly sequential.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._by_user: dict[str, str] = {}
        self._lock = asyncio.Lock()
        self._user_locks: dict[str, _UserLock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def resolve_or_create(self, external_user_id: str) -> str:
        """Return the session id for the user, creating the session if needed."""
        async with self._lock:
            session_id = self._by_user.get(external_user_id)
            if session_id is not None:
                return session_id

            session_id = uuid.uuid4().hex
            self._sessions[session_id] = Session(session_id=session_id, external_user_id=external_user_id)
            self._by_user[external_user_id] = session_id

        logger.info(
            "Session created",
            extra={"context": {"session_id": session_id, "external_user_id": external_user_id}},
        )
        return session_id

    async def find_by_user(self, external_user_id: str) -> Optional[str]:
        async with self._lock:
            return self._by_user.get(external_user_id)

    async def get(self, session_id: str) -> Session:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            return session

    async def replace_context(self, session_id: str, new_context: dict[str, Any]) -> None:
        """Overwrite the whole context of a session. No merging."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            session.context = copy.deepcopy(dict(new_context))
            session.updated_at = _now()

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                raise SessionNotFoundError(session_id)
            if self._by_user.get(session.external_user_id) == session_id:
                del self._by_user[session.external_user_id]

        logger.info(
            "Session deleted",
            extra={"context": {"session_id": session_id, "external_user_id": session.external_user_id}},
        )

    @asynccontextmanager
    async def user_lock(self, external_user_id: str) -> AsyncIterator[None]:
        """Hold the per-user queue. Waiters are served in arrival order."""
        entry = self._user_locks.get(external_user_id)
        if entry is None:
            entry = self._user_locks[external_user_id] = _UserLock()
        entry.holders += 1
        try:
            if entry.lock.locked():
                logger.debug(
                    "Queued behind in-flight dispatch",
                    extra={"context": {"external_user_id": external_user_id, "waiting": entry.holders - 1}},
                )
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._user_locks.pop(external_user_id, None)
