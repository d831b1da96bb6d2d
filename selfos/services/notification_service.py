"""
Live notification delivery.

The transport layer owns connection lifecycle and registers sessions in a
SessionRegistry; the dispatcher only looks sessions up and pushes payloads.
Delivery is best-effort: no queue, no retry.
"""
import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

from selfos.schemas import NotificationPayload

logger = logging.getLogger("selfos.notifications")


class LiveSession(Protocol):
    """A connected client able to receive JSON (e.g. a FastAPI WebSocket)"""

    async def send_json(self, data: Any) -> None: ...


class SessionRegistry:
    """
    Thread-safe mapping of user ID -> live session.

    One session per user: a reconnect replaces the previous entry.
    """

    def __init__(self):
        self._sessions: Dict[int, LiveSession] = {}
        self._lock = threading.Lock()

    def register(self, user_id: int, session: LiveSession) -> None:
        with self._lock:
            self._sessions[user_id] = session
        logger.info(f"User {user_id} connected")

    def unregister(self, user_id: int, session: Optional[LiveSession] = None) -> bool:
        """
        Remove a user's session.

        When session is given, the entry is only removed if it still points
        at that session, so a late disconnect cannot evict a newer one.
        """
        with self._lock:
            current = self._sessions.get(user_id)
            if current is None or (session is not None and current is not session):
                return False
            del self._sessions[user_id]
        logger.info(f"User {user_id} disconnected")
        return True

    def lookup(self, user_id: int) -> Optional[LiveSession]:
        with self._lock:
            return self._sessions.get(user_id)

    def connected_users(self) -> List[int]:
        with self._lock:
            return list(self._sessions)


class NotificationDispatcher:
    """Routes notification payloads to a user's live session"""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    async def send_to_user(self, user_id: int, payload: NotificationPayload) -> bool:
        """
        Push a payload to the user's live session.

        Returns:
            True if delivered, False if the user is offline or the push failed
        """
        session = self.registry.lookup(user_id)
        if session is None:
            logger.debug(f"User {user_id} offline, dropped '{payload.type}' notification")
            return False

        try:
            await session.send_json(payload.model_dump(mode="json"))
        except Exception as e:
            logger.warning(f"Failed to push '{payload.type}' notification to user {user_id}: {e}")
            return False

        return True
