# PURPOSE: presence registry and message dispatch for the WebSocket channel.
#
# The registry maps user id -> live WebSocket. It is owned by one
# PresenceRegistry instance and every read/write of the map happens under
# its lock; network sends happen after the lock is released.

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

logger = logging.getLogger("taskhub.realtime")


class PresenceRegistry:
    """Who is connected right now, and how to reach them."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._connections: Dict[int, WebSocket] = {}

    def register(self, user_id: int, websocket: WebSocket) -> Optional[WebSocket]:
        """Map user_id to websocket; returns the connection it replaced, if any."""
        with self._lock:
            previous = self._connections.get(user_id)
            self._connections[user_id] = websocket
        if previous is not None and previous is not websocket:
            logger.info("presence replaced user_id=%s", user_id)
            return previous
        return None

    def unregister(self, user_id: int, websocket: WebSocket) -> bool:
        """Remove the entry only if it still points at this websocket."""
        with self._lock:
            if self._connections.get(user_id) is websocket:
                del self._connections[user_id]
                return True
        return False

    def get(self, user_id: int) -> Optional[WebSocket]:
        with self._lock:
            return self._connections.get(user_id)

    def is_online(self, user_id: int) -> bool:
        return self.get(user_id) is not None

    def online_user_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._connections)

    def clear(self) -> None:
        with self._lock:
            self._connections.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    # --- Dispatch ----------------------------------------------------------

    async def send_to(self, user_id: int, payload: Dict[str, Any]) -> bool:
        """Push payload to user_id if connected; False when dropped.

        No queueing and no retry: an offline user simply misses the push.
        A connection that fails to send is unregistered.
        """
        websocket = self.get(user_id)
        if websocket is None:
            logger.debug("dispatch dropped user_id=%s event=%s reason=offline", user_id, payload.get("event"))
            return False
        try:
            await websocket.send_json(payload)
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.warning("dispatch failed user_id=%s error=%s", user_id, exc)
            self.unregister(user_id, websocket)
            return False
        return True

    async def broadcast(self, payload: Dict[str, Any], *, exclude: Optional[int] = None) -> int:
        """Send payload to every connected user except `exclude`; returns deliveries."""
        delivered = 0
        for user_id in self.online_user_ids():
            if user_id == exclude:
                continue
            if await self.send_to(user_id, payload):
                delivered += 1
        return delivered


async def close_quietly(websocket: WebSocket, code: int = 1000) -> None:
    """Close a websocket that may already be gone."""
    if WebSocketState.DISCONNECTED in (websocket.application_state, websocket.client_state):
        return
    try:
        await websocket.close(code=code)
    except RuntimeError:
        logger.debug("close on finished websocket ignored")


presence = PresenceRegistry()
