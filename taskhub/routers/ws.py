# taskhub/routers/ws.py
# PURPOSE: the realtime channel. One WebSocket per user, authenticated with
# ?token=<jwt>. Inbound JSON frames carry an "event" key:
#   join                      -> (re)register presence, reply "joined"
#   privateMessage            -> relay to recipient as "newMessage" (not persisted)
#   typing / stop_typing      -> relay to recipient as "user_typing"

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from ..auth import decode_access_token
from ..db import get_db
from ..db_models import now_utc
from ..realtime import close_quietly, presence
from .. import store_db

router = APIRouter(tags=["realtime"])
logger = logging.getLogger("taskhub.realtime")


def _as_user_id(value: Any) -> Optional[int]:
    try:
        user_id = int(value)
    except (TypeError, ValueError):
        return None
    return user_id if user_id > 0 else None


async def _error(websocket: WebSocket, detail: str) -> None:
    await websocket.send_json({"event": "error", "detail": detail})


async def handle_event(user_id: int, websocket: WebSocket, data: Dict[str, Any]) -> None:
    """Dispatch one inbound frame from user_id."""
    event = data.get("event")

    if event == "join":
        claimed = data.get("user_id")
        if claimed is not None and _as_user_id(claimed) != user_id:
            await _error(websocket, "Cannot join as another user")
            return
        presence.register(user_id, websocket)
        await websocket.send_json({"event": "joined", "user_id": user_id})
        return

    if event in ("privateMessage", "typing", "stop_typing"):
        recipient_id = _as_user_id(data.get("recipient_id"))
        if recipient_id is None:
            await _error(websocket, "Invalid recipient ID")
            return

        if event == "privateMessage":
            content = str(data.get("content") or "").strip()
            if not content:
                await _error(websocket, "Message content is required")
                return
            delivered = await presence.send_to(
                recipient_id,
                {
                    "event": "newMessage",
                    "message": {
                        "sender_id": user_id,
                        "recipient_id": recipient_id,
                        "content": content,
                        "created_at": now_utc().isoformat(),
                    },
                },
            )
            await websocket.send_json(
                {"event": "messageStatus", "recipient_id": recipient_id, "delivered": delivered}
            )
            return

        await presence.send_to(
            recipient_id,
            {"event": "user_typing", "sender_id": user_id, "typing": event == "typing"},
        )
        return

    await _error(websocket, f"Unknown event: {event}")


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: Optional[str] = None,
    db: Session = Depends(get_db),
):
    user_id = decode_access_token(token) if token else None
    if user_id is None or store_db.get_user(db, user_id) is None:
        logger.info("websocket rejected reason=invalid_token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    presence.register(user_id, websocket)
    store_db.set_presence(db, user_id, "online")
    logger.info("websocket connected user_id=%s online=%s", user_id, len(presence))
    await presence.broadcast({"event": "presence", "user_id": user_id, "status": "online"}, exclude=user_id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                await _error(websocket, "Frames must be JSON text")
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                await _error(websocket, "Frames must be JSON objects")
                continue
            if not isinstance(data, dict):
                await _error(websocket, "Frames must be JSON objects")
                continue
            await handle_event(user_id, websocket, data)
    except WebSocketDisconnect:
        pass
    finally:
        # A newer connection for the same user keeps the registry entry
        if presence.unregister(user_id, websocket):
            store_db.set_presence(db, user_id, "offline")
            logger.info("websocket disconnected user_id=%s online=%s", user_id, len(presence))
            await presence.broadcast(
                {"event": "presence", "user_id": user_id, "status": "offline"}, exclude=user_id
            )
        await close_quietly(websocket)
