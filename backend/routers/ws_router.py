"""
WebSocket Hub — the chat transport.

URL: /ws/{user_id}?name={display_name}

Connection flow:
  1. Accept connection and register the user
  2. Send private "connected" message
  3. Message loop (handle_message dispatcher)
  4. On disconnect: drop the socket and all room memberships

Client → server message types handled here:
  ping        — keep-alive heartbeat → responds with "pong"
  join_room   — subscribe to a room's messages
  leave_room  — unsubscribe from a room
  message     — chat text, optionally in a room; relayed to the room and
                handed to the command router

Server → client:
  message     — bot output for a room or for this user privately
  chat        — another user's text in a room
"""
import json
import logging
from typing import Dict, Optional, Set, Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from pydantic import ValidationError

from config import settings
from models.chat import ChatUser, InboundMessage, WSMessage
from services.game_hub import get_game_hub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


# ── Connection Manager ─────────────────────────────────────────────────────────

class ConnectionManager:
    """
    Tracks connected users and room membership.
    Safe for asyncio single-threaded event loop (no extra locking needed).
    """

    def __init__(self):
        self._users: Dict[str, WebSocket] = {}
        # {room: {user_id}}
        self._rooms: Dict[str, Set[str]] = {}

    # ── Lifecycle ──────────────────────────────────────────────────────────────

    async def connect(self, user_id: str, ws: WebSocket) -> None:
        await ws.accept()
        self._users[user_id] = ws
        logger.debug(f"{user_id} connected ({len(self._users)} total)")

    def disconnect(self, user_id: str) -> None:
        self._users.pop(user_id, None)
        for room in list(self._rooms):
            self.leave_room(room, user_id)

    def join_room(self, room: str, user_id: str) -> None:
        self._rooms.setdefault(room, set()).add(user_id)

    def leave_room(self, room: str, user_id: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(user_id)
        if not members:
            self._rooms.pop(room, None)

    def members(self, room: str) -> Set[str]:
        return set(self._rooms.get(room, set()))

    def is_connected(self, user_id: str) -> bool:
        return user_id in self._users

    # ── Sending ────────────────────────────────────────────────────────────────

    async def send_to(self, user_id: str, message: Dict) -> None:
        """Send a frame to a single user."""
        ws = self._users.get(user_id)
        if ws:
            try:
                await ws.send_json(message)
            except Exception as exc:
                logger.warning(f"send_to {user_id} failed: {exc}")
                self.disconnect(user_id)

    async def broadcast(
        self,
        room: str,
        message: Dict,
        exclude: Optional[str] = None,
    ) -> None:
        """Broadcast a frame to every member of a room."""
        for uid in sorted(self.members(room)):
            if uid == exclude:
                continue
            await self.send_to(uid, message)

    async def send(self, channel: str, text: str) -> None:
        """Chat transport entry point used by the outbound queue.

        A channel is a room if anyone is subscribed to it, otherwise a user id.
        """
        if channel in self._rooms:
            await self.broadcast(channel, {"type": "message", "room": channel, "text": text})
        elif channel in self._users:
            await self.send_to(channel, {"type": "message", "room": None, "text": text})
        else:
            logger.debug(f"[{channel}] No recipients, message dropped")


# Module-level singleton — the transport behind the game hub's outbound queue
manager = ConnectionManager()


# ── WebSocket endpoint ─────────────────────────────────────────────────────────

@router.websocket("/ws/{user_id}")
async def websocket_endpoint(
    ws: WebSocket,
    user_id: str,
    name: str = Query("", description="Display name shown to other players"),
):
    user = ChatUser(id=user_id, name=name or user_id)
    await manager.connect(user_id, ws)
    await manager.send_to(user_id, {"type": "connected", "userId": user_id, "name": user.name})

    try:
        while True:
            raw = await ws.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                await manager.send_to(user_id, {
                    "type": "error",
                    "message": "Invalid JSON",
                    "code": "PARSE_ERROR",
                })
                continue

            try:
                frame = WSMessage.model_validate(data)
            except ValidationError:
                await manager.send_to(user_id, {
                    "type": "error",
                    "message": "Expected {\"type\": ..., \"data\": {...}}",
                    "code": "INVALID_MESSAGE",
                })
                continue

            await _handle_message(user, frame.type, frame.data)

    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(user_id)


# ── Message dispatcher ─────────────────────────────────────────────────────────

async def _handle_message(user: ChatUser, msg_type: str, data: Dict[str, Any]) -> None:
    if msg_type == "ping":
        await manager.send_to(user.id, {"type": "pong"})

    elif msg_type == "join_room":
        room = str(data.get("room", "")).strip()
        if room:
            manager.join_room(room, user.id)
            await manager.send_to(user.id, {"type": "joined_room", "room": room})

    elif msg_type == "leave_room":
        room = str(data.get("room", "")).strip()
        if room:
            manager.leave_room(room, user.id)
            await manager.send_to(user.id, {"type": "left_room", "room": room})

    elif msg_type == "message":
        await _on_chat(user, data)

    else:
        await manager.send_to(user.id, {
            "type": "error",
            "message": f"Unknown message type: '{msg_type}'",
            "code": "UNKNOWN_TYPE",
        })


async def _on_chat(user: ChatUser, data: Dict[str, Any]) -> None:
    text = str(data.get("text", "")).strip()[:settings.max_text_length]
    if not text:
        return
    room = str(data.get("room") or "").strip() or None

    if room:
        manager.join_room(room, user.id)
        await manager.broadcast(room, {
            "type": "chat",
            "room": room,
            "userId": user.id,
            "name": user.name,
            "text": text,
        }, exclude=user.id)

    # Router never awaits, so commands are handled one at a time
    get_game_hub().router.handle(InboundMessage(user=user, room=room, text=text))
