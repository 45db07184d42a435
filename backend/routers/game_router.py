"""
Game HTTP endpoints.

Routes:
  POST /api/messages                — Inject an inbound chat message (webhook transports)
  GET  /api/sessions                — All live sessions
  GET  /api/sessions/{key}          — One session by routing key
"""
import logging
from typing import List

from fastapi import APIRouter, HTTPException

from config import settings
from models.chat import (
    ChatUser, InboundMessage,
    PostMessageRequest, PostMessageResponse,
    SessionInfo,
)
from services.game_hub import get_game_hub
from services.session_registry import Session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["games"])


def _session_info(session: Session) -> SessionInfo:
    return SessionInfo(
        key=session.key,
        manager_id=session.manager_id,
        started=session.started,
        players=[
            {"id": p.id, "name": p.name, "bot": p.bot}
            for p in session.players
        ],
    )


@router.post("/messages", response_model=PostMessageResponse, status_code=202)
async def post_message(body: PostMessageRequest):
    """Hand one chat line to the command router, as if typed by the user."""
    message = InboundMessage(
        user=ChatUser(id=body.user_id, name=body.user_name),
        room=body.room or None,
        text=body.text.strip()[:settings.max_text_length],
    )
    intent = get_game_hub().router.handle(message)
    if intent:
        logger.info(f"[{body.room or body.user_id}] {body.user_id} → {intent}")
    return PostMessageResponse(handled=intent is not None, intent=intent)


@router.get("/sessions", response_model=List[SessionInfo])
async def list_sessions():
    registry = get_game_hub().registry
    return [_session_info(registry.get(key)) for key in registry.keys()]


@router.get("/sessions/{key}", response_model=SessionInfo)
async def get_session(key: str):
    session = get_game_hub().registry.get(key)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return _session_info(session)
