from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone


def _utcnow() -> datetime:
    """Timezone-aware UTC datetime (replaces deprecated datetime.utcnow)."""
    return datetime.now(timezone.utc)


class ChatUser(BaseModel):
    id: str
    name: str


class InboundMessage(BaseModel):
    user: ChatUser
    room: Optional[str] = None  # None for private/direct messages
    text: str


class OutboundMessage(BaseModel):
    channel: str  # room id or user id
    text: str
    seq: int      # enqueue order
    enqueued_at: datetime = Field(default_factory=_utcnow)


# ── WebSocket message shapes ──────────────────────────────────────────────────

class WSMessage(BaseModel):
    type: str
    data: Dict[str, Any] = {}


# ── HTTP request/response models ──────────────────────────────────────────────

class PostMessageRequest(BaseModel):
    user_id: str
    user_name: str
    room: Optional[str] = None
    text: str


class PostMessageResponse(BaseModel):
    handled: bool
    intent: Optional[str] = None


class SessionInfo(BaseModel):
    key: str
    manager_id: Optional[str] = None
    started: bool
    players: List[Dict[str, Any]] = []
