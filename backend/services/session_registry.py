"""
Session registry — at most one live game per routing key.

The routing key is the room a message was sent in, or the sender's user id for
private messages. Keys are shared between the command handlers and the engine
callbacks; all access happens on the single asyncio thread, so check-then-create
is safe as long as no await sits between the check and the create.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.chat import InboundMessage, _utcnow
from models.game import Player

logger = logging.getLogger(__name__)


class SessionExists(Exception):
    """Raised when creating a session for a key that already has one."""

    def __init__(self, key: str):
        super().__init__(f"A session already exists for {key!r}")
        self.key = key


class Session(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    key: str
    engine: Any  # GameEngine handle; roster, manager and started live on the engine
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def manager_id(self) -> Optional[str]:
        manager = getattr(self.engine, "manager", None)
        return manager.id if manager else None

    @property
    def started(self) -> bool:
        return bool(self.engine.started)

    @property
    def players(self) -> List[Player]:
        return list(self.engine.players)

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.engine.players:
            if player.id == player_id:
                return player
        return None


def resolve_key(message: InboundMessage) -> str:
    """Room id if the message came from a room, else the sender's user id."""
    if message.room:
        return message.room
    return message.user.id


class SessionRegistry:
    """Keyed store of live sessions."""

    def __init__(self):
        self._sessions: Dict[str, Optional[Session]] = {}

    def create(self, key: str, session: Session) -> Session:
        if self._sessions.get(key) is not None:
            raise SessionExists(key)
        self._sessions[key] = session
        logger.info(f"[{key}] Session registered")
        return session

    def get(self, key: str) -> Optional[Session]:
        return self._sessions.get(key)

    def clear(self, key: str) -> None:
        if self._sessions.get(key) is not None:
            logger.info(f"[{key}] Session cleared")
        self._sessions[key] = None

    def keys(self) -> List[str]:
        return [k for k, s in self._sessions.items() if s is not None]

    def __contains__(self, key: str) -> bool:
        return self._sessions.get(key) is not None

    def __len__(self) -> int:
        return len(self.keys())
