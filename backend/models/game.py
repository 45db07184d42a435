from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from enum import Enum


class Player(BaseModel):
    id: str
    name: str
    bot: bool = False  # bots never receive private messages
    hand: List[str] = []


class ParsedRequest(BaseModel):
    """Card selections (1-based, in typed order) plus an optional target player."""
    selections: List[int] = []
    target: Optional[Player] = None


class EventKind(str, Enum):
    ADVERTISE = "advertise"  # new game announced to the routing key's audience
    READY = "ready"          # roster just reached two players
    ANNOUNCE = "announce"    # engine broadcast
    TERMINAL = "terminal"    # engine broadcast that ends the session
    WHISPER = "whisper"      # private message to one player


# Engine announce codes that end a session.
TERMINAL_CODES = frozenset({
    "game:no-survivors",
    "game:winner",
    "game:stopped",
})


class EngineEvent(BaseModel):
    kind: EventKind
    key: str                         # routing key of the session
    code: str = ""
    text: str = ""
    player_id: Optional[str] = None  # whisper recipient
    meta: Dict[str, Any] = Field(default_factory=dict)
