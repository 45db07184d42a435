"""
Game engine contract consumed by the command layer.

The card game itself (hands, effects, win conditions) lives behind this
interface. Engines report what happened through two callbacks:

  announce(code, text, meta)            — broadcast to the whole game
  whisper(player_id, code, text, meta)  — private to one player;
                                          meta["bot"] is True for bot players

Engines are built by the factory named in ``settings.engine_factory``
("module:attr"), called as factory(manager_id, manager_name, announce,
whisper, language).
"""
import importlib
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from models.game import Player

AnnounceCallback = Callable[[str, str, Optional[Dict[str, Any]]], None]
WhisperCallback = Callable[[str, str, str, Optional[Dict[str, Any]]], None]


class GameEngine(Protocol):
    players: List[Player]
    manager: Optional[Player]
    started: bool

    def add_player(self, player_id: str, name: str) -> None: ...
    def add_bot(self, name: Optional[str] = None) -> None: ...
    def start(self) -> None: ...
    def stop(self) -> None: ...
    def pass_turn(self, player_id: str) -> None: ...
    def play(self, player_id: str, selections: Sequence[int], target: Optional[Player] = None) -> None: ...
    def discard(self, player_id: str, selections: Sequence[int], target: Optional[Player] = None) -> None: ...
    def remove_player(self, player: Any) -> None: ...
    def transfer_management(self, target: Optional[Player]) -> None: ...
    def whisper_status(self, player_id: str) -> None: ...


EngineFactory = Callable[[str, str, AnnounceCallback, WhisperCallback, str], GameEngine]


class EngineFactoryError(ImportError):
    pass


def load_engine_factory(path: str) -> EngineFactory:
    """Resolve a "package.module:attr" path to an engine factory."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise EngineFactoryError(f"Engine factory must look like 'module:attr', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise EngineFactoryError(f"Cannot import engine module {module_name!r}: {exc}") from exc
    try:
        factory = getattr(module, attr)
    except AttributeError as exc:
        raise EngineFactoryError(f"{module_name!r} has no attribute {attr!r}") from exc
    if not callable(factory):
        raise EngineFactoryError(f"Engine factory {path!r} is not callable")
    return factory
