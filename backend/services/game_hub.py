"""
Game hub — wires registry, outbound queue, callback bridge and command router.

One hub per process, built lazily by get_game_hub() with the WebSocket
connection manager as the chat transport.
"""
import logging
from typing import Optional

from agents.callback_bridge import CallbackBridge
from agents.command_router import CommandRouter
from agents.engine import EngineFactory, load_engine_factory
from config import settings
from services.outbound_queue import ChatTransport, OutboundQueue
from services.phrases import PhraseBook, get_phrase_book
from services.session_registry import SessionRegistry
from utils.scheduler import Scheduler

logger = logging.getLogger(__name__)

# Phrases the command layer looks up; validated when the hub is built.
CORE_PHRASES = (
    "game:advertise",
    "game:already-started",
    "game:ready",
    "game:cannot-remove",
    "game:cannot-stop",
    "game:cannot-transfer",
    "core:error",
)


class GameHub:

    def __init__(
        self,
        transport: ChatTransport,
        phrases: PhraseBook,
        engine_factory: EngineFactory,
        scheduler: Optional[Scheduler] = None,
        queue_interval: float = 0.15,
        advertise_delay: float = 0.5,
        language: str = "en",
        bot_name: str = "brawlbot",
    ):
        phrases.require(CORE_PHRASES)
        self.phrases = phrases
        self.registry = SessionRegistry()
        self.queue = OutboundQueue(transport, interval=queue_interval)
        self.bridge = CallbackBridge(self.registry, self.queue, phrases)
        self.router = CommandRouter(
            self.registry,
            self.bridge,
            engine_factory,
            scheduler or Scheduler(),
            language=language,
            bot_name=bot_name,
            advertise_delay=advertise_delay,
        )


_game_hub: Optional[GameHub] = None


def get_game_hub() -> GameHub:
    """Lazy singleton — built on first call from settings."""
    global _game_hub
    if _game_hub is None:
        from routers.ws_router import manager as ws_manager

        _game_hub = GameHub(
            transport=ws_manager,
            phrases=get_phrase_book(),
            engine_factory=load_engine_factory(settings.engine_factory),
            queue_interval=settings.queue_interval,
            advertise_delay=settings.advertise_delay,
            language=settings.language,
            bot_name=settings.bot_name,
        )
        logger.info("Game hub ready (engine=%s)", settings.engine_factory)
    return _game_hub
