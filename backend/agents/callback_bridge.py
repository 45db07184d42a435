"""
Callback Bridge — engine notifications to ordered outbound chat messages.

Engines call announce/whisper closures produced here; the command router emits
advertise/ready notices. Everything becomes an EngineEvent and goes through
dispatch(), the only place that decides audience and registry teardown.

Ordering rules:
  - a terminal announce clears the registry entry BEFORE its text is queued,
    so a new game can be created while the final message is still in flight
  - an event's broadcast is queued before any whispers it causes (engines
    announce first; the FIFO queue keeps that order)
"""
import logging
from typing import Any, Callable, Dict, Optional

from models.game import EngineEvent, EventKind, TERMINAL_CODES
from services.outbound_queue import OutboundQueue
from services.phrases import PhraseBook
from services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class CallbackBridge:

    def __init__(
        self,
        registry: SessionRegistry,
        queue: OutboundQueue,
        phrases: PhraseBook,
    ):
        self.registry = registry
        self.queue = queue
        self.phrases = phrases

    # ── Engine-facing callbacks ───────────────────────────────────────────────

    def announce_callback(self, key: str) -> Callable[..., None]:
        def announce(code: str, text: str, meta: Optional[Dict[str, Any]] = None) -> None:
            kind = EventKind.TERMINAL if code in TERMINAL_CODES else EventKind.ANNOUNCE
            self.dispatch(EngineEvent(kind=kind, key=key, code=code, text=text, meta=meta or {}))
        return announce

    def whisper_callback(self, key: str) -> Callable[..., None]:
        def whisper(
            player_id: str, code: str, text: str, meta: Optional[Dict[str, Any]] = None
        ) -> None:
            self.dispatch(EngineEvent(
                kind=EventKind.WHISPER,
                key=key,
                code=code,
                text=text,
                player_id=player_id,
                meta=meta or {},
            ))
        return whisper

    # ── Core-facing helpers ───────────────────────────────────────────────────

    def advertise(self, key: str, session: Any = None) -> None:
        """Timer target: announce a new game unless it is gone or replaced."""
        current = self.registry.get(key)
        if current is None or (session is not None and current is not session):
            logger.debug("[%s] Advertise skipped, session no longer live", key)
            return
        self.dispatch(EngineEvent(
            kind=EventKind.ADVERTISE, key=key, code="game:advertise",
            text=self.phrases.get("game:advertise"),
        ))

    def ready(self, key: str) -> None:
        self.dispatch(EngineEvent(
            kind=EventKind.READY, key=key, code="game:ready",
            text=self.phrases.get("game:ready"),
        ))

    def whisper_phrase(self, key: str, player_id: str, phrase_key: str) -> None:
        self.dispatch(EngineEvent(
            kind=EventKind.WHISPER, key=key, code=phrase_key,
            text=self.phrases.get(phrase_key), player_id=player_id,
        ))

    # ── Dispatcher ────────────────────────────────────────────────────────────

    def dispatch(self, event: EngineEvent) -> None:
        if event.kind == EventKind.TERMINAL:
            self.registry.clear(event.key)
            logger.info(f"[{event.key}] Terminal event {event.code}, session released")
            self.queue.enqueue(event.key, event.text)

        elif event.kind in (EventKind.ANNOUNCE, EventKind.ADVERTISE, EventKind.READY):
            self.queue.enqueue(event.key, event.text)

        elif event.kind == EventKind.WHISPER:
            if event.meta.get("bot"):
                return
            if not event.player_id:
                logger.warning("[%s] Whisper %s without recipient dropped", event.key, event.code)
                return
            self.queue.enqueue(event.player_id, event.text)
