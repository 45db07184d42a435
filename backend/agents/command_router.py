"""
Command Router — chat text to game commands.

Intents are tried in declared order; the first pattern that matches wins and
unmatched text is ignored. Two matching styles:

  hear     — pattern matches the start of any chat line ("play 3 2", "jo")
  respond  — pattern matches the whole text of a message addressed to the bot,
             i.e. a private message or one starting with the bot's name

Handlers run to completion without awaiting, so no two commands interleave and
the registry's check-then-create needs no lock. Handlers are the only code that
mutates sessions or calls engine commands.

Manager-only actions (remove another player, stop, transfer) are denied with a
private message to the actor and change nothing.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from agents.callback_bridge import CallbackBridge
from agents.engine import EngineFactory
from agents.request_parser import parse_request
from models.chat import InboundMessage
from services.phrases import PhraseNotFound
from services.session_registry import Session, SessionRegistry, resolve_key
from utils.scheduler import Scheduler

logger = logging.getLogger(__name__)


def abbrev(word: str, min_len: int = 1) -> str:
    """Regex accepting ``word`` or any prefix of it at least ``min_len`` long.

    abbrev("pass", 2) -> "pa(?:s(?:s)?)?"
    """
    head, tail = word[:min_len], word[min_len:]
    nested = ""
    for ch in reversed(tail):
        nested = f"(?:{re.escape(ch)}{nested})?"
    return re.escape(head) + nested


def _hear(command: str) -> re.Pattern:
    return re.compile(rf"^(?:{command})(?:\s+(?P<args>.*))?$", re.IGNORECASE | re.DOTALL)


def _respond(command: str) -> re.Pattern:
    return re.compile(rf"^(?:{command})$", re.IGNORECASE)


@dataclass(frozen=True)
class Intent:
    name: str
    pattern: re.Pattern
    handler: str           # CommandRouter method name
    respond: bool = False  # only match text addressed to the bot


INTENTS: List[Intent] = [
    Intent("create", _hear(r"!(?:junkyard|brawl)"), "create_game"),
    Intent("create", _respond(r"junkyard|brawl"), "create_game", respond=True),
    Intent("join", _hear(abbrev("join", 2)), "join"),
    Intent("add-bot", _hear(r"add-?bot"), "add_bot"),
    Intent("start", _hear("start"), "start"),
    Intent("stop", _hear("stop"), "stop"),
    Intent("status", _hear(abbrev("status", 2)), "status"),
    Intent("pass", _hear(abbrev("pass", 2)), "pass_turn"),
    Intent("play", _hear(abbrev("play", 1)), "play"),
    Intent("discard", _hear(abbrev("discard", 1)), "discard"),
    Intent("remove", _hear(r"rm|" + abbrev("remove", 3)), "remove_player"),
    Intent("transfer", _hear(abbrev("transfer", 2)), "transfer"),
]


class CommandRouter:

    def __init__(
        self,
        registry: SessionRegistry,
        bridge: CallbackBridge,
        engine_factory: EngineFactory,
        scheduler: Scheduler,
        language: str = "en",
        bot_name: str = "brawlbot",
        advertise_delay: float = 0.5,
        intents: Optional[List[Intent]] = None,
    ):
        self.registry = registry
        self.bridge = bridge
        self.engine_factory = engine_factory
        self.scheduler = scheduler
        self.language = language
        self.advertise_delay = advertise_delay
        self.intents = intents if intents is not None else INTENTS
        self._addressed = re.compile(
            rf"^@?{re.escape(bot_name)}[:,]?\s+(?P<rest>.*)$", re.IGNORECASE | re.DOTALL
        )

    # ── Matching ──────────────────────────────────────────────────────────────

    def addressed_text(self, message: InboundMessage) -> Optional[str]:
        """Text with the bot's name stripped, or None if not addressed to the bot."""
        text = message.text.strip()
        m = self._addressed.match(text)
        if m:
            return m.group("rest").strip()
        # private messages are always addressed
        return text if message.room is None else None

    def match(self, message: InboundMessage):
        text = message.text.strip()
        addressed = self.addressed_text(message)
        for intent in self.intents:
            subject = addressed if intent.respond else text
            if subject is None:
                continue
            m = intent.pattern.match(subject)
            if m:
                return intent, (m.groupdict().get("args") or "").strip()
        return None, ""

    def handle(self, message: InboundMessage) -> Optional[str]:
        """Dispatch one chat message. Returns the matched intent name, if any."""
        intent, args = self.match(message)
        if intent is None:
            return None

        key = resolve_key(message)
        handler: Callable = getattr(self, intent.handler)
        try:
            handler(message, key, args)
        except PhraseNotFound:
            raise
        except Exception:
            logger.exception("[%s] Unhandled error in %s handler", key, intent.name)
            self.bridge.whisper_phrase(key, message.user.id, "core:error")
        return intent.name

    def _session(self, key: str, intent: str) -> Optional[Session]:
        session = self.registry.get(key)
        if session is None:
            logger.debug("[%s] %s ignored, no session", key, intent)
        return session

    def _add_and_announce_ready(self, key: str, session: Session, add: Callable[[], None]) -> None:
        before = len(session.players)
        add()
        after = len(session.players)
        if not session.started and before < 2 and after == 2:
            self.bridge.ready(key)

    # ── Handlers ──────────────────────────────────────────────────────────────

    def create_game(self, message: InboundMessage, key: str, args: str) -> None:
        user = message.user
        if self.registry.get(key) is not None:
            self.bridge.whisper_phrase(key, user.id, "game:already-started")
            return

        engine = self.engine_factory(
            user.id,
            user.name,
            self.bridge.announce_callback(key),
            self.bridge.whisper_callback(key),
            self.language,
        )
        session = self.registry.create(key, Session(key=key, engine=engine))
        logger.info(f"[{key}] Game created by {user.id} ({user.name})")
        self.scheduler.call_later(self.advertise_delay, self.bridge.advertise, key, session)

    def join(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "join")
        if session is None:
            return
        user = message.user
        self._add_and_announce_ready(
            key, session, lambda: session.engine.add_player(user.id, user.name)
        )

    def add_bot(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "add-bot")
        if session is None:
            return
        self._add_and_announce_ready(key, session, lambda: session.engine.add_bot(args or None))

    def start(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "start")
        if session is None:
            return
        session.engine.start()

    def stop(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "stop")
        if session is None:
            return
        if session.manager_id != message.user.id:
            self.bridge.whisper_phrase(key, message.user.id, "game:cannot-stop")
            return
        session.engine.stop()
        self.registry.clear(key)

    def status(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "status")
        if session is None:
            return
        session.engine.whisper_status(message.user.id)

    def pass_turn(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "pass")
        if session is None:
            return
        session.engine.pass_turn(message.user.id)

    def play(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "play")
        if session is None:
            return
        request = parse_request(args, session.players)
        session.engine.play(message.user.id, request.selections, request.target)

    def discard(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "discard")
        if session is None:
            return
        request = parse_request(args, session.players)
        session.engine.discard(message.user.id, request.selections, request.target)

    def remove_player(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "remove")
        if session is None:
            return
        actor_id = message.user.id
        # "remove me" is a literal token, not a player alias
        if "me" in args.lower().split():
            target = session.find_player(actor_id)
        else:
            target = parse_request(args, session.players).target

        is_self = target is not None and target.id == actor_id
        if not is_self and session.manager_id != actor_id:
            self.bridge.whisper_phrase(key, actor_id, "game:cannot-remove")
            return
        if target is None:
            logger.debug("[%s] remove ignored, no player matched %r", key, args)
            return
        session.engine.remove_player(target)

    def transfer(self, message: InboundMessage, key: str, args: str) -> None:
        session = self._session(key, "transfer")
        if session is None:
            return
        if session.manager_id != message.user.id:
            self.bridge.whisper_phrase(key, message.user.id, "game:cannot-transfer")
            return
        request = parse_request(args, session.players)
        session.engine.transfer_management(request.target)
