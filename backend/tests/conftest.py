"""
Shared fixtures: a recording fake engine, a recording transport and a manual
scheduler, wired into a real registry / queue / bridge / router.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional, Tuple

import pytest

from agents.callback_bridge import CallbackBridge
from agents.command_router import CommandRouter
from config import settings
from models.chat import ChatUser, InboundMessage
from models.game import Player
from services.outbound_queue import OutboundQueue
from services.phrases import PhraseBook
from services.session_registry import SessionRegistry
from utils.scheduler import ScheduledTask


class FakeEngine:
    """Records every command; keeps just enough roster state for the router."""

    def __init__(self, manager_id, manager_name, announce, whisper, language="en"):
        self.announce = announce
        self.whisper = whisper
        self.language = language
        self.manager: Optional[Player] = Player(id=manager_id, name=manager_name)
        self.players: List[Player] = [self.manager]
        self.started = False
        self.calls: List[Tuple[Any, ...]] = []

    def add_player(self, player_id, name):
        self.calls.append(("add_player", player_id, name))
        if not any(p.id == player_id for p in self.players):
            self.players.append(Player(id=player_id, name=name))

    def add_bot(self, name=None):
        self.calls.append(("add_bot", name))
        name = name or "Clank"
        self.players.append(Player(id=f"bot-{name.lower()}", name=name, bot=True))

    def start(self):
        self.calls.append(("start",))
        self.started = True

    def stop(self):
        self.calls.append(("stop",))
        self.announce("game:stopped", "The game has been stopped.", None)

    def pass_turn(self, player_id):
        self.calls.append(("pass_turn", player_id))

    def play(self, player_id, selections, target=None):
        self.calls.append(("play", player_id, list(selections), target.id if target else None))

    def discard(self, player_id, selections, target=None):
        self.calls.append(("discard", player_id, list(selections), target.id if target else None))

    def remove_player(self, player):
        self.calls.append(("remove_player", player.id))
        self.players = [p for p in self.players if p.id != player.id]

    def transfer_management(self, target):
        self.calls.append(("transfer_management", target.id if target else None))
        if target is not None:
            self.manager = target

    def whisper_status(self, player_id):
        self.calls.append(("whisper_status", player_id))


class EngineFactory:
    """Callable engine factory that remembers what it built."""

    def __init__(self):
        self.built: List[FakeEngine] = []

    def __call__(self, *args):
        engine = FakeEngine(*args)
        self.built.append(engine)
        return engine


class ManualScheduler:
    """Scheduler whose callbacks only fire when the test says so."""

    def __init__(self):
        self.pending: List[Tuple[float, Callable, tuple, ScheduledTask]] = []

    def call_later(self, delay, fn, *args):
        task = ScheduledTask()
        self.pending.append((delay, fn, args, task))
        return task

    def run_all(self):
        pending, self.pending = self.pending, []
        for _, fn, args, task in pending:
            if not task.cancelled:
                fn(*args)


class RecordingTransport:
    def __init__(self, fail_on: Optional[str] = None):
        self.sent: List[Tuple[str, str]] = []
        self.times: List[float] = []
        self.fail_on = fail_on

    async def send(self, channel, text):
        if self.fail_on is not None and self.fail_on in text:
            raise ConnectionError("transport down")
        self.sent.append((channel, text))
        self.times.append(asyncio.get_running_loop().time())


def msg(user_id: str, text: str, room: Optional[str] = "room-1", name: Optional[str] = None) -> InboundMessage:
    return InboundMessage(user=ChatUser(id=user_id, name=name or user_id.capitalize()), room=room, text=text)


@pytest.fixture
def phrases():
    return PhraseBook.load(settings.phrases_path, "en")


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def queue(transport):
    return OutboundQueue(transport, interval=0.01)


@pytest.fixture
def bridge(registry, queue, phrases):
    return CallbackBridge(registry, queue, phrases)


@pytest.fixture
def engine_factory():
    return EngineFactory()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def router(registry, bridge, engine_factory, scheduler):
    return CommandRouter(
        registry,
        bridge,
        engine_factory,
        scheduler,
        bot_name="brawlbot",
        advertise_delay=0.5,
    )


def queued(queue: OutboundQueue) -> List[Tuple[str, str]]:
    return [(m.channel, m.text) for m in queue.pending()]
