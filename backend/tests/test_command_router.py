"""
Tests for command matching and the command handlers.
"""

from __future__ import annotations

import re

import pytest

from agents.command_router import abbrev
from conftest import msg, queued


def _create(router, user="alice", room="room-1"):
    router.handle(msg(user, "!junkyard", room=room))
    return router.registry.get(room if room else user)


class TestAbbrev:

    def test_prefixes(self):
        pattern = re.compile(rf"^(?:{abbrev('pass', 2)})$")
        assert pattern.match("pa")
        assert pattern.match("pas")
        assert pattern.match("pass")
        assert not pattern.match("p")
        assert not pattern.match("passs")


class TestMatching:
    """Intent table precedence and grammar."""

    @pytest.mark.parametrize("text,intent", [
        ("!junkyard", "create"),
        ("!BRAWL", "create"),
        ("jo", "join"),
        ("join", "join"),
        ("add-bot", "add-bot"),
        ("addbot Rusty", "add-bot"),
        ("start", "start"),
        ("stop", "stop"),
        ("st", "status"),
        ("sta", "status"),
        ("status", "status"),
        ("pa", "pass"),
        ("pass", "pass"),
        ("p 1 2", "play"),
        ("play 3 bob", "play"),
        ("d 1", "discard"),
        ("disc 2", "discard"),
        ("rm bob", "remove"),
        ("rem bob", "remove"),
        ("remove me", "remove"),
        ("tr bob", "transfer"),
        ("transfer bob", "transfer"),
        ("PLAY 1", "play"),
    ])
    def test_intents(self, router, text, intent):
        matched, _ = router.match(msg("alice", text))
        assert matched is not None
        assert matched.name == intent

    @pytest.mark.parametrize("text", [
        "hello everyone",
        "joining later",
        "players?",
        "junkyard",
        "r bob",
        "",
    ])
    def test_unmatched(self, router, text):
        matched, _ = router.match(msg("alice", text))
        assert matched is None
        assert router.handle(msg("alice", text)) is None

    def test_respond_needs_addressing_in_rooms(self, router):
        assert router.match(msg("alice", "brawlbot junkyard"))[0].name == "create"
        assert router.match(msg("alice", "@BrawlBot: brawl"))[0].name == "create"

    def test_private_messages_are_addressed(self, router):
        assert router.match(msg("alice", "junkyard", room=None))[0].name == "create"

    def test_private_messages_may_name_the_bot(self, router, registry):
        assert router.handle(msg("alice", "brawlbot junkyard", room=None)) == "create"
        assert "alice" in registry

    def test_arguments_extracted(self, router):
        _, args = router.match(msg("alice", "play  3 2   bob "))
        assert args == "3 2   bob"


class TestCreateGame:

    def test_creates_session_and_schedules_advert(self, router, registry, engine_factory, scheduler, queue, phrases):
        session = _create(router)

        assert session is not None
        assert session.manager_id == "alice"
        assert len(engine_factory.built) == 1
        assert queued(queue) == []

        scheduler.run_all()
        assert queued(queue) == [("room-1", phrases.get("game:advertise"))]

    def test_advert_delay(self, router, scheduler):
        _create(router)
        assert scheduler.pending[0][0] == 0.5

    def test_private_game_keyed_by_user(self, router, registry):
        router.handle(msg("alice", "junkyard", room=None))
        assert registry.get("alice") is not None

    def test_second_create_is_rejected_privately(self, router, registry, engine_factory, queue, phrases):
        session = _create(router)
        router.handle(msg("bob", "join"))
        state_before = (session.manager_id, [p.id for p in session.players], session.started)

        router.handle(msg("bob", "!junkyard"))

        assert len(engine_factory.built) == 1
        assert registry.get("room-1") is session
        assert (session.manager_id, [p.id for p in session.players], session.started) == state_before
        assert queued(queue)[-1] == ("bob", phrases.get("game:already-started"))

    def test_advert_skipped_if_game_ended(self, router, registry, scheduler, queue):
        _create(router)
        registry.clear("room-1")
        scheduler.run_all()
        assert queued(queue) == []


class TestJoin:

    def test_ready_fires_once_on_second_player(self, router, queue, phrases):
        _create(router)
        ready = ("room-1", phrases.get("game:ready"))

        router.handle(msg("bob", "join"))
        assert queued(queue).count(ready) == 1

        router.handle(msg("carol", "jo"))
        assert queued(queue).count(ready) == 1

    def test_rejoin_does_not_refire(self, router, queue, phrases):
        _create(router)
        router.handle(msg("bob", "join"))
        router.handle(msg("bob", "join"))
        assert queued(queue).count(("room-1", phrases.get("game:ready"))) == 1

    def test_no_ready_after_start(self, router, registry, queue, phrases):
        session = _create(router)
        session.engine.started = True
        router.handle(msg("bob", "join"))
        assert ("room-1", phrases.get("game:ready")) not in queued(queue)

    def test_bot_counts_toward_ready(self, router, queue, phrases):
        session = _create(router)
        router.handle(msg("alice", "add-bot Rusty"))
        assert session.players[-1].name == "Rusty"
        assert ("room-1", phrases.get("game:ready")) in queued(queue)

    def test_join_without_session_is_ignored(self, router, queue):
        assert router.handle(msg("bob", "join")) == "join"
        assert queued(queue) == []

    def test_join_room_game_from_private_channel_uses_user_key(self, router, registry):
        _create(router)
        router.handle(msg("bob", "join", room=None))
        assert [p.id for p in registry.get("room-1").players] == ["alice"]


class TestPlayAndDiscard:

    def test_play_passes_selections_and_target(self, router):
        session = _create(router)
        router.handle(msg("bob", "join"))
        router.handle(msg("alice", "play 3 bob 1"))
        assert session.engine.calls[-1] == ("play", "alice", [3, 1], "bob")

    def test_command_word_never_a_target(self, router):
        session = _create(router)
        router.handle(msg("playa", "join", name="Playa"))
        router.handle(msg("alice", "play 2"))
        assert session.engine.calls[-1] == ("play", "alice", [2], None)

    def test_discard_without_arguments(self, router):
        session = _create(router)
        router.handle(msg("alice", "discard"))
        assert session.engine.calls[-1] == ("discard", "alice", [], None)

    def test_pass_status_start(self, router):
        session = _create(router)
        router.handle(msg("alice", "pass"))
        router.handle(msg("alice", "status"))
        router.handle(msg("alice", "start"))
        assert session.engine.calls[-3:] == [
            ("pass_turn", "alice"), ("whisper_status", "alice"), ("start",),
        ]


class TestAuthorization:

    def test_manager_removes_player(self, router):
        session = _create(router)
        router.handle(msg("bob", "join"))
        router.handle(msg("alice", "remove bob"))
        assert [p.id for p in session.players] == ["alice"]

    def test_non_manager_cannot_remove_others(self, router, queue, phrases):
        session = _create(router)
        router.handle(msg("bob", "join"))
        router.handle(msg("carol", "join"))
        before = len(queued(queue))

        router.handle(msg("bob", "rm carol"))

        assert [p.id for p in session.players] == ["alice", "bob", "carol"]
        assert queued(queue)[before:] == [("bob", phrases.get("game:cannot-remove"))]

    def test_player_removes_self(self, router):
        session = _create(router)
        router.handle(msg("bob", "join"))
        router.handle(msg("bob", "remove me"))
        assert [p.id for p in session.players] == ["alice"]

    def test_player_removes_self_by_name(self, router):
        session = _create(router)
        router.handle(msg("bob", "join"))
        router.handle(msg("bob", "remove bob"))
        assert [p.id for p in session.players] == ["alice"]

    def test_me_is_literal_not_alias(self, router):
        """'me' removes the actor even when another player's name contains it."""
        session = _create(router)
        router.handle(msg("jaime", "join", name="Jaime"))
        router.handle(msg("alice", "remove me"))
        assert [p.id for p in session.players] == ["jaime"]

    def test_non_manager_stop_is_denied(self, router, registry, queue, phrases):
        session = _create(router)
        router.handle(msg("bob", "join"))
        before = len(queued(queue))

        router.handle(msg("bob", "stop"))

        assert registry.get("room-1") is session
        assert ("stop",) not in session.engine.calls
        assert queued(queue)[before:] == [("bob", phrases.get("game:cannot-stop"))]

    def test_manager_stop_clears_session(self, router, registry, queue):
        session = _create(router)
        router.handle(msg("alice", "stop"))
        assert ("stop",) in session.engine.calls
        assert registry.get("room-1") is None
        assert queued(queue)[-1] == ("room-1", "The game has been stopped.")

    def test_non_manager_transfer_is_denied(self, router, queue, phrases):
        session = _create(router)
        router.handle(msg("bob", "join"))
        before = len(queued(queue))

        router.handle(msg("bob", "transfer bob"))

        assert session.manager_id == "alice"
        assert not any(c[0] == "transfer_management" for c in session.engine.calls)
        assert queued(queue)[before:] == [("bob", phrases.get("game:cannot-transfer"))]

    def test_manager_transfers(self, router):
        session = _create(router)
        router.handle(msg("bob", "join"))
        router.handle(msg("alice", "tr bob"))
        assert session.manager_id == "bob"


class TestLifecycle:

    def test_new_game_right_after_terminal_event(self, router, registry, engine_factory):
        session = _create(router)
        session.engine.announce("game:winner", "Alice wins!", None)

        router.handle(msg("bob", "!junkyard"))

        assert len(engine_factory.built) == 2
        assert registry.get("room-1").manager_id == "bob"

    def test_handler_error_is_contained(self, router, registry, queue, phrases):
        session = _create(router)

        def explode(*args):
            raise RuntimeError("engine bug")

        session.engine.pass_turn = explode
        assert router.handle(msg("alice", "pass")) == "pass"
        assert queued(queue)[-1] == ("alice", phrases.get("core:error"))

        router.handle(msg("alice", "status", room="room-2"))
        _create(router, user="bob", room="room-2")
        assert registry.get("room-2") is not None
