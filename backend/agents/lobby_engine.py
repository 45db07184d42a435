"""
Lobby Engine — roster-only game engine.

Keeps the roster, the manager and the started flag, and reports everything
through the announce/whisper callbacks like a full card engine would. It has
no card rules: plays and discards are echoed to the table, hands stay empty.
Used when no card engine is configured and by the integration tests.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from agents.engine import AnnounceCallback, WhisperCallback
from config import settings
from models.game import Player
from utils.presenter import Presenter, get_presenter

logger = logging.getLogger(__name__)


class LobbyEngine:

    MIN_PLAYERS = 2
    MAX_PLAYERS = 8
    BOT_NAMES = ("Rusty", "Sprocket", "Gasket", "Crank", "Piston", "Rivet", "Spanner")

    def __init__(
        self,
        manager_id: str,
        manager_name: str,
        announce: AnnounceCallback,
        whisper: WhisperCallback,
        language: str = "en",
        presenter: Optional[Presenter] = None,
    ):
        self._announce = announce
        self._whisper = whisper
        self.language = language
        self.presenter = presenter or get_presenter(settings.presenter)
        self.started = False
        self._bot_count = 0

        self.manager: Optional[Player] = Player(id=manager_id, name=manager_name)
        self.players: List[Player] = [self.manager]

    # ── Notification helpers ──────────────────────────────────────────────────

    def _tell(self, player_id: str, code: str, text: str) -> None:
        player = self.get_player(player_id)
        meta: Dict[str, Any] = {"bot": bool(player and player.bot)}
        self._whisper(player_id, code, text, meta)

    def get_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def _require_turn_player(self, player_id: str) -> Optional[Player]:
        player = self.get_player(player_id)
        if player is None:
            self._tell(player_id, "player:not-playing", "You are not in this game.")
            return None
        if not self.started:
            self._tell(player_id, "game:not-started", "The game has not started yet.")
            return None
        return player

    # ── Roster ────────────────────────────────────────────────────────────────

    def add_player(self, player_id: str, name: str) -> None:
        if self.get_player(player_id):
            self._tell(player_id, "player:already-joined", "You are already in this game.")
            return
        if self.started:
            self._tell(player_id, "game:already-started", "The game is already under way.")
            return
        if len(self.players) >= self.MAX_PLAYERS:
            self._tell(player_id, "game:full", "The game is full.")
            return
        self.players.append(Player(id=player_id, name=name))
        self._announce("player:joined", f"{self.presenter.player(name)} joined the game.", None)

    def add_bot(self, name: Optional[str] = None) -> None:
        if self.started or len(self.players) >= self.MAX_PLAYERS:
            logger.debug("Bot not added (started=%s, players=%d)", self.started, len(self.players))
            return
        name = name or self.BOT_NAMES[self._bot_count % len(self.BOT_NAMES)]
        self._bot_count += 1
        # ids stay free of digits so "play 1" never resolves to a bot
        bot_id = "bot-" + "-".join(name.lower().split())
        while self.get_player(bot_id):
            bot_id += "-x"
        bot = Player(id=bot_id, name=name, bot=True)
        self.players.append(bot)
        self._announce("player:joined", f"{self.presenter.player(bot.name)} joined the game.", None)

    def remove_player(self, player: Union[Player, str]) -> None:
        player_id = player.id if isinstance(player, Player) else player
        target = self.get_player(player_id)
        if target is None:
            return
        self.players.remove(target)
        self._announce("player:removed", f"{self.presenter.player(target.name)} left the game.", None)

        if not self.players:
            self.manager = None
            self._announce("game:no-survivors", "Everyone has left. The game is over.", None)
            return
        if self.manager and self.manager.id == target.id:
            self.manager = self.players[0]
            self._announce(
                "game:manager-changed",
                f"{self.presenter.player(self.manager.name)} now manages the game.",
                None,
            )
        if self.started and len(self.players) == 1:
            winner = self.players[0]
            self._announce("game:winner", f"{self.presenter.player(winner.name)} wins!", None)

    def transfer_management(self, target: Optional[Player]) -> None:
        member = self.get_player(target.id) if target else None
        if member is None:
            if self.manager:
                self._tell(self.manager.id, "game:invalid-transfer", "That player is not in this game.")
            return
        self.manager = member
        self._announce(
            "game:manager-changed",
            f"{self.presenter.player(member.name)} now manages the game.",
            None,
        )

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        if self.started:
            if self.manager:
                self._tell(self.manager.id, "game:already-started", "The game is already under way.")
            return
        if len(self.players) < self.MIN_PLAYERS:
            self._announce("game:not-enough-players", "At least two players are needed to start.", None)
            return
        self.started = True
        names = ", ".join(self.presenter.player(p.name) for p in self.players)
        self._announce("game:started", f"The game has started! Players: {names}", None)
        for p in self.players:
            self.whisper_status(p.id)

    def stop(self) -> None:
        self.started = False
        self._announce("game:stopped", "The game has been stopped.", None)

    # ── Turns ─────────────────────────────────────────────────────────────────

    def pass_turn(self, player_id: str) -> None:
        player = self._require_turn_player(player_id)
        if player:
            self._announce("player:pass", f"{self.presenter.player(player.name)} passes.", None)

    def play(self, player_id: str, selections: Sequence[int], target: Optional[Player] = None) -> None:
        self._card_action("play", "plays", player_id, selections, target)

    def discard(self, player_id: str, selections: Sequence[int], target: Optional[Player] = None) -> None:
        self._card_action("discard", "discards", player_id, selections, target)

    def _card_action(
        self,
        action: str,
        verb: str,
        player_id: str,
        selections: Sequence[int],
        target: Optional[Player],
    ) -> None:
        player = self._require_turn_player(player_id)
        if player is None:
            return
        if not selections:
            self._tell(player_id, f"player:invalid-{action}", f"Say which cards to {action}, e.g. `{action} 2 1`.")
            return
        cards = ", ".join(str(i) for i in selections)
        text = f"{self.presenter.player(player.name)} {verb} card(s) {cards}"
        if target is not None:
            text += f" at {self.presenter.player(target.name)}"
        self._announce(f"player:{action}", text + ".", None)

    def whisper_status(self, player_id: str) -> None:
        player = self.get_player(player_id)
        if player is None:
            self._tell(player_id, "player:not-playing", "You are not in this game.")
            return
        names = ", ".join(self.presenter.player(p.name) for p in self.players)
        manager = self.presenter.player(self.manager.name) if self.manager else "nobody"
        state = "in progress" if self.started else "waiting for players"
        self._tell(
            player_id,
            "player:status",
            f"Game {state}. Players: {names}. Manager: {manager}. "
            f"Your hand: {self.presenter.cards(player.hand)}",
        )
