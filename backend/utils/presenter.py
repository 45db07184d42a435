"""
Text presentation per chat transport.

Engines render card lists and player names through a Presenter chosen once at
startup (settings.presenter). The command layer only ever sees the finished text.
"""
from typing import Dict, Sequence, Type

IRC_BOLD = "\x02"
IRC_COLOR = "\x03"
IRC_RESET = "\x0f"


class Presenter:
    name = "plain"

    def card(self, index: int, card: str) -> str:
        return f"{index}) {card}"

    def player(self, name: str) -> str:
        return name

    def cards(self, cards: Sequence[str]) -> str:
        if not cards:
            return "(no cards)"
        return " ".join(self.card(i, c) for i, c in enumerate(cards, start=1))


class IrcPresenter(Presenter):
    """mIRC colour codes: card numbers in bold, card names in orange."""
    name = "irc"

    def card(self, index: int, card: str) -> str:
        return f"{IRC_BOLD}{index}){IRC_BOLD} {IRC_COLOR}07{card}{IRC_RESET}"

    def player(self, name: str) -> str:
        return f"{IRC_BOLD}{name}{IRC_BOLD}"


class SlackPresenter(Presenter):
    """Slack markdown and emoji."""
    name = "slack"

    def card(self, index: int, card: str) -> str:
        return f":black_joker: *{index}* {card}"

    def player(self, name: str) -> str:
        return f"*{name}*"

    def cards(self, cards: Sequence[str]) -> str:
        if not cards:
            return "_(no cards)_"
        return "\n".join(self.card(i, c) for i, c in enumerate(cards, start=1))


PRESENTERS: Dict[str, Type[Presenter]] = {
    p.name: p for p in (Presenter, IrcPresenter, SlackPresenter)
}


def get_presenter(name: str) -> Presenter:
    try:
        return PRESENTERS[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown presenter {name!r}; expected one of {sorted(PRESENTERS)}"
        ) from None
