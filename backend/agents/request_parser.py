"""
Request parser — free text to card selections and an optional target player.

    parse_request("3 bob 1", roster)  ->  selections=[3, 1], target=<Bob>

Pure function: no session state, identical inputs give identical outputs.
"""
import re
from typing import Iterable, List, Optional, Sequence

from models.game import ParsedRequest, Player

_NUMBER = re.compile(r"[0-9]+")


def _match_player(token: str, roster: Sequence[Player]) -> Optional[Player]:
    """First roster entry whose lowercased name or id equals or contains ``token``."""
    for player in roster:
        for value in (player.name.lower(), player.id.lower()):
            if token in value:
                return player
    return None


def parse_request(text: str, roster: Iterable[Player]) -> ParsedRequest:
    roster = list(roster)
    selections: List[int] = []
    target: Optional[Player] = None

    for token in (text or "").lower().split():
        player = _match_player(token, roster)
        if player is not None:
            # only the first matching token picks the target
            if target is None:
                target = player
            continue
        # card positions are 1-based
        if _NUMBER.fullmatch(token) and int(token) > 0:
            selections.append(int(token))

    return ParsedRequest(selections=selections, target=target)
