from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from .interfaces import AnnouncementSink, ChatServer
from .models import Health

logger = logging.getLogger(__name__)

BAR_CHAR = "="
LINE_BREAK = "<br>"
# Blank lines pushing the middle print below the crosshair
MIDDLE_PRINT_PADDING = LINE_BREAK * 4


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def filled_length(health: Health, bar_size: int) -> int:
    """Number of filled bar cells for a reading.

    Negative health is clamped to zero. The high end is left uncapped, so an
    overhealed boss can fill more than ``bar_size`` cells.
    """
    current, maximum = health
    if maximum == 0:
        return 0
    return _round_half_up(max(0.0, current) / maximum * bar_size)


def render_header(team_name: str, boss_name: str) -> str:
    return f'<color="c00"><b>{team_name} Health</></> <color="900">({boss_name})</>'


def render_bar(health: Health, bar_size: int, separator: str = " ") -> str:
    """Render the bar followed by the ``current/max`` reading."""
    current, maximum = health
    filled = filled_length(health, bar_size)
    empty = max(0, bar_size - filled)
    return (
        f'<color="aaa">[<color="0a0">{BAR_CHAR * filled}</>'
        f'<color="a00">{BAR_CHAR * empty}</>]</>'
        f"{separator}"
        f'<b>{math.ceil(max(0.0, current))}</><color="aaa">/</>{math.ceil(maximum)}'
    )


class HealthDisplay(AnnouncementSink):
    """Announcement sink that formats health readings for a chat server.

    Routing:
    - recipients with ``middle_print``: one centered multi-line message each
    - recipients without it: header and bar as two whispers each
    - no recipients: header and bar broadcast once
    """

    def __init__(self, chat: ChatServer, bar_size: int = 20, middle_print: bool = False) -> None:
        self.chat = chat
        self.bar_size = bar_size
        self.middle_print = middle_print

    def show_health(
        self,
        team_name: str,
        boss_name: str,
        health: Health,
        recipients: Optional[Sequence[str]] = None,
    ) -> None:
        header = render_header(team_name, boss_name)
        bar = render_bar(health, self.bar_size, LINE_BREAK if self.middle_print else " ")

        if recipients is None:
            logger.debug("Broadcasting %s health", team_name)
            self.chat.broadcast(header)
            self.chat.broadcast(bar)
            return

        logger.debug("Sending %s health to %d players", team_name, len(recipients))
        for player in recipients:
            if self.middle_print:
                self.chat.middle_print(player, MIDDLE_PRINT_PADDING + header + LINE_BREAK + bar)
            else:
                self.chat.whisper(player, header)
                self.chat.whisper(player, bar)
