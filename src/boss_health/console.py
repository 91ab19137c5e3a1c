"""Request/response over the game server's text console.

Commands are written as single lines; answers are picked out of the server
log by regular expression. A query registers its watcher before writing the
command, then waits for a matching line or times out.
"""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Callable, List, Optional, Pattern, Tuple, Union

from .exceptions import ConsoleTimeout, SamplingError
from .interfaces import EntityResolver, HealthSampler
from .models import Health

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 0.1

_Watcher = Tuple[Pattern[str], "asyncio.Future[re.Match[str]]"]


class ConsoleLink:
    """Correlates console commands with the log lines that answer them.

    The host passes every log line it receives to ``feed``; ``write_line`` is
    how commands reach the server.
    """

    def __init__(self, write_line: Callable[[str], None]) -> None:
        self._write_line = write_line
        self._watchers: List[_Watcher] = []

    @property
    def pending(self) -> int:
        return len(self._watchers)

    def writeln(self, line: str) -> None:
        logger.debug("console << %s", line)
        self._write_line(line)

    def feed(self, line: str) -> int:
        """Offer a log line to the waiting watchers.

        Returns:
            How many watchers the line resolved.
        """
        line = line.rstrip("\r\n")
        resolved = 0
        for watcher in list(self._watchers):
            pattern, future = watcher
            if future.done():
                self._watchers.remove(watcher)
                continue
            match = pattern.search(line)
            if match is not None:
                future.set_result(match)
                self._watchers.remove(watcher)
                resolved += 1
        return resolved

    async def query(
        self,
        command: Optional[str],
        pattern: Union[str, Pattern[str]],
        timeout: float = DEFAULT_TIMEOUT,
    ) -> "re.Match[str]":
        """Write ``command`` (if any) and wait for a log line matching ``pattern``.

        Raises:
            ConsoleTimeout: Nothing matched within ``timeout`` seconds.
        """
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        future: "asyncio.Future[re.Match[str]]" = asyncio.get_running_loop().create_future()
        watcher: _Watcher = (compiled, future)
        self._watchers.append(watcher)
        try:
            if command is not None:
                self.writeln(command)
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            raise ConsoleTimeout(f"no match for {compiled.pattern!r} within {timeout}s") from None
        finally:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

    async def watch(self, pattern: Union[str, Pattern[str]], timeout: float = DEFAULT_TIMEOUT) -> "re.Match[str]":
        return await self.query(None, pattern, timeout)


def pawn_pattern(controller_id: str) -> Pattern[str]:
    return re.compile(
        r"(?P<index>\d+)\) BP_PlayerController_C .+?PersistentLevel\."
        + re.escape(controller_id)
        + r"\.Pawn = (?:None|BP_FigureV2_C'.+?:PersistentLevel\.(?P<pawn>BP_FigureV2_C_\d+)')?$"
    )


def figure_property_pattern(pawn_id: str, prop: str) -> Pattern[str]:
    return re.compile(
        r"(?P<index>\d+)\) BP_FigureV2_C .+?PersistentLevel\."
        + re.escape(pawn_id)
        + r"\."
        + re.escape(prop)
        + r" = (?P<value>[\d.-]+)$"
    )


class ConsoleEntityResolver(EntityResolver):
    def __init__(self, link: ConsoleLink, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.link = link
        self.timeout = timeout

    async def resolve_pawn(self, controller_id: str) -> Optional[str]:
        try:
            match = await self.link.query(
                f"GetAll BP_PlayerController_C Pawn Name={controller_id}",
                pawn_pattern(controller_id),
                self.timeout,
            )
        except ConsoleTimeout:
            logger.debug("Pawn lookup for %s timed out", controller_id)
            return None
        return match.group("pawn")


class ConsoleHealthSampler(HealthSampler):
    """Reads ``Damage`` and ``DamageLimit`` of a figure; health is the difference."""

    def __init__(self, link: ConsoleLink, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.link = link
        self.timeout = timeout

    async def _read(self, pawn_id: str, prop: str) -> float:
        try:
            match = await self.link.query(
                f"GetAll BP_FigureV2_C {prop} Name={pawn_id}",
                figure_property_pattern(pawn_id, prop),
                self.timeout,
            )
        except ConsoleTimeout as exc:
            raise SamplingError(f"{prop} of {pawn_id}: {exc}") from exc
        try:
            return float(match.group("value"))
        except ValueError as exc:
            raise SamplingError(f"{prop} of {pawn_id} is not a number: {match.group('value')!r}") from exc

    async def sample_health(self, pawn_id: str) -> Health:
        damage = await self._read(pawn_id, "Damage")
        limit = await self._read(pawn_id, "DamageLimit")
        return (limit - damage, limit)
