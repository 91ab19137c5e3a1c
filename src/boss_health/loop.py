from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from .exceptions import BossHealthError
from .interfaces import MinigameDirectory
from .models import Minigame
from .tracker import BossTracker

logger = logging.getLogger(__name__)


class PollLoop:
    """Drives the boss tracker on a fixed period.

    Each poll runs to completion before the next one is scheduled, so polls
    never overlap. Records are stepped one at a time in directory order. A
    failure while stepping one record only skips that record for the current
    poll.
    """

    def __init__(self, tracker: BossTracker, directory: MinigameDirectory, *, interval_ms: int = 1000) -> None:
        self.tracker = tracker
        self.directory = directory
        self.interval_ms = interval_ms
        self._task: Optional[asyncio.Task] = None
        self._polls: int = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def polls(self) -> int:
        return self._polls

    async def fetch_minigames(self) -> List[Minigame]:
        """Read the directory. Any failure counts as no minigames at all."""
        try:
            raw = await self.directory.list_minigames()
        except Exception as exc:
            logger.warning("Could not list minigames; treating as none: %s", exc)
            return []
        if raw is None:
            return []
        try:
            entries = list(raw)
        except TypeError:
            logger.warning("Minigame list is not a sequence (%r); treating as none", raw)
            return []

        minigames: List[Minigame] = []
        for entry in entries:
            minigame = self._coerce(entry)
            if minigame is not None:
                minigames.append(minigame)
        return minigames

    @staticmethod
    def _coerce(entry: Any) -> Optional[Minigame]:
        if isinstance(entry, Minigame):
            return entry
        try:
            return Minigame.from_dict(entry)
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            logger.debug("Ignoring malformed minigame entry %r: %s", entry, exc)
            return None

    async def poll_once(self) -> int:
        """Run a single poll.

        Returns:
            Number of announcements made.
        """
        minigames = await self.fetch_minigames()
        work = self.tracker.reconcile(minigames)
        logger.debug("Poll: %d minigames, %d with a boss team", len(minigames), len(work))

        announced = 0
        for record, minigame in work:
            try:
                if await self.tracker.step(record, minigame):
                    announced += 1
            except BossHealthError as exc:
                logger.warning("Skipping minigame %s this poll: %s", record.ruleset_id, exc)
            except Exception as exc:
                logger.exception("Unexpected error tracking minigame %s: %s", record.ruleset_id, exc)
        self._polls += 1
        return announced

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        period = self.interval_ms / 1000.0
        while True:
            started = loop.time()
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Poll failed")
            remaining = period - (loop.time() - started)
            await asyncio.sleep(max(0.0, remaining))

    def start(self) -> None:
        """Start polling in the running event loop.

        Safe to call multiple times; subsequent calls are no-ops.
        """
        if self.running:
            logger.debug("PollLoop.start() called while already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Boss health polling started (interval=%sms)", self.interval_ms)

    async def stop(self) -> None:
        """Stop polling and forget all tracked minigames."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Boss health polling stopped after %d polls", self._polls)
        self.tracker.clear()
