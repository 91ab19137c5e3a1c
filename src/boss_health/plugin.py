from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from .config import BossHealthConfig
from .console import ConsoleEntityResolver, ConsoleHealthSampler, ConsoleLink
from .display import HealthDisplay
from .events import EventBus
from .interfaces import ChatServer, EntityResolver, HealthSampler, MinigameDirectory
from .loop import PollLoop
from .tracker import BossTracker

logger = logging.getLogger(__name__)


class BossHealthPlugin:
    """Wires the tracker, display and poll loop behind init/stop hooks.

    The host provides the minigame directory and chat server; pawn and health
    lookups can come from any resolver/sampler, typically the console-backed
    ones built by ``from_console``.
    """

    def __init__(
        self,
        config: BossHealthConfig,
        directory: MinigameDirectory,
        resolver: EntityResolver,
        sampler: HealthSampler,
        chat: ChatServer,
        *,
        bus: Optional[EventBus] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config
        self.bus = bus or EventBus()
        self.display = HealthDisplay(chat, bar_size=config.health_bar_size, middle_print=config.middle_print)
        self.tracker = BossTracker(config, resolver, sampler, self.display, bus=self.bus, clock=clock)
        self.loop = PollLoop(self.tracker, directory, interval_ms=config.interval_ms)

    @classmethod
    def from_console(
        cls,
        config: BossHealthConfig,
        link: ConsoleLink,
        directory: MinigameDirectory,
        chat: ChatServer,
        **kwargs,
    ) -> "BossHealthPlugin":
        timeout = config.query_timeout_ms / 1000.0
        return cls(
            config,
            directory,
            ConsoleEntityResolver(link, timeout=timeout),
            ConsoleHealthSampler(link, timeout=timeout),
            chat,
            **kwargs,
        )

    async def init(self) -> Dict:
        """Start polling. Must be awaited inside a running event loop."""
        logger.info("Starting boss health announcer for teams %s", list(self.config.boss_team_names))
        self.loop.start()
        return {}

    async def stop(self) -> None:
        await self.loop.stop()
