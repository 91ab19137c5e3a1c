from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .announce import health_fraction, should_announce
from .config import BossHealthConfig
from .events import (
    EVT_BOSS_ANNOUNCED,
    EVT_BOSS_BOUND,
    EVT_BOSS_LOST,
    EVT_MINIGAME_DROPPED,
    EVT_MINIGAME_TRACKED,
    EventBus,
)
from .interfaces import AnnouncementSink, EntityResolver, HealthSampler
from .models import Health, Minigame, Team, TrackedMinigame

logger = logging.getLogger(__name__)


def _epoch_ms() -> float:
    return time.time() * 1000


class BossTracker:
    """Per-minigame boss tracking state machine.

    Owns one ``TrackedMinigame`` per running minigame that has a boss team.
    Each poll the caller reconciles the records against the directory, then
    steps every record: make sure the boss pawn is still valid (or pick a new
    boss), sample its health, and announce when the throttling policy allows.
    """

    def __init__(
        self,
        config: BossHealthConfig,
        resolver: EntityResolver,
        sampler: HealthSampler,
        sink: AnnouncementSink,
        *,
        bus: Optional[EventBus] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config
        self.resolver = resolver
        self.sampler = sampler
        self.sink = sink
        self.bus = bus or EventBus()
        self._clock = clock or _epoch_ms
        self._boss_team_names: Set[str] = {n.strip().lower() for n in config.boss_team_names}
        self._records: List[TrackedMinigame] = []

    @property
    def tracked(self) -> List[TrackedMinigame]:
        return list(self._records)

    def get(self, ruleset_id: str) -> Optional[TrackedMinigame]:
        for record in self._records:
            if record.ruleset_id == ruleset_id:
                return record
        return None

    def clear(self) -> None:
        if self._records:
            logger.debug("Dropping %d tracked minigames", len(self._records))
        self._records.clear()

    # ------------------------ Reconciliation ------------------------
    def is_boss_team(self, team: Team) -> bool:
        return team.name.strip().lower() in self._boss_team_names

    def find_boss_team(self, minigame: Minigame) -> Optional[Team]:
        # First match wins when several teams qualify.
        for team in minigame.teams:
            if self.is_boss_team(team):
                return team
        return None

    def reconcile(self, minigames: Iterable[Minigame]) -> List[Tuple[TrackedMinigame, Minigame]]:
        """Bring the records in line with the running minigames.

        Returns:
            ``(record, minigame)`` pairs to step this poll, in minigame order.
        """
        candidates: List[Tuple[Minigame, Team]] = []
        for mg in minigames:
            boss_team = self.find_boss_team(mg)
            if boss_team is not None:
                candidates.append((mg, boss_team))
        # A minigame that is still running but lost its boss team is dropped too.
        live: Set[str] = {mg.ruleset_id for mg, _ in candidates}

        kept: List[TrackedMinigame] = []
        for record in self._records:
            if record.ruleset_id in live:
                kept.append(record)
            else:
                logger.info("Minigame %s is gone or has no boss team; no longer tracking it", record.ruleset_id)
                self.bus.emit(EVT_MINIGAME_DROPPED, ruleset_id=record.ruleset_id)
        self._records = kept

        by_ruleset: Dict[str, TrackedMinigame] = {r.ruleset_id: r for r in self._records}
        work: List[Tuple[TrackedMinigame, Minigame]] = []
        for mg, boss_team in candidates:
            record = by_ruleset.get(mg.ruleset_id)
            if record is None:
                record = TrackedMinigame(ruleset_id=mg.ruleset_id, boss_team=boss_team)
                self._records.append(record)
                by_ruleset[mg.ruleset_id] = record
                logger.info("Tracking boss team '%s' in minigame %s", boss_team.name, mg.ruleset_id)
                self.bus.emit(EVT_MINIGAME_TRACKED, ruleset_id=mg.ruleset_id, team_name=boss_team.name)
            work.append((record, mg))
        return work

    # ------------------------ Pawn resolution ------------------------
    async def resolve_boss(self, record: TrackedMinigame, boss_team: Team) -> bool:
        """Make sure the record points at a pawn that still exists.

        A bound boss whose controller now reports another pawn (or none) is
        cleared, then a new boss is picked from ``boss_team``'s current roster:
        the first member, in roster order, who has a pawn.

        Returns:
            True when a boss pawn is bound afterwards.
        """
        boss = record.boss
        if boss.bound:
            pawn = await self.resolver.resolve_pawn(boss.controller_id)
            if pawn is None or pawn != boss.pawn_id:
                logger.info(
                    "Boss %s in minigame %s lost pawn %s (now %s)",
                    boss.name,
                    record.ruleset_id,
                    boss.pawn_id,
                    pawn,
                )
                lost_name = boss.name
                boss.clear()
                self.bus.emit(EVT_BOSS_LOST, ruleset_id=record.ruleset_id, name=lost_name)

        if boss.bound:
            return True

        if not boss_team.members:
            logger.debug("Boss team '%s' in minigame %s is empty", boss_team.name, record.ruleset_id)
            return False

        for member in boss_team.members:
            if member.controller_id is None:
                continue
            pawn = await self.resolver.resolve_pawn(member.controller_id)
            if pawn is not None:
                boss.bind(member.name, pawn, member.controller_id)
                logger.info("Boss for minigame %s is %s (pawn %s)", record.ruleset_id, member.name, pawn)
                self.bus.emit(EVT_BOSS_BOUND, ruleset_id=record.ruleset_id, name=member.name, pawn_id=pawn)
                return True

        logger.debug("No member of '%s' in minigame %s has a pawn yet", boss_team.name, record.ruleset_id)
        return False

    # ------------------------ Sampling & announcing ------------------------
    async def sample_health(self, record: TrackedMinigame) -> Health:
        """Fetch and store the bound boss's health. SamplingError propagates."""
        current, maximum = await self.sampler.sample_health(record.boss.pawn_id)
        health: Health = (current, maximum)
        record.boss.health = health
        return health

    def should_announce(self, record: TrackedMinigame, health: Health, now_ms: float) -> bool:
        return should_announce(
            now_ms,
            record.announce,
            health,
            timeout_seconds=self.config.announce_timeout,
            health_change_fraction=self.config.announce_health_change,
            require_both=self.config.require_time_and_health_change,
        )

    async def step(self, record: TrackedMinigame, minigame: Minigame) -> bool:
        """Run one tracking step for a record.

        The roster is taken from this poll's view of the boss team; the team
        name shown to players is the one captured when the record was created.

        Returns:
            True if an announcement was made.
        """
        boss_team = self.find_boss_team(minigame) or record.boss_team
        if not await self.resolve_boss(record, boss_team):
            return False

        health = await self.sample_health(record)
        now = self._clock()
        if not self.should_announce(record, health, now):
            return False

        fraction = health_fraction(health)
        record.announce.record(now, fraction)
        logger.info(
            "Announcing %s health in minigame %s: %s/%s",
            record.boss.name,
            record.ruleset_id,
            health[0],
            health[1],
        )
        self.sink.show_health(
            record.boss_team.name,
            record.boss.name,
            health,
            [m.name for m in minigame.members],
        )
        self.bus.emit(
            EVT_BOSS_ANNOUNCED,
            ruleset_id=record.ruleset_id,
            name=record.boss.name,
            health=health,
            fraction=fraction,
        )
        return True
