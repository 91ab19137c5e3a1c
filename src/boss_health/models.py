from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

Health = Tuple[float, float]


@dataclass(frozen=True)
class Member:
    """A player as reported by the minigame directory.

    Team rosters carry the controller id; the minigame-wide participant list
    only needs a name.
    """

    name: str
    controller_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Member":
        controller = data.get("controller", data.get("controller_id"))
        return cls(name=str(data["name"]), controller_id=None if controller is None else str(controller))


@dataclass(frozen=True)
class Team:
    name: str
    members: List[Member] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Team":
        return cls(
            name=str(data["name"]),
            members=[Member.from_dict(m) for m in data.get("members") or []],
        )


@dataclass(frozen=True)
class Minigame:
    """Snapshot of one running minigame.

    Attributes:
        ruleset_id: Identifier of the minigame instance, stable for its lifetime.
        name: Display name of the minigame.
        teams: Teams in directory order.
        members: Every participant, regardless of team.
    """

    ruleset_id: str
    name: str = ""
    teams: List[Team] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Minigame":
        """Build a minigame from the directory's dict shape.

        Raises KeyError/TypeError on malformed input; callers decide whether
        to skip the entry.
        """
        ruleset = data.get("ruleset", data.get("ruleset_id"))
        if ruleset is None:
            raise KeyError("ruleset")
        return cls(
            ruleset_id=str(ruleset),
            name=str(data.get("name", "")),
            teams=[Team.from_dict(t) for t in data.get("teams") or []],
            members=[Member.from_dict(m) for m in data.get("members") or []],
        )


@dataclass
class BossState:
    """Who the boss currently is. Identity fields move together."""

    name: Optional[str] = None
    pawn_id: Optional[str] = None
    controller_id: Optional[str] = None
    health: Optional[Health] = None

    @property
    def bound(self) -> bool:
        return self.pawn_id is not None

    def bind(self, name: str, pawn_id: str, controller_id: str) -> None:
        self.name = name
        self.pawn_id = pawn_id
        self.controller_id = controller_id
        self.health = None

    def clear(self) -> None:
        self.name = None
        self.pawn_id = None
        self.controller_id = None
        self.health = None


@dataclass
class AnnounceState:
    last_announced_at_ms: float = 0
    last_health_fraction: float = 0.0

    def record(self, now_ms: float, fraction: float) -> None:
        # Both values only ever change together, when an announcement fires.
        self.last_announced_at_ms = now_ms
        self.last_health_fraction = fraction


@dataclass
class TrackedMinigame:
    """Tracking record for one minigame that has a boss team.

    ``boss_team`` is the team recognized when the record was created and is
    not re-resolved for the lifetime of the record.
    """

    ruleset_id: str
    boss_team: Team
    boss: BossState = field(default_factory=BossState)
    announce: AnnounceState = field(default_factory=AnnounceState)
