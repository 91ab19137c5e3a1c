from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Union

from .models import Health, Minigame


class EntityResolver(ABC):
    """Looks up the pawn a controller currently possesses."""

    @abstractmethod
    async def resolve_pawn(self, controller_id: str) -> Optional[str]:
        """Return the pawn id for a controller.

        Returns:
            The pawn id, or None when the controller has no pawn or the
            query timed out.
        """
        raise NotImplementedError


class HealthSampler(ABC):
    """Reads current and maximum health of a pawn."""

    @abstractmethod
    async def sample_health(self, pawn_id: str) -> Health:
        """Return ``(current, max)`` for a pawn.

        Raises:
            SamplingError: The pawn could not be queried or the answer was unusable.
        """
        raise NotImplementedError


class MinigameDirectory(ABC):
    """Source of the currently running minigames."""

    @abstractmethod
    async def list_minigames(self) -> Optional[Sequence[Union[Minigame, Dict[str, Any]]]]:
        """Return running minigames, either as models or in the raw dict shape."""
        raise NotImplementedError


class AnnouncementSink(ABC):
    """Renders a boss health reading to players."""

    @abstractmethod
    def show_health(
        self,
        team_name: str,
        boss_name: str,
        health: Health,
        recipients: Optional[Sequence[str]] = None,
    ) -> None:
        """Show a health reading.

        Args:
            team_name: Name of the boss team, used in the header.
            boss_name: Display name of the boss player.
            health: ``(current, max)``.
            recipients: Player names to message individually. None broadcasts.
        """
        raise NotImplementedError


class ChatServer(ABC):
    """Display primitives offered by the game server."""

    @abstractmethod
    def broadcast(self, message: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def whisper(self, target: str, message: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def middle_print(self, target: str, message: str) -> None:
        raise NotImplementedError
