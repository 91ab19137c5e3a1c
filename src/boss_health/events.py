from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

# Event names emitted by the boss tracker.
EVT_MINIGAME_TRACKED = "minigame.tracked"  # payload: ruleset_id: str, team_name: str
EVT_MINIGAME_DROPPED = "minigame.dropped"  # payload: ruleset_id: str
EVT_BOSS_BOUND = "boss.bound"  # payload: ruleset_id: str, name: str, pawn_id: str
EVT_BOSS_LOST = "boss.lost"  # payload: ruleset_id: str, name: str | None
EVT_BOSS_ANNOUNCED = "boss.announced"  # payload: ruleset_id, name, health, fraction


class EventBus:
    """Synchronous publish/subscribe bus for tracker notifications.

    Handlers run in subscription order on the caller's thread. A failing
    handler is logged and does not affect the others or the emitter.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[Callable[..., None]]] = {}

    def subscribe(self, event: str, handler: Callable[..., None]) -> None:
        """Register ``handler`` for ``event``; it receives the payload as keyword arguments."""
        handlers = self._handlers.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event: str, handler: Callable[..., None]) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, **payload: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(**payload)
            except Exception:
                logger.exception("Handler %s failed for '%s' (payload=%s)", handler, event, payload)
