from __future__ import annotations

import logging

from .models import AnnounceState, Health

logger = logging.getLogger(__name__)


def health_fraction(health: Health) -> float:
    """Return ``current / max`` without clamping.

    Overkill gives a negative fraction and overheal one above 1. A zero
    maximum is treated as no health at all.
    """
    current, maximum = health
    if maximum == 0:
        return 0.0
    return current / maximum


def should_announce(
    now_ms: float,
    state: AnnounceState,
    health: Health,
    *,
    timeout_seconds: float,
    health_change_fraction: float,
    require_both: bool,
) -> bool:
    """Decide whether a fresh health sample is worth announcing.

    Two conditions are evaluated against the last announcement:
    - enough time has passed (``timeout_seconds``)
    - health moved by at least ``health_change_fraction`` of the maximum

    With ``require_both`` both must hold, otherwise either one is enough.
    A state that never announced has ``last_announced_at_ms == 0``, so the
    time condition is satisfied on the first sample.
    """
    fraction = health_fraction(health)
    timeout_passed = now_ms - state.last_announced_at_ms >= timeout_seconds * 1000
    health_changed = abs(state.last_health_fraction - fraction) >= health_change_fraction

    if require_both:
        decision = timeout_passed and health_changed
    else:
        decision = timeout_passed or health_changed

    logger.debug(
        "Announce check: fraction=%.3f timeout_passed=%s health_changed=%s require_both=%s -> %s",
        fraction,
        timeout_passed,
        health_changed,
        require_both,
        decision,
    )
    return decision
