class BossHealthError(Exception):
    """Base exception for the boss health announcer."""


class ConfigError(BossHealthError):
    """Raised when a configuration document cannot be used at all."""


class ConsoleTimeout(BossHealthError):
    """Raised when no console line matched a watcher before its timeout."""


class SamplingError(BossHealthError):
    """Raised when a pawn's health could not be sampled (timeout, bad data)."""
