"""Error types raised across the launch pipeline."""
from __future__ import annotations


class LaunchError(Exception):
    """Base class for errors that abort a launch."""

    exit_status = 1


class UsageError(LaunchError):
    """Malformed or missing command-line input."""


class ValidationError(LaunchError):
    """A path or value failed a precondition."""


class GameNotFoundError(LaunchError):
    """A game path or ID did not resolve in any install directory."""

    def __init__(self, game: str):
        super().__init__(f"Game ID or file path not found: {game}")
        self.game = game


class PSFError(Exception):
    """param.sfo could not be opened or is malformed."""
