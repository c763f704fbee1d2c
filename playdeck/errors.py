"""Errors raised by the playback engine (playlist operations return bool/None instead)."""


class PlayerError(Exception):
    """Base class for recoverable playback errors."""


class OpenError(PlayerError):
    """Track could not be opened or decoded."""

    def __init__(self, track: str, reason: str = "") -> None:
        self.track = track
        self.reason = reason
        msg = f"Cannot open {track!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NoActiveTrackError(PlayerError):
    """Seek requested while no track is loaded."""


class LockFailure(PlayerError):
    """Engine state lock could not be acquired in time."""
