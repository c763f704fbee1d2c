"""Player settings persistence: volume, shuffle, poll interval, output port (no UI)."""

import json
import logging
import os
from typing import Any

log = logging.getLogger(__name__)

DEFAULT_VOLUME = 0.5
DEFAULT_POLL_INTERVAL = 0.1
MIN_POLL_INTERVAL = 0.01


def _coerce_float(value: Any, default: float, lo: float, hi: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    if parsed != parsed:  # NaN
        return default
    return max(lo, min(hi, parsed))


class Settings:
    """Load/save player settings as JSON in a per-user directory."""

    def __init__(self, settings_dir: str = ""):
        self._dir = settings_dir or os.path.join(os.path.expanduser("~"), ".playdeck")
        self._path = os.path.join(self._dir, "settings.json")
        self.volume = DEFAULT_VOLUME
        self.shuffle = False
        self.poll_interval = DEFAULT_POLL_INTERVAL
        self.output_port: str | None = None
        self.load()

    @property
    def settings_dir(self) -> str:
        return self._dir

    @property
    def path(self) -> str:
        return self._path

    def load(self) -> None:
        data: dict[str, Any] = {}
        if os.path.isfile(self._path):
            try:
                with open(self._path, encoding="utf-8") as f:
                    loaded = json.load(f)
                data = loaded if isinstance(loaded, dict) else {}
            except (json.JSONDecodeError, OSError):
                log.warning("Ignoring unreadable settings file %s", self._path)
        self.volume = _coerce_float(data.get("volume"), DEFAULT_VOLUME, 0.0, 1.0)
        shuffle = data.get("shuffle", False)
        self.shuffle = shuffle if isinstance(shuffle, bool) else False
        self.poll_interval = _coerce_float(
            data.get("poll_interval"), DEFAULT_POLL_INTERVAL, MIN_POLL_INTERVAL, 5.0
        )
        port = data.get("output_port")
        self.output_port = port if isinstance(port, str) and port else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "volume": self.volume,
            "shuffle": self.shuffle,
            "poll_interval": self.poll_interval,
            "output_port": self.output_port,
        }

    def save(self) -> None:
        try:
            os.makedirs(self._dir, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError:
            log.warning("Could not save settings to %s", self._path, exc_info=True)

    def location_description(self) -> str:
        return f"Settings are stored at: {self._path}"
