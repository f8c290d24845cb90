"""Persisted user settings: key-value store with per-key subscriptions."""

from __future__ import annotations

import itertools
import json
import logging
from pathlib import Path
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

TIME_WINDOW = "timeWindow"
UPDATING_PERIOD = "updatingPeriod"

DEFAULTS: dict[str, Any] = {
    TIME_WINDOW: "5m",
    UPDATING_PERIOD: "1000",  # milliseconds between samples
}


class SettingsStore(Protocol):
    """Interface the chart engine consumes."""

    def get(self, key: str) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...
    def subscribe(self, callback: Callable[[Any], None], key: str) -> int: ...
    def unsubscribe(self, token: int) -> None: ...


class MemorySettings:
    """In-process settings store."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(DEFAULTS)
        if values:
            self._values.update(values)
        self._subscribers: dict[int, tuple[str, Callable[[Any], None]]] = {}
        self._tokens = itertools.count()

    def get(self, key: str) -> Any:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        self._store()
        for sub_key, callback in list(self._subscribers.values()):
            if sub_key == key:
                callback(value)

    def subscribe(self, callback: Callable[[Any], None], key: str) -> int:
        token = next(self._tokens)
        self._subscribers[token] = (key, callback)
        return token

    def unsubscribe(self, token: int) -> None:
        self._subscribers.pop(token, None)

    def _store(self) -> None:
        pass


class JsonSettings(MemorySettings):
    """Settings persisted as a JSON object on disk."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_settings_path()
        super().__init__(self._load())

    def _load(self) -> dict[str, Any]:
        try:
            with open(self.path) as f:
                values = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("could not read settings %s: %s", self.path, e)
            return {}
        if not isinstance(values, dict):
            logger.warning("ignoring settings %s: not a JSON object", self.path)
            return {}
        return values

    def _store(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(self._values, f, indent=2, sort_keys=True)
        except OSError as e:
            logger.warning("could not write settings %s: %s", self.path, e)


def default_settings_path() -> Path:
    return Path.home() / ".config" / "livechart" / "settings.json"


def update_period_seconds(raw: Any) -> float | None:
    """Parse an ``updatingPeriod`` value (milliseconds) into seconds."""
    try:
        ms = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if ms <= 0:
        return None
    return ms / 1000
