"""Small persistent key-value store for UI preferences.

The store behaves like browser local storage: string keys, string values,
``None`` for anything missing. It is backed by one JSON object on disk and
is deliberately forgiving; a missing, unreadable or malformed file reads as
empty and a failed write is logged and dropped. Callers validate what they
read against the current dataset and fall back to defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class PreferenceStore:
    """String key-value store persisted to a JSON file.

    Parameters
    ----------
    path : str or pathlib.Path or None
        Backing file. ``None`` keeps everything in memory, which is what the
        tests and throwaway notebooks use.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self._path = Path(path).expanduser() if path is not None else None
        self._values: Dict[str, str] = self._read()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def get(self, key: str) -> Optional[str]:
        """Return the stored string for ``key`` or ``None``."""
        return self._values.get(str(key))

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key`` and write the file."""
        self._values[str(key)] = str(value)
        self._write()

    def remove(self, key: str) -> None:
        if self._values.pop(str(key), None) is not None:
            self._write()

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode the JSON text stored under ``key``; ``default`` if absent or invalid."""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("Ignoring invalid JSON preference %r", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, sort_keys=True))

    def _read(self) -> Dict[str, str]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.debug("Preference file %s unreadable, using defaults: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.debug("Preference file %s is not an object, using defaults", self._path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not persist preferences to %s: %s", self._path, exc)
