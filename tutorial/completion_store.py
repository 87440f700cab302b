"""Durable "tutorial already completed" flag."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class CompletionStore:
    """Keeps one boolean under ``key`` in a small JSON file.

    The flag is read once and cached; writes go through a temporary file
    that replaces the real one so a crash never leaves half a document.
    """

    def __init__(self, path: os.PathLike[str] | str, key: str = "tutorialCompleted") -> None:
        self._path = Path(path)
        self._key = key
        self._lock = threading.RLock()
        self._cached: Optional[bool] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load_unlocked(self) -> Dict[str, object]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError):
            logger.debug("Unreadable completion file %s; treating as empty", self._path)
            return {}
        if isinstance(data, dict):
            return data
        return {}

    def _persist_unlocked(self, data: Dict[str, object]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2)
        tmp_path.replace(self._path)

    def is_completed(self) -> bool:
        with self._lock:
            if self._cached is None:
                self._cached = self._load_unlocked().get(self._key) is True
            return self._cached

    def mark_completed(self) -> bool:
        """Persist the flag. Returns ``False`` if storage could not be written."""
        with self._lock:
            self._cached = True
            data = self._load_unlocked()
            data[self._key] = True
            try:
                self._persist_unlocked(data)
            except OSError:
                logger.warning("Could not persist tutorial completion to %s", self._path, exc_info=True)
                return False
            return True

    def reset(self) -> None:
        with self._lock:
            self._cached = False
            data = self._load_unlocked()
            if self._key not in data:
                return
            del data[self._key]
            try:
                self._persist_unlocked(data)
            except OSError:
                logger.warning("Could not reset tutorial completion in %s", self._path, exc_info=True)


__all__ = ["CompletionStore"]
