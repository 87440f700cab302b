from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping

_SETTINGS_PATH = Path(__file__).with_name("settings.json")
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

STORAGE_PATH_ENV = "CLINIC_TUTORIAL_STORAGE_PATH"


@lru_cache(maxsize=1)
def get_settings() -> Dict[str, Any]:
    """Return the parsed settings.json contents.

    The configuration is cached for subsequent lookups to avoid
    redundant file I/O, while still allowing tests to reset the cache by
    clearing ``get_settings.cache_clear()``.
    """
    with _SETTINGS_PATH.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@dataclass(frozen=True)
class TutorialSettings:
    """Typed view over the ``tutorial`` section of settings.json."""

    script_id: str = "clinic_reception"
    manual_advance_event: str = "NEXT_CLICK"
    termination_threshold: int = 6
    screen_settle_delay_ms: int = 300
    render_delay_ms: int = 150
    storage_path: Path = _PROJECT_ROOT / "data" / "tutorial_progress.json"
    storage_key: str = "tutorialCompleted"
    canvas_width: int = 1920
    canvas_height: int = 1080
    message_default_y: int = 150
    message_bottom_y: int = 950
    pointer_gap: int = 30
    outcome_routes: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)


def _resolve_storage_path(raw: Mapping[str, Any]) -> Path:
    override = os.getenv(STORAGE_PATH_ENV)
    if override:
        return Path(override)
    configured = raw.get("path")
    if not configured:
        return TutorialSettings.storage_path
    path = Path(configured)
    return path if path.is_absolute() else _PROJECT_ROOT / path


def tutorial_settings(overrides: Mapping[str, Any] | None = None) -> TutorialSettings:
    """Build :class:`TutorialSettings` from settings.json.

    ``overrides`` uses the same camelCase keys as the JSON file and wins
    over it; tests use it to shorten delays or lower thresholds.
    """
    raw: Dict[str, Any] = dict(get_settings().get("tutorial", {}))
    raw.update(overrides or {})
    storage = raw.get("storage", {})
    canvas = raw.get("canvas", {})
    message = raw.get("message", {})
    defaults = TutorialSettings()
    return TutorialSettings(
        script_id=raw.get("scriptId", defaults.script_id),
        manual_advance_event=raw.get("manualAdvanceEvent", defaults.manual_advance_event),
        termination_threshold=int(raw.get("terminationThreshold", defaults.termination_threshold)),
        screen_settle_delay_ms=int(raw.get("screenSettleDelayMs", defaults.screen_settle_delay_ms)),
        render_delay_ms=int(raw.get("renderDelayMs", defaults.render_delay_ms)),
        storage_path=_resolve_storage_path(storage),
        storage_key=storage.get("key", defaults.storage_key),
        canvas_width=int(canvas.get("width", defaults.canvas_width)),
        canvas_height=int(canvas.get("height", defaults.canvas_height)),
        message_default_y=int(message.get("defaultY", defaults.message_default_y)),
        message_bottom_y=int(message.get("bottomY", defaults.message_bottom_y)),
        pointer_gap=int(raw.get("pointerGap", defaults.pointer_gap)),
        outcome_routes=dict(raw.get("outcomeRoutes", {})),
    )


__all__ = ["get_settings", "tutorial_settings", "TutorialSettings", "STORAGE_PATH_ENV"]
