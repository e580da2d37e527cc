"""Tunable voicing configuration and persisted user settings.

:class:`VoicingConfig` gathers every constant a generation run depends on:
voice ranges, spacing limits, leap thresholds, scorer weights and the rule
checker strictness. A run receives one explicitly instead of reading module
level state, so two runs with different settings can execute side by side.

Settings are stored as JSON. The default location is
``~/.progression_voicer_settings.json`` unless ``VOICING_SETTINGS_FILE``
points elsewhere.

Example
-------
>>> cfg = VoicingConfig.from_settings({"strictness": 8, "ranges": {"soprano": ["C4", "G5"]}})
>>> cfg.ranges["soprano"]
(60, 79)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from . import (
    MELODY_ACCOMPANIMENT_SPACING_LIMIT,
    SATB_SPACING_LIMITS,
    VOICE_RANGES,
)
from .errors import InvalidInputError
from .ranges import resolve_range
from .voice_leading import DEFAULT_WEIGHTS, VoiceLeadingWeights

__all__ = [
    "DEFAULT_SETTINGS_FILE",
    "VoicingConfig",
    "load_settings",
    "save_settings",
]

logger = logging.getLogger(__name__)

env_path = os.environ.get("VOICING_SETTINGS_FILE")
if env_path:
    DEFAULT_SETTINGS_FILE = Path(env_path).expanduser()
else:
    DEFAULT_SETTINGS_FILE = Path.home() / ".progression_voicer_settings.json"


@dataclass(frozen=True)
class VoicingConfig:
    """Process-scoped settings passed into every generation run."""

    ranges: Mapping[str, Tuple[int, int]] = field(default_factory=lambda: dict(VOICE_RANGES))
    spacing: Mapping[str, int] = field(default_factory=lambda: dict(SATB_SPACING_LIMITS))
    accompaniment_spacing: int = MELODY_ACCOMPANIMENT_SPACING_LIMIT
    bass_leap_threshold: int = 9
    upper_leap_threshold: int = 7
    accompaniment_bass_leap_threshold: int = 9
    accompaniment_leap_threshold: int = 6
    chromatic_probability: float = 0.05
    strictness: int = 5
    weights: VoiceLeadingWeights = DEFAULT_WEIGHTS

    def with_ranges(self, overrides: Mapping[str, Any]) -> "VoicingConfig":
        """Return a copy whose ranges are overlaid with ``overrides``.

        Each override is a ``{"min", "max"}`` mapping or a pair; ``None``
        bounds keep the current value.
        """

        merged = dict(self.ranges)
        for voice, spec in overrides.items():
            merged[voice] = resolve_range(voice, spec, defaults=self.ranges)
        return replace(self, ranges=merged)

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "VoicingConfig":
        """Build a config from a settings dictionary, ignoring unknown keys."""

        config = cls()
        scalar_names = {f.name for f in fields(cls)} - {"ranges", "spacing", "weights"}
        updates = {k: v for k, v in settings.items() if k in scalar_names}
        if "spacing" in settings:
            updates["spacing"] = {**config.spacing, **settings["spacing"]}
        if "weights" in settings:
            known = {f.name for f in fields(VoiceLeadingWeights)}
            unknown = set(settings["weights"]) - known
            if unknown:
                raise InvalidInputError(f"Unknown scorer weights: {', '.join(sorted(unknown))}")
            updates["weights"] = replace(DEFAULT_WEIGHTS, **settings["weights"])
        config = replace(config, **updates)
        if not 0 <= config.strictness <= 10:
            raise InvalidInputError("strictness must be between 0 and 10")
        if "ranges" in settings:
            config = config.with_ranges(settings["ranges"])
        return config

    def to_settings(self) -> Dict[str, Any]:
        """Return a JSON serialisable representation."""

        data = asdict(self)
        data["ranges"] = {voice: list(bounds) for voice, bounds in self.ranges.items()}
        data["spacing"] = dict(self.spacing)
        return data


def load_settings(path: Path = DEFAULT_SETTINGS_FILE) -> dict:
    """Load saved user settings from ``path`` if it exists.

    @param path (Path): Location of the settings file.
    @returns dict: Loaded settings or an empty dictionary when unavailable.
    """
    if path.is_file():
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Could not load settings: %s", exc)
    return {}


def save_settings(settings: dict, path: Path = DEFAULT_SETTINGS_FILE) -> None:
    """Save user ``settings`` to ``path`` as JSON.

    @param settings (dict): Options to be persisted.
    @param path (Path): Destination file path.
    @returns None: Function does not return a value.
    """
    # Failing to save preferences never prevents generation.
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(settings, fh, indent=2)
    except OSError as exc:
        logger.error("Could not save settings: %s", exc)
