# loom/config.py
from __future__ import annotations

import math
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

from loom.errors import ConfigError
from loom.types import Vector2, Vector3


@dataclass(frozen=True, slots=True)
class ClassifierSettings:
    """Garment/body split heuristics. Both values are asset-dependent."""

    garment_vertex_threshold: int = 30000
    garment_keywords: tuple[str, ...] = ("saree", "cloth", "drape")


@dataclass(frozen=True, slots=True)
class SynthesisSettings:
    """Normal-map derivation from the diffuse image."""

    normal_strength: float = 2.0
    max_workers: int = 1
    # Finished normal maps kept for switching back to a recent texture.
    normal_map_cache_size: int = 8


@dataclass(frozen=True, slots=True)
class ShadingSettings:
    """Triplanar projection and the fixed local lighting model."""

    tile_repeat: Vector2 = Vector2(1.0, 1.0)
    tile_divisor: float = 0.5
    # Weight of the derived perturbation; the geometric normal gets the rest.
    perturbation_mix: float = 0.7
    ambient: float = 0.6
    light_intensity: float = 1.0
    light_direction: Vector3 = Vector3(2.0, 5.0, 2.0)


@dataclass(frozen=True, slots=True)
class NormalizerSettings:
    """Canonical viewing frame for a loaded model."""

    target_height: float = 1.6
    corrective_yaw_radians: float = math.pi
    # Fraction of target_height the model is lowered by after centering.
    base_offset_ratio: float = 0.15


@dataclass(frozen=True, slots=True)
class LoomSettings:
    classifier: ClassifierSettings = field(default_factory=ClassifierSettings)
    synthesis: SynthesisSettings = field(default_factory=SynthesisSettings)
    shading: ShadingSettings = field(default_factory=ShadingSettings)
    normalizer: NormalizerSettings = field(default_factory=NormalizerSettings)


_SECTIONS = {f.name: f.default_factory for f in fields(LoomSettings)}  # type: ignore[misc]


def _coerce(section: str, key: str, default: Any, value: Any) -> Any:
    where = f"[{section}] {key}"

    if isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"{where} must be a non-negative integer")
        return value

    if isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{where} must be a number")
        return float(value)

    if isinstance(default, (Vector2, Vector3)):
        size = len(default)
        if (
            not isinstance(value, (list, tuple))
            or len(value) != size
            or not all(
                isinstance(v, (int, float)) and not isinstance(v, bool)
                for v in value
            )
        ):
            raise ConfigError(f"{where} must be a list of {size} numbers")
        return type(default)(*(float(v) for v in value))

    if isinstance(default, tuple):
        if not isinstance(value, (list, tuple)) or not all(
            isinstance(v, str) for v in value
        ):
            raise ConfigError(f"{where} must be a list of strings")
        return tuple(value)

    raise ConfigError(f"{where} has unsupported type {type(default).__name__}")


def settings_from_mapping(raw: Mapping[str, Any]) -> LoomSettings:
    """
    Build settings from a parsed mapping of sections.

    Missing sections and keys keep their defaults; anything unknown is an
    error so a typo in a tuning knob is not silently ignored.
    """
    settings = LoomSettings()

    for section, values in raw.items():
        if section not in _SECTIONS:
            raise ConfigError(f"Unknown settings section [{section}]")
        if not isinstance(values, Mapping):
            raise ConfigError(f"[{section}] must be a table")

        current = getattr(settings, section)
        known = {f.name for f in fields(current)}
        updates = {}
        for key, value in values.items():
            if key not in known:
                raise ConfigError(f"Unknown setting [{section}] {key}")
            updates[key] = _coerce(section, key, getattr(current, key), value)

        settings = replace(settings, **{section: replace(current, **updates)})

    return settings


def load_settings(path: Path) -> LoomSettings:
    """Read settings from a TOML file."""
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid settings file {path}: {e}") from e

    return settings_from_mapping(raw)
