# loom/materials.py
from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Union

import numpy as np

from loom.assets.types import NormalMap, PixelBuffer
from loom.types import RGBA, Vector2


class MaterialRole(StrEnum):
    GARMENT = "garment"
    BODY = "body"


@dataclass(frozen=True, slots=True)
class SimpleMaterial:
    """Flat-coloured material: the body finish and the garment stand-in."""

    base_color: RGBA = (1.0, 1.0, 1.0, 1.0)
    roughness: float = 0.5
    metalness: float = 0.0
    double_sided: bool = False

    kind = "simple"


@dataclass(frozen=True, slots=True)
class TriplanarMaterial:
    """
    Final garment material.

    The diffuse texture and the normal map derived from it travel together,
    so a bound material can never pair a normal map with another texture.
    """

    diffuse_texture: PixelBuffer
    normal_texture: NormalMap
    tile_scale: float
    repeat: Vector2 = Vector2(1.0, 1.0)
    roughness: float = 0.6
    metalness: float = 0.0
    double_sided: bool = True

    kind = "triplanar"


Material = Union[SimpleMaterial, TriplanarMaterial]


def _hex_color(value: int) -> RGBA:
    r = (value >> 16) & 0xFF
    g = (value >> 8) & 0xFF
    b = value & 0xFF
    return (r / 255.0, g / 255.0, b / 255.0, 1.0)


BODY_MATERIAL = SimpleMaterial(
    base_color=_hex_color(0xF5E9DF),
    roughness=0.9,
    metalness=0.0,
)

NEUTRAL_PLACEHOLDER = SimpleMaterial(
    base_color=(0.5, 0.5, 0.5, 1.0),
    roughness=0.6,
    metalness=0.0,
    double_sided=True,
)


def placeholder_for(image: PixelBuffer | None) -> SimpleMaterial:
    """
    Immediate garment stand-in: the image's mean colour as a flat material.

    Empty or missing images fall back to neutral grey.
    """
    if image is None or image.is_empty:
        return NEUTRAL_PLACEHOLDER

    mean = image.as_array().reshape(-1, 4).mean(axis=0) / 255.0
    r, g, b, a = (float(c) for c in np.round(mean, 4))
    return SimpleMaterial(
        base_color=(r, g, b, a),
        roughness=NEUTRAL_PLACEHOLDER.roughness,
        metalness=NEUTRAL_PLACEHOLDER.metalness,
        double_sided=True,
    )
