# loom/synthesis/normal_map.py
"""
Derive a surface-relief normal map from a plain diffuse image.

Luminance gradients stand in for height differences. The Z component is
held at 1.0 instead of renormalizing the vector; this keeps the relief
stable across textures at the cost of physical accuracy.
"""

import logging
from dataclasses import dataclass

import numpy as np

from loom.assets.types import NormalMap, PixelBuffer
from loom.errors import InvalidImage

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def luminance(image: PixelBuffer) -> np.ndarray:
    """Per-pixel luminance in [0, 1] as an (h, w) float64 array."""
    rgb = image.as_array()[..., :3].astype(np.float64) / 255.0
    return rgb @ LUMA_WEIGHTS


def encode_normals(vectors: np.ndarray) -> np.ndarray:
    """
    Remap (h, w, 3) components in [-1, 1] to bytes via round((c + 1) * 127).

    Components outside [-1, 1] are clamped first. Alpha is fixed at 255.
    """
    clamped = np.clip(vectors, -1.0, 1.0)
    # floor(x + 0.5) rounds halves up; np.rint would round them to even.
    encoded = np.floor((clamped + 1.0) * 127.0 + 0.5).astype(np.uint8)
    alpha = np.full(encoded.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([encoded, alpha], axis=-1)


def synthesize(image: PixelBuffer, strength: float) -> NormalMap:
    """
    Build a normal map with the same dimensions as `image`.

    Gradients are 4-neighbour central differences; border pixels reuse the
    edge value rather than wrapping. A flat image gives (0, 0, 1) everywhere.

    Raises:
        InvalidImage: if the image has zero width or height.
    """
    if image.is_empty:
        raise InvalidImage(
            f"Cannot derive a normal map from a {image.width}x{image.height} image"
        )

    lum = luminance(image)
    padded = np.pad(lum, 1, mode="edge")

    dx = (padded[1:-1, 2:] - padded[1:-1, :-2]) * strength
    dy = (padded[2:, 1:-1] - padded[:-2, 1:-1]) * strength
    dz = np.ones_like(dx)

    pixels = encode_normals(np.stack([dx, dy, dz], axis=-1))

    logger.debug(
        f"Synthesized {image.width}x{image.height} normal map "
        f"(strength {strength})"
    )
    return NormalMap(
        data=pixels.tobytes(),
        width=image.width,
        height=image.height,
        strength=strength,
    )


@dataclass(frozen=True, slots=True)
class NormalMapSynthesizer:
    """Binds a configured strength so the pipeline can submit `synthesize`."""

    strength: float = 2.0

    def synthesize(self, image: PixelBuffer, strength: float | None = None) -> NormalMap:
        return synthesize(image, self.strength if strength is None else strength)
