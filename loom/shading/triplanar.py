# loom/shading/triplanar.py
"""
CPU reference of the triplanar garment shader.

Textures are addressed by world position instead of stored UVs. Each of the
three axis-aligned projections is sampled and blended by |normal| per axis:

    X-facing -> (z, y) plane
    Y-facing -> (x, z) plane
    Z-facing -> (x, y) plane

The lighting is a fixed local model (one directional light plus ambient),
not physically based. `graphics/shaders/triplanar.frag` mirrors it.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from loom.assets.types import NormalMap, PixelBuffer, Submesh
from loom.config import ShadingSettings
from loom.materials import Material, SimpleMaterial, TriplanarMaterial
from loom.math import norm_vec, normalize_rows
from loom.types import RGBA, Vector2, Vector3

BLACK: RGBA = (0.0, 0.0, 0.0, 1.0)


def projection_weights(normals: np.ndarray) -> np.ndarray:
    """
    Blend weights (wx, wy, wz) per row, summing to 1.

    A zero normal splits the weight evenly.
    """
    w = np.abs(np.asarray(normals, dtype=np.float64))
    total = w.sum(axis=-1, keepdims=True)
    even = np.full_like(w, 1.0 / 3.0)
    return np.where(total > 0.0, w / np.where(total > 0.0, total, 1.0), even)


def planar_coords(positions: np.ndarray, tile_divisor: float, repeat: Vector2):
    """Texture coordinates of the X, Y and Z projections, each (N, 2)."""
    p = np.asarray(positions, dtype=np.float64) / tile_divisor
    scale = np.array([repeat.x, repeat.y], dtype=np.float64)
    uv_x = p[:, [2, 1]] * scale
    uv_y = p[:, [0, 2]] * scale
    uv_z = p[:, [0, 1]] * scale
    return uv_x, uv_y, uv_z


def sample_nearest(texels: np.ndarray, uv: np.ndarray) -> np.ndarray:
    """
    Nearest-texel lookup with repeat wrapping.

    texels: (h, w, c) array. uv: (N, 2). Returns (N, c) float64.
    """
    height, width = texels.shape[:2]
    frac = uv - np.floor(uv)
    cols = np.minimum((frac[:, 0] * width).astype(np.int64), width - 1)
    rows = np.minimum((frac[:, 1] * height).astype(np.int64), height - 1)
    return texels[rows, cols].astype(np.float64)


class TriplanarShadingModel:
    def __init__(self, settings: ShadingSettings | None = None) -> None:
        settings = settings or ShadingSettings()
        if settings.tile_divisor <= 0.0:
            raise ValueError("tile_divisor must be positive")

        self.repeat = settings.tile_repeat
        self.tile_divisor = settings.tile_divisor
        self.perturbation_mix = settings.perturbation_mix
        self.ambient = settings.ambient
        self.light_intensity = settings.light_intensity
        self.light_direction = norm_vec(settings.light_direction)

    def weights(self, normal: Vector3 | Sequence[float]) -> tuple[float, float, float]:
        wx, wy, wz = projection_weights(np.asarray([tuple(normal)]))[0]
        return float(wx), float(wy), float(wz)

    def _lighting(self, normals: np.ndarray, light_dir: Optional[Vector3]) -> np.ndarray:
        light = norm_vec(light_dir) if light_dir is not None else self.light_direction
        lambert = np.maximum(normals @ np.array(tuple(light), dtype=np.float64), 0.0)
        return self.ambient + self.light_intensity * lambert

    def _triplanar_sample(
        self, texels: np.ndarray, coords, weights: np.ndarray
    ) -> np.ndarray:
        uv_x, uv_y, uv_z = coords
        return (
            sample_nearest(texels, uv_x) * weights[:, 0:1]
            + sample_nearest(texels, uv_y) * weights[:, 1:2]
            + sample_nearest(texels, uv_z) * weights[:, 2:3]
        )

    def shade_points(
        self,
        positions: np.ndarray,
        normals: np.ndarray,
        diffuse: PixelBuffer | None,
        normal_map: NormalMap | None,
        repeat: Vector2 | None = None,
        light_dir: Vector3 | None = None,
        tile_divisor: float | None = None,
    ) -> np.ndarray:
        """
        Vectorized shading of N surface points. Returns (N, 4) RGBA in [0, 1].

        Missing or empty textures shade every point opaque black.
        """
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
        normals = np.asarray(normals, dtype=np.float64).reshape(-1, 3)
        count = len(positions)

        if (
            diffuse is None
            or normal_map is None
            or diffuse.is_empty
            or normal_map.is_empty
        ):
            return np.tile(np.array(BLACK), (count, 1))

        geom = normalize_rows(normals)
        weights = projection_weights(geom)
        coords = planar_coords(
            positions,
            tile_divisor or self.tile_divisor,
            repeat or self.repeat,
        )

        color = self._triplanar_sample(diffuse.as_array(), coords, weights) / 255.0
        perturbation = self._triplanar_sample(normal_map.vectors(), coords, weights)

        mix = self.perturbation_mix
        final = normalize_rows(geom * (1.0 - mix) + perturbation * mix)

        lit = self._lighting(final, light_dir)
        rgb = np.clip(color[:, :3] * lit[:, None], 0.0, 1.0)
        return np.concatenate([rgb, color[:, 3:4]], axis=1)

    def shade(
        self,
        world_pos: Vector3,
        geom_normal: Vector3,
        diffuse: PixelBuffer | None,
        normal_map: NormalMap | None,
        repeat: Vector2 | None = None,
        light_dir: Vector3 | None = None,
    ) -> RGBA:
        """Shade a single surface point."""
        r, g, b, a = self.shade_points(
            np.array([tuple(world_pos)]),
            np.array([tuple(geom_normal)]),
            diffuse,
            normal_map,
            repeat,
            light_dir,
        )[0]
        return float(r), float(g), float(b), float(a)

    def shade_material(
        self, positions: np.ndarray, normals: np.ndarray, material: Material
    ) -> np.ndarray:
        """Shade points with whichever material variant is bound."""
        if isinstance(material, TriplanarMaterial):
            return self.shade_points(
                positions,
                normals,
                material.diffuse_texture,
                material.normal_texture,
                repeat=material.repeat,
                tile_divisor=material.tile_scale,
            )

        assert isinstance(material, SimpleMaterial)
        lit = self._lighting(normalize_rows(np.asarray(normals, dtype=np.float64)), None)
        base = np.array(material.base_color, dtype=np.float64)
        rgb = np.clip(base[None, :3] * lit[:, None], 0.0, 1.0)
        alpha = np.full((len(rgb), 1), base[3])
        return np.concatenate([rgb, alpha], axis=1)

    def shade_submesh(self, submesh: Submesh, material: Material) -> np.ndarray:
        """Per-vertex colours of a submesh, e.g. for a vertex-lit preview."""
        return self.shade_material(submesh.positions, submesh.normals, material)
