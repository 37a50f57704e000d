# loom/normalize.py
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Dict

import numpy as np

from loom.assets.types import Mesh
from loom.config import NormalizerSettings
from loom.errors import MeshNormalizationDegenerate
from loom.math import transform_to_matrix
from loom.types import BoundingBox3D, MeshId, Quaternion, Vector3

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ModelTransform:
    """
    Model-to-world placement: world = translation + rotation * (scale * p).
    """

    translation: Vector3
    scale: float
    rotation: Quaternion
    degenerate: bool = False

    def matrix(self) -> np.ndarray:
        return transform_to_matrix(self.translation, self.rotation, self.scale)

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform an (N, 3) point array."""
        rotated = (np.asarray(points, dtype=np.float64) * self.scale) @ (
            self.rotation.to_matrix3().T
        )
        return rotated + self.translation.to_array()


class ModelNormalizer:
    """
    Centers, scales and orients a model into the canonical viewing frame.

    The raw bounding box is cached per mesh on first use, so normalizing the
    same mesh again reproduces the same transform instead of compounding it.
    """

    def __init__(self, settings: NormalizerSettings | None = None) -> None:
        settings = settings or NormalizerSettings()
        self.target_height = settings.target_height
        self.rotation = Quaternion.from_yaw(settings.corrective_yaw_radians)
        self.base_offset = settings.target_height * settings.base_offset_ratio

        self._bounds: Dict[MeshId, BoundingBox3D] = {}

    def original_bounds(self, mesh: Mesh) -> BoundingBox3D:
        bounds = self._bounds.get(mesh.mesh_id)
        if bounds is None:
            bounds = mesh.bounds()
            self._bounds[mesh.mesh_id] = bounds
        return bounds

    def forget(self, mesh: Mesh) -> None:
        """Drop the cached bounds, e.g. when the mesh is unloaded."""
        self._bounds.pop(mesh.mesh_id, None)

    def normalize(self, mesh: Mesh) -> ModelTransform:
        bounds = self.original_bounds(mesh)
        height = bounds.size.y

        degenerate = height <= 0.0
        if degenerate:
            warnings.warn(
                MeshNormalizationDegenerate(
                    f"Mesh {mesh.mesh_id} has zero height; keeping scale 1.0"
                ),
                stacklevel=2,
            )
            scale = 1.0
        else:
            scale = self.target_height / height

        # Move the scaled, rotated box center to the origin, then lower it.
        center = bounds.center.to_array() * scale
        moved = self.rotation.to_matrix3() @ center
        translation = Vector3(
            float(-moved[0]),
            float(-moved[1]) - self.base_offset,
            float(-moved[2]),
        )

        logger.info(
            f"Normalized mesh {mesh.mesh_id}: height {height:.3f} -> "
            f"{height * scale:.3f}, scale {scale:.4f}"
        )
        return ModelTransform(
            translation=translation,
            scale=scale,
            rotation=self.rotation,
            degenerate=degenerate,
        )
