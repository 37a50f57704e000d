# loom/math.py
import math

import numpy as np

from loom.types import Quaternion, Scalar, Vector3


def magnitude_vec(v: Vector3) -> Scalar:
    return math.hypot(*v)


def norm_vec(v: Vector3) -> Vector3:
    mag = magnitude_vec(v)
    if mag == 0:
        return v
    return v / mag


def normalize_rows(v: np.ndarray) -> np.ndarray:
    """
    Normalize an (N, 3) array row by row.

    Zero-length rows are returned unchanged instead of producing NaNs.
    """
    lengths = np.linalg.norm(v, axis=-1, keepdims=True)
    safe = np.where(lengths == 0.0, 1.0, lengths)
    return v / safe


def transform_to_matrix(
    translation: Vector3,
    rotation: Quaternion,
    scale: Scalar,
) -> np.ndarray:
    """Compose T @ R @ S for a uniform scale into a 4x4 matrix."""
    T = np.eye(4, dtype=np.float64)
    T[0:3, 3] = [translation.x, translation.y, translation.z]

    R = np.eye(4, dtype=np.float64)
    R[0:3, 0:3] = rotation.to_matrix3()

    S = np.eye(4, dtype=np.float64)
    S[0, 0] = S[1, 1] = S[2, 2] = scale

    return T @ R @ S
