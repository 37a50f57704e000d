# loom/types.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterator, NewType, TypeAlias, overload

import numpy as np

SubmeshId = NewType("SubmeshId", int)
MeshId = NewType("MeshId", int)
TextureKey = NewType("TextureKey", str)

Scalar: TypeAlias = float

RGBA = tuple[float, float, float, float]


@dataclass(frozen=True, slots=True)
class Vector2:
    x: Scalar
    y: Scalar

    def __iter__(self) -> Iterator[Scalar]:
        yield self.x
        yield self.y

    def __len__(self) -> int:
        return 2

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    @overload
    def __getitem__(self, index: int) -> Scalar: ...
    @overload
    def __getitem__(self, index: slice) -> tuple[Scalar, ...]: ...

    def __getitem__(self, index: Any):
        if isinstance(index, (int, slice)):
            return tuple(self)[index]

        raise TypeError(
            f"indices must be int or slice, not {type(index).__name__}"
        )


@dataclass(frozen=True, slots=True)
class Vector3:
    x: Scalar
    y: Scalar
    z: Scalar

    @staticmethod
    def zero() -> Vector3:
        return Vector3(0.0, 0.0, 0.0)

    @staticmethod
    def from_array(values: Any) -> Vector3:
        return Vector3(float(values[0]), float(values[1]), float(values[2]))

    def __iter__(self) -> Iterator[Scalar]:
        yield self.x
        yield self.y
        yield self.z

    def __len__(self) -> int:
        return 3

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(
            self.x + other.x,
            self.y + other.y,
            self.z + other.z,
        )

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(
            self.x - other.x,
            self.y - other.y,
            self.z - other.z,
        )

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(
            self.x * scalar,
            self.y * scalar,
            self.z * scalar,
        )

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def __truediv__(self, other: float) -> Vector3:
        if other == 0.0:
            raise ValueError(other)
        return Vector3(self.x / other, self.y / other, self.z / other)

    @overload
    def __getitem__(self, index: int) -> Scalar: ...
    @overload
    def __getitem__(self, index: slice) -> tuple[Scalar, ...]: ...

    def __getitem__(self, index: Any):
        if isinstance(index, (int, slice)):
            return tuple(self)[index]

        raise TypeError(
            f"indices must be int or slice, not {type(index).__name__}"
        )

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)


@dataclass(frozen=True, slots=True)
class Quaternion:
    x: Scalar
    y: Scalar
    z: Scalar
    w: Scalar

    def __iter__(self) -> Iterator[Scalar]:
        yield self.x
        yield self.y
        yield self.z
        yield self.w

    @staticmethod
    def identity() -> Quaternion:
        return Quaternion(0.0, 0.0, 0.0, 1.0)

    @staticmethod
    def from_yaw(yaw: float) -> Quaternion:
        """Rotation of `yaw` radians about the +Y (up) axis."""
        half = yaw * 0.5
        return Quaternion(0.0, math.sin(half), 0.0, math.cos(half))

    def normalized(self) -> Quaternion:
        n = (
            self.x * self.x
            + self.y * self.y
            + self.z * self.z
            + self.w * self.w
        ) ** 0.5
        if n == 0.0:
            return Quaternion.identity()
        inv = 1.0 / n
        return Quaternion(
            self.x * inv,
            self.y * inv,
            self.z * inv,
            self.w * inv,
        )

    def to_matrix3(self) -> np.ndarray:
        """Convert to a 3x3 rotation matrix acting on column vectors."""
        q = self.normalized()

        xx, yy, zz = q.x * q.x, q.y * q.y, q.z * q.z
        xy, xz, yz = q.x * q.y, q.x * q.z, q.y * q.z
        wx, wy, wz = q.w * q.x, q.w * q.y, q.w * q.z

        return np.array(
            [
                [1.0 - 2.0 * (yy + zz), 2.0 * (xy - wz), 2.0 * (xz + wy)],
                [2.0 * (xy + wz), 1.0 - 2.0 * (xx + zz), 2.0 * (yz - wx)],
                [2.0 * (xz - wy), 2.0 * (yz + wx), 1.0 - 2.0 * (xx + yy)],
            ],
            dtype=np.float64,
        )


@dataclass(frozen=True, slots=True)
class BoundingBox3D:
    min: Vector3
    max: Vector3

    @staticmethod
    def from_points(points: np.ndarray) -> BoundingBox3D:
        """
        Axis-aligned bounds of an (N, 3) point array.

        An empty array yields a zero-size box at the origin.
        """
        if len(points) == 0:
            return BoundingBox3D(Vector3.zero(), Vector3.zero())
        return BoundingBox3D(
            Vector3.from_array(points.min(axis=0)),
            Vector3.from_array(points.max(axis=0)),
        )

    @property
    def center(self) -> Vector3:
        return (self.min + self.max) * 0.5

    @property
    def size(self) -> Vector3:
        return self.max - self.min
