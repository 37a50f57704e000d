# loom/assets/types.py
from __future__ import annotations

import hashlib
import itertools
from dataclasses import dataclass, field
from functools import cached_property
from typing import Iterator, Optional, Sequence

import numpy as np

from loom.types import BoundingBox3D, MeshId, SubmeshId, TextureKey

_mesh_ids = itertools.count(1)


@dataclass(frozen=True)
class PixelBuffer:
    """
    Decoded RGBA8 image, row-major with the top row first.

    Immutable once produced; consumers take it over without copying.
    """

    data: bytes
    width: int
    height: int
    components: int = 4

    def __post_init__(self) -> None:
        if self.components != 4:
            raise ValueError(f"Expected RGBA data, got {self.components} components")
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"{self.width}x{self.height} RGBA needs {expected} bytes, "
                f"got {len(self.data)}"
            )

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> PixelBuffer:
        """Build from an (h, w, 4) uint8 array."""
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected (h, w, 4) array, got {pixels.shape}")
        height, width = pixels.shape[:2]
        data = np.ascontiguousarray(pixels, dtype=np.uint8).tobytes()
        return cls(data=data, width=width, height=height)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def as_array(self) -> np.ndarray:
        """Read-only (h, w, 4) uint8 view over the pixel bytes."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(
            self.height, self.width, 4
        )

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = self.as_array()[y, x]
        return int(r), int(g), int(b), int(a)

    @cached_property
    def identity(self) -> TextureKey:
        """Content hash; two buffers with equal pixels share an identity."""
        digest = hashlib.sha256(f"{self.width}x{self.height}:".encode())
        digest.update(self.data)
        return TextureKey(digest.hexdigest()[:16])


@dataclass(frozen=True)
class NormalMap(PixelBuffer):
    """
    PixelBuffer whose RGB channels hold a normal remapped from [-1, 1] to bytes.

    X is red, Y is green, Z is blue; alpha is always 255.
    """

    strength: float = 1.0

    def vectors(self) -> np.ndarray:
        """Decode to an (h, w, 3) float array in [-1, 1]."""
        return self.as_array()[..., :3].astype(np.float32) / 127.0 - 1.0


@dataclass(frozen=True, eq=False)
class Submesh:
    """
    Read-only view of one named portion of a loaded mesh.

    Geometry is never mutated; only the material bound to it changes.
    """

    name: str
    positions: np.ndarray  # (N, 3) float32
    normals: np.ndarray  # (N, 3) float32
    source_material_name: Optional[str] = None

    @classmethod
    def create(
        cls,
        name: str,
        positions: Sequence[Sequence[float]] | np.ndarray,
        normals: Sequence[Sequence[float]] | np.ndarray | None = None,
        source_material_name: Optional[str] = None,
    ) -> Submesh:
        pos = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        if normals is None:
            nrm = np.tile(np.array([0.0, 1.0, 0.0], dtype=np.float32), (len(pos), 1))
        else:
            nrm = np.asarray(normals, dtype=np.float32).reshape(-1, 3)
        if len(nrm) != len(pos):
            raise ValueError(
                f"Submesh '{name}' has {len(pos)} positions but {len(nrm)} normals"
            )
        pos.flags.writeable = False
        nrm.flags.writeable = False
        return cls(
            name=name,
            positions=pos,
            normals=nrm,
            source_material_name=source_material_name,
        )

    @property
    def vertex_count(self) -> int:
        return len(self.positions)


@dataclass(frozen=True, eq=False)
class Mesh:
    """A loaded model: an ordered collection of submeshes."""

    submeshes: tuple[Submesh, ...]
    mesh_id: MeshId = field(default_factory=lambda: MeshId(next(_mesh_ids)))

    def __iter__(self) -> Iterator[tuple[SubmeshId, Submesh]]:
        for index, submesh in enumerate(self.submeshes):
            yield SubmeshId(index), submesh

    def __len__(self) -> int:
        return len(self.submeshes)

    def submesh(self, submesh_id: SubmeshId) -> Submesh:
        return self.submeshes[submesh_id]

    def bounds(self) -> BoundingBox3D:
        """Axis-aligned bounds over every submesh's positions."""
        if not self.submeshes:
            return BoundingBox3D.from_points(np.empty((0, 3), dtype=np.float32))
        points = np.concatenate([s.positions for s in self.submeshes])
        return BoundingBox3D.from_points(points)
