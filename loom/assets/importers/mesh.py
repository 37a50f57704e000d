# loom/assets/importers/mesh.py
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from loom.assets.importers.base import AssetImporter
from loom.assets.types import Mesh, Submesh

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]


@dataclass
class _Group:
    name: str
    material: Optional[str] = None
    positions: List[Vec3] = field(default_factory=list)
    normals: List[Vec3] = field(default_factory=list)


class ObjImporter(AssetImporter):
    """
    Wavefront OBJ into a Mesh.

    `o`/`g` start a new submesh and `usemtl` records its source material.
    A `usemtl` switch after faces were emitted splits the group, so every
    submesh has exactly one source material. Polygons are fan-triangulated
    and vertices are face-expanded (no index buffer).
    """

    def import_file(self, path: Path) -> Mesh:
        with open(path, "r", encoding="utf-8") as f:
            return self._parse(f.read().splitlines(), str(path))

    def import_bytes(self, data: bytes, label: str = "<bytes>") -> Mesh:
        return self._parse(data.decode("utf-8").splitlines(), label)

    def _parse(self, lines: List[str], label: str) -> Mesh:
        positions: List[Vec3] = []
        normals: List[Vec3] = []

        groups: List[_Group] = []
        current = _Group(name="")

        for line in lines:
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            parts = line.split()
            tag = parts[0]

            if tag == "v":
                px, py, pz = map(float, parts[1:4])
                positions.append((px, py, pz))

            elif tag == "vn":
                nx, ny, nz = map(float, parts[1:4])
                normals.append((nx, ny, nz))

            elif tag in ("o", "g"):
                groups.append(current)
                current = _Group(
                    name=" ".join(parts[1:]), material=current.material
                )

            elif tag == "usemtl":
                material = " ".join(parts[1:])
                if current.positions and material != current.material:
                    groups.append(current)
                    current = _Group(name=current.name)
                current.material = material

            elif tag == "f":
                if len(parts) < 4:
                    raise ValueError(f"Degenerate face in {label}: {line}")

                corners = [self._parse_face_vertex(v) for v in parts[1:]]
                for i in range(1, len(corners) - 1):
                    for v_idx, vn_idx in (corners[0], corners[i], corners[i + 1]):
                        current.positions.append(positions[v_idx])
                        current.normals.append(
                            normals[vn_idx] if vn_idx is not None else (0.0, 1.0, 0.0)
                        )

        groups.append(current)

        submeshes = tuple(
            Submesh.create(
                name=g.name,
                positions=g.positions,
                normals=g.normals,
                source_material_name=g.material,
            )
            for g in groups
            if g.positions
        )

        if not submeshes:
            raise ValueError(f"No geometry found in OBJ: {label}")

        logger.info(
            f"[{label}] {len(submeshes)} submeshes, "
            f"{sum(s.vertex_count for s in submeshes)} vertices"
        )
        return Mesh(submeshes=submeshes)

    def _parse_index(self, val: str) -> int | None:
        if not val:
            return None
        idx = int(val)
        return idx - 1 if idx > 0 else idx

    def _parse_face_vertex(self, token: str) -> Tuple[int, int | None]:
        parts = token.split("/")
        v = self._parse_index(parts[0])
        vn = (
            self._parse_index(parts[2]) if len(parts) > 2 and parts[2] else None
        )

        if v is None:
            raise ValueError(f"Invalid vertex index in token: {token}")

        return v, vn
