import math

import numpy as np
import pytest

from loom.assets.types import Mesh, Submesh
from loom.config import NormalizerSettings
from loom.errors import MeshNormalizationDegenerate
from loom.normalize import ModelNormalizer


def box_mesh(lo, hi):
    corners = np.array(
        [[x, y, z] for x in (lo[0], hi[0]) for y in (lo[1], hi[1]) for z in (lo[2], hi[2])],
        dtype=np.float32,
    )
    # Split across two submeshes so bounds must cover both.
    return Mesh(
        submeshes=(
            Submesh.create("Body", corners[:4]),
            Submesh.create("Saree", corners[4:]),
        )
    )


@pytest.fixture
def normalizer():
    return ModelNormalizer()


def test_scales_to_target_height(normalizer):
    mesh = box_mesh((-1.0, 0.0, -1.0), (1.0, 4.0, 1.0))

    transform = normalizer.normalize(mesh)

    assert transform.scale == pytest.approx(0.4)
    assert not transform.degenerate
    placed = transform.apply(np.concatenate([s.positions for s in mesh.submeshes]))
    assert placed[:, 1].max() - placed[:, 1].min() == pytest.approx(1.6)


def test_centers_then_lowers_by_base_offset(normalizer):
    mesh = box_mesh((2.0, 10.0, -3.0), (4.0, 14.0, 1.0))

    transform = normalizer.normalize(mesh)
    center = transform.apply(np.array([[3.0, 12.0, -1.0]]))[0]

    # 15 % of the 1.6 target height.
    assert center == pytest.approx([0.0, -0.24, 0.0], abs=1e-9)


def test_applies_half_turn_yaw(normalizer):
    mesh = box_mesh((-1.0, 0.0, -1.0), (1.0, 2.0, 1.0))

    transform = normalizer.normalize(mesh)
    origin = transform.apply(np.array([[0.0, 1.0, 0.0]]))[0]
    front = transform.apply(np.array([[0.0, 1.0, 1.0]]))[0]
    right = transform.apply(np.array([[1.0, 1.0, 0.0]]))[0]

    assert (front - origin) == pytest.approx([0.0, 0.0, -0.8], abs=1e-9)
    assert (right - origin) == pytest.approx([-0.8, 0.0, 0.0], abs=1e-9)


def test_matrix_agrees_with_apply(normalizer):
    mesh = box_mesh((-0.5, 1.0, 0.0), (0.5, 3.0, 2.0))
    transform = normalizer.normalize(mesh)
    point = np.array([0.3, 2.2, 1.7])

    via_matrix = transform.matrix() @ np.append(point, 1.0)

    assert via_matrix[:3] == pytest.approx(transform.apply(point[None, :])[0])


def test_repeated_normalization_is_idempotent(normalizer):
    mesh = box_mesh((-1.0, -2.0, 0.5), (3.0, 5.0, 2.5))

    first = normalizer.normalize(mesh)
    second = normalizer.normalize(mesh)

    assert first == second
    assert normalizer.original_bounds(mesh) == mesh.bounds()


def test_cached_bounds_are_kept_until_forgotten(normalizer):
    mesh = box_mesh((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    normalizer.normalize(mesh)
    # Same mesh id, moved geometry: the raw box from the first load wins.
    moved = Mesh(
        submeshes=box_mesh((5.0, 0.0, 0.0), (6.0, 3.0, 1.0)).submeshes,
        mesh_id=mesh.mesh_id,
    )

    assert normalizer.original_bounds(moved) == mesh.bounds()
    assert normalizer.normalize(moved).scale == pytest.approx(1.6)

    normalizer.forget(mesh)

    assert normalizer.original_bounds(moved) == moved.bounds()
    assert normalizer.normalize(moved).scale == pytest.approx(1.6 / 3.0)


def test_zero_height_keeps_unit_scale(normalizer):
    mesh = box_mesh((-1.0, 2.0, -1.0), (1.0, 2.0, 1.0))

    with pytest.warns(MeshNormalizationDegenerate):
        transform = normalizer.normalize(mesh)

    assert transform.scale == 1.0
    assert transform.degenerate
    assert all(math.isfinite(c) for c in transform.translation)


def test_settings_drive_the_frame():
    normalizer = ModelNormalizer(
        NormalizerSettings(target_height=2.0, corrective_yaw_radians=0.0, base_offset_ratio=0.0)
    )
    mesh = box_mesh((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))

    transform = normalizer.normalize(mesh)
    front = transform.apply(np.array([[0.5, 0.5, 1.0]]))[0]

    assert transform.scale == pytest.approx(2.0)
    assert front == pytest.approx([0.0, 0.0, 1.0])
