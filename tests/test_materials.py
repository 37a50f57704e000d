import pytest

from loom.assets.types import PixelBuffer
from loom.events import EventManager, MaterialReady, SynthesisFailed
from loom.materials import (
    BODY_MATERIAL,
    NEUTRAL_PLACEHOLDER,
    TriplanarMaterial,
    placeholder_for,
)
from loom.synthesis.normal_map import synthesize
from loom.types import SubmeshId, Vector2
from tests.conftest import make_image, solid_image


def test_body_material_matches_skin_finish():
    assert BODY_MATERIAL.base_color == pytest.approx((245 / 255, 233 / 255, 223 / 255, 1.0))
    assert BODY_MATERIAL.roughness == 0.9
    assert BODY_MATERIAL.metalness == 0.0
    assert BODY_MATERIAL.kind == "simple"


def test_placeholder_is_mean_color():
    image = make_image([[(0, 0, 0, 255), (255, 255, 255, 255)]])

    material = placeholder_for(image)

    assert material.base_color == pytest.approx((0.5, 0.5, 0.5, 1.0))
    assert material.double_sided


@pytest.mark.parametrize("image", [None, PixelBuffer(data=b"", width=0, height=3)])
def test_placeholder_without_pixels_is_neutral(image):
    assert placeholder_for(image) is NEUTRAL_PLACEHOLDER


def test_triplanar_material_defaults():
    image = solid_image(2, 2)
    material = TriplanarMaterial(
        diffuse_texture=image, normal_texture=synthesize(image, 2.0), tile_scale=0.5
    )

    assert material.kind == "triplanar"
    assert material.repeat == Vector2(1.0, 1.0)
    assert material.roughness == 0.6
    assert material.double_sided


def test_events_drain_per_type():
    events = EventManager()
    events.emit(MaterialReady(SubmeshId(0), "simple"))
    events.emit(SynthesisFailed(SubmeshId(1), "boom"))
    events.emit(MaterialReady(SubmeshId(2), "triplanar"))

    assert [e.submesh_id for e in events.get(MaterialReady)] == [0, 2]
    assert events.get(MaterialReady) == []
    assert events.get(SynthesisFailed) == [SynthesisFailed(SubmeshId(1), "boom")]


def test_events_clear_all():
    events = EventManager()
    events.emit(MaterialReady(SubmeshId(0), "simple"))

    events.clear_all()

    assert events.get(MaterialReady) == []
