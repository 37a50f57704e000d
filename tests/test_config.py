import math

import pytest

from loom.config import LoomSettings, load_settings, settings_from_mapping
from loom.errors import ConfigError
from loom.types import Vector2, Vector3


def test_defaults():
    settings = LoomSettings()

    assert settings.classifier.garment_vertex_threshold == 30000
    assert settings.classifier.garment_keywords == ("saree", "cloth", "drape")
    assert settings.synthesis.normal_strength == 2.0
    assert settings.synthesis.normal_map_cache_size == 8
    assert settings.shading.tile_repeat == Vector2(1.0, 1.0)
    assert settings.shading.tile_divisor == 0.5
    assert settings.shading.ambient == 0.6
    assert settings.shading.light_direction == Vector3(2.0, 5.0, 2.0)
    assert settings.normalizer.target_height == 1.6
    assert settings.normalizer.corrective_yaw_radians == math.pi
    assert settings.normalizer.base_offset_ratio == 0.15


def test_empty_mapping_keeps_defaults():
    assert settings_from_mapping({}) == LoomSettings()


def test_overrides_touch_only_named_keys():
    settings = settings_from_mapping(
        {
            "classifier": {"garment_vertex_threshold": 12000},
            "shading": {"tile_repeat": [4, 2], "perturbation_mix": 1},
        }
    )

    assert settings.classifier.garment_vertex_threshold == 12000
    assert settings.classifier.garment_keywords == ("saree", "cloth", "drape")
    assert settings.shading.tile_repeat == Vector2(4.0, 2.0)
    assert settings.shading.perturbation_mix == 1.0
    assert isinstance(settings.shading.perturbation_mix, float)
    assert settings.synthesis == LoomSettings().synthesis


def test_keywords_become_a_tuple():
    settings = settings_from_mapping({"classifier": {"garment_keywords": ["lehenga"]}})

    assert settings.classifier.garment_keywords == ("lehenga",)


@pytest.mark.parametrize(
    "raw",
    [
        {"lighting": {"ambient": 0.2}},
        {"shading": {"ambiance": 0.2}},
        {"shading": 0.2},
    ],
)
def test_unknown_or_malformed_sections_are_rejected(raw):
    with pytest.raises(ConfigError):
        settings_from_mapping(raw)


@pytest.mark.parametrize(
    "section, key, value",
    [
        ("classifier", "garment_vertex_threshold", 1.5),
        ("classifier", "garment_vertex_threshold", -1),
        ("classifier", "garment_vertex_threshold", True),
        ("classifier", "garment_keywords", "saree"),
        ("synthesis", "normal_strength", "strong"),
        ("shading", "light_direction", [1.0, 2.0]),
        ("shading", "tile_repeat", ["a", "b"]),
    ],
)
def test_wrong_value_types_are_rejected(section, key, value):
    with pytest.raises(ConfigError):
        settings_from_mapping({section: {key: value}})


def test_config_error_is_a_value_error():
    with pytest.raises(ValueError):
        settings_from_mapping({"nope": {}})


def test_load_settings_from_toml(tmp_path):
    path = tmp_path / "loom.toml"
    path.write_text(
        "[normalizer]\n"
        "target_height = 1.8\n"
        "\n"
        "[shading]\n"
        "light_direction = [0.0, 1.0, 0.0]\n"
    )

    settings = load_settings(path)

    assert settings.normalizer.target_height == 1.8
    assert settings.shading.light_direction == Vector3(0.0, 1.0, 0.0)


def test_load_settings_rejects_bad_toml(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[shading\nambient = 0.2\n")

    with pytest.raises(ConfigError):
        load_settings(path)
