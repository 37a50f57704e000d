from PIL import Image

from loom.assets.importers.texture import TextureImporter
from loom.demo import main

AVATAR = """
o Body
v 0 0 0
v 1 0 0
v 1 2 0
v 0 2 0
vn 0 0 1
f 1//1 2//1 3//1 4//1
o Saree
usemtl Saree_Silk
f 1//1 2//1 3//1
"""


def write_inputs(tmp_path):
    model = tmp_path / "avatar.obj"
    model.write_text(AVATAR)
    texture = tmp_path / "pattern.png"
    img = Image.new("RGB", (4, 4), color=(180, 30, 60))
    img.putpixel((1, 1), (255, 255, 255))
    img.save(texture)
    return model, texture


def test_demo_shades_every_garment(tmp_path):
    model, texture = write_inputs(tmp_path)
    normal_map = tmp_path / "normals.png"

    code = main([str(model), str(texture), "--normal-map", str(normal_map)])

    assert code == 0
    written = TextureImporter().import_file(normal_map)
    assert (written.width, written.height) == (4, 4)


def test_demo_reads_settings_file(tmp_path):
    model, texture = write_inputs(tmp_path)
    config = tmp_path / "loom.toml"
    config.write_text('[classifier]\ngarment_keywords = ["dupatta"]\n')

    # Nothing is a garment any more, so there is nothing left to wait on.
    assert main([str(model), str(texture), "--config", str(config)]) == 0


def test_demo_reports_unreadable_assets(tmp_path):
    model, _ = write_inputs(tmp_path)
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")

    assert main([str(model), str(broken)]) == 2
    assert main([str(tmp_path / "missing.obj"), str(broken)]) == 2


def test_demo_reports_unsupported_model_format(tmp_path):
    _, texture = write_inputs(tmp_path)
    model = tmp_path / "avatar.glb"
    model.write_bytes(b"glTF")

    assert main([str(model), str(texture)]) == 2


def test_demo_reports_bad_settings_file(tmp_path):
    model, texture = write_inputs(tmp_path)
    config = tmp_path / "loom.toml"
    config.write_text("[classifer]\ngarment_keywords = []\n")

    assert main([str(model), str(texture), "--config", str(config)]) == 2
    assert main([str(model), str(texture), "--config", str(tmp_path / "none.toml")]) == 2
