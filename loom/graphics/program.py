# loom/graphics/program.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import moderngl
import numpy as np

from loom.assets.types import PixelBuffer
from loom.config import ShadingSettings
from loom.graphics.texture import GPUTexture
from loom.materials import Material, SimpleMaterial, TriplanarMaterial
from loom.math import norm_vec
from loom.types import TextureKey

logger = logging.getLogger(__name__)

SHADER_DIR = Path(__file__).parent / "shaders"

DIFFUSE_UNIT = 0
NORMAL_MAP_UNIT = 1


def _load_source(name: str) -> str:
    return (SHADER_DIR / name).read_text(encoding="utf-8")


def _matrix_bytes(m: np.ndarray) -> bytes:
    # GLSL expects column-major storage.
    return np.asarray(m, dtype="f4").T.tobytes()


class TriplanarProgram:
    """
    GPU counterpart of TriplanarShadingModel.

    Compiles the bundled shader once and binds either material variant.
    GPU textures are cached by texture identity, so binding the same
    material every frame uploads nothing.
    """

    def __init__(
        self, ctx: moderngl.Context, settings: ShadingSettings | None = None
    ) -> None:
        settings = settings or ShadingSettings()
        self._ctx = ctx
        self.program = ctx.program(
            vertex_shader=_load_source("triplanar.vert"),
            fragment_shader=_load_source("triplanar.frag"),
        )
        self._textures: Dict[TextureKey, GPUTexture] = {}

        self._set("u_diffuse", DIFFUSE_UNIT)
        self._set("u_normal_map", NORMAL_MAP_UNIT)
        self._set("u_perturb_mix", settings.perturbation_mix)
        self._set("u_ambient", settings.ambient)
        self._set("u_light_intensity", settings.light_intensity)
        self._set("u_light_dir", tuple(norm_vec(settings.light_direction)))

    def _set(self, name: str, value: Any) -> None:
        # The GLSL compiler drops uniforms it can prove unused.
        member = self.program.get(name, None)
        if isinstance(member, moderngl.Uniform):
            member.value = value

    def texture(self, image: PixelBuffer) -> GPUTexture:
        """Upload `image` unless a texture with the same identity exists."""
        key = image.identity
        tex = self._textures.get(key)
        if tex is None:
            tex = GPUTexture(self._ctx, image)
            self._textures[key] = tex
            logger.debug(f"Uploaded {image.width}x{image.height} texture {key}")
        return tex

    @property
    def cached_textures(self) -> int:
        return len(self._textures)

    def bind(
        self,
        material: Material,
        *,
        model: np.ndarray,
        view_proj: np.ndarray,
    ) -> None:
        """Write per-draw uniforms and bind textures for `material`."""
        self.program["u_model"].write(_matrix_bytes(model))
        self.program["u_view_proj"].write(_matrix_bytes(view_proj))

        if isinstance(material, TriplanarMaterial):
            self._set("u_mode", 1)
            self._set("u_repeat", tuple(material.repeat))
            self._set("u_tile_divisor", material.tile_scale)
            self.texture(material.diffuse_texture).use(DIFFUSE_UNIT)
            self.texture(material.normal_texture).use(NORMAL_MAP_UNIT)
            return

        assert isinstance(material, SimpleMaterial)
        self._set("u_mode", 0)
        self._set("u_base_color", material.base_color)

    def evict(self, keep: set[TextureKey]) -> None:
        """Release cached textures whose identity is not in `keep`."""
        for key in [k for k in self._textures if k not in keep]:
            self._textures.pop(key).release()

    def release(self) -> None:
        self.evict(set())
        self.program.release()
