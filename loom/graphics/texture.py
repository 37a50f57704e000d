# loom/graphics/texture.py
import moderngl

from loom.assets.types import PixelBuffer
from loom.errors import InvalidImage


class GPUTexture:
    """
    Wrapper around moderngl.Texture.

    Repeat-wrapped with trilinear filtering and 8x anisotropy, since
    triplanar coordinates run far outside [0, 1].
    """

    def __init__(self, ctx: moderngl.Context, image: PixelBuffer):
        if image.is_empty:
            raise InvalidImage(
                f"Cannot upload a {image.width}x{image.height} texture"
            )

        self._ctx = ctx
        self.width = image.width
        self.height = image.height
        self.key = image.identity

        # Stored bytes, no sRGB decode: lighting works on the same values as
        # TriplanarShadingModel.
        self.handle = ctx.texture(
            size=(image.width, image.height),
            components=4,
            data=image.data,
        )

        self.handle.repeat_x = True
        self.handle.repeat_y = True
        self.handle.filter = (moderngl.LINEAR_MIPMAP_LINEAR, moderngl.LINEAR)
        self.handle.build_mipmaps()
        self.handle.anisotropy = 8.0

    def use(self, location: int = 0) -> None:
        self.handle.use(location)

    def read(self) -> bytes:
        return self.handle.read()

    def release(self) -> None:
        self.handle.release()
