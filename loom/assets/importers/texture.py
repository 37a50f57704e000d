# loom/assets/importers/texture.py
import io
from pathlib import Path
from typing import BinaryIO

from PIL import Image, UnidentifiedImageError

from loom.assets.importers.base import AssetImporter
from loom.assets.types import PixelBuffer
from loom.errors import InvalidImage


class TextureImporter(AssetImporter):
    def import_file(self, path: Path) -> PixelBuffer:
        with open(path, "rb") as f:
            return self._decode(f, str(path))

    def import_bytes(self, data: bytes, label: str = "<bytes>") -> PixelBuffer:
        return self._decode(io.BytesIO(data), label)

    def _decode(self, stream: BinaryIO, label: str) -> PixelBuffer:
        try:
            with Image.open(stream) as img:
                # Rows stay top-first; the GPU upload flips if it needs to.
                converted = img.convert("RGBA")
                width, height = converted.size
                data = converted.tobytes()
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidImage(f"Cannot decode image {label}: {e}") from e

        return PixelBuffer(data=data, width=width, height=height)


def save_png(image: PixelBuffer, path: Path) -> None:
    """Encode a PixelBuffer (e.g. a synthesized normal map) as PNG."""
    if image.is_empty:
        raise InvalidImage(f"Cannot encode empty image to {path}")
    Image.frombytes("RGBA", (image.width, image.height), image.data).save(path)
