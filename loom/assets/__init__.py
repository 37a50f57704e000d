# loom/assets/__init__.py
from loom.assets.handle import AssetHandle, AssetId
from loom.assets.server import AssetServer
from loom.assets.types import Mesh, NormalMap, PixelBuffer, Submesh

__all__ = [
    "AssetServer",
    "AssetHandle",
    "AssetId",
    "Mesh",
    "NormalMap",
    "PixelBuffer",
    "Submesh",
]
