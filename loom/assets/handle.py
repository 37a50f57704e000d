# loom/assets/handle.py
import hashlib
from dataclasses import dataclass
from typing import Generic, NewType, TypeVar

AssetId = NewType("AssetId", int)  # 64-bit integer GUID
T = TypeVar("T")  # Type of data (Mesh, PixelBuffer)


def asset_id_for(key: str | bytes) -> AssetId:
    """Derive a stable id from a path or from raw uploaded bytes."""
    raw = key.encode() if isinstance(key, str) else key
    return AssetId(int(hashlib.sha256(raw).hexdigest(), 16) % (10**16))


@dataclass(frozen=True)
class AssetHandle(Generic[T]):
    """
    Lightweight reference to an asset.
    Holding this does not guarantee that the asset is loaded.
    """

    id: AssetId
    path: str
