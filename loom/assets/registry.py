# loom/assets/registry.py
from typing import Any, Dict, Optional, Type, TypeVar

from loom.assets.handle import AssetId

T = TypeVar("T")


class AssetRegistry:
    """
    Stores loaded asset data (CPU side) mapped by AssetId.
    """

    def __init__(self) -> None:
        self._storage: Dict[AssetId, Any] = {}

    def store(self, asset_id: AssetId, data: Any) -> None:
        """Register a loaded asset."""
        self._storage[asset_id] = data

    def get(self, asset_id: AssetId) -> Optional[Any]:
        """Retrieve asset data if available."""
        return self._storage.get(asset_id)

    def require(self, asset_id: AssetId, kind: Type[T]) -> T:
        """Retrieve asset data, failing if it is missing or of another type."""
        try:
            data = self._storage[asset_id]
        except KeyError:
            raise KeyError(f"Asset {asset_id} is not loaded")
        if not isinstance(data, kind):
            raise TypeError(
                f"Asset {asset_id} is {type(data).__name__}, not {kind.__name__}"
            )
        return data

    def discard(self, asset_id: AssetId) -> None:
        self._storage.pop(asset_id, None)

    def __contains__(self, asset_id: AssetId) -> bool:
        return asset_id in self._storage

    def clear(self) -> None:
        """Clear all loaded assets (use with caution)."""
        self._storage.clear()
