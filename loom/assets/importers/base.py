# loom/assets/importers/base.py
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class AssetImporter(ABC):
    @abstractmethod
    def import_file(self, path: Path) -> Any:
        """
        Read file from disk and returns CPU-friendly data object.
        Must be thread-safe.
        """
        pass

    def import_bytes(self, data: bytes, label: str = "<bytes>") -> Any:
        """Decode an in-memory payload such as a user upload."""
        raise NotImplementedError(
            f"{type(self).__name__} cannot import raw bytes ({label})"
        )
