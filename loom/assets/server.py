# loom/assets/server.py
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from queue import Empty, Queue
from typing import Any, Callable, Dict, List, Tuple

from loom.assets.handle import AssetHandle, AssetId, asset_id_for
from loom.assets.importers.base import AssetImporter
from loom.assets.importers.mesh import ObjImporter
from loom.assets.importers.texture import TextureImporter
from loom.assets.registry import AssetRegistry

logger = logging.getLogger(__name__)


class AssetServer:
    """
    Image and mesh collaborator: decodes files off the main thread.

    Requests return handles immediately; decoded data shows up in
    `registry` once `update()` has drained the loader queue.
    """

    def __init__(self, asset_root: Path, *, max_workers: int = 2) -> None:
        self.root = asset_root
        self.registry = AssetRegistry()
        self.failures: Dict[AssetId, str] = {}

        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="AssetWorker"
        )
        self._loaded_queue: Queue[Tuple[AssetId, Any, str | None]] = Queue()

        self._handles: Dict[str, AssetHandle] = {}  # Path -> Handle

        texture_importer = TextureImporter()
        self._importers: Dict[str, AssetImporter] = {
            ".obj": ObjImporter(),
            ".png": texture_importer,
            ".jpg": texture_importer,
            ".jpeg": texture_importer,
        }

    def load(self, path: str) -> AssetHandle:
        """
        Non-blocking load request. Return handle instantly.
        """
        if path in self._handles:
            return self._handles[path]

        importer = self._importer_for(path)
        handle = AssetHandle(asset_id_for(path), path)
        self._handles[path] = handle

        full_path = self.root / path
        self._submit(handle, lambda: importer.import_file(full_path))
        return handle

    def load_bytes(self, label: str, data: bytes) -> AssetHandle:
        """
        Non-blocking decode of an in-memory upload.

        `label` only picks the importer (by extension); identical payloads
        share one handle.
        """
        importer = self._importer_for(label)
        handle = AssetHandle(asset_id_for(data), label)
        key = f"bytes:{handle.id}"
        if key in self._handles:
            return self._handles[key]
        self._handles[key] = handle

        self._submit(handle, lambda: importer.import_bytes(data, label))
        return handle

    def _importer_for(self, path: str) -> AssetImporter:
        ext = Path(path).suffix.lower()
        importer = self._importers.get(ext)
        if not importer:
            raise ValueError(f"No importer for {ext}")
        return importer

    def _submit(self, handle: AssetHandle, job: Callable[[], Any]) -> None:
        self._executor.submit(self._worker_load, handle, job)

    def _worker_load(self, handle: AssetHandle, job: Callable[[], Any]) -> None:
        """
        Load asset on background thread.
        """
        try:
            self._loaded_queue.put((handle.id, job(), None))
        except Exception as e:
            self._loaded_queue.put((handle.id, None, f"{type(e).__name__}: {e}"))

    def update(self) -> List[AssetId]:
        """
        Called on the Main Thread every frame.
        Return list of newly loaded AssetIds.
        """
        loaded_ids = []
        while True:
            try:
                asset_id, data, error = self._loaded_queue.get_nowait()
            except Empty:
                break

            if error is not None:
                logger.warning(f"Failed to load asset {asset_id}: {error}")
                self.failures[asset_id] = error
                continue

            self.registry.store(asset_id, data)
            loaded_ids.append(asset_id)

        return loaded_ids

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
