# loom/pipeline.py
"""
Material assignment and the placeholder -> shaded handoff.

Per garment submesh:

    UNCLASSIFIED -> PLACEHOLDER -> NORMAL_MAP_PENDING -> SHADED
                        ^                                  |
                        +------- texture change -----------+

Body submeshes go straight from UNCLASSIFIED to SHADED with the body
material. Normal maps are synthesized on an executor; each finished job
lands in a queue that `update()` drains on the render thread between
frames. A result is applied only if it belongs to the texture that is
active at that moment.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from collections import OrderedDict
from dataclasses import dataclass
from enum import StrEnum
from queue import Empty, Queue
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from loom.assets.types import Mesh, NormalMap, PixelBuffer
from loom.classify import MeshMaterialClassifier
from loom.config import LoomSettings
from loom.errors import StaleSynthesisResult
from loom.events import EventManager, MaterialReady, SynthesisFailed
from loom.materials import (
    BODY_MATERIAL,
    NEUTRAL_PLACEHOLDER,
    Material,
    MaterialRole,
    SimpleMaterial,
    TriplanarMaterial,
    placeholder_for,
)
from loom.synthesis.normal_map import NormalMapSynthesizer
from loom.types import SubmeshId, TextureKey

logger = logging.getLogger(__name__)

# (texture identity, normal map or None, error message or None)
_Outcome = Tuple[TextureKey, Optional[NormalMap], Optional[str]]


class AssignmentState(StrEnum):
    UNCLASSIFIED = "unclassified"
    PLACEHOLDER = "placeholder"
    NORMAL_MAP_PENDING = "normal_map_pending"
    SHADED = "shaded"


@dataclass(slots=True)
class SubmeshAssignment:
    submesh_id: SubmeshId
    state: AssignmentState = AssignmentState.UNCLASSIFIED
    role: Optional[MaterialRole] = None
    material: Optional[Material] = None


class MaterialAssignmentPipeline:
    """
    Owns the submesh -> material mapping for one loaded mesh.

    All public methods must be called from the render thread. Only the
    synthesis job runs elsewhere, and it talks back solely through the
    handoff queue.
    """

    def __init__(
        self,
        settings: LoomSettings | None = None,
        *,
        executor: Executor | None = None,
        events: EventManager | None = None,
    ) -> None:
        settings = settings or LoomSettings()
        self.events = events or EventManager()

        self._classifier = MeshMaterialClassifier(settings.classifier)
        self._synthesizer = NormalMapSynthesizer(settings.synthesis.normal_strength)
        self._shading = settings.shading
        self._cache_size = max(1, settings.synthesis.normal_map_cache_size)

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, settings.synthesis.max_workers),
            thread_name_prefix="NormalMapWorker",
        )
        self._handoff: Queue[_Outcome] = Queue()

        self._mesh: Optional[Mesh] = None
        self._assignments: Dict[SubmeshId, SubmeshAssignment] = {}

        self._texture: Optional[PixelBuffer] = None
        self._placeholder: SimpleMaterial = NEUTRAL_PLACEHOLDER

        self._in_flight: Dict[TextureKey, Future] = {}
        # Least recently used first.
        self._normal_maps: OrderedDict[TextureKey, NormalMap] = OrderedDict()

    # -- Queries --

    @property
    def mesh(self) -> Optional[Mesh]:
        return self._mesh

    @property
    def active_texture(self) -> Optional[PixelBuffer]:
        return self._texture

    @property
    def assignments(self) -> Mapping[SubmeshId, SubmeshAssignment]:
        return MappingProxyType(self._assignments)

    @property
    def pending(self) -> bool:
        """True while any synthesis job has not been drained yet."""
        return bool(self._in_flight)

    def state(self, submesh_id: SubmeshId) -> AssignmentState:
        return self._assignments[submesh_id].state

    def role(self, submesh_id: SubmeshId) -> Optional[MaterialRole]:
        return self._assignments[submesh_id].role

    def material(self, submesh_id: SubmeshId) -> Optional[Material]:
        return self._assignments[submesh_id].material

    def normal_map_for(self, image: PixelBuffer) -> Optional[NormalMap]:
        return self._normal_maps.get(image.identity)

    def _garments(self) -> List[SubmeshAssignment]:
        return [
            a for a in self._assignments.values() if a.role is MaterialRole.GARMENT
        ]

    # -- Lifecycle --

    def load_mesh(self, mesh: Mesh) -> None:
        """
        Bind a newly loaded mesh.

        Body submeshes are final immediately; garments get the current
        placeholder and wait for the active texture's normal map.
        """
        self._mesh = mesh
        self._assignments = {
            sid: SubmeshAssignment(submesh_id=sid) for sid, _ in mesh
        }

        for sid, role in self._classifier.classify_all(mesh).items():
            assignment = self._assignments[sid]
            assignment.role = role

            if role is MaterialRole.BODY:
                assignment.material = BODY_MATERIAL
                assignment.state = AssignmentState.SHADED
                self.events.emit(MaterialReady(sid, BODY_MATERIAL.kind))
            else:
                assignment.material = self._placeholder
                assignment.state = AssignmentState.PLACEHOLDER

        self._advance_garments()

    def set_texture(self, image: PixelBuffer) -> None:
        """
        Make `image` the active garment texture.

        Garments fall back to a placeholder at once. Synthesis is scheduled
        only if this image's normal map is neither cached nor in flight.
        """
        self._texture = image
        self._placeholder = placeholder_for(image)
        logger.info(
            f"Texture changed to {image.identity} ({image.width}x{image.height})"
        )

        for assignment in self._garments():
            assignment.material = self._placeholder
            assignment.state = AssignmentState.PLACEHOLDER

        self._cancel_superseded(image.identity)
        self._advance_garments()

    def unload(self) -> None:
        """Drop the mesh and every assignment. Synthesis caches survive."""
        self._mesh = None
        self._assignments = {}

    def shutdown(self) -> None:
        self.unload()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        self._normal_maps.clear()

    # -- Synthesis handoff --

    def _advance_garments(self) -> None:
        texture = self._texture
        if texture is None:
            return

        key = texture.identity
        if key in self._normal_maps:
            logger.debug(f"Normal map for {key} already cached")
            self._normal_maps.move_to_end(key)
            self._commit(key)
            return

        if texture.is_empty:
            reason = f"invalid image {texture.width}x{texture.height}"
            logger.warning(f"Skipping normal map synthesis: {reason}")
            for assignment in self._garments():
                self.events.emit(SynthesisFailed(assignment.submesh_id, reason))
            return

        if key not in self._in_flight:
            self._schedule(key, texture)

        for assignment in self._garments():
            assignment.state = AssignmentState.NORMAL_MAP_PENDING

    def _cancel_superseded(self, active: TextureKey) -> None:
        """Cancel queued jobs for other textures that have not started yet."""
        for key, future in list(self._in_flight.items()):
            if key != active and future.cancel():
                del self._in_flight[key]
                logger.debug(f"Cancelled queued normal map synthesis for {key}")

    def _schedule(self, key: TextureKey, texture: PixelBuffer) -> None:
        self._in_flight[key] = self._executor.submit(
            self._worker_synthesize, key, texture
        )
        logger.debug(f"Scheduled normal map synthesis for {key}")

    def _worker_synthesize(self, key: TextureKey, texture: PixelBuffer) -> None:
        """
        Synthesize on a background thread. Only touches the handoff queue.
        """
        try:
            normal_map = self._synthesizer.synthesize(texture)
        except Exception as e:
            self._handoff.put((key, None, f"{type(e).__name__}: {e}"))
            return
        self._handoff.put((key, normal_map, None))

    def _check_current(self, key: TextureKey) -> None:
        active = self._texture.identity if self._texture is not None else None
        if key != active:
            raise StaleSynthesisResult(key, active)

    def update(self) -> List[SubmeshId]:
        """
        Apply finished synthesis results. Call between frames.

        Returns the submeshes whose material changed.
        """
        changed: List[SubmeshId] = []
        while True:
            try:
                key, normal_map, error = self._handoff.get_nowait()
            except Empty:
                break

            self._in_flight.pop(key, None)

            try:
                self._check_current(key)
            except StaleSynthesisResult as e:
                logger.debug(f"Dropping stale normal map: {e}")
                continue

            if error is not None or normal_map is None:
                self._fail_pending(error or "no result")
                continue

            self._remember(key, normal_map)
            changed.extend(self._commit(key))

        return changed

    def _remember(self, key: TextureKey, normal_map: NormalMap) -> None:
        self._normal_maps[key] = normal_map
        self._normal_maps.move_to_end(key)
        while len(self._normal_maps) > self._cache_size:
            evicted, _ = self._normal_maps.popitem(last=False)
            logger.debug(f"Evicted cached normal map {evicted}")

    def wait(self, timeout: float | None = None) -> List[SubmeshId]:
        """Block until in-flight synthesis finishes, then `update()`."""
        wait_futures(list(self._in_flight.values()), timeout=timeout)
        return self.update()

    def _fail_pending(self, reason: str) -> None:
        logger.warning(f"Normal map synthesis failed: {reason}")
        for assignment in self._garments():
            if assignment.state is AssignmentState.NORMAL_MAP_PENDING:
                assignment.state = AssignmentState.PLACEHOLDER
                self.events.emit(SynthesisFailed(assignment.submesh_id, reason))

    def _commit(self, key: TextureKey) -> List[SubmeshId]:
        """Swap every garment to one shared triplanar material."""
        assert self._texture is not None

        material = TriplanarMaterial(
            diffuse_texture=self._texture,
            normal_texture=self._normal_maps[key],
            tile_scale=self._shading.tile_divisor,
            repeat=self._shading.tile_repeat,
        )

        changed: List[SubmeshId] = []
        for assignment in self._garments():
            assignment.material = material
            assignment.state = AssignmentState.SHADED
            changed.append(assignment.submesh_id)
            self.events.emit(MaterialReady(assignment.submesh_id, material.kind))

        if changed:
            logger.info(f"Committed triplanar material to {len(changed)} submeshes")
        return changed
