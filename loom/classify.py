# loom/classify.py
import logging
from typing import Dict

from loom.assets.types import Mesh, Submesh
from loom.config import ClassifierSettings
from loom.materials import MaterialRole
from loom.types import SubmeshId

logger = logging.getLogger(__name__)


class MeshMaterialClassifier:
    """
    Splits submeshes into garment and body roles.

    Precedence:
      1. a garment keyword in the submesh name or its source-material name
      2. vertex count strictly above the configured threshold
      3. otherwise body

    Names are not always present or meaningful, hence the density fallback:
    draped fabric is tessellated much more finely than the rigid body.
    """

    def __init__(self, settings: ClassifierSettings | None = None) -> None:
        settings = settings or ClassifierSettings()
        self.vertex_threshold = settings.garment_vertex_threshold
        self.keywords = tuple(k.lower() for k in settings.garment_keywords)

    def _name_matches(self, submesh: Submesh) -> bool:
        for name in (submesh.name, submesh.source_material_name):
            if name and any(k in name.lower() for k in self.keywords):
                return True
        return False

    def classify(self, submesh: Submesh) -> MaterialRole:
        if self._name_matches(submesh):
            return MaterialRole.GARMENT
        if submesh.vertex_count > self.vertex_threshold:
            return MaterialRole.GARMENT
        return MaterialRole.BODY

    def classify_all(self, mesh: Mesh) -> Dict[SubmeshId, MaterialRole]:
        roles = {sid: self.classify(submesh) for sid, submesh in mesh}
        garments = sum(1 for role in roles.values() if role is MaterialRole.GARMENT)
        logger.info(
            f"Classified mesh {mesh.mesh_id}: {garments} garment, "
            f"{len(roles) - garments} body submeshes"
        )
        return roles
