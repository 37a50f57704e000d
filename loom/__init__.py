# loom/__init__.py
from loom.classify import MeshMaterialClassifier
from loom.config import LoomSettings, load_settings
from loom.materials import MaterialRole, SimpleMaterial, TriplanarMaterial
from loom.normalize import ModelNormalizer, ModelTransform
from loom.pipeline import AssignmentState, MaterialAssignmentPipeline
from loom.shading.triplanar import TriplanarShadingModel
from loom.synthesis.normal_map import NormalMapSynthesizer

__all__ = [
    "AssignmentState",
    "LoomSettings",
    "MaterialAssignmentPipeline",
    "MaterialRole",
    "MeshMaterialClassifier",
    "ModelNormalizer",
    "ModelTransform",
    "NormalMapSynthesizer",
    "SimpleMaterial",
    "TriplanarMaterial",
    "TriplanarShadingModel",
    "load_settings",
]
