# loom/shading/__init__.py
from loom.shading.triplanar import TriplanarShadingModel, projection_weights

__all__ = ["TriplanarShadingModel", "projection_weights"]
