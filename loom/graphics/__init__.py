# loom/graphics/__init__.py
from loom.graphics.program import TriplanarProgram
from loom.graphics.texture import GPUTexture

__all__ = ["GPUTexture", "TriplanarProgram"]
