# loom/synthesis/__init__.py
from loom.synthesis.normal_map import NormalMapSynthesizer, synthesize

__all__ = ["NormalMapSynthesizer", "synthesize"]
