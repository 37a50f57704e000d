# loom/errors.py


class LoomError(Exception):
    """Base class for errors raised by loom."""


class InvalidImage(LoomError, ValueError):
    """Image has zero area or could not be decoded."""


class ConfigError(LoomError, ValueError):
    """Settings file or mapping has unknown keys or wrongly typed values."""


class StaleSynthesisResult(LoomError):
    """
    A normal map finished for a texture that is no longer active.

    Only raised inside the assignment pipeline's handoff check, which drops it.
    """

    def __init__(self, finished: str, active: str | None) -> None:
        super().__init__(f"result for {finished} arrived while {active} is active")
        self.finished = finished
        self.active = active


class MeshNormalizationDegenerate(LoomError, RuntimeWarning):
    """Mesh bounding box has zero height; normalization keeps a scale of 1.0."""
