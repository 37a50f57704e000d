from concurrent.futures import Executor, Future

import numpy as np
import pytest

from loom.assets.types import Mesh, PixelBuffer, Submesh


class ManualExecutor(Executor):
    """Queues submitted work; nothing runs until a test calls run()."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.jobs.append((future, fn, args, kwargs))
        return future

    def start(self, index=0):
        """Mark a job as picked up by a worker; it can no longer be cancelled."""
        self.jobs[index][0].set_running_or_notify_cancel()

    def run(self, index=0):
        future, fn, args, kwargs = self.jobs.pop(index)
        if not future.running() and not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)

    def run_all(self):
        while self.jobs:
            self.run(0)


def make_image(rgba_rows):
    """PixelBuffer from nested [[(r, g, b, a), ...], ...] rows."""
    return PixelBuffer.from_array(np.array(rgba_rows, dtype=np.uint8))


def solid_image(width, height, color=(200, 40, 40, 255)):
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = color
    return PixelBuffer.from_array(pixels)


def make_submesh(name, vertex_count, source_material_name=None):
    positions = np.zeros((vertex_count, 3), dtype=np.float32)
    positions[:, 1] = np.linspace(0.0, 1.0, vertex_count, dtype=np.float32)
    normals = np.tile(np.array([0.0, 0.0, 1.0], dtype=np.float32), (vertex_count, 1))
    return Submesh.create(name, positions, normals, source_material_name)


@pytest.fixture
def executor():
    return ManualExecutor()


@pytest.fixture
def checkerboard():
    """4x4 black/white checkerboard with 1-pixel cells."""
    pixels = np.zeros((4, 4, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    ys, xs = np.indices((4, 4))
    pixels[(xs + ys) % 2 == 0, :3] = 255
    return PixelBuffer.from_array(pixels)


@pytest.fixture
def body_and_saree():
    """The two-submesh avatar: a coarse body and a finely tessellated saree."""
    return Mesh(
        submeshes=(
            make_submesh("Body", 5_000),
            make_submesh("Saree", 40_000),
        )
    )
