# loom/demo.py
"""
Headless end-to-end run: load a model and a garment texture, normalize,
classify, synthesize and commit materials, then report per submesh.
"""

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from loom.assets.importers.texture import save_png
from loom.assets.server import AssetServer
from loom.assets.types import Mesh, PixelBuffer
from loom.config import LoomSettings, load_settings
from loom.errors import ConfigError
from loom.materials import MaterialRole
from loom.normalize import ModelNormalizer
from loom.pipeline import AssignmentState, MaterialAssignmentPipeline
from loom.shading.triplanar import TriplanarShadingModel

logger = logging.getLogger("loom.demo")


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="loom",
        description="Drape a garment texture over a model and report the result.",
    )
    parser.add_argument("model", type=Path, help="Wavefront OBJ model")
    parser.add_argument("texture", type=Path, help="PNG or JPEG garment pattern")
    parser.add_argument("--config", type=Path, help="TOML settings file")
    parser.add_argument(
        "--normal-map", type=Path, help="write the synthesized normal map here"
    )
    parser.add_argument(
        "--timeout", type=float, default=30.0, help="seconds to wait for synthesis"
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.INFO, format="%(levelname)s %(name)s: %(message)s"
    )

    try:
        settings = load_settings(args.config) if args.config else LoomSettings()
    except (ConfigError, OSError) as e:
        logger.error(f"Cannot read settings: {e}")
        return 2

    server = AssetServer(asset_root=Path("."))
    try:
        mesh_handle = server.load(str(args.model))
        texture_handle = server.load(str(args.texture))
    except ValueError as e:
        logger.error(e)
        return 2
    finally:
        server.shutdown(wait=True)
    server.update()

    if server.failures:
        for error in server.failures.values():
            logger.error(error)
        return 2

    mesh = server.registry.require(mesh_handle.id, Mesh)
    image = server.registry.require(texture_handle.id, PixelBuffer)

    transform = ModelNormalizer(settings.normalizer).normalize(mesh)
    rotation = transform.rotation.to_matrix3()

    pipeline = MaterialAssignmentPipeline(settings)
    try:
        pipeline.load_mesh(mesh)
        pipeline.set_texture(image)
        pipeline.wait(timeout=args.timeout)

        shading = TriplanarShadingModel(settings.shading)
        for sid, submesh in mesh:
            assignment = pipeline.assignments[sid]
            assert assignment.material is not None
            colors = shading.shade_material(
                transform.apply(submesh.positions),
                submesh.normals @ rotation.T,
                assignment.material,
            )
            mean = np.round(colors.mean(axis=0), 3) if len(colors) else []
            logger.info(
                f"{sid} '{submesh.name}': {assignment.role} "
                f"{assignment.state} {assignment.material.kind} mean={list(mean)}"
            )

        if args.normal_map:
            normal_map = pipeline.normal_map_for(image)
            if normal_map is not None:
                save_png(normal_map, args.normal_map)
                logger.info(f"Wrote normal map to {args.normal_map}")

        settled = all(
            a.state is AssignmentState.SHADED
            for a in pipeline.assignments.values()
            if a.role is MaterialRole.GARMENT
        )
    finally:
        pipeline.shutdown()

    return 0 if settled else 1
