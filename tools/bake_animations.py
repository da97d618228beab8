#!/usr/bin/env python3
"""
Bake the skeletal animations of a GLTF/GLB model.

Writes, under the output directory:
* ``<model>_animations.json`` - skeleton tables, clip headers and constants
* ``<frames_name>.bin`` - packed 12-byte frame records for each clip
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Sequence

ROOT = Path(__file__).resolve().parents[1]

SRC_DIR = ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from skelbake.animation import AnimationResults, generate_animation_for_scene  # noqa: E402
from skelbake.config.settings import ExportSettings, InvalidSettingsError, load_settings  # noqa: E402
from skelbake.core.naming import UniqueNameRegistry  # noqa: E402
from skelbake.loaders import GltfSceneLoader  # noqa: E402

logger = logging.getLogger("bake_animations")


def _manifest(results: AnimationResults, settings: ExportSettings) -> dict:
    return {
        "settings": {
            "ticks_per_second": settings.ticks_per_second,
            "fixed_point_scale": settings.fixed_point_scale,
            "model_scale": settings.model_scale,
            "rotate_model": list(settings.rotate_model),
        },
        "bones": {
            "name": results.bones_name,
            "rest_pose": [
                {"position": list(entry.position), "rotation": list(entry.rotation), "scale": list(entry.scale)}
                for entry in results.rest_pose
            ],
        },
        "bone_parent": {"name": results.bone_parent_name, "values": results.bone_parents},
        "animations": {
            "name": results.animations_name,
            "headers": [
                {
                    "first_chunk_size": header.first_chunk_size,
                    "ticks_per_second": header.ticks_per_second,
                    "max_ticks": header.max_ticks,
                    "data": header.data_reference,
                }
                for header in results.headers
            ],
        },
        "clips": [
            {
                "name": clip.name,
                "frame_count": clip.frame_count,
                "bone_count": clip.bone_count,
                "frames": clip.frames_name,
                "ticks_per_second": clip.ticks_per_second,
            }
            for clip in results.clips
        ],
        "constants": results.constants,
    }


def cli(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Resample and quantize the skeletal animations of a GLTF/GLB model.",
    )
    parser.add_argument("model", type=Path, help="Input .gltf or .glb file.")
    parser.add_argument("--settings", help="JSON preset file, or the name of a bundled preset (e.g. n64).")
    parser.add_argument("--ticks-per-second", type=int, help="Target playback rate.")
    parser.add_argument("--fixed-point-scale", type=float, help="Position multiplier before truncation.")
    parser.add_argument("--model-scale", type=float, help="Uniform scale applied to root bones.")
    parser.add_argument("--workers", type=int, help="Animations resampled in parallel.")
    parser.add_argument("--prefix", default="", help="Prefix for every generated name.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("build"),
        help="Directory for the manifest and frame files (default: ./build).",
    )
    parser.add_argument(
        "--byteorder",
        choices=("big", "little"),
        default="big",
        help="Byte order of the packed frame records.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log per-bone details.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.settings) if args.settings else ExportSettings()
        settings = settings.with_overrides(
            ticks_per_second=args.ticks_per_second,
            fixed_point_scale=args.fixed_point_scale,
            model_scale=args.model_scale,
            max_workers=args.workers,
        ).validate()
    except (FileNotFoundError, InvalidSettingsError) as exc:
        parser.error(str(exc))

    try:
        scene = GltfSceneLoader().load(args.model)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Could not load %s: %s", args.model, exc)
        return 1

    results = generate_animation_for_scene(scene, settings, UniqueNameRegistry(args.prefix))

    args.output_dir.mkdir(parents=True, exist_ok=True)
    for clip in results.clips:
        frame_path = args.output_dir / f"{clip.frames_name}.bin"
        frame_path.write_bytes(clip.pack_frames(args.byteorder))
        logger.info("Wrote %s (%d frames x %d bones)", frame_path, clip.frame_count, clip.bone_count)

    manifest_path = args.output_dir / f"{args.model.stem}_animations.json"
    with open(manifest_path, "w") as f:
        json.dump(_manifest(results, settings), f, indent=2)
    logger.info("Wrote %s", manifest_path)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """CLI-compatible entry point."""

    return cli(argv)


if __name__ == "__main__":
    raise SystemExit(cli())
