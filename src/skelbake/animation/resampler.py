"""
Animation Resampler

Turns sparse source clips into dense, fixed-rate, fixed-point bone poses.

Every output frame stores, per bone, a position scaled by the fixed point
factor and the x, y, z parts of the rotation scaled to int16. The rotation's
w is dropped; the stored components are negated when w < 0 so the runtime
can always rebuild w as a non-negative value.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

from pyrr import Quaternion, Vector3, quaternion
import numpy as np

from ..config.settings import ExportSettings, MAX_SHORT, MIN_SHORT
from .animation import SourceAnimation
from .keyframes import evaluate_quaternion_at, evaluate_vector_at
from .skeleton import BoneHierarchy

logger = logging.getLogger(__name__)

# Per-bone slot layout in a frame
POSITION_SLICE = slice(0, 3)
ROTATION_SLICE = slice(3, 6)
VALUES_PER_BONE = 6


class BoneFrame(NamedTuple):
    """Quantized pose of one bone in one frame."""
    position: Tuple[int, int, int]
    rotation: Tuple[int, int, int]


class ResampledClip:
    """
    Dense fixed-rate replacement for a source animation.

    Attributes:
        name: Source animation name
        frame_count: Number of output frames (at least 1)
        bone_count: Number of bones per frame
        ticks_per_second: Target playback rate
        channel_count: Bones that had a matching track in the source clip
        data: int16 array of shape (frame_count, bone_count, 6)
    """

    def __init__(self, name: str, frame_count: int, bone_count: int, ticks_per_second: int,
                 data: Optional[np.ndarray] = None):
        self.name = name
        self.frame_count = frame_count
        self.bone_count = bone_count
        self.ticks_per_second = ticks_per_second
        self.channel_count = 0
        # Zero-filled slots hold the identity pose for bones without a track
        self.data = data if data is not None else np.zeros(
            (frame_count, bone_count, VALUES_PER_BONE), dtype=np.int16
        )

    @property
    def positions(self) -> np.ndarray:
        return self.data[:, :, POSITION_SLICE]

    @property
    def rotations(self) -> np.ndarray:
        return self.data[:, :, ROTATION_SLICE]

    def bone_frame(self, frame: int, bone: int) -> BoneFrame:
        values = self.data[frame, bone]
        return BoneFrame(
            tuple(int(v) for v in values[POSITION_SLICE]),
            tuple(int(v) for v in values[ROTATION_SLICE]),
        )

    def frames(self) -> Iterator[List[BoneFrame]]:
        """Yield every frame as a list of per-bone poses in bone order."""
        for frame in range(self.frame_count):
            yield [self.bone_frame(frame, bone) for bone in range(self.bone_count)]

    def __repr__(self):
        return (f"ResampledClip(name='{self.name}', frames={self.frame_count}, "
                f"bones={self.bone_count}, channels={self.channel_count})")


def compute_frame_count(duration: float, source_ticks_per_second: float,
                        target_ticks_per_second: float) -> int:
    """
    Number of target-rate frames needed to cover a source clip.

    Raises:
        ValueError: If either rate is not positive
    """
    if source_ticks_per_second <= 0:
        raise ValueError(f"Source ticks per second must be positive, got {source_ticks_per_second}")
    if target_ticks_per_second <= 0:
        raise ValueError(f"Target ticks per second must be positive, got {target_ticks_per_second}")

    return max(1, math.ceil(duration * target_ticks_per_second / source_ticks_per_second))


def _to_short(values: np.ndarray, what: str) -> np.ndarray:
    """Truncate toward zero and store as int16, clamping out-of-range values.

    Scaling and truncation happen in float64.
    """
    truncated = np.trunc(np.asarray(values, dtype=np.float64))
    if np.any(truncated > MAX_SHORT) or np.any(truncated < MIN_SHORT):
        logger.warning("%s %s does not fit in 16 bits; clamping", what, truncated.tolist())
        truncated = np.clip(truncated, MIN_SHORT, MAX_SHORT)
    return truncated.astype(np.int16)


def quantize_position(position, fixed_point_scale: float) -> np.ndarray:
    """Scale a position into fixed point units and truncate to int16."""
    return _to_short(np.asarray(position, dtype=np.float64) * fixed_point_scale, "Position")


def quantize_rotation(rotation) -> np.ndarray:
    """
    Reduce a unit quaternion (x, y, z, w) to three int16 components.

    The components are negated when w is negative so w can be rebuilt as
    sqrt(1 - x^2 - y^2 - z^2).
    """
    q = np.asarray(rotation, dtype=np.float64)
    xyz = -q[:3] if q[3] < 0.0 else q[:3]
    return _to_short(xyz * MAX_SHORT, "Rotation")


def decode_rotation(stored: Sequence[int]) -> Quaternion:
    """Rebuild a unit quaternion with non-negative w from three stored components."""
    xyz = np.asarray(stored, dtype=np.float64) / MAX_SHORT
    w = math.sqrt(max(0.0, 1.0 - float(np.dot(xyz, xyz))))
    return Quaternion([xyz[0], xyz[1], xyz[2], w])


def apply_root_correction(position, rotation, settings: ExportSettings) -> Tuple[Vector3, Quaternion]:
    """Fold the model orientation and scale into a root bone's pose."""
    root_rotation = settings.root_rotation
    rotated = quaternion.apply_to_vector(root_rotation, np.asarray(position, dtype=np.float64))
    position = Vector3(np.asarray(rotated, dtype=np.float64) * settings.model_scale)
    rotation = Quaternion(quaternion.cross(root_rotation, np.asarray(rotation, dtype=np.float64)))
    return position, rotation


def resample_animation(animation: SourceAnimation, bones: BoneHierarchy,
                       settings: ExportSettings) -> Optional[ResampledClip]:
    """
    Resample one source clip onto the target tick rate.

    Args:
        animation: Source clip
        bones: Canonical bone ordering
        settings: Target rate, fixed point scale and root correction

    Returns:
        ResampledClip, or None when no bone has a track in this clip
    """
    frame_count = compute_frame_count(
        animation.duration, animation.ticks_per_second, settings.ticks_per_second
    )
    clip = ResampledClip(animation.name, frame_count, bones.bone_count, settings.ticks_per_second)

    for bone in bones:
        track = animation.get_track(bone.name)
        if track is None:
            logger.debug("Bone '%s' has no track in '%s'; holding identity", bone.name, animation.name)
            continue

        clip.channel_count += 1

        for frame in range(frame_count):
            at = frame * animation.ticks_per_second / settings.ticks_per_second

            position = evaluate_vector_at(track.position_keys, at)
            rotation = evaluate_quaternion_at(track.rotation_keys, at)

            if bone.is_root:
                position, rotation = apply_root_correction(position, rotation, settings)

            clip.data[frame, bone.index, POSITION_SLICE] = quantize_position(
                position, settings.fixed_point_scale
            )
            clip.data[frame, bone.index, ROTATION_SLICE] = quantize_rotation(rotation)

    if clip.channel_count == 0:
        logger.info("Skipping animation '%s': no tracks match any bone", animation.name)
        return None

    logger.debug("Resampled %r", clip)
    return clip


def resample_animations(animations: Sequence[SourceAnimation], bones: BoneHierarchy,
                        settings: ExportSettings) -> List[Optional[ResampledClip]]:
    """
    Resample every animation, in parallel when settings.max_workers > 1.

    Returns:
        One entry per source animation, in source order (None for skipped clips)
    """
    if settings.max_workers <= 1 or len(animations) <= 1:
        return [resample_animation(animation, bones, settings) for animation in animations]

    with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
        return list(pool.map(lambda animation: resample_animation(animation, bones, settings), animations))
