"""
Clip Packager

Assembles resampled clips and skeleton tables into named records for the
definition emitter.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from ..config.settings import (
    ATTACHMENT_PREFIX,
    FRAME_RECORD_SIZE,
    NO_PARENT_INDEX,
    ExportSettings,
)
from ..core.naming import UniqueNameRegistry
from .resampler import ResampledClip, VALUES_PER_BONE, quantize_position, quantize_rotation
from .skeleton import BoneHierarchy

logger = logging.getLogger(__name__)

_BYTE_ORDERS = {"big": ">", "little": "<"}


@dataclass
class AnimationClipRecord:
    """
    One output clip: metadata plus its dense frame block.

    frames has shape (frame_count * bone_count, 6): frame-major, then bone.
    """
    name: str
    frames_name: str
    frame_count: int
    bone_count: int
    ticks_per_second: int
    frames: np.ndarray

    def pack_frames(self, byteorder: str = "big") -> bytes:
        """
        Serialize the frame block as 12-byte records (3 x int16 position, 3 x int16 rotation).

        Args:
            byteorder: "big" (the runtime's native order) or "little"
        """
        if byteorder not in _BYTE_ORDERS:
            raise ValueError(f"Unknown byte order: {byteorder!r}")
        return self.frames.astype(f"{_BYTE_ORDERS[byteorder]}i2").tobytes()

    @property
    def data_size(self) -> int:
        return self.frame_count * self.bone_count * FRAME_RECORD_SIZE


@dataclass
class AnimationHeaderEntry:
    """Row of the cross-clip header table."""
    first_chunk_size: int
    ticks_per_second: int
    max_ticks: int
    data_reference: str


@dataclass
class RestPoseEntry:
    """Quantized default pose of one bone."""
    position: Tuple[int, int, int]
    rotation: Tuple[int, int, int]
    scale: Tuple[float, float, float]


@dataclass
class AnimationResults:
    """
    Everything the animation stage hands to the definition emitter.

    Constants keep insertion order: bone count, clip indices, attachment slots,
    attachment count.
    """
    bones_name: str
    bone_parent_name: str
    animations_name: str
    bone_count_macro: str
    attachment_count_macro: str
    rest_pose: List[RestPoseEntry] = field(default_factory=list)
    bone_parents: List[int] = field(default_factory=list)
    clips: List[AnimationClipRecord] = field(default_factory=list)
    headers: List[AnimationHeaderEntry] = field(default_factory=list)
    constants: Dict[str, int] = field(default_factory=dict)


class ClipPackager:
    """
    Builds named output records; every name comes from the injected registry.
    """

    def __init__(self, names: UniqueNameRegistry):
        """
        Initialize packager.

        Args:
            names: Naming authority shared with the rest of the output file
        """
        self.names = names
        self.clip_count = 0

    def package_clip(self, clip: ResampledClip) -> Tuple[AnimationClipRecord, AnimationHeaderEntry, Tuple[str, int]]:
        """
        Wrap a resampled clip into its output record and header row.

        Args:
            clip: Dense clip from the resampler

        Returns:
            (record, header entry, (index constant name, index value))
        """
        animation_name = self.names.get_unique_name(clip.name)
        frames_name = self.names.claim(f"{animation_name}_data")
        clip_name = self.names.claim(f"{animation_name}_clip")

        frames = np.ascontiguousarray(
            clip.data.reshape(clip.frame_count * clip.bone_count, VALUES_PER_BONE)
        )
        record = AnimationClipRecord(
            name=clip_name,
            frames_name=frames_name,
            frame_count=clip.frame_count,
            bone_count=clip.bone_count,
            ticks_per_second=clip.ticks_per_second,
            frames=frames,
        )

        header = AnimationHeaderEntry(
            first_chunk_size=clip.bone_count * FRAME_RECORD_SIZE,
            ticks_per_second=clip.ticks_per_second,
            max_ticks=clip.frame_count,
            data_reference=frames_name,
        )

        index_macro = self.names.claim(f"{animation_name}_INDEX".upper())
        index = self.clip_count
        self.clip_count += 1

        logger.debug("Packaged clip '%s' as %s (%d bytes)", clip.name, clip_name, record.data_size)
        return record, header, (index_macro, index)

    @staticmethod
    def build_bone_parent_table(bones: BoneHierarchy) -> List[int]:
        """Parent bone index per bone, NO_PARENT_INDEX for roots."""
        return [bone.parent.index if bone.parent is not None else NO_PARENT_INDEX for bone in bones]

    def build_attachment_constants(self, bones: BoneHierarchy,
                                   prefix: str = ATTACHMENT_PREFIX) -> Tuple[Dict[str, int], str]:
        """
        Number the attachment bones.

        A bone named "attachment hand" yields ATTACHMENT_HAND = <ordinal among
        attachment bones>.

        Returns:
            (slot constants, name of the attachment count constant); the count
            constant is included in the returned dict
        """
        constants: Dict[str, int] = {}
        for ordinal, bone in enumerate(bones.attachment_bones(prefix)):
            slot = bone.name[len(prefix):]
            constants[self.names.get_macro_name(f"ATTACHMENT_{slot}")] = ordinal

        count_macro = self.names.get_macro_name("ATTACHMENT_COUNT")
        constants[count_macro] = len(constants)
        return constants, count_macro

    @staticmethod
    def build_rest_pose_table(bones: BoneHierarchy, settings: ExportSettings) -> List[RestPoseEntry]:
        """Quantize every bone's rest pose the same way clip frames are quantized."""
        table = []
        for bone in bones:
            position = quantize_position(bone.rest_position, settings.fixed_point_scale)
            rotation = quantize_rotation(bone.rest_rotation)
            table.append(RestPoseEntry(
                position=tuple(int(v) for v in position),
                rotation=tuple(int(v) for v in rotation),
                scale=tuple(float(v) for v in bone.rest_scale),
            ))
        return table
