"""
Animation

Sparse keyframe animation data as delivered by a scene parser.
"""

from typing import Iterable, List, Optional
from pyrr import Quaternion, Vector3
import numpy as np


class Keyframe:
    """
    Single keyframe in a track.

    Stores time (in source ticks) and value for one property.
    """

    def __init__(self, time: float, value):
        """
        Initialize keyframe.

        Args:
            time: Time in source ticks
            value: Value at this time (Vector3 for positions, Quaternion for rotations)
        """
        self.time = float(time)
        self.value = value

    def __repr__(self):
        return f"Keyframe(t={self.time:.3f}, v={self.value})"


class AnimationTrack:
    """
    Keyframe data for one animated node.

    Position and rotation keys are independent sequences, each sorted by time.
    """

    def __init__(self, node_name: str):
        """
        Initialize animation track.

        Args:
            node_name: Name of the node this track drives
        """
        self.node_name = node_name
        self.position_keys: List[Keyframe] = []
        self.rotation_keys: List[Keyframe] = []

    def add_position_key(self, time: float, value):
        """Add a position key (x, y, z)."""
        self.position_keys.append(Keyframe(time, Vector3(np.asarray(value, dtype=np.float64))))

    def add_rotation_key(self, time: float, value):
        """Add a rotation key as a quaternion (x, y, z, w)."""
        self.rotation_keys.append(Keyframe(time, Quaternion(np.asarray(value, dtype=np.float64))))

    def sort_keys(self):
        """Order both key sequences by time (stable for equal times)."""
        self.position_keys.sort(key=lambda k: k.time)
        self.rotation_keys.sort(key=lambda k: k.time)

    @property
    def end_time(self) -> float:
        """Time of the last key on either sequence."""
        times = [k.time for k in self.position_keys[-1:] + self.rotation_keys[-1:]]
        return max(times) if times else 0.0

    def __repr__(self):
        return (f"AnimationTrack(node='{self.node_name}', positions={len(self.position_keys)}, "
                f"rotations={len(self.rotation_keys)})")


class SourceAnimation:
    """
    Complete source clip with one track per animated node.

    Durations and key times are in source ticks; ticks_per_second converts
    them to seconds. Not every bone needs a track.
    """

    def __init__(self, name: str, duration: float = 0.0, ticks_per_second: float = 1.0,
                 tracks: Optional[Iterable[AnimationTrack]] = None):
        """
        Initialize animation.

        Args:
            name: Animation name
            duration: Length of the clip in source ticks
            ticks_per_second: Source tick rate
            tracks: Initial tracks
        """
        self.name = name
        self.duration = float(duration)
        self.ticks_per_second = float(ticks_per_second)
        self.tracks: List[AnimationTrack] = []
        for track in tracks or ():
            self.add_track(track)

    def add_track(self, track: AnimationTrack):
        """Add a track. The declared duration is left unchanged."""
        self.tracks.append(track)

    def get_track(self, node_name: str) -> Optional[AnimationTrack]:
        """
        Find the track for a node by exact name.

        Returns:
            The first matching track, or None
        """
        for track in self.tracks:
            if track.node_name == node_name:
                return track
        return None

    @property
    def node_names(self) -> List[str]:
        return [track.node_name for track in self.tracks]

    def __repr__(self):
        return (f"SourceAnimation(name='{self.name}', duration={self.duration:.2f} ticks, "
                f"rate={self.ticks_per_second:g}, tracks={len(self.tracks)})")
