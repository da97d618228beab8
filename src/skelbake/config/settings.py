"""
Export Configuration Settings

Default constants for the animation baker and the ExportSettings record
handed to every pipeline stage. Modify the defaults to change baker behavior,
or load a JSON preset with load_settings().
"""

import json
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from pyrr import Quaternion
import numpy as np

# ============================================================================
# Project Paths
# ============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
PRESETS_DIR = PROJECT_ROOT / "presets"

# ============================================================================
# Playback Defaults
# ============================================================================

DEFAULT_TICKS_PER_SECOND = 30      # Target playback rate of baked clips
DEFAULT_FIXED_POINT_SCALE = 256.0  # Model units -> fixed point position units
DEFAULT_MODEL_SCALE = 1.0          # Uniform scale folded into root bones
DEFAULT_ROTATE_MODEL = (0.0, 0.0, 0.0, 1.0)  # Root orientation correction (x, y, z, w)
DEFAULT_MAX_WORKERS = 1            # Animations resampled in parallel (1 = serial)

# ============================================================================
# Runtime Format
# ============================================================================

MAX_SHORT = 32767                  # Rotation components are scaled by this
MIN_SHORT = -32768
NO_PARENT_INDEX = 0xFFFF           # Bone parent table entry for root bones
FRAME_RECORD_SIZE = 12             # 3 x int16 position + 3 x int16 rotation
ATTACHMENT_PREFIX = "attachment "  # Bones named "attachment <slot>" expose a slot constant

# ============================================================================
# Source Formats
# ============================================================================

GLTF_TICKS_PER_SECOND = 1000.0     # glTF seconds are converted to millisecond ticks
GLTF_ROOT_NODE_NAME = "RootNode"   # Synthetic root for multi-root glTF scenes

UNIT_QUATERNION_TOLERANCE = 1e-3


class InvalidSettingsError(ValueError):
    """Raised when export settings cannot produce a valid animation set."""


@dataclass(frozen=True)
class ExportSettings:
    """
    Settings shared by every stage of the animation bake.

    Attributes:
        ticks_per_second: Target playback rate of the baked clips
        fixed_point_scale: Multiplier applied to positions before truncation
        model_scale: Uniform scale applied to root bones only
        rotate_model: Root orientation correction quaternion (x, y, z, w)
        max_workers: Number of animations resampled concurrently
    """

    ticks_per_second: int = DEFAULT_TICKS_PER_SECOND
    fixed_point_scale: float = DEFAULT_FIXED_POINT_SCALE
    model_scale: float = DEFAULT_MODEL_SCALE
    rotate_model: Tuple[float, float, float, float] = DEFAULT_ROTATE_MODEL
    max_workers: int = DEFAULT_MAX_WORKERS

    @property
    def root_rotation(self) -> Quaternion:
        """Root orientation correction as a pyrr quaternion."""
        return Quaternion(np.array(self.rotate_model, dtype=np.float64))

    def validate(self) -> "ExportSettings":
        """
        Check the settings for values the baker cannot work with.

        Returns:
            self, so calls can be chained

        Raises:
            InvalidSettingsError: If any value is out of range
        """
        if int(self.ticks_per_second) != self.ticks_per_second or self.ticks_per_second <= 0:
            raise InvalidSettingsError(
                f"ticks_per_second must be a positive integer, got {self.ticks_per_second!r}"
            )
        if not math.isfinite(self.fixed_point_scale) or self.fixed_point_scale == 0.0:
            raise InvalidSettingsError(
                f"fixed_point_scale must be finite and non-zero, got {self.fixed_point_scale!r}"
            )
        if not math.isfinite(self.model_scale) or self.model_scale == 0.0:
            raise InvalidSettingsError(
                f"model_scale must be finite and non-zero, got {self.model_scale!r}"
            )
        if len(self.rotate_model) != 4:
            raise InvalidSettingsError(
                f"rotate_model needs 4 components (x, y, z, w), got {self.rotate_model!r}"
            )
        length = float(np.linalg.norm(np.array(self.rotate_model, dtype=np.float64)))
        if abs(length - 1.0) > UNIT_QUATERNION_TOLERANCE:
            raise InvalidSettingsError(
                f"rotate_model must be a unit quaternion, got length {length:.4f}"
            )
        if self.max_workers < 1:
            raise InvalidSettingsError(f"max_workers must be at least 1, got {self.max_workers!r}")
        return self

    def with_overrides(self, **overrides) -> "ExportSettings":
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "rotate_model" in changes:
            changes["rotate_model"] = tuple(float(v) for v in changes["rotate_model"])
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportSettings":
        """
        Build settings from a preset dictionary, merged over the defaults.

        Args:
            data: Mapping of field name to value

        Raises:
            InvalidSettingsError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidSettingsError(f"Unknown export settings: {', '.join(unknown)}")

        return cls().with_overrides(**data).validate()


def resolve_preset(name: Union[str, Path]) -> Path:
    """Map a bare preset name such as "n64" to PRESETS_DIR/n64.json; paths pass through."""
    path = Path(name)
    if path.suffix or path.exists():
        return path
    return PRESETS_DIR / f"{path.name}.json"


def load_settings(path: Union[str, Path]) -> ExportSettings:
    """
    Load an ExportSettings preset from a JSON file.

    Args:
        path: Path to the JSON preset, or the name of a bundled preset

    Returns:
        Validated ExportSettings
    """
    path = resolve_preset(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings preset not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise InvalidSettingsError(f"Settings preset must be a JSON object: {path}")

    return ExportSettings.from_dict(data)
