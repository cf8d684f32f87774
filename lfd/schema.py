"""
LFD Actions Data Schema

Defines the recorded action (trajectory) structures used for
nearest-neighbor gesture recognition, the joint layout of the arm,
and the error types raised when an action or library is unusable.
"""

from dataclasses import dataclass
from typing import List, Optional, Dict, Any, Sequence, Iterator

import numpy as np


# =============================================================================
# ARM LAYOUT
# =============================================================================

# Joint state vector of the arm: 6 arm joints followed by 2 finger joints
NUM_JOINTS = 8

# Only the finger joints take part in the distance metric
FINGER_JOINTS = [6, 7]

# Finger joint differences are scaled up to be comparable to pose distances
JOINT_WEIGHT = 10.0

# Quaternions shorter than this cannot be normalized to an orientation
MIN_QUATERNION_NORM = 1e-9

# Neighbors consulted by the classifier when none are configured
DEFAULT_K = 3


# =============================================================================
# ERRORS
# =============================================================================

class ActionError(ValueError):
    """Base class for unusable actions or libraries."""


class EmptyTrajectoryError(ActionError):
    """An action has no frames."""


class MalformedTrajectoryError(ActionError):
    """An action's channels disagree in length or shape, or hold bad values."""


class EmptyLibraryError(ActionError):
    """Classification was requested from a library with no examples."""


class InvalidConfigurationError(ActionError):
    """A classifier was configured with unusable parameters (e.g. k < 1)."""


# =============================================================================
# FRAMES AND ACTIONS
# =============================================================================

@dataclass(frozen=True)
class Frame:
    """
    A single captured arm state.

    position: end effector (x, y, z)
    orientation: end effector quaternion (w, x, y, z)
    joint_angles: all joint positions in radians, finger joints last
    """
    position: tuple
    orientation: tuple
    joint_angles: tuple

    def to_dict(self) -> Dict[str, List[float]]:
        return {
            "position": list(self.position),
            "orientation": list(self.orientation),
            "joint_angles": list(self.joint_angles)
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Frame':
        return cls(
            position=tuple(float(v) for v in d['position']),
            orientation=tuple(float(v) for v in d['orientation']),
            joint_angles=tuple(float(v) for v in d['joint_angles'])
        )


def _as_channel(values: Any, name: str, width: Optional[int] = None,
                min_width: Optional[int] = None) -> np.ndarray:
    """Convert one channel to a read-only (N, width) float64 array."""
    try:
        arr = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise MalformedTrajectoryError(f"{name}: {e}") from e

    if arr.size == 0:
        arr = arr.reshape(0, width or min_width or 0)
    if arr.ndim != 2:
        raise MalformedTrajectoryError(
            f"{name} must be a sequence of vectors, got shape {arr.shape}")
    if width is not None and arr.shape[1] != width:
        raise MalformedTrajectoryError(
            f"{name} vectors must have {width} components, got {arr.shape[1]}")
    if min_width is not None and arr.shape[1] < min_width:
        raise MalformedTrajectoryError(
            f"{name} vectors need at least {min_width} entries, got {arr.shape[1]}")
    if not np.all(np.isfinite(arr)):
        raise MalformedTrajectoryError(f"{name} contains non-finite values")

    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Action:
    """
    A recorded arm motion: time-ordered poses and joint states.

    The pose channels (positions, orientations) and the joint channel are
    paired frame by frame, so all three must hold the same number of rows.
    Arrays are stored read-only; use with_label() to get a relabelled copy.
    """
    positions: np.ndarray      # Shape: (N, 3)
    orientations: np.ndarray   # Shape: (N, 4), (w, x, y, z)
    joint_angles: np.ndarray   # Shape: (N, J), J >= max(FINGER_JOINTS) + 1
    label: Optional[str] = None

    def __post_init__(self):
        positions = _as_channel(self.positions, 'positions', width=3)
        orientations = _as_channel(self.orientations, 'orientations', width=4)
        joint_angles = _as_channel(self.joint_angles, 'joint_angles',
                                   min_width=max(FINGER_JOINTS) + 1)

        counts = {len(positions), len(orientations), len(joint_angles)}
        if counts == {0}:
            raise EmptyTrajectoryError("Action has no frames")
        if len(counts) != 1:
            raise MalformedTrajectoryError(
                f"Channel frame counts differ: {len(positions)} positions, "
                f"{len(orientations)} orientations, {len(joint_angles)} joint states")
        if self.label is not None and not isinstance(self.label, str):
            raise MalformedTrajectoryError(f"Label must be a string, got {self.label!r}")

        # The metric treats the conjugate as the inverse, so store unit quaternions
        norms = np.linalg.norm(orientations, axis=1, keepdims=True)
        if np.any(norms < MIN_QUATERNION_NORM):
            raise MalformedTrajectoryError("orientations contain a zero-length quaternion")
        orientations = orientations / norms
        orientations.setflags(write=False)

        object.__setattr__(self, 'positions', positions)
        object.__setattr__(self, 'orientations', orientations)
        object.__setattr__(self, 'joint_angles', joint_angles)

    def __len__(self) -> int:
        return len(self.positions)

    def __getitem__(self, index: int) -> Frame:
        return Frame(
            position=tuple(self.positions[index].tolist()),
            orientation=tuple(self.orientations[index].tolist()),
            joint_angles=tuple(self.joint_angles[index].tolist())
        )

    def __iter__(self) -> Iterator[Frame]:
        for i in range(len(self)):
            yield self[i]

    @property
    def frames(self) -> List[Frame]:
        return list(self)

    def with_label(self, label: str) -> 'Action':
        """Return a copy of this action carrying a new label."""
        return Action(
            positions=self.positions,
            orientations=self.orientations,
            joint_angles=self.joint_angles,
            label=label
        )

    @classmethod
    def from_frames(cls, frames: Sequence[Frame], label: Optional[str] = None) -> 'Action':
        return cls(
            positions=[f.position for f in frames],
            orientations=[f.orientation for f in frames],
            joint_angles=[f.joint_angles for f in frames],
            label=label
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "frames": [f.to_dict() for f in self]
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Action':
        try:
            frames = [Frame.from_dict(f) for f in d['frames']]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedTrajectoryError(f"Invalid frame data: {e!r}") from e
        return cls.from_frames(frames, label=d.get('label'))


def require_frames(action: Action) -> Action:
    """Reject actions with no frames before they reach the metric or library."""
    if len(action) == 0:
        raise EmptyTrajectoryError("Action has no frames")
    return action
