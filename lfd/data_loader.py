"""
LFD Actions Data Loader

Reads and writes example libraries and recorded actions as JSON, and pairs
independently sampled pose and joint streams into well-formed actions.

Supports two dataset layouts:
- Legacy: Array of actions directly: [{action1}, {action2}, ...]
- 1.0: Wrapper object: {version: "1.0", k: 3, actions: [...]}

Each action is {label: "wave" | null, frames: [{position, orientation, joint_angles}, ...]}
"""

import json
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import numpy as np

from .knn import Dataset
from .schema import (
    Action, DEFAULT_K,
    ActionError, EmptyTrajectoryError, MalformedTrajectoryError
)


FORMAT_VERSION = '1.0'

PathLike = Union[str, Path]


# =============================================================================
# DATASETS
# =============================================================================

def _read_json(path: Path) -> Any:
    with open(path, 'r') as f:
        return json.load(f)


def _decode_actions(items: Any, path: Path) -> List[Action]:
    if not isinstance(items, list):
        raise ValueError(f"Expected a list of actions in {path}")

    actions = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise MalformedTrajectoryError(f"{path}: action {i} is not an object")
        try:
            actions.append(Action.from_dict(item))
        except ActionError as e:
            raise type(e)(f"{path}: action {i}: {e}") from e
    return actions


def load_dataset(path: PathLike, k: Optional[int] = None) -> Dataset:
    """
    Load an example library from a JSON file.

    A missing file gives an empty library, so a supervised session can
    build one from scratch.

    Args:
        path: Path to the dataset .json file
        k: Neighbor count; overrides the value stored in the file
           (default: file value, else DEFAULT_K)

    Returns:
        Dataset holding every stored action
    """
    path = Path(path)
    if not path.exists():
        return Dataset([], k=DEFAULT_K if k is None else k)

    raw_json = _read_json(path)

    if isinstance(raw_json, list):
        items = raw_json
        stored_k = None
    elif isinstance(raw_json, dict) and 'actions' in raw_json:
        items = raw_json['actions']
        stored_k = raw_json.get('k')
    else:
        raise ValueError(f"Unknown JSON format in {path}: expected array or object with 'actions' key")

    actions = _decode_actions(items, path)
    if k is None:
        k = DEFAULT_K if stored_k is None else stored_k
    return Dataset(actions, k=k)


def save_dataset(dataset: Dataset, path: PathLike):
    """Write a library (and its k) to a JSON file."""
    output = {
        'version': FORMAT_VERSION,
        'k': dataset.k,
        'actions': [a.to_dict() for a in dataset.examples]
    }

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(output, f, indent=2)


# =============================================================================
# RECORDED ACTIONS
# =============================================================================

def load_actions(path: PathLike) -> List[Action]:
    """
    Load recorded actions from a JSON file.

    The file holds either a single action object or a list of them.
    """
    path = Path(path)
    raw_json = _read_json(path)

    if isinstance(raw_json, dict):
        raw_json = [raw_json]
    return _decode_actions(raw_json, path)


def save_action(action: Action, path: PathLike):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(action.to_dict(), f, indent=2)


# =============================================================================
# STREAM PAIRING
# =============================================================================

def _resample_indices(count: int, num_frames: int) -> np.ndarray:
    """Nearest-sample indices spreading `count` samples over `num_frames` frames."""
    return np.rint(np.linspace(0, count - 1, num_frames)).astype(int)


def pair_streams(positions: Sequence[Sequence[float]],
                 orientations: Sequence[Sequence[float]],
                 joint_angles: Sequence[Sequence[float]],
                 label: Optional[str] = None) -> Action:
    """
    Build an action from pose and joint streams sampled independently.

    The pose stream (positions + orientations, one entry per pose message)
    and the joint stream may hold different numbers of samples. Both are
    resampled by nearest index onto the longer stream's length, assuming
    the two streams cover the same time span.

    Args:
        positions: Pose stream positions, shape (P, 3)
        orientations: Pose stream quaternions (w, x, y, z), shape (P, 4)
        joint_angles: Joint stream, shape (J, NUM_JOINTS)
        label: Optional label for the action

    Returns:
        Action with max(P, J) frames
    """
    if len(positions) != len(orientations):
        raise MalformedTrajectoryError(
            f"Pose stream has {len(positions)} positions but {len(orientations)} orientations")
    if len(positions) == 0 or len(joint_angles) == 0:
        raise EmptyTrajectoryError("Cannot pair empty streams")

    num_frames = max(len(positions), len(joint_angles))
    pose_idx = _resample_indices(len(positions), num_frames)
    joint_idx = _resample_indices(len(joint_angles), num_frames)

    return Action(
        positions=[positions[i] for i in pose_idx],
        orientations=[orientations[i] for i in pose_idx],
        joint_angles=[joint_angles[i] for i in joint_idx],
        label=label
    )
