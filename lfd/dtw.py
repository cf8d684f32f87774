"""
Dynamic Time Warping for Arm Actions

Computes a speed-tolerant dissimilarity between two recorded actions of
possibly different lengths. Each pair of frames is scored by

    position distance + orientation distance + weighted finger joint distance

and the per-frame scores are accumulated along the cheapest monotone
alignment of the two sequences.

Usage:
    from lfd.dtw import distance
    score = distance(recorded, example)
"""

import math
from typing import Optional, Sequence

import numpy as np
from scipy.spatial.distance import cdist

from .schema import Action, Frame, FINGER_JOINTS, JOINT_WEIGHT, require_frames


TWO_PI = 2.0 * math.pi


# =============================================================================
# PAIRWISE METRICS
# =============================================================================

def _wrap_angle(diff: np.ndarray) -> np.ndarray:
    """Map absolute angle differences onto [0, pi]."""
    return np.abs(np.mod(np.abs(diff) + np.pi, TWO_PI) - np.pi)


def _quaternion_error(qx: np.ndarray, qy: np.ndarray) -> np.ndarray:
    """
    Angular correction from qx to qy: vector part of 2 * (qx^-1 * qy).

    Quaternions are (w, x, y, z) on the last axis and broadcast against
    each other. For unit quaternions the norm of the result is
    2 * sin(theta / 2), theta being the angle between the orientations.
    """
    wx, vx = qx[..., :1], qx[..., 1:]
    wy, vy = qy[..., :1], qy[..., 1:]
    return 2.0 * (wx * vy - wy * vx - np.cross(vx, vy))


def _rows(values: Sequence, width: Optional[int] = None) -> np.ndarray:
    """View one vector, or a sequence of them, as a 2D float64 array."""
    arr = np.atleast_2d(np.asarray(values, dtype=np.float64))
    if width is not None:
        arr = arr.reshape(-1, width)
    return arr


def position_costs(px: np.ndarray, py: np.ndarray) -> np.ndarray:
    """Euclidean distances between positions px (N, 3) and py (M, 3)."""
    return cdist(px, py, metric='euclidean')


def orientation_costs(qx: np.ndarray, qy: np.ndarray) -> np.ndarray:
    """Rotation magnitudes between quaternions qx (N, 4) and qy (M, 4)."""
    errors = _quaternion_error(qx[:, np.newaxis, :], qy[np.newaxis, :, :])
    return np.linalg.norm(errors, axis=-1)


def joint_costs(jx: np.ndarray, jy: np.ndarray) -> np.ndarray:
    """Weighted finger joint differences between joint states jx (N, J) and jy (M, J)."""
    fx = jx[:, FINGER_JOINTS]
    fy = jy[:, FINGER_JOINTS]
    diffs = _wrap_angle(fy[np.newaxis, :, :] - fx[:, np.newaxis, :])
    return JOINT_WEIGHT * np.sum(diffs, axis=-1)


# =============================================================================
# PER-FRAME METRICS
# =============================================================================

def position_distance(p1: Sequence[float], p2: Sequence[float]) -> float:
    """Euclidean distance between two end effector positions."""
    return float(position_costs(_rows(p1, 3), _rows(p2, 3))[0, 0])


def quaternion_distance(q1: Sequence[float], q2: Sequence[float]) -> float:
    """Magnitude of the rotation taking orientation q1 onto q2."""
    return float(orientation_costs(_rows(q1, 4), _rows(q2, 4))[0, 0])


def angle_distance(a: float, b: float) -> float:
    """Absolute difference of two joint angles, wrapped onto [0, pi]."""
    return float(_wrap_angle(np.float64(b) - np.float64(a)))


def joint_distance(j1: Sequence[float], j2: Sequence[float]) -> float:
    """Weighted sum of finger joint differences; arm joints are ignored."""
    return float(joint_costs(_rows(j1), _rows(j2))[0, 0])


def frame_distance(f1: Frame, f2: Frame) -> float:
    """Dissimilarity of two single frames."""
    return (position_distance(f1.position, f2.position)
            + quaternion_distance(f1.orientation, f2.orientation)
            + joint_distance(f1.joint_angles, f2.joint_angles))


# =============================================================================
# ALIGNMENT
# =============================================================================

def cost_matrix(x: Action, y: Action) -> np.ndarray:
    """
    Frame-to-frame dissimilarities of two actions.

    Returns:
        Array of shape (len(x), len(y)) where entry [i, j] equals
        frame_distance(x[i], y[j])
    """
    return (position_costs(x.positions, y.positions)
            + orientation_costs(x.orientations, y.orientations)
            + joint_costs(x.joint_angles, y.joint_angles))


def accumulated_cost(diffs: np.ndarray) -> np.ndarray:
    """
    Accumulate frame costs along the cheapest warping path.

    The first row and first column are seeded with the raw frame costs
    (not running sums), so an alignment may start anywhere along either
    edge. Every interior cell adds the cheapest of its diagonal, upper
    and left predecessors.
    """
    rows, cols = diffs.shape
    costs = np.array(diffs, dtype=np.float64)

    for r in range(1, rows):
        for c in range(1, cols):
            costs[r, c] = diffs[r, c] + min(costs[r - 1, c - 1],
                                            costs[r - 1, c],
                                            costs[r, c - 1])

    return costs


def distance(x: Action, y: Action) -> float:
    """
    DTW dissimilarity between two actions of any (non-zero) lengths.

    Raises:
        EmptyTrajectoryError: if either action has no frames
    """
    require_frames(x)
    require_frames(y)

    costs = accumulated_cost(cost_matrix(x, y))
    return float(costs[-1, -1])
