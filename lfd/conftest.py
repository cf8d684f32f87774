"""Shared action builders for the lfd tests."""

import numpy as np
import pytest

from .schema import Action, NUM_JOINTS


IDENTITY = (1.0, 0.0, 0.0, 0.0)


def build_action(positions, fingers=None, orientations=None, label=None):
    """Action with the given positions, finger angles (N, 2) and zeroed arm joints."""
    positions = np.asarray(positions, dtype=np.float64)
    n = len(positions)

    joints = np.zeros((n, NUM_JOINTS))
    if fingers is not None:
        joints[:, 6:8] = fingers
    if orientations is None:
        orientations = [IDENTITY] * n

    return Action(positions=positions, orientations=orientations,
                  joint_angles=joints, label=label)


def random_action(rng, num_frames, label=None):
    quats = rng.normal(size=(num_frames, 4))
    quats /= np.linalg.norm(quats, axis=1, keepdims=True)
    return Action(
        positions=rng.uniform(-1, 1, size=(num_frames, 3)),
        orientations=quats,
        joint_angles=rng.uniform(-np.pi, np.pi, size=(num_frames, NUM_JOINTS)),
        label=label
    )


@pytest.fixture
def make_action():
    return build_action


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def wave():
    """5 frames sweeping along x, fingers open."""
    positions = [(0.1 * i, 0.0, 0.3) for i in range(5)]
    return build_action(positions, fingers=np.zeros((5, 2)), label="wave")


@pytest.fixture
def grab():
    """5 frames holding still while the fingers close."""
    positions = [(0.5, 0.0, 0.3)] * 5
    closing = np.linspace(0.0, 1.0, 5)
    return build_action(positions, fingers=np.column_stack([closing, closing]), label="grab")


@pytest.fixture
def grab_query():
    """6-frame repetition of the grab, slightly drifting and slower."""
    positions = [(0.5 + 0.005 * i, 0.0, 0.3) for i in range(6)]
    closing = np.linspace(0.0, 1.0, 6)
    return build_action(positions, fingers=np.column_stack([closing, closing]))
