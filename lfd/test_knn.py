"""
Tests for the k-NN example library.
"""

import threading

import numpy as np
import pytest

from .conftest import build_action
from .knn import ActionClassifier, Dataset, Neighbor, vote
from .schema import (
    EmptyLibraryError, InvalidConfigurationError, MalformedTrajectoryError
)


# =============================================================================
# VOTING
# =============================================================================

def test_vote_majority_beats_nearest():
    neighbors = [
        Neighbor(index=0, label="a", distance=0.1),
        Neighbor(index=1, label="b", distance=0.5),
        Neighbor(index=2, label="b", distance=0.6),
    ]
    assert vote(neighbors) == "b"


def test_vote_tie_goes_to_smaller_total_distance():
    neighbors = [
        Neighbor(index=3, label="a", distance=0.1),
        Neighbor(index=0, label="b", distance=0.2),
        Neighbor(index=1, label="b", distance=0.9),
        Neighbor(index=2, label="a", distance=0.8),
    ]
    assert vote(neighbors) == "a"


def test_vote_exact_tie_goes_to_first_ranked():
    neighbors = [
        Neighbor(index=1, label="b", distance=0.5),
        Neighbor(index=0, label="a", distance=0.5),
    ]
    assert vote(neighbors) == "b"


def test_vote_requires_neighbors():
    with pytest.raises(EmptyLibraryError):
        vote([])


# =============================================================================
# CONFIGURATION
# =============================================================================

@pytest.mark.parametrize("k", [0, -1, 1.5, True, "3"])
def test_invalid_k_rejected(k):
    with pytest.raises(InvalidConfigurationError):
        Dataset([], k=k)


def test_numpy_integer_k_accepted(wave, grab, grab_query):
    dataset = Dataset([wave, grab], k=np.int64(1))
    assert dataset.k == 1
    assert type(dataset.k) is int
    assert dataset.guess_classification(grab_query) == "grab"


def test_dataset_is_a_classifier():
    assert isinstance(Dataset(), ActionClassifier)


def test_update_requires_label(wave):
    dataset = Dataset()
    with pytest.raises(MalformedTrajectoryError):
        dataset.update(wave.with_label(None))
    assert len(dataset) == 0


# =============================================================================
# CLASSIFICATION
# =============================================================================

def test_closing_fingers_query_is_a_grab(wave, grab, grab_query):
    dataset = Dataset([wave, grab], k=1)
    assert dataset.guess_classification(grab_query) == "grab"


def test_fewer_examples_than_k_uses_all(wave, grab, grab_query):
    dataset = Dataset([wave, grab], k=5)
    neighbors = dataset.nearest(grab_query)

    assert len(neighbors) == 2
    # One vote each; the grab is closer in total
    assert dataset.guess_classification(grab_query) == "grab"


def test_empty_library_fails(grab_query):
    with pytest.raises(EmptyLibraryError):
        Dataset([], k=1).guess_classification(grab_query)


def test_update_then_identical_query_matches(wave, make_action):
    dataset = Dataset([wave], k=1)

    circle = make_action(
        [(np.cos(t), np.sin(t), 0.0) for t in np.linspace(0, np.pi, 7)],
        fingers=np.full((7, 2), 0.4),
        label="circle"
    )
    dataset.update(circle)

    query = circle.with_label(None)
    assert dataset.guess_classification(query) == "circle"
    assert dataset.nearest(query, k=1)[0].distance == 0.0
    assert dataset.labels() == {"wave": 1, "circle": 1}


def test_majority_of_k_neighbors(grab, grab_query, make_action):
    far_grab = make_action(grab.positions + 2.0, fingers=grab.joint_angles[:, 6:8], label="grab")
    near_pokes = [
        make_action(grab_query.positions + 0.01 * i, fingers=grab_query.joint_angles[:, 6:8],
                    label="poke")
        for i in range(1, 3)
    ]
    dataset = Dataset([grab, far_grab] + near_pokes, k=3)

    ranked = dataset.nearest(grab_query)
    assert [n.label for n in ranked[:2]] == ["poke", "poke"]
    assert dataset.guess_classification(grab_query) == "poke"

    dataset.k = 1
    assert dataset.guess_classification(grab_query) == "poke"


def test_nearest_is_sorted(wave, grab, grab_query):
    dataset = Dataset([wave, grab, wave.with_label("wave2")], k=3)
    ranked = dataset.nearest(grab_query)

    distances = [n.distance for n in ranked]
    assert distances == sorted(distances)
    assert ranked[0].label == "grab"
    # Identical distances keep library order
    assert [n.index for n in ranked[1:]] == [0, 2]


def test_verbose_does_not_change_guess(wave, grab, grab_query, capsys):
    dataset = Dataset([wave, grab], k=2)

    quiet = dataset.guess_classification(grab_query)
    assert capsys.readouterr().out == ""

    loud = dataset.guess_classification(grab_query, verbose=True)
    out = capsys.readouterr().out
    assert loud == quiet
    assert "wave" in out and "grab" in out


def test_custom_metric(wave, grab, grab_query):
    # Metric that prefers shorter examples
    dataset = Dataset([wave, grab], k=1, metric=lambda q, e: float(len(e) + (e.label == "grab")))
    assert dataset.guess_classification(grab_query) == "wave"


def test_concurrent_updates(wave):
    dataset = Dataset([wave], k=1)

    def add_many():
        for _ in range(50):
            dataset.update(wave)

    threads = [threading.Thread(target=add_many) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(dataset) == 201
    assert dataset.guess_classification(wave) == "wave"
