"""
k-Nearest-Neighbor Action Classification

Holds a library of labeled example actions and labels new recordings by
majority vote among the k examples with the smallest DTW distance.

Usage:
    dataset = Dataset(examples, k=3)
    guess = dataset.guess_classification(recorded, verbose=True)
    dataset.update(recorded.with_label(guess))
"""

import numbers
import threading
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .dtw import distance
from .schema import (
    Action, DEFAULT_K,
    EmptyLibraryError, InvalidConfigurationError, MalformedTrajectoryError,
    require_frames
)


Metric = Callable[[Action, Action], float]


# =============================================================================
# CLASSIFIER INTERFACE
# =============================================================================

class ActionClassifier(ABC):
    """
    Anything that can label a recorded action and learn from a labeled one.

    Alternative strategies (other vote rules, other metrics) implement
    this interface and can replace Dataset in the command-line session.
    """

    @abstractmethod
    def guess_classification(self, action: Action, verbose: bool = False) -> str:
        """Return the most likely label for an unlabeled action."""
        ...

    @abstractmethod
    def update(self, action: Action) -> None:
        """Add a labeled action to the classifier's knowledge."""
        ...


@dataclass
class Neighbor:
    """A stored example ranked by its distance to a query."""
    index: int  # Position of the example in the library
    label: str
    distance: float


def vote(neighbors: List[Neighbor]) -> str:
    """
    Majority label among ranked neighbors.

    Ties go to the label with the smallest summed distance, then to the
    label that appears first in the ranking.
    """
    if not neighbors:
        raise EmptyLibraryError("No neighbors to vote with")

    counts = Counter(n.label for n in neighbors)
    totals: Dict[str, float] = {}
    first_rank: Dict[str, int] = {}
    for rank, n in enumerate(neighbors):
        totals[n.label] = totals.get(n.label, 0.0) + n.distance
        first_rank.setdefault(n.label, rank)

    return min(counts, key=lambda label: (-counts[label], totals[label], first_rank[label]))


# =============================================================================
# EXAMPLE LIBRARY
# =============================================================================

class Dataset(ActionClassifier):
    """
    Library of labeled example actions with a k-NN classifier on top.

    Queries scan every example; there is no index to maintain, so update()
    is a plain append. A lock keeps update() from interleaving with the
    snapshot taken by a running query.
    """

    def __init__(self, actions: Iterable[Action] = (), k: int = DEFAULT_K,
                 metric: Metric = distance):
        """
        Initialize the library.

        Args:
            actions: Labeled example actions
            k: Number of neighbors consulted per query (>= 1)
            metric: Pairwise action distance, DTW by default
        """
        if isinstance(k, bool) or not isinstance(k, numbers.Integral) or k < 1:
            raise InvalidConfigurationError(f"k must be a positive integer, got {k!r}")

        self.k = int(k)
        self.metric = metric
        self._lock = threading.Lock()
        self._examples: List[Action] = []

        for action in actions:
            self.update(action)

    def __len__(self) -> int:
        return len(self._examples)

    def __iter__(self) -> Iterator[Action]:
        return iter(self.examples)

    @property
    def examples(self) -> List[Action]:
        """Snapshot of the stored examples."""
        with self._lock:
            return list(self._examples)

    def labels(self) -> Dict[str, int]:
        """Number of stored examples per label."""
        return dict(Counter(a.label for a in self.examples))

    def nearest(self, action: Action, k: Optional[int] = None) -> List[Neighbor]:
        """
        Rank stored examples by distance to an action.

        Args:
            action: Query action
            k: Number of neighbors to return (default: all examples)

        Returns:
            Neighbors sorted by ascending distance (ties by library order)
        """
        require_frames(action)
        examples = self.examples

        neighbors = [
            Neighbor(index=i, label=example.label, distance=self.metric(action, example))
            for i, example in enumerate(examples)
        ]
        neighbors.sort(key=lambda n: (n.distance, n.index))

        if k is not None:
            neighbors = neighbors[:k]
        return neighbors

    def guess_classification(self, action: Action, verbose: bool = False) -> str:
        """
        Label an action by majority vote of its k nearest examples.

        With fewer than k examples stored, all of them vote.

        Raises:
            EmptyLibraryError: if the library holds no examples
        """
        ranked = self.nearest(action)
        if not ranked:
            raise EmptyLibraryError("Cannot classify: the dataset has no examples")

        if verbose:
            print(f"\nDistances to {len(ranked)} examples (k={self.k}):")
            for rank, n in enumerate(ranked):
                marker = "*" if rank < self.k else " "
                print(f"  {marker} [{n.index:>4}] {n.label:<20} {n.distance:>12.4f}")

        return vote(ranked[:self.k])

    def update(self, action: Action) -> None:
        """
        Append a labeled action to the library.

        No deduplication is done; persisting the grown library is up to
        the caller (see data_loader.save_dataset).
        """
        require_frames(action)
        if not action.label:
            raise MalformedTrajectoryError("Only labeled actions can be stored")

        with self._lock:
            self._examples.append(action)
