"""
LFD Actions: learning arm gestures from demonstration

Modules:
    schema - Action/frame structures, arm layout constants and errors
    dtw - Dynamic time warping distance between actions
    knn - k-nearest-neighbor classifier over an example library
    data_loader - Load and save libraries and recorded actions
    classify - Command-line classification session
"""

from .schema import (
    Action, Frame,
    ActionError, EmptyTrajectoryError, MalformedTrajectoryError,
    EmptyLibraryError, InvalidConfigurationError
)
from .dtw import distance
from .knn import ActionClassifier, Dataset, Neighbor
from .data_loader import load_dataset, save_dataset, load_actions, pair_streams

__all__ = [
    'Action',
    'Frame',
    'ActionError',
    'EmptyTrajectoryError',
    'MalformedTrajectoryError',
    'EmptyLibraryError',
    'InvalidConfigurationError',
    'distance',
    'ActionClassifier',
    'Dataset',
    'Neighbor',
    'load_dataset',
    'save_dataset',
    'load_actions',
    'pair_streams'
]
