"""
Train/test partitioning of transformed feature vectors.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

from ..exceptions import InsufficientDataError, ShapeError

logger = logging.getLogger(__name__)


@dataclass
class Dataset:
    """Feature matrix with matching targets."""
    features: np.ndarray
    targets: np.ndarray

    def __len__(self) -> int:
        return len(self.targets)


@dataclass
class DatasetSplit:
    """Disjoint train/test partition and the indices it was built from."""
    train: Dataset
    test: Dataset
    train_indices: np.ndarray
    test_indices: np.ndarray

    @property
    def input_dim(self) -> int:
        return self.train.features.shape[1]


def check_feature_shapes(features: Union[np.ndarray, Sequence[Sequence[float]]]) -> np.ndarray:
    """
    Verify every feature vector has the same length.

    Returns:
        The features as a 2-D float array
    """
    if isinstance(features, np.ndarray) and features.ndim == 2:
        return features.astype(np.float64, copy=False)

    if len(features) == 0:
        return np.empty((0, 0), dtype=np.float64)

    lengths = {len(vector) for vector in features}
    if len(lengths) > 1:
        raise ShapeError(
            f"Feature transformation resulted in inconsistent shapes: lengths {sorted(lengths)}"
        )

    return np.asarray(features, dtype=np.float64).reshape(len(features), -1)


def shuffle_indices(n: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Uniformly random permutation of range(n) (Fisher-Yates)."""
    rng = rng if rng is not None else np.random.default_rng()
    return rng.permutation(n)


def split_dataset(
    features: Union[np.ndarray, Sequence[Sequence[float]]],
    targets: Union[np.ndarray, Sequence[float]],
    ratio: float = 0.8,
    rng: Optional[np.random.Generator] = None
) -> DatasetSplit:
    """
    Shuffle rows and split them into train and test groups.

    The first ``floor(n * ratio)`` shuffled indices form the training
    set; the remainder form the test set.

    Args:
        features: Feature vectors, one per row
        targets: Target values, one per row
        ratio: Fraction of rows used for training
        rng: Random generator (default: fresh, unseeded)

    Returns:
        DatasetSplit
    """
    X = check_feature_shapes(features)
    y = np.asarray(targets, dtype=np.float64).reshape(-1)

    if len(X) != len(y):
        raise ShapeError(f"Row count mismatch: features={len(X)}, targets={len(y)}")

    n = len(y)
    split_index = int(np.floor(n * ratio))

    if split_index < 1 or n - split_index < 1:
        raise InsufficientDataError(
            f"Dataset too small for train/test split ({n} valid samples)"
        )

    indices = shuffle_indices(n, rng)
    train_indices = indices[:split_index]
    test_indices = indices[split_index:]

    logger.info(f"Train samples: {len(train_indices)}, Test samples: {len(test_indices)}")

    return DatasetSplit(
        train=Dataset(features=X[train_indices], targets=y[train_indices]),
        test=Dataset(features=X[test_indices], targets=y[test_indices]),
        train_indices=train_indices,
        test_indices=test_indices,
    )
