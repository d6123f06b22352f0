"""
Feature engineering pipeline.

Fits normalization statistics and categorical vocabularies over the
filtered dataset and turns records into fixed-length feature vectors:
z-scored numeric features followed by one one-hot block per
categorical feature.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..exceptions import EmptyVocabularyError, ValidationError

logger = logging.getLogger(__name__)


def category_key(value: Any) -> str:
    """
    Canonical text form of a categorical value.

    The loader coerces numeric-looking cells to float, so a port
    called "2" arrives as 2.0; render integral numbers without the
    fractional part so that user input "2" matches it.
    """
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return str(int(value))
    return str(value).strip()


@dataclass(frozen=True)
class NumericStat:
    """Normalization parameters for one numeric feature."""
    mean: float
    std: float


@dataclass(frozen=True)
class FittedFeatures:
    """
    Immutable fitted state of the feature pipeline.

    Produced once per training run by ``FeaturePipeline.fit`` and
    passed explicitly to every later transform, for training rows and
    user input alike.
    """
    numeric_features: Tuple[str, ...]
    categorical_features: Tuple[str, ...]
    statistics: Mapping[str, NumericStat]
    vocabulary: Mapping[str, Tuple[str, ...]]

    def __post_init__(self):
        object.__setattr__(self, 'numeric_features', tuple(self.numeric_features))
        object.__setattr__(self, 'categorical_features', tuple(self.categorical_features))
        object.__setattr__(self, 'statistics', MappingProxyType(dict(self.statistics)))
        object.__setattr__(
            self, 'vocabulary',
            MappingProxyType({k: tuple(v) for k, v in self.vocabulary.items()})
        )

    @property
    def input_features(self) -> Tuple[str, ...]:
        return self.numeric_features + self.categorical_features

    @property
    def input_dim(self) -> int:
        """Length of every feature vector."""
        return len(self.numeric_features) + sum(
            len(self.vocabulary[f]) for f in self.categorical_features
        )

    @property
    def feature_names(self) -> List[str]:
        """Column names of the encoded feature vector."""
        names = list(self.numeric_features)
        for feature in self.categorical_features:
            names.extend(f"{feature}={category}" for category in self.vocabulary[feature])
        return names

    def transform_frame(self, df: pd.DataFrame) -> np.ndarray:
        """
        Transform a frame of records into a (n_rows, input_dim) matrix.

        Unseen categories produce an all-zero one-hot block.
        """
        missing = [f for f in self.input_features if f not in df.columns]
        if missing:
            raise ValidationError(missing[0], "missing")

        numeric = df[list(self.numeric_features)].to_numpy(dtype=np.float64)
        means = np.array([self.statistics[f].mean for f in self.numeric_features], dtype=np.float64)
        stds = np.array([self.statistics[f].std for f in self.numeric_features], dtype=np.float64)

        blocks = [(numeric - means) / stds]

        for feature in self.categorical_features:
            keys = df[feature].map(category_key).to_numpy(dtype=object)
            categories = np.array(self.vocabulary[feature], dtype=object)
            blocks.append((keys[:, None] == categories[None, :]).astype(np.float64))

        return np.hstack(blocks)

    def transform(self, record: Mapping[str, Any]) -> np.ndarray:
        """Transform a single record into a feature vector."""
        frame = pd.DataFrame([dict(record)], dtype=object)
        return self.transform_frame(frame)[0]

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data representation (used for persistence)."""
        return {
            'numeric_features': list(self.numeric_features),
            'categorical_features': list(self.categorical_features),
            'statistics': {k: {'mean': s.mean, 'std': s.std} for k, s in self.statistics.items()},
            'vocabulary': {k: list(v) for k, v in self.vocabulary.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FittedFeatures':
        return cls(
            numeric_features=data['numeric_features'],
            categorical_features=data['categorical_features'],
            statistics={k: NumericStat(**v) for k, v in data['statistics'].items()},
            vocabulary=data['vocabulary'],
        )


class FeaturePipeline:
    """
    Feature engineering pipeline.

    Orchestrates:
    - Normalization statistics (mean / population std)
    - Categorical vocabularies (sorted distinct values)
    - Feature vector construction
    """

    def __init__(
        self,
        config=None,
        numeric_features: Optional[Sequence[str]] = None,
        categorical_features: Optional[Sequence[str]] = None,
        target: Optional[str] = None
    ):
        """
        Initialize feature pipeline.

        Args:
            config: Configuration object (supplies the schema defaults)
            numeric_features: Override numeric feature columns
            categorical_features: Override categorical feature columns
            target: Override target column
        """
        self.config = config
        feature_config = config.feature_config if config is not None else None

        if numeric_features is None:
            numeric_features = feature_config.numeric_features if feature_config else []
        if categorical_features is None:
            categorical_features = feature_config.categorical_features if feature_config else []
        if target is None:
            target = feature_config.target if feature_config else 'range_km'

        self.numeric_features = list(numeric_features)
        self.categorical_features = list(categorical_features)
        self.target = target

    def fit_statistics(
        self,
        df: pd.DataFrame,
        numeric_features: Optional[Sequence[str]] = None
    ) -> Dict[str, NumericStat]:
        """
        Compute mean and population standard deviation per numeric feature.

        A standard deviation of zero is replaced by 1.

        Args:
            df: Filtered records
            numeric_features: Columns to fit (default: pipeline schema)

        Returns:
            Mapping of feature name to NumericStat
        """
        numeric_features = numeric_features or self.numeric_features
        stats = {}

        for feature in numeric_features:
            values = df[feature].to_numpy(dtype=np.float64)
            mean = float(np.mean(values))
            std = float(np.std(values))
            stats[feature] = NumericStat(mean=mean, std=std if std != 0 else 1.0)

        logger.debug(f"Fitted statistics for {len(stats)} numeric features")

        return stats

    def fit_vocabulary(
        self,
        df: pd.DataFrame,
        categorical_features: Optional[Sequence[str]] = None
    ) -> Dict[str, Tuple[str, ...]]:
        """
        Collect sorted distinct values per categorical feature.

        Args:
            df: Filtered records
            categorical_features: Columns to fit (default: pipeline schema)

        Returns:
            Mapping of feature name to sorted category tuple
        """
        categorical_features = categorical_features or self.categorical_features
        vocabulary = {}

        for feature in categorical_features:
            categories = tuple(sorted(set(df[feature].map(category_key))))
            if not categories:
                raise EmptyVocabularyError(
                    f"No unique values found for categorical feature: {feature}"
                )
            vocabulary[feature] = categories

        sizes = {k: len(v) for k, v in vocabulary.items()}
        logger.debug(f"Vocabulary sizes: {sizes}")

        return vocabulary

    def fit(self, df: pd.DataFrame) -> FittedFeatures:
        """
        Fit statistics and vocabularies over the filtered dataset.

        Args:
            df: Filtered records (all valid rows, before splitting)

        Returns:
            Immutable FittedFeatures
        """
        fitted = FittedFeatures(
            numeric_features=self.numeric_features,
            categorical_features=self.categorical_features,
            statistics=self.fit_statistics(df),
            vocabulary=self.fit_vocabulary(df),
        )

        logger.info(f"Input feature dimension: {fitted.input_dim}")

        return fitted

    def prepare_training_data(
        self,
        df: pd.DataFrame,
        fitted: Optional[FittedFeatures] = None
    ) -> Tuple[FittedFeatures, np.ndarray, np.ndarray]:
        """
        Fit (unless given) and transform the filtered dataset.

        Args:
            df: Filtered records
            fitted: Previously fitted state to reuse

        Returns:
            Tuple of (fitted, X, y)
        """
        fitted = fitted or self.fit(df)
        X = fitted.transform_frame(df)
        y = df[self.target].to_numpy(dtype=np.float64)

        logger.info(f"Prepared data: {len(X)} samples, {fitted.input_dim} features")

        return fitted, X, y
