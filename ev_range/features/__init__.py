"""
Feature engineering module for EV range prediction.

This module provides:
- Normalization statistics and categorical vocabularies
- Feature vector transformation
- Shuffled train/test splitting
"""

from .pipeline import FeaturePipeline, FittedFeatures, NumericStat, category_key
from .split import Dataset, DatasetSplit, split_dataset

__all__ = [
    "FeaturePipeline",
    "FittedFeatures",
    "NumericStat",
    "category_key",
    "Dataset",
    "DatasetSplit",
    "split_dataset"
]
