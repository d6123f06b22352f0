"""
EV Range - Electric Vehicle Driving Range Prediction

This package provides a small, self-contained workflow for:
- Loading vehicle specification data from CSV
- Validating and filtering records against a fixed schema
- Engineering normalized / one-hot encoded feature vectors
- Training a feed-forward neural network regressor (PyTorch)
- Serving single-vehicle range predictions from the trained model

Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "EV Range Team"

from .config import Config
from .pipeline.orchestrator import RangePipeline

__all__ = ["Config", "RangePipeline", "__version__"]
