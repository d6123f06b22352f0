"""
Data module for vehicle specification ingestion and validation.

This module provides:
- CSV loading and parsing
- Schema validation and row filtering
"""

from .loader import DataLoader
from .validator import DataValidator, ValidationReport

__all__ = [
    "DataLoader",
    "DataValidator",
    "ValidationReport"
]
