"""
Feed-forward network definition.
"""

import logging
from collections import OrderedDict
from typing import Sequence

import torch.nn as nn

logger = logging.getLogger(__name__)


def build_network(
    input_dim: int,
    hidden_units: Sequence[int] = (32, 16),
    dropout_rates: Sequence[float] = (0.2, 0.15)
) -> nn.Sequential:
    """
    Build the dense regression network.

    Each hidden layer is Linear -> ReLU -> Dropout with He-normal
    weights; the output is a single linear unit.

    Args:
        input_dim: Length of the feature vector
        hidden_units: Units per hidden layer
        dropout_rates: Dropout rate after each hidden layer

    Returns:
        nn.Sequential network
    """
    if not isinstance(input_dim, int) or input_dim <= 0:
        raise ValueError("Invalid input shape. Must be a positive integer.")
    if len(hidden_units) != len(dropout_rates):
        raise ValueError("hidden_units and dropout_rates must have the same length")

    layers = OrderedDict()
    in_features = input_dim

    for i, (units, rate) in enumerate(zip(hidden_units, dropout_rates), 1):
        dense = nn.Linear(in_features, units)
        nn.init.kaiming_normal_(dense.weight, nonlinearity='relu')
        nn.init.zeros_(dense.bias)

        layers[f'hidden{i}'] = dense
        layers[f'relu{i}'] = nn.ReLU()
        layers[f'dropout{i}'] = nn.Dropout(p=rate)
        in_features = units

    output = nn.Linear(in_features, 1)
    nn.init.xavier_uniform_(output.weight)
    nn.init.zeros_(output.bias)
    layers['output'] = output

    return nn.Sequential(layers)


def count_params(network: nn.Module) -> int:
    """Total number of trainable parameters."""
    return sum(p.numel() for p in network.parameters() if p.requires_grad)
