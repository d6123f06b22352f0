"""
Scoped ownership of tensors.

Every group of tensors created for one fit, evaluate or predict call is
allocated through a ``TensorScope`` and released when the scope exits,
whether it exits normally or through an exception.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Union

import numpy as np
import torch

logger = logging.getLogger(__name__)

_open_scopes = 0


def open_scope_count() -> int:
    """Number of tensor scopes that have not been released yet."""
    return _open_scopes


class TensorScope:
    """Tracks tensors so they can be released together."""

    def __init__(self, device: Union[str, torch.device] = 'cpu'):
        self.device = torch.device(device)
        self._tensors: List[torch.Tensor] = []
        self.released = False

    def tensor(self, data, shape: Optional[tuple] = None) -> torch.Tensor:
        """Create a float32 tensor owned by this scope."""
        if self.released:
            raise RuntimeError("Cannot allocate from a released tensor scope")

        array = np.asarray(data, dtype=np.float32)
        if shape is not None:
            array = array.reshape(shape)

        return self.track(torch.as_tensor(array, device=self.device))

    def track(self, tensor: torch.Tensor) -> torch.Tensor:
        """Take ownership of a tensor created elsewhere."""
        self._tensors.append(tensor)
        return tensor

    @property
    def tensor_count(self) -> int:
        return len(self._tensors)

    def release(self) -> None:
        """Drop every tracked tensor."""
        count = len(self._tensors)
        self._tensors.clear()
        self.released = True

        if self.device.type == 'cuda':
            torch.cuda.empty_cache()

        logger.debug(f"Released {count} tensors")


@contextmanager
def tensor_scope(device: Union[str, torch.device] = 'cpu') -> Iterator[TensorScope]:
    """Open a scope whose tensors are released on exit."""
    global _open_scopes

    scope = TensorScope(device)
    _open_scopes += 1
    try:
        yield scope
    finally:
        scope.release()
        _open_scopes -= 1
