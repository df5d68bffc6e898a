"""Small helpers over numpy arrays used as row-major tensors.

The last axis is always time (or frames). Whenever a shape changes the result
is a fresh array, so a chunk's buffer never aliases another stage's output.
"""
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import ShapeError


@dataclass(frozen=True)
class ComplexTensor:
    """Real and imaginary parts kept as two same-shaped float arrays."""
    real: np.ndarray
    imag: np.ndarray

    def __post_init__(self):
        if self.real.shape != self.imag.shape:
            raise ShapeError(f"real/imag shapes differ: {self.real.shape} vs {self.imag.shape}")

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.real.shape


def pad_trailing(x: np.ndarray, target_length: int) -> np.ndarray:
    """Zero-pad the last axis on the right up to `target_length`."""
    length = x.shape[-1]
    if length >= target_length:
        return x
    out = np.zeros(x.shape[:-1] + (target_length,), dtype=x.dtype)
    out[..., :length] = x
    return out


def crop(x: np.ndarray, length: int) -> np.ndarray:
    """Keep the first `length` samples of the last axis."""
    if length >= x.shape[-1]:
        return x
    return x[..., :length].copy()


def center_trim(x: np.ndarray, reference: int) -> np.ndarray:
    """Remove samples evenly from both ends so the last axis is `reference` long."""
    delta = x.shape[-1] - reference
    if delta < 0:
        raise ShapeError(f"tensor must be larger than reference. Delta is {delta}.")
    if delta == 0:
        return x
    start = delta // 2
    return x[..., start:start + reference].copy()


def add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    if a.shape != b.shape:
        raise ShapeError(f"tensor shapes must match for addition: {a.shape} vs {b.shape}")
    return a + b
