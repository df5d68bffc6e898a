"""Spectrogram conventions of the hybrid separation network.

`spec`/`ispec` reproduce the padding, Nyquist drop and 2-frame offset the
network saw during training. The constants are tied to that one trained
model; they are not general STFT parameters.
"""
import math
from typing import Sequence

import numpy as np

from .dsp import ispectro, pad1d, spectro
from .errors import ShapeError
from .tensor import ComplexTensor

HOP_LENGTH = 1024
N_FFT = 4 * HOP_LENGTH
PAD = HOP_LENGTH // 2 * 3
FRAME_OFFSET = 2


def spec(x: np.ndarray) -> ComplexTensor:
    """`[..., length]` -> complex `[..., 2048, ceil(length / 1024)]`."""
    length = x.shape[-1]
    le = int(math.ceil(length / HOP_LENGTH))
    x = pad1d(x, (PAD, PAD + le * HOP_LENGTH - length), mode="reflect")
    z = spectro(x, N_FFT, HOP_LENGTH)
    if z.shape[-1] != le + 2 * FRAME_OFFSET:
        raise ShapeError(f"expected {le + 2 * FRAME_OFFSET} frames, got {z.shape[-1]}")
    window = (Ellipsis, slice(None, -1), slice(FRAME_OFFSET, FRAME_OFFSET + le))
    return ComplexTensor(np.ascontiguousarray(z.real[window]),
                         np.ascontiguousarray(z.imag[window]))


def pad_complex(z: ComplexTensor, freq_pad: Sequence[int], time_pad: Sequence[int]) -> ComplexTensor:
    """Zero-pad the frequency (second to last) and time (last) axes."""
    widths = [(0, 0)] * (len(z.shape) - 2) + [tuple(freq_pad), tuple(time_pad)]
    return ComplexTensor(np.pad(z.real, widths), np.pad(z.imag, widths))


def ispec(z: ComplexTensor, length: int) -> np.ndarray:
    """Inverse of `spec`, cropped to `length` samples."""
    z = pad_complex(z, (0, 1), (FRAME_OFFSET, FRAME_OFFSET))
    le = HOP_LENGTH * int(math.ceil(length / HOP_LENGTH)) + 2 * PAD
    x = ispectro(z, HOP_LENGTH, length=le)
    return np.ascontiguousarray(x[..., PAD:PAD + length])


def magnitude(z: ComplexTensor) -> np.ndarray:
    """Complex `[B, C, Fr, T]` -> real `[B, 2C, Fr, T]` as (re_0, im_0, re_1, im_1, ...)."""
    B, C, Fr, T = z.shape
    m = np.stack([z.real, z.imag], axis=2)
    return m.reshape(B, C * 2, Fr, T)


def mask(m: np.ndarray) -> ComplexTensor:
    """Network output `[B, S, C, Fr, T]` -> complex `[B, S, C // 2, Fr, T]`."""
    B, S, C, Fr, T = m.shape
    if C % 2:
        raise ShapeError(f"mask channel count must be even, got {C}")
    m = m.reshape(B, S, C // 2, 2, Fr, T)
    return ComplexTensor(np.ascontiguousarray(m[:, :, :, 0], dtype=np.float32),
                         np.ascontiguousarray(m[:, :, :, 1], dtype=np.float32))
