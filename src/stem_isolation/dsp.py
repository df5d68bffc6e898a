"""Spectral transform engine.

Power-of-two FFT, Hann window, reflect/constant padding and the STFT/ISTFT
pair. Framing, padding and normalization follow torch.stft/torch.istft with
`normalized=True`, which is what the separation network was trained with, so
changes here shift every frame the network sees.
"""
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence, Tuple

import numpy as np

from .errors import ShapeError, SizeError
from .tensor import ComplexTensor

WINDOW_ENERGY_EPS = 1e-8


@dataclass(frozen=True)
class SpectroConfig:
    n_fft: int = 512
    hop_length: Optional[int] = None  # n_fft // 4 when unset
    normalized: bool = True
    center: bool = True
    pad_mode: str = "reflect"

    @property
    def hop(self) -> int:
        if self.hop_length is None:
            return self.n_fft // 4
        return self.hop_length


@lru_cache(maxsize=16)
def _bit_reversal(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.int64)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return rev


@lru_cache(maxsize=64)
def _twiddles(size: int) -> np.ndarray:
    angle = -2.0 * math.pi / size
    return np.exp(1j * angle * np.arange(size // 2))


def fft(real, imag=None) -> Tuple[np.ndarray, np.ndarray]:
    """Iterative radix-2 Cooley-Tukey FFT over the last axis.

    Leading axes are treated as independent signals. `imag` defaults to zeros.
    Returns float64 `(real, imag)` arrays of the input's shape.
    """
    real = np.asarray(real, dtype=np.float64)
    n = real.shape[-1]
    if n == 0 or n & (n - 1):
        raise SizeError(f"FFT size must be power of 2, got {n}")
    if imag is None:
        imag = np.zeros_like(real)
    else:
        imag = np.asarray(imag, dtype=np.float64)
        if imag.shape != real.shape:
            raise ShapeError(f"real/imag shapes differ: {real.shape} vs {imag.shape}")

    lead = real.shape[:-1]
    rev = _bit_reversal(n)
    x = (real + 1j * imag)[..., rev]

    # after bit reversal each block of `size` holds its even half then its odd half
    size = 2
    while size <= n:
        half = size // 2
        blocks = x.reshape(lead + (n // size, size))
        even = blocks[..., :half]
        odd = blocks[..., half:] * _twiddles(size)
        x = np.concatenate([even + odd, even - odd], axis=-1).reshape(lead + (n,))
        size *= 2

    return x.real.copy(), x.imag.copy()


def ifft(real, imag) -> Tuple[np.ndarray, np.ndarray]:
    """Inverse FFT as conj(fft(conj(x))) / n, sharing the forward code path."""
    real = np.asarray(real, dtype=np.float64)
    n = real.shape[-1]
    out_real, out_imag = fft(real, -np.asarray(imag, dtype=np.float64))
    return out_real / n, -out_imag / n


def hann_window(n: int) -> np.ndarray:
    i = np.arange(n, dtype=np.float64)
    return (0.5 * (1.0 - np.cos(2.0 * math.pi * i / n))).astype(np.float32)


def pad1d(x: np.ndarray, paddings: Sequence[int], mode: str = "constant") -> np.ndarray:
    """Pad the last axis of `x`, the way demucs' pad1d wraps F.pad.

    Reflect padding cannot read further than `length - 1` samples, so short
    inputs are first zero-extended by the deficit and only the remainder is
    reflected.
    """
    x = np.asarray(x)
    length = x.shape[-1]
    padding_left, padding_right = paddings
    if mode not in ("constant", "reflect"):
        raise ValueError(f"unsupported padding mode {mode!r}")

    if mode == "reflect":
        max_pad = max(padding_left, padding_right)
        if length <= max_pad:
            extra_pad = max_pad - length + 1
            extra_pad_right = min(padding_right, extra_pad)
            extra_pad_left = extra_pad - extra_pad_right
            x = _pad_last(x, extra_pad_left, extra_pad_right, "constant")
            padding_left -= extra_pad_left
            padding_right -= extra_pad_right
    return _pad_last(x, padding_left, padding_right, mode)


def _pad_last(x: np.ndarray, left: int, right: int, mode: str) -> np.ndarray:
    widths = [(0, 0)] * (x.ndim - 1) + [(left, right)]
    # numpy's reflect mode mirrors without repeating the edge sample, like torch
    return np.pad(x, widths, mode=mode)


def stft(x: np.ndarray, n_fft: int, hop_length: int, window: np.ndarray,
         normalized: bool = True, center: bool = True,
         pad_mode: str = "reflect") -> ComplexTensor:
    """One-sided STFT of `x[batch, length]` -> `[batch, n_fft//2 + 1, frames]`."""
    if x.ndim != 2:
        raise ShapeError(f"stft expects [batch, length], got {x.shape}")
    if center:
        pad = n_fft // 2
        x = pad1d(x, (pad, pad), pad_mode)

    length = x.shape[-1]
    n_frames = (length - n_fft) // hop_length + 1
    n_freqs = n_fft // 2 + 1
    norm = 1.0 / math.sqrt(n_fft) if normalized else 1.0

    starts = np.arange(n_frames) * hop_length
    positions = starts[:, None] + np.arange(n_fft)[None, :]
    win = window.astype(np.float64) * norm

    batch = x.shape[0]
    real_out = np.empty((batch, n_freqs, n_frames), dtype=np.float32)
    imag_out = np.empty((batch, n_freqs, n_frames), dtype=np.float32)
    for b in range(batch):
        # [frames, n_fft]
        frames = x[b, positions].astype(np.float64) * win
        real, imag = fft(frames)
        real_out[b] = real[:, :n_freqs].T
        imag_out[b] = imag[:, :n_freqs].T
    return ComplexTensor(real_out, imag_out)


def istft(z: ComplexTensor, n_fft: int, hop_length: int, window: np.ndarray,
          normalized: bool = True, length: Optional[int] = None,
          center: bool = True) -> np.ndarray:
    """Inverse of `stft` by windowed overlap-add, `[batch, freqs, frames]` -> `[batch, length]`."""
    batch, n_freqs, n_frames = z.shape
    if 2 * n_freqs - 2 != n_fft:
        raise ShapeError(f"Expected freqs = n_fft/2 + 1, got freqs={n_freqs}, n_fft={n_fft}")

    norm = math.sqrt(n_fft) if normalized else 1.0
    win = window.astype(np.float64)
    full_length = n_fft + (n_frames - 1) * hop_length
    output = np.zeros((batch, full_length), dtype=np.float64)
    window_sum = np.zeros(full_length, dtype=np.float64)
    win_sq = win * win
    for frame in range(n_frames):
        start = frame * hop_length
        window_sum[start:start + n_fft] += win_sq

    for b in range(batch):
        # [frames, freqs]
        real = z.real[b].T.astype(np.float64)
        imag = z.imag[b].T.astype(np.float64)
        # negative frequencies from conjugate symmetry, X[n-k] = conj(X[k])
        full_real = np.concatenate([real, real[:, n_freqs - 2:0:-1]], axis=1)
        full_imag = np.concatenate([imag, -imag[:, n_freqs - 2:0:-1]], axis=1)
        frames, _ = ifft(full_real, full_imag)
        frames *= win * norm
        for frame in range(n_frames):
            start = frame * hop_length
            output[b, start:start + n_fft] += frames[frame]

    covered = window_sum > WINDOW_ENERGY_EPS
    output[:, covered] /= window_sum[covered]

    offset = n_fft // 2 if center else 0
    if length is None:
        length = full_length - (n_fft if center else 0)
    out = np.zeros((batch, length), dtype=np.float32)
    available = output[:, offset:offset + length]
    out[:, :available.shape[-1]] = available
    return out


def spectro(x: np.ndarray, n_fft: int = 512, hop_length: Optional[int] = None) -> ComplexTensor:
    """STFT over the last axis of an arbitrarily shaped tensor."""
    config = SpectroConfig(n_fft=n_fft, hop_length=hop_length)
    *other, length = x.shape
    z = stft(x.reshape(-1, length), config.n_fft, config.hop, hann_window(config.n_fft),
             normalized=config.normalized, center=config.center, pad_mode=config.pad_mode)
    _, freqs, frames = z.shape
    return ComplexTensor(z.real.reshape(*other, freqs, frames),
                         z.imag.reshape(*other, freqs, frames))


def ispectro(z: ComplexTensor, hop_length: Optional[int] = None,
             length: Optional[int] = None) -> np.ndarray:
    """ISTFT over the two trailing axes of an arbitrarily shaped complex tensor."""
    *other, freqs, frames = z.shape
    config = SpectroConfig(n_fft=2 * freqs - 2, hop_length=hop_length)
    flat = ComplexTensor(z.real.reshape(-1, freqs, frames), z.imag.reshape(-1, freqs, frames))
    x = istft(flat, config.n_fft, config.hop, hann_window(config.n_fft),
              normalized=config.normalized, length=length, center=config.center)
    return x.reshape(*other, x.shape[-1])
