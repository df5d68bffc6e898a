"""Chunked inference and overlap-add reconstruction.

Long recordings are cut into overlapping segments of the network's training
length. Each segment goes through spec -> network -> ispec, and the results
are blended back together with a triangular crossfade.
"""
import logging
import math
import threading
from typing import Callable, Dict, Optional

import numpy as np

from .audio import RawAudio, planarize
from .errors import RangeError, SeparationCancelled
from .spectrogram import ispec, magnitude, mask, spec
from .tensor import add, center_trim, crop, pad_trailing

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class TensorChunk:
    """A window over the last axis of `tensor`. Nothing is copied until `padded`."""

    def __init__(self, tensor: np.ndarray, offset: int = 0, length: Optional[int] = None):
        total_length = tensor.shape[-1]
        if offset < 0:
            raise RangeError('offset must be >= 0')
        if offset >= total_length:
            raise RangeError('offset must be < total_length')
        if length is None:
            length = total_length - offset
        elif length < 0:
            raise RangeError('length must be >= 0')
        else:
            length = min(total_length - offset, length)

        self.tensor = tensor
        self.offset = offset
        self.length = length

    def padded(self, target_length: int) -> np.ndarray:
        """Copy of the chunk centered in `target_length` samples, zero-filled past the tensor bounds."""
        delta = target_length - self.length
        total_length = self.tensor.shape[-1]
        if delta < 0:
            raise RangeError('target_length must be >= length')

        start = self.offset - delta // 2
        end = start + target_length
        correct_start = max(0, start)
        correct_end = min(total_length, end)
        pad_left = correct_start - start

        out = np.zeros(self.tensor.shape[:-1] + (target_length,), dtype=np.float32)
        out[..., pad_left:pad_left + correct_end - correct_start] = \
            self.tensor[..., correct_start:correct_end]
        return out


class Accumulator:
    """Weighted sum of chunk outputs plus the per-sample sum of weights."""

    def __init__(self, shape):
        self.out = np.zeros(shape, dtype=np.float32)
        self.weight_sum = np.zeros(shape[-1], dtype=np.float32)

    def add(self, offset: int, chunk_out: np.ndarray, weight: np.ndarray):
        length = chunk_out.shape[-1]
        self.out[..., offset:offset + length] += weight[:length] * chunk_out
        self.weight_sum[offset:offset + length] += weight[:length]

    def finalize(self) -> np.ndarray:
        return self.out / self.weight_sum


def triangle_weight(segment: int) -> np.ndarray:
    """Triangular crossfade peaking at the segment middle, scaled to a max of 1."""
    half = segment // 2 + 1
    weight = np.concatenate([
        np.arange(1, half + 1),
        segment - np.arange(half, segment),
    ]).astype(np.float32)
    return weight / weight.max()


def apply_inference(model, chunk: TensorChunk) -> np.ndarray:
    """Run the network on one chunk, returning `[B, S, C, chunk.length]`."""
    length = chunk.length
    valid_length = model.valid_length(length)
    padded_mix = chunk.padded(valid_length)

    training_length = int(model.segment * model.samplerate)
    mix = pad_trailing(padded_mix, training_length)

    z = spec(mix)
    magspec = magnitude(z)
    out_x, out_xt = model.forward(mix, magspec)

    zout = mask(np.asarray(out_x, dtype=np.float32))
    time_from_spec = ispec(zout, training_length)
    out = add(np.asarray(out_xt, dtype=np.float32), time_from_spec)
    out = crop(out, valid_length)
    return center_trim(out, length)


def apply_splits(model, mix: np.ndarray, progress: Optional[ProgressCallback] = None,
                 overlap: float = 0.25, cancel: Optional[threading.Event] = None) -> np.ndarray:
    """Separate `mix[B, C, L]` into `[B, S, C, L]` by overlapping chunks."""
    if not 0 <= overlap < 1:
        raise ValueError(f"overlap must be in [0, 1), got {overlap}")
    batch, channels, length = mix.shape
    sources = len(model.sources)

    segment = int(model.samplerate * model.segment)
    stride = int((1 - overlap) * segment)
    if stride < 1:
        raise ValueError(f"overlap {overlap} leaves no stride for a {segment}-sample segment")
    weight = triangle_weight(segment)
    acc = Accumulator((batch, sources, channels, length))

    total = math.ceil(length / stride)
    log.info("separating %d samples in %d chunks (segment=%d, stride=%d)",
             length, total, segment, stride)
    if progress is not None:
        progress(0, total)

    for index, offset in enumerate(range(0, length, stride), start=1):
        if cancel is not None and cancel.is_set():
            raise SeparationCancelled(f"cancelled after {index - 1}/{total} chunks")
        chunk = TensorChunk(mix, offset, segment)
        log.debug("chunk %d/%d offset=%d length=%d", index, total, offset, chunk.length)
        chunk_out = apply_inference(model, chunk)
        acc.add(offset, chunk_out, weight)
        if progress is not None:
            progress(index, total)

    return acc.finalize()


def apply_model(model, mix: np.ndarray, progress: Optional[ProgressCallback] = None,
                overlap: float = 0.25, cancel: Optional[threading.Event] = None) -> np.ndarray:
    # no random shifts, this is exactly apply_splits
    return apply_splits(model, mix, progress, overlap, cancel)


def separate_tracks(model, raw_audio: RawAudio, progress: Optional[ProgressCallback] = None,
                    overlap: float = 0.25,
                    cancel: Optional[threading.Event] = None) -> Dict[str, RawAudio]:
    """Split `raw_audio` into one RawAudio per model source."""
    channels = raw_audio.channels
    if raw_audio.sample_rate != model.samplerate:
        log.warning("input sample rate %d differs from model sample rate %d",
                    raw_audio.sample_rate, model.samplerate)
    if channels != getattr(model, 'audio_channels', channels):
        log.warning("input has %d channels, model expects %d", channels, model.audio_channels)

    mix = planarize(raw_audio.channel_data)[None]
    result = apply_model(model, mix, progress, overlap, cancel)

    tracks = {}
    for s, name in enumerate(model.sources):
        channel_data = [result[0, s, c].copy() for c in range(channels)]
        tracks[name] = RawAudio(channel_data, raw_audio.sample_rate)
    return tracks
