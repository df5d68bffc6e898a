from dataclasses import dataclass
from pathlib import Path
from typing import List

import numpy as np
import soundfile as sf

from .errors import ShapeError


@dataclass
class RawAudio:
    """Equal-length per-channel sample arrays plus their sample rate."""
    channel_data: List[np.ndarray]
    sample_rate: int

    def __post_init__(self):
        lengths = {len(c) for c in self.channel_data}
        if len(lengths) > 1:
            raise ShapeError(f"channels have different lengths: {sorted(lengths)}")

    @property
    def channels(self) -> int:
        return len(self.channel_data)

    @property
    def samples(self) -> int:
        return len(self.channel_data[0]) if self.channel_data else 0


def planarize(channel_data) -> np.ndarray:
    """Stack per-channel arrays into one contiguous `[C, L]` float32 array."""
    return np.stack([np.asarray(c, dtype=np.float32) for c in channel_data], axis=0)


def read_audio(path) -> RawAudio:
    audio, sr = sf.read(str(path), dtype='float32', always_2d=True)
    # [T, C] -> one array per channel
    return RawAudio([audio[:, c].copy() for c in range(audio.shape[1])], int(sr))


def write_audio(path, raw: RawAudio, subtype='PCM_16'):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = planarize(raw.channel_data).T
    sf.write(str(path), data, raw.sample_rate, subtype=subtype)
    return path
