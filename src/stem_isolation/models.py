# Separator backends: IdentityHTDemucs (passthrough torch network), TorchSeparator
# (eager or TorchScript module) and, through load_separator, the onnxruntime
# OnnxSeparator. The pipeline only relies on BaseSeparator's attributes and on
# forward(mix, magspec) -> (mask, time).
import logging
import os
from typing import Optional, Sequence, Tuple

import numpy as np
import torch
import torch.nn as nn

from .config import DEFAULT_SOURCES, Config

log = logging.getLogger(__name__)


class BaseSeparator:
    """Metadata and length contract shared by every backend.

    forward takes `mix[1, C, training_length]` and `magspec[1, 2C, 2048, frames]`
    as float32 numpy arrays and returns `(mask[1, S, 2C, 2048, frames],
    time[1, S, C, training_length])`.
    """

    def __init__(self, sources: Optional[Sequence[str]] = None, samplerate: int = 44100,
                 segment: float = 7.8, audio_channels: int = 2):
        self.sources = tuple(sources) if sources else DEFAULT_SOURCES
        self.samplerate = samplerate
        self.segment = segment
        self.audio_channels = audio_channels

    @property
    def training_length(self) -> int:
        return int(self.segment * self.samplerate)

    def valid_length(self, length: int) -> int:
        """The network only accepts its training length; shorter chunks get padded to it."""
        training_length = self.training_length
        if training_length < length:
            raise ValueError(
                f"Given length {length} is longer than "
                f"training length {training_length}")
        return training_length

    def forward(self, mix: np.ndarray, magspec: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        raise NotImplementedError()


class IdentityHTDemucs(nn.Module):
    """Passthrough network with the real model's input/output shapes.

    Predicts a zero spectral mask and gives every source an equal share of the
    mix in the time branch, so the stems always sum back to the input.
    """
    def __init__(self, n_sources=len(DEFAULT_SOURCES)):
        super().__init__()
        self.n_sources = n_sources

    def forward(self, mix, magspec):
        # mix: (B, C, T), magspec: (B, 2C, Fr, Frames)
        B, C2, Fr, frames = magspec.shape
        out_x = magspec.new_zeros((B, self.n_sources, C2, Fr, frames))
        out_xt = mix.unsqueeze(1).expand(-1, self.n_sources, -1, -1) / self.n_sources
        return out_x, out_xt


class TorchSeparator(BaseSeparator):
    """Runs a torch module (eager or TorchScript) behind the numpy contract."""

    def __init__(self, module: nn.Module, device='cpu', **kwargs):
        super().__init__(**kwargs)
        self.device = torch.device(device)
        self.module = module.to(self.device).eval()

    @classmethod
    def from_torchscript(cls, path, device='cpu', **kwargs):
        module = torch.jit.load(path, map_location=device)
        return cls(module, device=device, **kwargs)

    def forward(self, mix, magspec):
        mix_t = torch.from_numpy(np.ascontiguousarray(mix, dtype=np.float32)).to(self.device)
        mag_t = torch.from_numpy(np.ascontiguousarray(magspec, dtype=np.float32)).to(self.device)
        with torch.no_grad():
            out_x, out_xt = self.module(mix_t, mag_t)
        return out_x.cpu().numpy(), out_xt.cpu().numpy()


def load_separator(name, config=None) -> BaseSeparator:
    """Build a separator from `identity`, a `.onnx` export or a TorchScript file."""
    config = config or Config()
    model_cfg = config.model
    kwargs = dict(
        sources=model_cfg.sources,
        samplerate=model_cfg.samplerate,
        segment=model_cfg.segment,
        audio_channels=model_cfg.audio_channels,
    )
    if name == 'identity':
        return TorchSeparator(IdentityHTDemucs(len(model_cfg.sources)), device=config.device, **kwargs)
    if not os.path.exists(name):
        raise FileNotFoundError(f"Model not found: {name}")
    log.info("loading separator from %s", name)
    if name.lower().endswith('.onnx'):
        from .onnx_model import OnnxSeparator
        return OnnxSeparator(name, **kwargs)
    return TorchSeparator.from_torchscript(name, device=config.device, **kwargs)
