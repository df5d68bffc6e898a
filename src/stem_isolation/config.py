"""YAML configuration for separation runs.

Every key is optional; missing ones fall back to the defaults below, which
describe the 4-source hybrid network at 44.1 kHz.
"""
from dataclasses import dataclass, field
from typing import Tuple

import yaml

DEFAULT_SOURCES = ("drums", "bass", "other", "vocals")


@dataclass
class ModelConfig:
    path: str = "identity"
    sources: Tuple[str, ...] = DEFAULT_SOURCES
    samplerate: int = 44100
    segment: float = 7.8
    audio_channels: int = 2


@dataclass
class OutputConfig:
    dir: str = "separated"
    subtype: str = "PCM_16"


@dataclass
class Config:
    device: str = "cpu"
    overlap: float = 0.25
    model: ModelConfig = field(default_factory=ModelConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def load_config(cfg_path=None) -> Config:
    if cfg_path is None:
        return Config()
    with open(cfg_path) as f:
        cfg = yaml.safe_load(f) or {}

    model_cfg = cfg.get('model', {}) or {}
    sep_cfg = cfg.get('separation', {}) or {}
    out_cfg = cfg.get('output', {}) or {}
    model = ModelConfig(
        path=str(model_cfg.get('path', ModelConfig.path)),
        sources=tuple(model_cfg.get('sources', DEFAULT_SOURCES)),
        samplerate=int(model_cfg.get('samplerate', ModelConfig.samplerate)),
        segment=float(model_cfg.get('segment', ModelConfig.segment)),
        audio_channels=int(model_cfg.get('audio_channels', ModelConfig.audio_channels)),
    )
    output = OutputConfig(
        dir=str(out_cfg.get('dir', OutputConfig.dir)),
        subtype=str(out_cfg.get('subtype', OutputConfig.subtype)),
    )
    return Config(
        device=cfg.get('device', 'cpu'),
        overlap=float(sep_cfg.get('overlap', 0.25)),
        model=model,
        output=output,
    )
