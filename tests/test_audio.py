from pathlib import Path

import numpy as np
import pytest

from stem_isolation.audio import RawAudio, planarize, read_audio, write_audio
from stem_isolation.errors import ShapeError
from stem_isolation.infer import infer
from stem_isolation.models import IdentityHTDemucs, TorchSeparator


def test_unequal_channels_rejected():
    with pytest.raises(ShapeError):
        RawAudio([np.zeros(10), np.zeros(11)], 44100)


def test_planarize_stacks_channels():
    out = planarize([np.zeros(5), np.ones(5)])
    assert out.shape == (2, 5)
    assert out.dtype == np.float32
    assert np.all(out[1] == 1)


def test_write_then_read(tmp_path: Path):
    left = np.linspace(-0.5, 0.5, 1000, dtype=np.float32)
    raw = RawAudio([left, -left], 22050)
    path = write_audio(tmp_path / "sub" / "x.wav", raw, subtype="FLOAT")
    back = read_audio(path)
    assert back.sample_rate == 22050
    assert back.channels == 2
    assert np.allclose(back.channel_data[1], -left)


def test_infer_writes_one_file_per_source(tmp_path: Path):
    sr = 8000
    t = np.arange(sr) / sr
    x = (0.2 * np.sin(2 * np.pi * 330 * t)).astype(np.float32)
    inp = tmp_path / "tone.wav"
    write_audio(inp, RawAudio([x, x], sr), subtype="FLOAT")

    model = TorchSeparator(IdentityHTDemucs(), samplerate=sr, segment=1.0)
    written = infer(model, inp, tmp_path / "out", subtype="FLOAT")
    assert sorted(written) == ["bass", "drums", "other", "vocals"]
    for name, path in written.items():
        assert path == tmp_path / "out" / "tone" / f"{name}.wav"
        stem = read_audio(path)
        assert stem.channels == 2 and stem.samples == sr
        assert np.allclose(stem.channel_data[0], x / 4, atol=1e-5)
