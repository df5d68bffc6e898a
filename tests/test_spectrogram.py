import numpy as np
import pytest

from stem_isolation.errors import ShapeError
from stem_isolation.spectrogram import ispec, magnitude, mask, pad_complex, spec
from stem_isolation.tensor import ComplexTensor


def _tones(length, sr=44100):
    t = np.arange(length) / sr
    x = 0.5 * np.sin(2 * np.pi * 440 * t) + 0.25 * np.sin(2 * np.pi * 1000 * t + 0.3)
    return x.astype(np.float32)


def _random_complex(shape, seed=0):
    rng = np.random.default_rng(seed)
    return ComplexTensor(rng.standard_normal(shape).astype(np.float32),
                         rng.standard_normal(shape).astype(np.float32))


def test_spec_shape():
    x = np.zeros((1, 2, 5000), dtype=np.float32)
    z = spec(x)
    assert z.shape == (1, 2, 2048, 5)
    assert z.real.dtype == np.float32


def test_spec_ispec_round_trip():
    length = 20000
    x = np.stack([_tones(length), -_tones(length)])[None]
    y = ispec(spec(x), length)
    assert y.shape == x.shape
    assert np.allclose(y[..., 4096:-4096], x[..., 4096:-4096], atol=1e-3)


def test_magnitude_interleaves_real_and_imag():
    z = _random_complex((1, 2, 3, 4))
    m = magnitude(z)
    assert m.shape == (1, 4, 3, 4)
    assert np.array_equal(m[:, 0], z.real[:, 0])
    assert np.array_equal(m[:, 1], z.imag[:, 0])
    assert np.array_equal(m[:, 2], z.real[:, 1])
    assert np.array_equal(m[:, 3], z.imag[:, 1])


def test_mask_inverts_magnitude():
    z = _random_complex((2, 3, 5, 7), seed=4)
    back = mask(magnitude(z)[:, None])
    assert back.shape == (2, 1, 3, 5, 7)
    assert np.array_equal(back.real[:, 0], z.real)
    assert np.array_equal(back.imag[:, 0], z.imag)


def test_mask_rejects_odd_channels():
    with pytest.raises(ShapeError):
        mask(np.zeros((1, 4, 3, 8, 2), dtype=np.float32))


def test_pad_complex():
    z = _random_complex((1, 2, 4, 3))
    p = pad_complex(z, (0, 1), (2, 2))
    assert p.shape == (1, 2, 5, 7)
    assert np.array_equal(p.real[..., :4, 2:5], z.real)
    assert np.all(p.imag[..., 4, :] == 0)
    assert np.all(p.real[..., :2] == 0)


def test_complex_tensor_shape_check():
    with pytest.raises(ShapeError):
        ComplexTensor(np.zeros((2, 3)), np.zeros((3, 2)))
