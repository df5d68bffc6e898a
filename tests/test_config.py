from pathlib import Path

from stem_isolation.config import load_config


def test_defaults():
    cfg = load_config()
    assert cfg.overlap == 0.25
    assert cfg.model.sources == ("drums", "bass", "other", "vocals")
    assert cfg.model.samplerate == 44100
    assert cfg.model.segment == 7.8
    assert cfg.output.subtype == "PCM_16"


def test_partial_yaml_falls_back_to_defaults(tmp_path: Path):
    p = tmp_path / "config.yaml"
    p.write_text("separation:\n  overlap: '0.5'\nmodel:\n  samplerate: 8000\n")
    cfg = load_config(p)
    assert cfg.overlap == 0.5
    assert cfg.model.samplerate == 8000
    assert cfg.model.segment == 7.8
    assert cfg.device == "cpu"


def test_repo_config_loads():
    cfg = load_config(Path(__file__).resolve().parents[1] / "configs" / "config.yaml")
    assert cfg.model.path == "identity"
    assert cfg.output.dir == "separated"
