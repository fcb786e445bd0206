import pytest

from sbg.config import AssetConcurrency, Config


def test_defaults_come_from_environment(monkeypatch):
    monkeypatch.setenv("SBG_VOICE_MAP", "Mother=Kore, Father=Puck,broken")
    monkeypatch.setenv("SBG_ASSET_CONCURRENCY", "sequential")
    monkeypatch.setenv("SBG_MAX_FRAMES", "3")

    cfg = Config()

    assert cfg.voice_map == {"Mother": "Kore", "Father": "Puck"}
    assert cfg.asset_concurrency == AssetConcurrency.SEQUENTIAL
    assert cfg.max_frames_per_scene == 3


def test_missing_credentials_are_named(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
    cfg = Config()

    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        cfg.validate_required()
    with pytest.raises(ValueError, match="GOOGLE_CLOUD_PROJECT"):
        cfg.validate_vertex_required()
