"""
Tests for rules configuration loading and environment overrides.
"""

import pytest

from tankwar.config import ENV_FIRING_ARC, ENV_SEED, RulesConfig
from tankwar.map import FiringArcPolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(ENV_SEED, raising=False)
    monkeypatch.delenv(ENV_FIRING_ARC, raising=False)


def test_defaults_without_rules_file(tmp_path):
    config = RulesConfig.load(tmp_path)
    assert config.firing_arc_policy == FiringArcPolicy.ALL_RAYS
    assert config.mg_penetration == 0
    assert config.player_vehicle_id == "unit-sherman-1"
    assert config.seed is None


def test_rules_file_is_read(tmp_path):
    (tmp_path / "rules.yaml").write_text(
        "rules:\n"
        "  firing_arc_policy: facing\n"
        "  mg_penetration: 1\n"
        "  ai_step_delay_ms: 0\n"
        "  seed: 42\n"
    )
    config = RulesConfig.load(tmp_path)
    assert config.firing_arc_policy == FiringArcPolicy.FACING
    assert config.mg_penetration == 1
    assert config.ai_step_delay_ms == 0
    assert config.settle_delay_ms == 600
    assert config.seed == 42


def test_flat_rules_file(tmp_path):
    (tmp_path / "rules.yaml").write_text("mg_penetration: 2\n")
    assert RulesConfig.load(tmp_path).mg_penetration == 2


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_SEED, "7")
    monkeypatch.setenv(ENV_FIRING_ARC, "facing")
    config = RulesConfig.load(tmp_path)
    assert config.seed == 7
    assert config.firing_arc_policy == FiringArcPolicy.FACING


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        RulesConfig.from_dict({"firing_arc_policy": "everywhere"})


def test_bundled_rules(data_path):
    config = RulesConfig.load(data_path)
    assert config.firing_arc_policy == FiringArcPolicy.ALL_RAYS
    assert config.seed is None
