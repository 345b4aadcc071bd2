"""Tests for configuration loading."""

import pytest

from cukes.config import loader
from cukes.config.loader import find_config_file, load_config, save_config
from cukes.config.schema import CukesConfig, RunConfig
from cukes.core.errors import ConfigurationError


@pytest.fixture(autouse=True)
def no_global_config(tmp_path, monkeypatch):
    """Keep the user's global config out of the tests."""
    monkeypatch.setattr(loader, "GLOBAL_CONFIG_FILE", tmp_path / "global" / "config.yaml")


def test_default_config():
    """Test default configuration."""
    config = CukesConfig.get_default()

    assert config.version == 1
    assert config.features.path == "features"
    assert config.steps == []
    assert config.world is None
    assert config.run.state_failure == "scenario"
    assert config.run.duplicate_steps == "replace"
    assert config.run.capture_output is True
    assert config.output.color is True


def test_run_config_rejects_unknown_policy():
    """Test that policies are validated."""
    with pytest.raises(ValueError):
        RunConfig(state_failure="ignore")


def test_config_merge():
    """Test configuration merging."""
    config = CukesConfig(
        features={"path": "specs"},
        run={"duplicate_steps": "error"},
    )

    assert config.features.path == "specs"
    assert config.run.duplicate_steps == "error"
    # Other values should be defaults
    assert config.run.state_failure == "scenario"


def test_find_config_file_walks_upward(tmp_path):
    """Test finding a project config in a parent directory."""
    (tmp_path / ".cukes.yaml").write_text("steps: [my.steps]\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)

    assert find_config_file(nested) == (tmp_path / ".cukes.yaml").resolve()


def test_load_config_layers(tmp_path, monkeypatch):
    """Test that explicit files override project config."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "cukes.yaml").write_text(
        "features:\n  path: specs\nrun:\n  capture_output: false\n"
    )
    explicit = tmp_path / "ci.yaml"
    explicit.write_text("run:\n  state_failure: abort\n")

    config = load_config(explicit, project_dir=tmp_path)

    assert config.features.path == "specs"
    assert config.run.capture_output is False
    assert config.run.state_failure == "abort"


def test_load_config_missing_explicit_file(tmp_path):
    """Test that a missing explicit config is a configuration error."""
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "nope.yaml", project_dir=tmp_path)


def test_load_config_invalid_values(tmp_path):
    """Test that schema violations surface as configuration errors."""
    bad = tmp_path / "bad.yaml"
    bad.write_text("run:\n  duplicate_steps: sometimes\n")

    with pytest.raises(ConfigurationError):
        load_config(bad, project_dir=tmp_path)


def test_save_config(tmp_path):
    """Test that only non-default values are written."""
    path = tmp_path / "out" / ".cukes.yaml"
    save_config(CukesConfig(steps=["calc.steps"]), path)

    text = path.read_text()
    assert "calc.steps" in text
    assert "capture_output" not in text
