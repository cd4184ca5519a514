"""Tests for config loading and validation."""

import pytest

from cli.config import load_config_model
from cli.config_models import OrbitConfig


def test_defaults_without_file(tmp_path):
    config = load_config_model(tmp_path / "missing.yaml")
    assert config.chat.max_message_length == 4000
    assert config.memory.enabled
    assert config.paths.db.name == "orbit.db"


def test_loads_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "llm:\n  provider: ollama\n  model: llama3.2\n"
        "chat:\n  max_message_length: 500\n"
        "routines:\n  enabled: false\n"
    )
    config = load_config_model(path)
    assert config.llm.provider == "ollama"
    assert config.chat.max_message_length == 500
    assert not config.routines.enabled


def test_env_expansion(monkeypatch):
    monkeypatch.setenv("ORBIT_TEST_KEY", "sk-ant-secret")
    config = OrbitConfig.from_dict({"llm": {"api_key": "${ORBIT_TEST_KEY}"}})
    assert config.llm.api_key == "sk-ant-secret"


@pytest.mark.parametrize(
    "body, match",
    [
        ("llm: [unclosed", "Invalid YAML"),
        ("- a\n- b\n", "mapping"),
        ("llm:\n  provider: skynet\n", "validation failed"),
        ("chat:\n  max_message_length: 0\n", "validation failed"),
    ],
)
def test_invalid_config(tmp_path, body, match):
    path = tmp_path / "config.yaml"
    path.write_text(body)
    with pytest.raises(ValueError, match=match):
        load_config_model(path)
