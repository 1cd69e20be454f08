"""Configuration module unit tests"""

import os
import tempfile
from pathlib import Path

import pytest

from formstate.config import Config, RequestConfig
from formstate.errors import ConfigException


@pytest.fixture
def temp_config_file():
    """Create a temporary config file"""
    fd, path = tempfile.mkstemp(suffix=".toml")
    os.close(fd)
    yield path
    os.unlink(path)


def test_defaults():
    config = Config()

    assert config.log.level == "INFO"
    assert config.log.file == ""
    assert config.request.retries == 1
    assert config.request.initial_delay == 0.5
    assert config.request.backoff == "exponential"


def test_load_from_file(temp_config_file):
    """Test: Load config from a TOML file"""
    Path(temp_config_file).write_text(
        """
[log]
level = "debug"
file = "logs/formstate.log"

[request]
retries = 3
initial_delay = 0.1
backoff = "fixed"
"""
    )

    config = Config.load_from_file(temp_config_file)

    assert config.log.level == "DEBUG"
    assert config.log.file == "logs/formstate.log"
    assert config.request == RequestConfig(retries=3, initial_delay=0.1, backoff="fixed")


def test_env_overrides_file(temp_config_file, monkeypatch):
    """Test: Environment variables take precedence over the file"""
    Path(temp_config_file).write_text("[request]\nretries = 3\n")
    monkeypatch.setenv("FORMSTATE_REQUEST__RETRIES", "5")

    config = Config.load_from_file(temp_config_file)

    assert config.request.retries == 5


def test_missing_file():
    with pytest.raises(ConfigException, match="not found"):
        Config.load_from_file("/nonexistent/formstate.toml")


def test_invalid_values(temp_config_file):
    Path(temp_config_file).write_text(
        """
[log]
level = "loud"

[request]
retries = 0
"""
    )

    with pytest.raises(ConfigException) as exc_info:
        Config.load_from_file(temp_config_file)

    message = str(exc_info.value)
    assert "Configuration validation failed" in message
    assert "log -> level" in message
    assert "request -> retries" in message
