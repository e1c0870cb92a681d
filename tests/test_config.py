import logging

import pytest

from forwarding import ClientConfig


def test_defaults():
    config = ClientConfig()
    assert (config.host, config.port, config.path, config.scheme) == ("localhost", 8143, "/forward", "ws")
    assert config.reconnect_interval == 2.0
    assert config.call_timeout is None
    assert config.logging_level() == logging.CRITICAL


def test_from_env_reads_deployment_variables():
    env = {
        "FORWARDING_SERVER_HOST": "relay.internal",
        "FORWARDING_SERVER_PORT": "9143",
        "FORWARDING_SERVER_PATH": "bridge",
        "FORWARDING_SERVER_SCHEME": "WSS",
        "FORWARDING_RECONNECT_INTERVAL": "0.5",
        "LOG_LEVEL": "Notice",
        "UNRELATED": "x",
    }
    config = ClientConfig.from_env(env)
    assert config.host == "relay.internal"
    assert config.port == 9143
    assert config.path == "/bridge"
    assert config.scheme == "wss"
    assert config.reconnect_interval == 0.5
    assert config.logging_level() == logging.INFO


def test_from_env_overrides_win():
    config = ClientConfig.from_env({"FORWARDING_SERVER_PORT": "1000"}, port=2000)
    assert config.port == 2000


def test_from_env_ignores_empty_values():
    assert ClientConfig.from_env({"FORWARDING_SERVER_HOST": ""}).host == "localhost"


@pytest.mark.parametrize("env", [
    {"FORWARDING_SERVER_PORT": "eighty"},
    {"FORWARDING_SERVER_PORT": "70000"},
    {"FORWARDING_SERVER_SCHEME": "http"},
    {"FORWARDING_RECONNECT_INTERVAL": "0"},
    {"LOG_LEVEL": "verbose"},
])
def test_invalid_values_raise(env):
    with pytest.raises(ValueError):
        ClientConfig.from_env(env)
