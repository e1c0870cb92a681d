from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

DEFAULT_PATH = "/forward"

# Deployment variables shared with the forwarding server's launcher
ENV_HOST = "FORWARDING_SERVER_HOST"
ENV_PORT = "FORWARDING_SERVER_PORT"
ENV_PATH = "FORWARDING_SERVER_PATH"
ENV_SCHEME = "FORWARDING_SERVER_SCHEME"
ENV_RECONNECT = "FORWARDING_RECONNECT_INTERVAL"
ENV_LOG_LEVEL = "LOG_LEVEL"

# syslog-style names accepted by LOG_LEVEL
_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "emergency": logging.CRITICAL,
}


@dataclass
class ClientConfig:
    host: str = "localhost"
    port: int = 8143
    path: str = DEFAULT_PATH
    scheme: str = "ws"
    reconnect_interval: float = 2.0
    open_timeout: Optional[float] = 10.0
    call_timeout: Optional[float] = None
    log_level: str = "critical"

    def __post_init__(self) -> None:
        if not 0 < int(self.port) < 65536:
            raise ValueError(f"port out of range: {self.port}")
        if self.scheme not in ("ws", "wss"):
            raise ValueError(f"unsupported scheme: {self.scheme}")
        if self.reconnect_interval <= 0:
            raise ValueError("reconnect_interval must be positive")
        if self.log_level.lower() not in _LEVELS:
            raise ValueError(f"unknown log level: {self.log_level}")
        self.port = int(self.port)
        self.path = normalize_path(self.path)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "ClientConfig":
        """Build a config from FORWARDING_SERVER_* / LOG_LEVEL variables."""
        env = os.environ if environ is None else environ
        values: dict = {}
        if env.get(ENV_HOST):
            values["host"] = env[ENV_HOST]
        if env.get(ENV_PORT):
            values["port"] = _parse(ENV_PORT, env[ENV_PORT], int)
        if env.get(ENV_PATH):
            values["path"] = env[ENV_PATH]
        if env.get(ENV_SCHEME):
            values["scheme"] = env[ENV_SCHEME].lower()
        if env.get(ENV_RECONNECT):
            values["reconnect_interval"] = _parse(ENV_RECONNECT, env[ENV_RECONNECT], float)
        if env.get(ENV_LOG_LEVEL):
            values["log_level"] = env[ENV_LOG_LEVEL].lower()
        values.update(overrides)
        return cls(**values)

    def logging_level(self) -> int:
        return _LEVELS[self.log_level.lower()]


def normalize_path(path: str) -> str:
    if path and not path.startswith("/"):
        return "/" + path
    return path

def _parse(name: str, raw: str, kind: type) -> Any:
    try:
        return kind(raw)
    except ValueError as ex:
        raise ValueError(f"{name}={raw!r} is not a valid {kind.__name__}") from ex
