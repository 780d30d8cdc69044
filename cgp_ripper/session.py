"""
session.py

The JSON config file written by `configure` and read by `rip`. It only holds
the reader's ASP.NET session id: {"ASP.NET_SessionId": "..."}.
"""

import json
import logging
import os

from .errors import ConfigError

SESSION_KEY = "ASP.NET_SessionId"
DEFAULT_CONFIG_FILE = "config.json"


def save_session_id(session_id: str, path: str = DEFAULT_CONFIG_FILE):
    if not session_id:
        raise ValueError("Session id must not be empty")
    with open(path, "w", encoding="utf-8") as f:
        json.dump({SESSION_KEY: session_id}, f)
    logging.info(f"Session saved to {path}")


def load_session_id(path: str = DEFAULT_CONFIG_FILE) -> str:
    config_path = os.path.abspath(path)
    if not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found at {config_path}. Run 'configure' first.")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Could not read {config_path}: {exc}") from exc

    session_id = config.get(SESSION_KEY) if isinstance(config, dict) else None
    if not session_id:
        raise ConfigError(f"{config_path} has no {SESSION_KEY}. Run 'configure' first.")
    return session_id
