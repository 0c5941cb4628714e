"""Configuration management for clockboundc.

Values are layered, later sources winning:
    1. ~/.config/clockboundc/config.cfg ([DEFAULT] section)
    2. .env in the working directory
    3. CLOCKBOUNDC_SOCKET_PATH / CLOCKBOUNDC_TIMEOUT_S environment variables
"""

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

from clockboundc.client import DEFAULT_SOCKET_PATH

CONFIG_PATH = Path.home() / ".config" / "clockboundc" / "config.cfg"

ENV_OVERRIDES = {
    "CLOCKBOUNDC_SOCKET_PATH": "socket_path",
    "CLOCKBOUNDC_TIMEOUT_S": "timeout",
}


@dataclass
class ClientSettings:
    socket_path: str = DEFAULT_SOCKET_PATH
    # Deadline applied to each call; None means block indefinitely.
    timeout: Optional[float] = None


def load_raw_config(
    path: Path = CONFIG_PATH,
    env_path: Optional[Path] = None,
) -> Dict[str, str]:
    """
    Load raw configuration values from every source.
    Keys are returned lowercased.
    """
    data: Dict[str, str] = {}

    cfg = configparser.ConfigParser()
    if path.exists():
        cfg.read(path)
        data.update({k.lower(): v for k, v in cfg["DEFAULT"].items()})

    env_path = env_path or Path.cwd() / ".env"
    if env_path.exists():
        data.update(
            {k.lower(): v for k, v in dotenv_values(env_path).items() if v is not None}
        )

    for env_key, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_key)
        if value is not None and value.strip() != "":
            data[key] = value

    return data


def _get_timeout(raw: Dict[str, str]) -> Optional[float]:
    value = str(raw.get("timeout", "") or "").strip()
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ValueError(f"Invalid timeout in configuration: {value!r}") from None
    if timeout < 0:
        raise ValueError(f"Timeout must not be negative: {value!r}")
    return timeout or None


def get_client_settings(raw: Optional[Dict[str, str]] = None) -> ClientSettings:
    """
    Build ClientSettings from raw configuration values.
    Raises ValueError if the timeout is malformed.
    """
    raw = raw if raw is not None else load_raw_config()
    socket_path = str(raw.get("socket_path", "") or "").strip() or DEFAULT_SOCKET_PATH
    return ClientSettings(socket_path=socket_path, timeout=_get_timeout(raw))
