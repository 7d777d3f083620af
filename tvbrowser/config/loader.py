"""Configuration loader and validation for tvbrowser."""
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from tvbrowser.iptv.client import COLLECTIONS, DEFAULT_API_URL

load_dotenv()


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load and validate config from YAML file."""
    if config_path is None:
        config_path = os.getenv("CONFIG_PATH", "/config/config.yaml")
    path = Path(config_path)

    if not path.exists():
        # Fallback for local development
        fallback = Path("config/config.yaml")
        if fallback.exists():
            path = fallback
        else:
            raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data:
        raise ValueError("Config file is empty")
    if not isinstance(data, dict):
        raise ValueError("Config must be a mapping")

    api = data.setdefault("api", {})
    api.setdefault("base_url", DEFAULT_API_URL)
    api.setdefault("timeout", 30)
    api.setdefault("endpoints", {})
    data.setdefault("channels", {}).setdefault("limit", 30)
    data.setdefault("server", {}).setdefault("port", 8001)

    # Apply env overrides
    if url := os.getenv("IPTV_API_URL"):
        api["base_url"] = url
    if limit := os.getenv("CHANNEL_LIMIT"):
        data["channels"]["limit"] = int(limit)
    if port := os.getenv("PORT"):
        data["server"]["port"] = int(port)

    # Validate structure
    if not isinstance(api["endpoints"], dict):
        raise ValueError("'api.endpoints' must be a mapping")
    for name in api["endpoints"]:
        if name not in COLLECTIONS:
            raise ValueError(f"Unknown endpoint '{name}', expected one of {', '.join(COLLECTIONS)}")
    limit = data["channels"]["limit"]
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
        raise ValueError(f"'channels.limit' must be a non-negative integer: {limit!r}")

    return data
