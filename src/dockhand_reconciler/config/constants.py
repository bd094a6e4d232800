"""Default paths, environment variable names, and constants."""

from __future__ import annotations

import platformdirs

APP_NAME = "dockhand-reconciler"
APP_AUTHOR = "dockhand"

CONFIG_DIR = platformdirs.user_config_path(APP_NAME, APP_AUTHOR)
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Environment variable names
ENV_ENDPOINT = "DOCKHAND_ENDPOINT"
ENV_COOKIE = "DOCKHAND_COOKIE"
ENV_PROFILE = "DOCKHAND_PROFILE"
ENV_LOG_LEVEL = "DOCKHAND_LOG_LEVEL"
ENV_LOG_FILE = "DOCKHAND_LOG_FILE"
ENV_STATE_FILE = "DOCKHAND_STATE_FILE"

# API defaults
DEFAULT_API_BASE = "/api"
HEALTH_PATH = "/health"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3

DEFAULT_STATE_FILE = "dockhand.state.json"
