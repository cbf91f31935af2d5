"""Web server configuration.

Loads from .corkboard/config.yaml (or $CORKBOARD_CONFIG) with environment
variable overrides.
"""

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(".corkboard") / "config.yaml"


def _env_flag(name: str, default: str = "") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


@dataclass
class WebConfig:
    """Configuration for the web server."""

    host: str = "0.0.0.0"
    port: int = 8000
    db_path: str = ".corkboard/corkboard.db"
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24
    cors_origins: list[str] | None = None
    debug: bool = False
    log_level: str = "INFO"
    seed_demo: bool = False

    @classmethod
    def load(cls, config_path: Path | None = None) -> WebConfig:
        """Load config from file and environment variables.

        Priority (highest wins):
          1. Environment variables (CORKBOARD_HOST, CORKBOARD_DB_PATH, etc.)
          2. Config file (.corkboard/config.yaml, $CORKBOARD_CONFIG or custom path)
          3. Defaults

        The JWT secret is read from the environment only.
        """
        config = cls()
        file_path = config_path or Path(os.environ.get("CORKBOARD_CONFIG", DEFAULT_CONFIG_FILE))

        if file_path.exists():
            try:
                with open(file_path) as f:
                    data = yaml.safe_load(f) or {}

                config.host = data.get("host", config.host)
                config.port = int(data.get("port", config.port))
                config.db_path = str(data.get("db_path", config.db_path))
                config.jwt_expire_hours = int(data.get("jwt_expire_hours", config.jwt_expire_hours))
                config.debug = bool(data.get("debug", config.debug))
                config.log_level = str(data.get("log_level", config.log_level)).upper()
                config.seed_demo = bool(data.get("seed_demo", config.seed_demo))
                if data.get("cors_origins"):
                    config.cors_origins = [str(o).strip() for o in data["cors_origins"]]
            except (yaml.YAMLError, OSError, ValueError, TypeError) as e:
                logger.warning("Ignoring unreadable config file %s: %s", file_path, e)

        config.host = os.environ.get("CORKBOARD_HOST", config.host)
        config.port = int(os.environ.get("CORKBOARD_PORT", config.port))
        config.db_path = os.environ.get("CORKBOARD_DB_PATH", config.db_path)
        config.jwt_secret = os.environ.get("CORKBOARD_JWT_SECRET", "")
        if "CORKBOARD_DEBUG" in os.environ:
            config.debug = _env_flag("CORKBOARD_DEBUG")
        config.log_level = os.environ.get(
            "CORKBOARD_LOG_LEVEL", "DEBUG" if config.debug else config.log_level
        ).upper()
        if "CORKBOARD_SEED_DEMO" in os.environ:
            config.seed_demo = _env_flag("CORKBOARD_SEED_DEMO")
        origins = os.environ.get("CORKBOARD_CORS_ORIGINS")
        if origins:
            config.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]

        if not config.jwt_secret:
            # Tokens won't survive a restart, which is fine for local use.
            config.jwt_secret = secrets.token_hex(32)
            logger.warning(
                "CORKBOARD_JWT_SECRET not set -- using random ephemeral secret. "
                "Set CORKBOARD_JWT_SECRET for persistent sessions."
            )

        return config
