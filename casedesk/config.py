# casedesk/config.py

"""
Central configuration for the casedesk service.

Values are read from environment variables; a local .env file is loaded
first so development setups do not need to export anything by hand.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# ---------------------------------------------------------
#  Database
# ---------------------------------------------------------

DATABASE_URL = os.getenv("CASEDESK_DATABASE_URL", "sqlite:///./casedesk.db")
DATABASE_ECHO = _env_bool("CASEDESK_DATABASE_ECHO")

# ---------------------------------------------------------
#  HTTP server
# ---------------------------------------------------------

CORS_ORIGINS = _env_list("CASEDESK_CORS_ORIGINS", "http://localhost:3000")

# ---------------------------------------------------------
#  Conflict presentation
# ---------------------------------------------------------

# Placeholder rendered for empty values in conflict diffs
EMPTY_DISPLAY = os.getenv("CASEDESK_EMPTY_DISPLAY", "—")


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = DATABASE_URL
    echo: bool = DATABASE_ECHO


@dataclass(frozen=True)
class ServerConfig:
    cors_origins: List[str] = field(default_factory=lambda: list(CORS_ORIGINS))


@dataclass(frozen=True)
class ConflictConfig:
    empty_display: str = EMPTY_DISPLAY


@dataclass(frozen=True)
class AppConfig:
    database: DatabaseConfig
    server: ServerConfig
    conflicts: ConflictConfig


# ---------------------------------------------------------
#  SINGLETON ACCESSOR
# ---------------------------------------------------------

_config_singleton: AppConfig | None = None


def get_config() -> AppConfig:
    global _config_singleton
    if _config_singleton is None:
        _config_singleton = AppConfig(
            database=DatabaseConfig(),
            server=ServerConfig(),
            conflicts=ConflictConfig(),
        )
    return _config_singleton
