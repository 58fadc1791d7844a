from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent.parent

DEFAULTS: dict[str, Any] = {
    "ENV": "production",
    "TMDB_API_KEY": None,
    "TMDB_BASE_URL": "https://api.themoviedb.org/3",
    "TMDB_IMAGE_URL": "https://image.tmdb.org/t/p",
    "TMDB_TIMEOUT": 5.0,
    "DATABASE_PATH": str(ROOT / "movie_info.db"),
    "JWT_SECRET": None,
    "JWT_EXPIRES_DAYS": 30,
    "RECENTLY_VIEWED_CAP": 20,
    "RECENTLY_VIEWED_PAGE": 10,
    "LOOKUP_WORKERS": 8,
    "LOG_LEVEL": "INFO",
    "LOG_FILE": None,
    "LOG_MAX_BYTES": 10485760,
    "LOG_BACKUP_COUNT": 5,
}

DEV_JWT_SECRET = "dev-secret-change-me-not-for-production"

# env var -> config key
ENV_KEYS = {
    "APP_ENV": "ENV",
    "TMDB_API_KEY": "TMDB_API_KEY",
    "TMDB_BASE_URL": "TMDB_BASE_URL",
    "TMDB_IMAGE_URL": "TMDB_IMAGE_URL",
    "TMDB_TIMEOUT": "TMDB_TIMEOUT",
    "DATABASE_PATH": "DATABASE_PATH",
    "JWT_SECRET": "JWT_SECRET",
    "JWT_EXPIRES_DAYS": "JWT_EXPIRES_DAYS",
    "LOG_LEVEL": "LOG_LEVEL",
    "LOG_FILE": "LOG_FILE",
}

# yaml (section, key) -> config key
YAML_KEYS = {
    ("tmdb", "base_url"): "TMDB_BASE_URL",
    ("tmdb", "image_url"): "TMDB_IMAGE_URL",
    ("tmdb", "timeout"): "TMDB_TIMEOUT",
    ("database", "path"): "DATABASE_PATH",
    ("auth", "token_days"): "JWT_EXPIRES_DAYS",
    ("collections", "recently_viewed_cap"): "RECENTLY_VIEWED_CAP",
    ("collections", "recently_viewed_page"): "RECENTLY_VIEWED_PAGE",
    ("collections", "lookup_workers"): "LOOKUP_WORKERS",
    ("logging", "level"): "LOG_LEVEL",
    ("logging", "file"): "LOG_FILE",
    ("logging", "max_bytes"): "LOG_MAX_BYTES",
    ("logging", "backup_count"): "LOG_BACKUP_COUNT",
}

NUMERIC_KEYS = {
    "TMDB_TIMEOUT": float,
    "JWT_EXPIRES_DAYS": int,
    "RECENTLY_VIEWED_CAP": int,
    "RECENTLY_VIEWED_PAGE": int,
    "LOOKUP_WORKERS": int,
    "LOG_MAX_BYTES": int,
    "LOG_BACKUP_COUNT": int,
}


def _load_yaml(path: str | os.PathLike) -> dict:
    """Load configuration from a YAML file"""
    config_file = Path(path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with open(config_file, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """
    Build the application configuration.

    Precedence, lowest first: built-in defaults, the YAML file named by
    APP_CONFIG, environment variables (including a .env file), then any
    explicit overrides handed to the app factory.
    """
    load_dotenv(dotenv_path=ROOT / ".env")
    config = dict(DEFAULTS)

    yaml_path = (overrides or {}).get("APP_CONFIG") or os.getenv("APP_CONFIG")
    if yaml_path:
        data = _load_yaml(yaml_path)
        for (section, key), name in YAML_KEYS.items():
            value = (data.get(section) or {}).get(key)
            if value is not None:
                config[name] = value

    for env_name, name in ENV_KEYS.items():
        value = os.getenv(env_name)
        if value not in (None, ""):
            config[name] = value

    config.update(overrides or {})

    for name, cast in NUMERIC_KEYS.items():
        try:
            config[name] = cast(config[name])
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be numeric, got {config[name]!r}")

    if not config.get("JWT_SECRET"):
        if config["ENV"] != "development":
            raise RuntimeError("JWT_SECRET is required. Put it in your environment or .env file.")
        config["JWT_SECRET"] = DEV_JWT_SECRET
        config["JWT_SECRET_IS_DEFAULT"] = True
    return config


def setup_logging(config: Mapping[str, Any]) -> logging.Logger:
    """Configure the `movieinfo` logger hierarchy once per process."""
    log_level = getattr(logging, str(config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logger = logging.getLogger("movieinfo")
    logger.setLevel(log_level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = config.get("LOG_FILE")
    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=config.get("LOG_MAX_BYTES", 10485760),
            backupCount=config.get("LOG_BACKUP_COUNT", 5),
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    return logger
