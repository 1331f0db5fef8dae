from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

BACKENDS = {"memory", "sqlite", "dynamodb"}
LOGGING_LEVELS = {"debug", "info", "warn", "error"}
LOGGING_FORMATS = {"json", "text"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default), 'sqlite' or 'dynamodb'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/tasks.db'
    - TASKS_TABLE: DynamoDB table name (required when PERSISTENCE_BACKEND=dynamodb)
    - AWS_REGION: AWS region for DynamoDB. Default 'us-east-1'
    - DYNAMODB_ENDPOINT_URL: optional endpoint override (e.g. DynamoDB Local)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOGGING_ENABLED: 'false' to silence application logs (default: true)
    - LOGGING_LEVEL: 'debug' (default), 'info', 'warn' or 'error'
    - LOGGING_FORMAT: 'json' (default) or 'text'
    """

    persistence_backend: str
    sqlite_db_path: str
    tasks_table: Optional[str]
    aws_region: str
    dynamodb_endpoint_url: Optional[str]
    cors_allow_origins: List[str]
    logging_enabled: bool
    logging_level: str
    logging_format: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _get_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_choice(value: str, allowed: set, default: str) -> str:
    v = value.strip().lower()
    return v if v in allowed else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        # Star will be handled in main via allow_origins=["*"]
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """
    Return application settings loaded from environment variables.

    Raises:
        ValueError: if the dynamodb backend is selected without TASKS_TABLE.
    """
    backend = _parse_choice(_get_env("PERSISTENCE_BACKEND", "memory"), BACKENDS, "memory")
    tasks_table = _get_optional_env("TASKS_TABLE")
    if backend == "dynamodb" and tasks_table is None:
        raise ValueError("TASKS_TABLE environment variable is required for the dynamodb backend")

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/tasks.db").strip(),
        tasks_table=tasks_table,
        aws_region=_get_env("AWS_REGION", "us-east-1").strip(),
        dynamodb_endpoint_url=_get_optional_env("DYNAMODB_ENDPOINT_URL"),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        logging_enabled=_parse_bool(_get_env("LOGGING_ENABLED", "true"), True),
        logging_level=_parse_choice(_get_env("LOGGING_LEVEL", "debug"), LOGGING_LEVELS, "debug"),
        logging_format=_parse_choice(_get_env("LOGGING_FORMAT", "json"), LOGGING_FORMATS, "json"),
    )
