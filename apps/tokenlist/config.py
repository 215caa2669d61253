from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _csv_tuple(raw: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(',') if item.strip())


def repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def resolve_path(path_value: str) -> Path:
    path = Path(path_value)
    if path.is_absolute():
        return path
    return repo_root() / path


@dataclass(frozen=True)
class Settings:
    app_name: str
    environment: Literal['dev', 'prod', 'test']
    cors_origins: str
    tokenlist_path: str
    tokenlist_build_path: str
    validation_exceptions: tuple[str, ...]
    reconcile_max_concurrency: int
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    environment = os.getenv('ENVIRONMENT', 'dev').strip().lower()
    if environment not in {'dev', 'prod', 'test'}:
        environment = 'dev'

    return Settings(
        app_name=os.getenv('APP_NAME', 'tokenlist-registry'),
        environment=environment,  # type: ignore[arg-type]
        cors_origins=os.getenv('CORS_ORIGINS', 'http://localhost:3300'),
        tokenlist_path=os.getenv('TOKENLIST_PATH', 'data/tokenlist.json'),
        tokenlist_build_path=os.getenv('TOKENLIST_BUILD_PATH', 'build/tokenlist.json'),
        validation_exceptions=_csv_tuple(os.getenv('VALIDATION_EXCEPTIONS', '')),
        reconcile_max_concurrency=max(1, _env_int('RECONCILE_MAX_CONCURRENCY', 16)),
        log_level=os.getenv('LOG_LEVEL', 'INFO').strip().upper() or 'INFO'
    )
