"""
Environment-driven configuration helpers shared by the scraper and its cache store.
"""

from __future__ import annotations

import os
from pathlib import Path

ENV_FILES = (".env", ".env.local")


def load_env_files(project_root: Path | None = None) -> None:
    """
    Load KEY=VALUE pairs from `.env` and `.env.local` when present.
    Variables already in the process environment win.
    """

    root = project_root or Path(__file__).resolve().parents[1]
    for filename in ENV_FILES:
        env_path = root / filename
        if not env_path.is_file():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if line.startswith("export "):
                line = line[len("export "):].lstrip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key:
                os.environ.setdefault(key, value)


def normalize_database_url(url: str) -> str:
    """
    Point bare postgres URLs at the psycopg driver; other URLs pass through.
    """

    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def resolve_database_url() -> str:
    """
    Resolve the cache database URL.

    Priority:
    1) REGISTRY_CACHE_DATABASE_URL
    2) DATABASE_URL
    """

    load_env_files()

    for name in ("REGISTRY_CACHE_DATABASE_URL", "DATABASE_URL"):
        url = os.getenv(name, "").strip()
        if url:
            return normalize_database_url(url)

    raise RuntimeError(
        "No database URL configured for the scraper cache. Set "
        "REGISTRY_CACHE_DATABASE_URL or DATABASE_URL, or use "
        "REGISTRY_SCRAPER_CACHE_BACKEND=memory."
    )
