"""Centralized application configuration.

Reads from config/.env and exposes strongly-typed properties with sane defaults.
"""
from __future__ import annotations

import os
from pathlib import Path
from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


class AppConfig:
    """Application configuration loaded from config/.env with defaults.

    - Every property reads the environment on access, so values changed at
      runtime (or patched by tests) are picked up without a restart.
    - Ensures data, public mirror and logs directories exist when accessed.
    """

    def __init__(self) -> None:
        # Load .env from config/.env relative to project root
        root = Path(__file__).resolve().parent
        env_path = root / ".env"
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)
        # Also attempt to load a repository-root .env (developer machines
        # sometimes keep overrides there).
        repo_env = root.parent / ".env"
        if repo_env.exists():
            load_dotenv(dotenv_path=repo_env)

    @property
    def data_path(self) -> Path:
        base = Path(os.getenv("DATA_PATH", "data"))
        base.mkdir(parents=True, exist_ok=True)
        return base

    @property
    def public_data_path(self) -> Path:
        """Mirror directory that receives a byte-identical copy of every write."""
        base = Path(os.getenv("PUBLIC_DATA_PATH", "public/data"))
        base.mkdir(parents=True, exist_ok=True)
        return base

    @property
    def users_file_name(self) -> str:
        return os.getenv("USERS_FILE_NAME", "users.csv")

    @property
    def trainings_file_name(self) -> str:
        return os.getenv("TRAININGS_FILE_NAME", "trainings.csv")

    @property
    def categories_file_name(self) -> str:
        return os.getenv("CATEGORIES_FILE_NAME", "category.csv")

    @property
    def log_file_path(self) -> str:
        path = os.getenv("LOG_FILE_PATH", "logs/app.log")
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def host(self) -> str:
        return os.getenv("HOST", "127.0.0.1")

    @property
    def port(self) -> int:
        try:
            return int(os.getenv("PORT", "3001"))
        except ValueError:
            return 3001

    @property
    def debug(self) -> bool:
        return _env_bool("DEBUG", False)

    @property
    def api_base_url(self) -> str:
        """Base URL the client services talk to.

        Defaults to the local server on the configured port.
        """
        return os.getenv("API_BASE_URL", f"http://127.0.0.1:{self.port}").rstrip("/")

    @property
    def assets_base_url(self) -> str | None:
        """Optional URL serving the static CSV assets (fallback reads).

        When unset, the client reads the fallback CSV straight from
        `public_data_path`.
        """
        v = os.getenv("ASSETS_BASE_URL")
        if v is None or v.strip() == "":
            return None
        return v.rstrip("/")

    @property
    def request_timeout_seconds(self) -> float:
        try:
            return float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
        except ValueError:
            return 10.0

    @property
    def hash_passwords(self) -> bool:
        """Hash user passwords before they are written to users.csv."""
        return _env_bool("HASH_PASSWORDS", False)
