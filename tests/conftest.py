"""Pytest conftest for Roster tests.

Responsibilities:
- Point every test at its own temporary data / public mirror directories.
- Provide the Flask test client and a transport that routes the client
  services through it, so service tests exercise the real HTTP layer.
- Print minimal, tidy CLI banners so test output is self-descriptive.
"""
from __future__ import annotations

import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List

import pytest

# The app module opens its log file at import time; keep it out of the repo.
os.environ.setdefault("LOG_FILE_PATH", str(Path(tempfile.mkdtemp(prefix="roster-logs-")) / "test.log"))

from config.settings import AppConfig  # noqa: E402
from services.errors import ServiceError  # noqa: E402
from utils.logger import AppLogger  # noqa: E402


@pytest.fixture
def data_dirs(tmp_path, monkeypatch):
    data = tmp_path / "data"
    public = tmp_path / "public" / "data"
    monkeypatch.setenv("DATA_PATH", str(data))
    monkeypatch.setenv("PUBLIC_DATA_PATH", str(public))
    monkeypatch.delenv("HASH_PASSWORDS", raising=False)
    monkeypatch.delenv("ASSETS_BASE_URL", raising=False)
    return data, public


@pytest.fixture
def config(data_dirs) -> AppConfig:
    return AppConfig()


@pytest.fixture
def app_logger(tmp_path) -> AppLogger:
    return AppLogger(str(tmp_path / "logs" / "store.log"))


@pytest.fixture
def client(data_dirs):
    from app import app

    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


class FlaskTransport:
    """Service transport backed by the Flask test client instead of requests."""

    def __init__(self, client, config: AppConfig) -> None:
        self.client = client
        self.config = config
        self.posts: List[List[dict]] = []

    def fetch_collection(self, name: str) -> List[dict]:
        resp = self.client.get(f"/api/{name}")
        if resp.status_code != 200:
            raise ServiceError(f"GET /api/{name} -> {resp.status_code}")
        return resp.get_json()

    def submit_collection(self, name: str, records: List[dict]) -> str:
        self.posts.append(records)
        resp = self.client.post(f"/api/{name}", json=records)
        if resp.status_code != 200:
            raise ServiceError(f"POST /api/{name} -> {resp.status_code}")
        return resp.get_json()["message"]

    def fetch_asset(self, file_name: str) -> str:
        p = self.config.public_data_path / file_name
        if not p.exists():
            raise ServiceError(f"missing asset {p}")
        return p.read_text(encoding="utf-8")


class OfflineTransport:
    """Transport whose API is down; assets come from an in-memory dict."""

    def __init__(self, assets: Dict[str, str] | None = None, fail_submit: bool = True) -> None:
        self.assets = assets or {}
        self.fail_submit = fail_submit
        self.posts: List[List[dict]] = []

    def fetch_collection(self, name: str) -> List[dict]:
        raise ServiceError("connection refused")

    def submit_collection(self, name: str, records: List[dict]) -> str:
        if self.fail_submit:
            raise ServiceError("connection refused")
        self.posts.append(records)
        return f"Successfully saved {len(records)} {name} to CSV file"

    def fetch_asset(self, file_name: str) -> str:
        if file_name not in self.assets:
            raise ServiceError(f"404 {file_name}")
        return self.assets[file_name]


@pytest.fixture
def flask_transport(client, config) -> FlaskTransport:
    return FlaskTransport(client, config)


@pytest.fixture
def offline_transport():
    """Factory for transports whose API is unreachable."""
    return OfflineTransport


# Simple collection index so we can show "N of M" in the pre-test banner
_ITEM_INDEX: Dict[str, int] = {}
_TOTAL_ITEMS: int = 0


def _color(text: str, code: str) -> str:
    return f"\x1b[{code}m{text}\x1b[0m"


def pytest_collection_modifyitems(session, config, items):
    """Populate a mapping of nodeid -> sequential index for prettier banners."""
    global _TOTAL_ITEMS
    _TOTAL_ITEMS = len(items)
    for idx, item in enumerate(items, start=1):
        _ITEM_INDEX[item.nodeid] = idx


def pytest_runtest_setup(item):
    """Print a concise, colored banner before each test.

    Prints:
      RUN [n/M] test_name  YYYY-MM-DD HH:MM:SS
      What it does: <first line of docstring>
    """
    idx = _ITEM_INDEX.get(item.nodeid, "?")
    total = _TOTAL_ITEMS or "?"
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"{_color('RUN', '36')} [{idx}/{total}] {item.name}  {ts}", flush=True)

    func = getattr(item, "obj", None)
    doc = (getattr(func, "__doc__", None) or "").strip()
    if doc:
        print(f"{_color('What it does:', '33')} {doc.splitlines()[0]}", flush=True)


def pytest_runtest_logreport(report):
    """Highlight the result after the test call phase and add a blank line."""
    if report.when != "call":
        return
    outcome = report.outcome.upper()
    col = {"PASSED": "32", "FAILED": "31"}.get(outcome, "33")
    print(f"{_color(outcome, col)} ({report.duration:.2f}s)", flush=True)
    print(flush=True)
