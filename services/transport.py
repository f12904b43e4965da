"""HTTP transport between the client services and the Record API."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import requests
from loguru import logger

from config.settings import AppConfig
from services.errors import ServiceError


class ApiTransport:
    """Talks to the Flask Record API with `requests`.

    - `fetch_collection` / `submit_collection` map to GET / POST
      ``{API_BASE_URL}/api/<name>``; writes always carry the whole array.
    - `fetch_asset` returns the text of a static CSV file, either from
      ``ASSETS_BASE_URL`` or, when that is unset, straight from the public
      data directory on disk.

    Every failure surfaces as :class:`ServiceError`.
    """

    def __init__(self, config: AppConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _url(self, name: str) -> str:
        return f"{self.config.api_base_url}/api/{name}"

    def fetch_collection(self, name: str) -> List[dict]:
        url = self._url(name)
        try:
            resp = self.session.get(url, timeout=self.config.request_timeout_seconds)
        except requests.RequestException as e:
            raise ServiceError(f"Could not reach {url}: {e}") from e
        if not resp.ok:
            raise ServiceError(f"Failed to load {name}: {resp.status_code} {resp.reason}")
        try:
            data = resp.json()
        except ValueError as e:
            raise ServiceError(f"Backend returned invalid JSON for {name}") from e
        if not isinstance(data, list):
            raise ServiceError(f"Backend returned {type(data).__name__} for {name}, expected a list")
        return data

    def submit_collection(self, name: str, records: List[dict]) -> str:
        url = self._url(name)
        try:
            resp = self.session.post(url, json=records, timeout=self.config.request_timeout_seconds)
        except requests.RequestException as e:
            raise ServiceError(f"Failed to save {name}: {e}") from e
        if not resp.ok:
            raise ServiceError(f"Failed to save {name}: {resp.status_code} {resp.reason}")
        message = ""
        try:
            message = (resp.json() or {}).get("message", "")
        except ValueError:
            pass
        logger.info("{} successfully saved via backend ({} records)", name, len(records))
        return message

    def fetch_asset(self, file_name: str) -> str:
        base = self.config.assets_base_url
        if base:
            url = f"{base}/{file_name}"
            try:
                resp = self.session.get(url, timeout=self.config.request_timeout_seconds)
            except requests.RequestException as e:
                raise ServiceError(f"Could not fetch {url}: {e}") from e
            if not resp.ok:
                raise ServiceError(f"Failed to fetch {url}: {resp.status_code} {resp.reason}")
            return resp.text
        p = Path(self.config.public_data_path) / file_name
        try:
            return p.read_text(encoding="utf-8")
        except OSError as e:
            raise ServiceError(f"Could not read {p}: {e}") from e
