from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Sequence

from loguru import logger

from services.errors import ServiceError
from utils.csv_codec import parse_csv_content


class Transport(Protocol):
    def fetch_collection(self, name: str) -> List[dict]: ...

    def submit_collection(self, name: str, records: List[dict]) -> str: ...

    def fetch_asset(self, file_name: str) -> str: ...


class CollectionCache:
    """In-memory copy of one remote collection.

    The first `load()` fills the cache from the API, then from the static CSV
    asset if the API is unreachable, then with an empty list. After that the
    cache is never refreshed on its own; call `invalidate()` to force it.
    `save()` replaces the cache and submits the whole collection.
    """

    def __init__(
        self,
        transport: Transport,
        name: str,
        asset_name: str,
        columns: Sequence[str],
        hydrate: Optional[Callable[[dict], dict]] = None,
    ) -> None:
        self.transport = transport
        self.name = name
        self.asset_name = asset_name
        self.columns = list(columns)
        self.hydrate = hydrate
        self._records: List[dict] = []
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def _prepare(self, records: Sequence[dict]) -> List[dict]:
        rows = [dict(r) for r in records]
        if self.hydrate is not None:
            rows = [self.hydrate(r) for r in rows]
        return rows

    def _fetch(self) -> List[dict]:
        try:
            records = self.transport.fetch_collection(self.name)
            logger.info("Loaded {} {} from backend API", len(records), self.name)
            return self._prepare(records)
        except ServiceError as e:
            logger.warning("Backend API not available for {}, using fallback: {}", self.name, e)

        try:
            result = parse_csv_content(self.transport.fetch_asset(self.asset_name), self.columns)
            if result.success:
                logger.info("Loaded {} {} from {}", len(result.data), self.name, self.asset_name)
                return self._prepare(result.data)
            logger.warning("Ignoring {}: {}", self.asset_name, "; ".join(result.errors))
        except ServiceError as e:
            logger.warning("Could not fetch CSV file {}: {}", self.asset_name, e)

        logger.info("No CSV data found, starting with empty {} list", self.name)
        return []

    def load(self) -> List[dict]:
        if not self._loaded:
            self._records = self._fetch()
            self._loaded = True
        return [dict(r) for r in self._records]

    def save(self, records: Sequence[dict]) -> None:
        """Replace the cached collection and submit all of it.

        If the submit fails the previous cache contents are restored and the
        ServiceError propagates.
        """
        previous, was_loaded = self._records, self._loaded
        self._records = self._prepare(records)
        self._loaded = True
        try:
            self.transport.submit_collection(self.name, [dict(r) for r in self._records])
        except ServiceError:
            logger.error("Error saving {} to backend", self.name)
            self._records, self._loaded = previous, was_loaded
            raise

    def next_id(self) -> str:
        """Return max(numeric ids) + 1 as a string.

        Non-numeric ids are ignored. Two clients allocating from stale caches
        can hand out the same id.
        """
        numeric = [int(r["id"]) for r in self.load() if str(r.get("id", "")).isdigit()]
        return str(max(numeric) + 1) if numeric else "1"

    def invalidate(self) -> None:
        self._records = []
        self._loaded = False
