from __future__ import annotations

from typing import List

from loguru import logger

from config.settings import AppConfig
from services.collection import Transport
from services.errors import ServiceError
from utils.csv_codec import CSVDecodeError, decode


class CategoryService:
    """Read-only list of category labels (category.csv: id,name)."""

    def __init__(self, config: AppConfig, transport: Transport) -> None:
        self.config = config
        self.transport = transport

    def get_all_categories(self) -> List[dict]:
        try:
            rows = decode(self.transport.fetch_asset(self.config.categories_file_name), ["id", "name"])
        except (ServiceError, CSVDecodeError) as e:
            logger.error("Error loading categories: {}", e)
            return []
        return [
            {"id": r["id"].strip(), "name": r["name"].strip()}
            for r in rows
            if r["id"].strip() and r["name"].strip()
        ]
