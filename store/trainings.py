from __future__ import annotations

from config.settings import AppConfig
from store.record_store import RecordStore
from utils.logger import AppLogger


# playerName is a "<name> - <surname>" snapshot taken when the session is
# created; it is not kept in sync with later user edits.
HEADER = [
    "id",
    "playerId",
    "playerName",
    "trainingDay",
    "createdBy",
    "createdAt",
]


def create_trainings_store(config: AppConfig, logger: AppLogger) -> RecordStore:
    return RecordStore(
        config,
        logger,
        name="trainings",
        file_name=config.trainings_file_name,
        header=HEADER,
    )
