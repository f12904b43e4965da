"""Training session operations on top of a cached trainings collection."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from loguru import logger

from config.settings import AppConfig
from services.collection import CollectionCache, Transport
from services.errors import NotFoundError, ServiceError
from services.transport import ApiTransport
from services.user_service import UserService
from store.trainings import HEADER


def _now_iso() -> str:
    # Same shape as JavaScript's Date.toISOString(): 2024-05-01T09:30:00.000Z
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def player_display_name(user: dict) -> str:
    return f"{user.get('name', '')} - {user.get('surname', '')}"


def _require_session_fields(form: Dict[str, str]) -> None:
    if not form.get("playerId"):
        raise ValueError("Please select a player")
    if not form.get("trainingDay"):
        raise ValueError("Please select a training date and time")


class TrainingService:
    def __init__(self, cache: CollectionCache) -> None:
        self.cache = cache

    def get_all_trainings(self) -> List[dict]:
        try:
            return self.cache.load()
        except ServiceError as e:
            logger.error("Error getting trainings: {}", e)
            return []

    def get_user_trainings(self, user_id: str) -> List[dict]:
        return [t for t in self.get_all_trainings() if t.get("playerId") == user_id]

    def get_visible_trainings(self, user: Optional[dict]) -> List[dict]:
        """Trainers see every session, players only their own, nobody sees nothing."""
        if not user:
            return []
        if user.get("isTrainer"):
            return self.get_all_trainings()
        return self.get_user_trainings(str(user.get("id", "")))

    def create_training(self, form: Dict[str, str], user: dict, player_name: str) -> dict:
        _require_session_fields(form)
        trainings = self.cache.load()
        training = {
            "id": self.cache.next_id(),
            "playerId": form.get("playerId", ""),
            "playerName": player_name,
            "trainingDay": form.get("trainingDay", ""),
            "createdBy": user.get("id", ""),
            "createdAt": _now_iso(),
        }
        self.cache.save(trainings + [training])
        logger.info("Created training {} for player {}", training["id"], training["playerId"])
        return training

    def schedule_training(self, form: Dict[str, str], trainer: Optional[dict], users: UserService) -> dict:
        """Create a session on behalf of a signed-in trainer.

        The player's display name is snapshotted from the users collection.
        """
        if not trainer or not trainer.get("isTrainer"):
            raise PermissionError("Only trainers can add trainings")
        _require_session_fields(form)
        player =users.get_user_by_id(form.get("playerId", ""))
        if player is None:
            raise NotFoundError("Selected player not found")
        return self.create_training(form, trainer, player_display_name(player))

    def update_training(self, training_id: str, form: Dict[str, str], player_name: str) -> dict:
        _require_session_fields(form)
        trainings = self.cache.load()
        idx = next((i for i, t in enumerate(trainings) if t.get("id") == training_id), None)
        if idx is None:
            raise NotFoundError("Training not found")
        updated = dict(trainings[idx])
        updated.update({
            "playerId": form.get("playerId", ""),
            "playerName": player_name,
            "trainingDay": form.get("trainingDay", ""),
        })
        trainings[idx] = updated
        self.cache.save(trainings)
        logger.info("Updated training {}", training_id)
        return updated

    def delete_training(self, training_id: str) -> None:
        trainings = self.cache.load()
        if not any(t.get("id") == training_id for t in trainings):
            raise NotFoundError("Training not found")
        self.cache.save([t for t in trainings if t.get("id") != training_id])
        logger.info("Deleted training {}", training_id)

    def remove_training(self, training_id: str, trainer: Optional[dict]) -> None:
        """Delete a session on behalf of a signed-in trainer."""
        if not trainer or not trainer.get("isTrainer"):
            raise PermissionError("Only trainers can delete trainings")
        self.delete_training(training_id)

    def clear_all_trainings(self) -> None:
        try:
            self.cache.save([])
        except ServiceError as e:
            logger.error("Error clearing trainings: {}", e)

    @staticmethod
    def group_by_player(trainings: Sequence[dict]) -> Dict[str, List[dict]]:
        groups: Dict[str, List[dict]] = {}
        for t in trainings:
            groups.setdefault(str(t.get("playerName", "")), []).append(t)
        return groups


def create_training_service(config: AppConfig, transport: Optional[Transport] = None) -> TrainingService:
    cache = CollectionCache(
        transport or ApiTransport(config),
        name="trainings",
        asset_name=config.trainings_file_name,
        columns=HEADER,
    )
    return TrainingService(cache)
