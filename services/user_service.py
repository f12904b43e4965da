"""User roster operations on top of a cached users collection."""
from __future__ import annotations

from typing import Dict, List, Optional

from loguru import logger
from werkzeug.security import check_password_hash

from config.settings import AppConfig
from services.collection import CollectionCache, Transport
from services.errors import DuplicateEmailError, LastTrainerError, NotFoundError, ServiceError
from services.transport import ApiTransport
from store.users import HEADER, PLAYER, TRAINER, is_password_hash

ROLES = (TRAINER, PLAYER)
FORM_FIELDS = ("name", "password", "surname", "email", "category", "role")


def _with_trainer_flag(user: dict) -> dict:
    user["isTrainer"] = user.get("role") == TRAINER
    return user


def _from_form(user_id: str, form: Dict[str, str]) -> dict:
    role = form.get("role")
    if role not in ROLES:
        raise ValueError(f"role must be one of {', '.join(ROLES)}, got {role!r}")
    user = {"id": user_id}
    user.update({k: form.get(k, "") for k in FORM_FIELDS})
    return _with_trainer_flag(user)


class UserService:
    def __init__(self, cache: CollectionCache) -> None:
        self.cache = cache

    def get_all_users(self) -> List[dict]:
        try:
            return self.cache.load()
        except ServiceError as e:
            logger.error("Error getting users: {}", e)
            return []

    def get_user_by_id(self, user_id: str) -> Optional[dict]:
        return next((u for u in self.get_all_users() if u.get("id") == user_id), None)

    def get_user_by_email(self, email: str) -> Optional[dict]:
        """Exact, case-sensitive email lookup."""
        return next((u for u in self.get_all_users() if u.get("email") == email), None)

    def authenticate(self, email: str, password: str) -> Optional[dict]:
        """Return the user when email and password match, else None.

        Stored passwords may be plaintext or a werkzeug hash (HASH_PASSWORDS).
        """
        user = self.get_user_by_email(email)
        if user is None:
            return None
        stored = str(user.get("password", ""))
        ok = check_password_hash(stored, password) if is_password_hash(stored) else stored == password
        return user if ok else None

    def get_players(self) -> List[dict]:
        return [u for u in self.get_all_users() if u.get("role") == PLAYER]

    def create_user(self, form: Dict[str, str]) -> dict:
        users = self.cache.load()
        if any(u.get("email") == form.get("email") for u in users):
            raise DuplicateEmailError("Email already exists")
        user = _from_form(self.cache.next_id(), form)
        self.cache.save(users + [user])
        logger.info("Created user {} ({})", user["id"], user["email"])
        return user

    def update_user(self, user_id: str, form: Dict[str, str]) -> dict:
        users = self.cache.load()
        idx = next((i for i, u in enumerate(users) if u.get("id") == user_id), None)
        if idx is None:
            raise NotFoundError("User not found")
        if any(u.get("email") == form.get("email") and u.get("id") != user_id for u in users):
            raise DuplicateEmailError("Email already exists")
        user = _from_form(user_id, form)
        users[idx] = user
        self.cache.save(users)
        logger.info("Updated user {}", user_id)
        return user

    def delete_user(self, user_id: str) -> None:
        """Remove a user.

        Trainings that reference the user are left alone (no cascade).
        """
        users = self.cache.load()
        target = next((u for u in users if u.get("id") == user_id), None)
        if target is None:
            raise NotFoundError("User not found")
        trainers = [u for u in users if u.get("role") == TRAINER]
        if target.get("role") == TRAINER and len(trainers) == 1:
            raise LastTrainerError("Cannot delete the last trainer user. At least one trainer must remain.")
        self.cache.save([u for u in users if u.get("id") != user_id])
        logger.info("Deleted user {}", user_id)

    def clear_all_users(self) -> None:
        try:
            self.cache.save([])
        except ServiceError as e:
            logger.error("Error clearing users: {}", e)


def create_user_service(config: AppConfig, transport: Optional[Transport] = None) -> UserService:
    cache = CollectionCache(
        transport or ApiTransport(config),
        name="users",
        asset_name=config.users_file_name,
        columns=HEADER,
        hydrate=_with_trainer_flag,
    )
    return UserService(cache)
