from __future__ import annotations

from werkzeug.security import generate_password_hash

from config.settings import AppConfig
from store.record_store import Record, RecordStore
from utils.logger import AppLogger


TRAINER = "Trainer"
PLAYER = "Player"

HEADER = [
    "id",
    "name",
    "password",
    "surname",
    "email",
    "category",
    "role",
    "isTrainer",
]

# Prefixes produced by werkzeug.security.generate_password_hash
_HASH_METHODS = ("scrypt:", "pbkdf2:")


def is_password_hash(value: object) -> bool:
    return isinstance(value, str) and value.startswith(_HASH_METHODS)


def normalize_user(user: Record, config: AppConfig) -> Record:
    """Prepare a user for writing.

    `isTrainer` is always recomputed from `role`; whatever the caller sent is
    ignored. With HASH_PASSWORDS on, plaintext passwords are hashed.
    """
    user["isTrainer"] = user.get("role") == TRAINER
    pw = user.get("password")
    if config.hash_passwords and pw and not is_password_hash(pw):
        user["password"] = generate_password_hash(str(pw))
    return user


def hydrate_user(user: Record, config: AppConfig) -> Record:
    # Older files may carry isTrainer=true on a Player row; both signals count.
    # Only the exact lowercase "true" written by encode() is a set flag.
    user["isTrainer"] = user.get("isTrainer") == "true" or user.get("role") == TRAINER
    return user


def create_users_store(config: AppConfig, logger: AppLogger) -> RecordStore:
    return RecordStore(
        config,
        logger,
        name="users",
        file_name=config.users_file_name,
        header=HEADER,
        normalize=normalize_user,
        hydrate=hydrate_user,
    )
