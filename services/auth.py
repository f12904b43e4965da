from __future__ import annotations

import json
from typing import MutableMapping, Optional

from loguru import logger


SESSION_KEY = "auth_user"


class AuthContext:
    """Holds the signed-in user and mirrors it into session storage.

    `storage` is any mutable string mapping (a Flask ``session``, a dict in
    tests). A stored user is restored on construction; an unreadable entry is
    dropped.
    """

    def __init__(self, storage: Optional[MutableMapping[str, str]] = None) -> None:
        self.storage: MutableMapping[str, str] = storage if storage is not None else {}
        self._user: Optional[dict] = None
        saved = self.storage.get(SESSION_KEY)
        if saved:
            try:
                user = json.loads(saved)
                if not isinstance(user, dict):
                    raise ValueError("stored user is not an object")
                self._user = user
            except ValueError as e:
                logger.warning("Error loading saved user: {}", e)
                self.storage.pop(SESSION_KEY, None)

    @property
    def user(self) -> Optional[dict]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def login(self, user: dict) -> None:
        self._user = dict(user)
        self.storage[SESSION_KEY] = json.dumps(self._user)

    def logout(self) -> None:
        self._user = None
        self.storage.pop(SESSION_KEY, None)

    def is_trainer(self) -> bool:
        return bool(self._user and self._user.get("isTrainer"))
