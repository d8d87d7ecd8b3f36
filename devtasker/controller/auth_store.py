import logging
import time
from dataclasses import replace
from typing import Optional

from devtasker.core.exceptions import NotFoundError, PBError, UnauthorizedError
from devtasker.core.models import User, USER_FIELDS, to_record_fields
from devtasker.controller.observable import Observable

logger = logging.getLogger(__name__)

USERS = "users"


def default_user_settings() -> dict:
    return {
        "theme": "light",
        "timezone": time.tzname[0] if time.tzname else "UTC",
        "notifications": {"email": True, "push": True, "mentions": True, "task_updates": True},
    }


class AuthStore(Observable):
    """Signed-in user, wrapping the PocketBase identity endpoints."""

    def __init__(self, client):
        super().__init__()
        self.client = client
        self.user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def _load_user(self) -> User:
        rec = self.client.get(USERS, self.client.user_id)
        if rec is None:
            raise NotFoundError("User data not found", 404)
        return User.from_record(rec)

    def sign_in(self, email: str, password: str):
        self._begin()
        try:
            self.client.login(email, password)
            self.user = self._load_user()
        except PBError as e:
            logger.error("Sign in failed: %s", e)
            self._fail(e)
            raise
        self._done()

    def sign_up(self, email: str, password: str, name: str):
        self._begin()
        try:
            self.client.register(email, password, name)
            self.client.login(email, password)
            self.client.update(USERS, self.client.user_id,
                               {"role": "developer", "settings": default_user_settings()})
            self.user = self._load_user()
        except PBError as e:
            logger.error("Sign up failed: %s", e)
            self._fail(e)
            raise
        self._done()

    def sign_out(self):
        self.client.logout()
        self.user = None
        self.error = None
        self._notify()

    def update_user(self, **fields):
        try:
            if self.user is None:
                raise UnauthorizedError("No user logged in")
            self._begin()
            self.client.update(USERS, self.user.id, to_record_fields(fields, USER_FIELDS))
        except PBError as e:
            logger.error("Updating user failed: %s", e)
            self._fail(e)
            raise
        self.user = replace(self.user, **fields)
        self._done()

    def initialize(self):
        """Restore the user behind an existing token; no token means signed out."""
        self._begin()
        if not self.client.token:
            self.user = None
            self._done()
            return
        try:
            self.client.refresh()
            self.user = self._load_user()
        except PBError as e:
            logger.warning("Session restore failed: %s", e)
            self.client.logout()
            self.user = None
        self._done()
