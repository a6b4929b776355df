"""User registration and bookkeeping."""

import logging
from dataclasses import dataclass
from typing import Protocol

from photo_converter.domain.errors import UserAlreadyExists
from photo_converter.domain.models import User

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Persistence interface for user data.

    Lookups return None when no user matches; storage failures raise
    DirectoryUnavailable.
    """

    def get_by_phone(self, phone: str) -> User | None:
        """Return the user registered with the phone number, if present."""

    def get_by_telegram_id(self, telegram_user_id: int) -> User | None:
        """Return the user linked to a Telegram user id, if present."""

    def create_user(
        self, name: str, phone: str, telegram_user_id: int | None = None
    ) -> User:
        """Create and return a new user, raising UserAlreadyExists on duplicates."""

    def increment_converted_images(self, user_id: int, incr_by: int = 1) -> None:
        """Add to the user's converted image counter."""


@dataclass
class UserService:
    """Application service for user lifecycle actions."""

    repository: UserRepository

    def register(
        self, name: str, phone: str, telegram_user_id: int | None = None
    ) -> User:
        """Return the user for the phone number, creating it on first contact."""
        existing = self.repository.get_by_phone(phone)
        if existing:
            return existing

        try:
            created = self.repository.create_user(name, phone, telegram_user_id)
        except UserAlreadyExists:
            # Registered concurrently between the lookup and the insert.
            existing = self.repository.get_by_phone(phone)
            if existing is None:
                raise
            return existing
        logger.info("Registered new user", extra={"user_id": created.id})
        return created

    def record_conversion(self, telegram_user_id: int) -> bool:
        """Count a delivered conversion for a registered Telegram user."""
        user = self.repository.get_by_telegram_id(telegram_user_id)
        if user is None:
            return False
        self.repository.increment_converted_images(user.id, 1)
        return True
