"""Domain models for the photo converter."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class User:
    """Represents a registered user stored in the user directory."""

    id: int
    name: str
    phone: str
    telegram_user_id: int | None
    created_at: datetime
    updated_at: datetime
    converted_image_counter: int = 0
