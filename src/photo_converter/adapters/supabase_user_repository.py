"""Supabase-backed user repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from photo_converter.domain.errors import DirectoryUnavailable, UserAlreadyExists
from photo_converter.domain.models import User
from photo_converter.services.users import UserRepository

_COLUMNS = (
    "id, name, phone, telegram_user_id, created_at, updated_at, "
    "converted_image_counter"
)
_UNIQUE_VIOLATION = "23505"


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_by_phone(self, phone: str) -> User | None:
        """Return the user registered with the phone number, if present."""
        try:
            response = (
                self.client.table("users")
                .select(_COLUMNS)
                .eq("phone", phone)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            raise DirectoryUnavailable("Failed to query users") from exc
        if response.data:
            return _row_to_user(response.data[0])
        return None

    def get_by_telegram_id(self, telegram_user_id: int) -> User | None:
        """Return the most recent user linked to a Telegram user id."""
        try:
            response = (
                self.client.table("users")
                .select(_COLUMNS)
                .eq("telegram_user_id", telegram_user_id)
                .order("id", desc=True)
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as exc:
            raise DirectoryUnavailable("Failed to query users") from exc
        if response.data:
            return _row_to_user(response.data[0])
        return None

    def create_user(
        self, name: str, phone: str, telegram_user_id: int | None = None
    ) -> User:
        """Create a new user row and return it."""
        now = datetime.now(tz=UTC).isoformat()
        try:
            response = (
                self.client.table("users")
                .insert(
                    {
                        "name": name,
                        "phone": phone,
                        "telegram_user_id": telegram_user_id,
                        "created_at": now,
                        "updated_at": now,
                        "converted_image_counter": 0,
                    }
                )
                .execute()
            )
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise UserAlreadyExists(phone) from exc
            raise DirectoryUnavailable("Failed to create user") from exc
        except httpx.HTTPError as exc:
            raise DirectoryUnavailable("Failed to create user") from exc
        if not response.data:
            raise DirectoryUnavailable("Failed to create user in Supabase")
        return _row_to_user(response.data[0])

    def increment_converted_images(self, user_id: int, incr_by: int = 1) -> None:
        """Add to the converted image counter.

        PostgREST has no column arithmetic in updates, so the counter is read
        and written back.
        """
        try:
            response = (
                self.client.table("users")
                .select("converted_image_counter")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
            if not response.data:
                return
            current = int(response.data[0].get("converted_image_counter") or 0)
            self.client.table("users").update(
                {
                    "converted_image_counter": current + incr_by,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            ).eq("id", user_id).execute()
        except (APIError, httpx.HTTPError) as exc:
            raise DirectoryUnavailable("Failed to update user counter") from exc


def _row_to_user(row: dict[str, object]) -> User:
    return User(
        id=int(row["id"]),
        name=str(row["name"]),
        phone=str(row["phone"]),
        telegram_user_id=row.get("telegram_user_id"),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
        converted_image_counter=int(row.get("converted_image_counter") or 0),
    )


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return datetime.now(tz=UTC)
