"""SQLite-backed user repository."""

import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime

from photo_converter.domain.errors import DirectoryUnavailable, UserAlreadyExists
from photo_converter.domain.models import User
from photo_converter.services.users import UserRepository

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    phone TEXT NOT NULL UNIQUE,
    telegram_user_id INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    converted_image_counter INTEGER NOT NULL DEFAULT 0
)
"""

_COLUMNS = (
    "id, name, phone, telegram_user_id, created_at, updated_at, "
    "converted_image_counter"
)


@dataclass
class SqliteUserRepository(UserRepository):
    """SQLite implementation for user persistence."""

    connection: sqlite3.Connection
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def create(cls, database_path: str) -> "SqliteUserRepository":
        """Open the database file and make sure the users table exists."""
        try:
            connection = sqlite3.connect(database_path, check_same_thread=False)
            connection.row_factory = sqlite3.Row
            connection.execute(_SCHEMA)
            connection.commit()
        except sqlite3.Error as exc:
            raise DirectoryUnavailable(
                f"Could not open user database at {database_path}"
            ) from exc
        return cls(connection=connection)

    def get_by_phone(self, phone: str) -> User | None:
        """Return the user registered with the phone number, if present."""
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM users WHERE phone = ?", (phone,)
        )

    def get_by_telegram_id(self, telegram_user_id: int) -> User | None:
        """Return the most recent user linked to a Telegram user id."""
        return self._fetch_one(
            f"SELECT {_COLUMNS} FROM users WHERE telegram_user_id = ? "
            "ORDER BY id DESC LIMIT 1",
            (telegram_user_id,),
        )

    def create_user(
        self, name: str, phone: str, telegram_user_id: int | None = None
    ) -> User:
        """Insert a new user row and return it."""
        now = datetime.now(tz=UTC)
        try:
            with self._lock, self.connection:
                cursor = self.connection.execute(
                    "INSERT INTO users (name, phone, telegram_user_id, created_at, "
                    "updated_at, converted_image_counter) VALUES (?, ?, ?, ?, ?, 0)",
                    (name, phone, telegram_user_id, now.isoformat(), now.isoformat()),
                )
        except sqlite3.IntegrityError as exc:
            raise UserAlreadyExists(phone) from exc
        except sqlite3.Error as exc:
            raise DirectoryUnavailable("Failed to create user") from exc
        return User(
            id=int(cursor.lastrowid),
            name=name,
            phone=phone,
            telegram_user_id=telegram_user_id,
            created_at=now,
            updated_at=now,
        )

    def increment_converted_images(self, user_id: int, incr_by: int = 1) -> None:
        """Add to the converted image counter and bump updated_at."""
        try:
            with self._lock, self.connection:
                self.connection.execute(
                    "UPDATE users SET converted_image_counter = "
                    "converted_image_counter + ?, updated_at = ? WHERE id = ?",
                    (incr_by, datetime.now(tz=UTC).isoformat(), user_id),
                )
        except sqlite3.Error as exc:
            raise DirectoryUnavailable("Failed to update user counter") from exc

    def close(self) -> None:
        """Close the database connection."""
        self.connection.close()

    def _fetch_one(self, query: str, params: tuple[object, ...]) -> User | None:
        try:
            with self._lock:
                row = self.connection.execute(query, params).fetchone()
        except sqlite3.Error as exc:
            raise DirectoryUnavailable("Failed to query users") from exc
        if row is None:
            return None
        return _row_to_user(row)


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        phone=row["phone"],
        telegram_user_id=row["telegram_user_id"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        converted_image_counter=row["converted_image_counter"],
    )
