"""Domain models for photo conversion sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

CALLBACK_PREFIX = "convert_"


class TargetFormat(str, Enum):
    """Image formats a photo can be converted to."""

    PNG = "png"
    JPG = "jpg"
    WEBP = "webp"

    @property
    def callback_data(self) -> str:
        return f"{CALLBACK_PREFIX}{self.value}"

    @property
    def filename(self) -> str:
        return f"converted.{self.value}"

    @classmethod
    def from_callback_data(cls, data: str) -> "TargetFormat | None":
        """Return the format encoded in callback data, if recognized."""
        if not data.startswith(CALLBACK_PREFIX):
            return None
        try:
            return cls(data.removeprefix(CALLBACK_PREFIX))
        except ValueError:
            return None


@dataclass(frozen=True)
class ChatSession:
    """A chat's photo that is waiting for a format choice."""

    chat_id: int
    asset_ref: str
    created_at: datetime


@dataclass(frozen=True)
class ConversionRequest:
    """A photo conversion requested by pressing a format button."""

    asset_ref: str
    target_format: TargetFormat
    chat_id: int
    telegram_user_id: int | None = None


@dataclass(frozen=True)
class ConvertedImage:
    """The converted file as delivered to the chat."""

    filename: str
    content: bytes
