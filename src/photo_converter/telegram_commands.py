"""Telegram bot command configuration."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str

    @property
    def text(self) -> str:
        return f"/{self.command}"


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    START = TelegramCommand("start", "Start the bot")
    CANCEL = TelegramCommand("cancel", "Discard the photo waiting for a format")
    HELP = TelegramCommand("help", "How to convert a photo")

    @classmethod
    def from_text(cls, text: str) -> "BotCommand | None":
        """Match message text such as '/start' or '/start@MyBot' to a command."""
        head = text.strip().split(maxsplit=1)[0] if text.strip() else ""
        name = head.split("@", maxsplit=1)[0]
        for entry in cls:
            if entry.value.text == name:
                return entry
        return None


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


CHAT_MENU_BUTTON: dict[str, object] = {"type": "commands"}
