"""Command handlers for Telegram updates."""

from dataclasses import dataclass

from photo_converter.adapters.telegram_client import TelegramClient
from photo_converter.domain.conversions import TargetFormat
from photo_converter.services.sessions import ConversionSessionStore

PHONE_PROMPT = "Please share your phone number to continue:"
SHARE_PHONE_BUTTON = "Share phone number 📱"


def contact_request_keyboard() -> dict:
    return {
        "keyboard": [[{"text": SHARE_PHONE_BUTTON, "request_contact": True}]],
        "resize_keyboard": True,
        "one_time_keyboard": True,
    }


@dataclass
class StartCommandHandler:
    """Handle the /start Telegram command."""

    telegram_client: TelegramClient

    async def handle(self, chat_id: int) -> None:
        """Ask the user to share their phone number."""
        await self.telegram_client.send_message(
            chat_id=chat_id,
            text=PHONE_PROMPT,
            reply_markup=contact_request_keyboard(),
        )


@dataclass
class CancelCommandHandler:
    """Handle the /cancel Telegram command."""

    session_store: ConversionSessionStore
    telegram_client: TelegramClient

    async def handle(self, chat_id: int) -> None:
        """Drop the photo waiting for a format choice, if any."""
        if self.session_store.discard_session(chat_id):
            text = "Photo discarded. Send another photo when you're ready."
        else:
            text = "No pending photo to cancel."
        await self.telegram_client.send_message(chat_id=chat_id, text=text)


@dataclass
class HelpCommandHandler:
    """Handle the /help Telegram command."""

    telegram_client: TelegramClient

    async def handle(self, chat_id: int) -> None:
        formats = ", ".join(fmt.value for fmt in TargetFormat)
        await self.telegram_client.send_message(
            chat_id=chat_id,
            text=(
                "Send me a photo and pick a format "
                f"({formats}); I'll send the converted file back.\n"
                "Use /cancel to discard a photo you haven't converted yet."
            ),
        )
