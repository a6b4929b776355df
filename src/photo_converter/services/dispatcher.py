"""Routing of inbound chat events to sessions, registration and conversion."""

import logging
from dataclasses import dataclass

from photo_converter.adapters.telegram_client import TelegramClient
from photo_converter.domain.conversions import ConversionRequest, TargetFormat
from photo_converter.domain.errors import DirectoryUnavailable, SessionConflict
from photo_converter.domain.events import (
    CallbackReceived,
    CommandReceived,
    ContactShared,
    InboundEvent,
    PhotoReceived,
)
from photo_converter.services.commands import (
    CancelCommandHandler,
    HelpCommandHandler,
    StartCommandHandler,
)
from photo_converter.services.conversions import ConversionPipeline
from photo_converter.services.sessions import ConversionSessionStore
from photo_converter.services.tasks import TaskTracker
from photo_converter.services.users import UserService
from photo_converter.telegram_commands import BotCommand

logger = logging.getLogger(__name__)

FORMAT_PROMPT = "Choose a format to convert your image:"
ALREADY_PENDING = "You already sent a photo. Please finish the conversion first."
SEND_PHOTO_FIRST = "Please send a photo first."
UNKNOWN_OPTION = "Unknown option."
REGISTRATION_FAILED = "Something went wrong!"
AFTER_WELCOME = "You can send any image and I will convert it to another type!"


def format_keyboard() -> dict:
    return {
        "inline_keyboard": [
            [{"text": f"Convert to {fmt.value}", "callback_data": fmt.callback_data}]
            for fmt in TargetFormat
        ]
    }


@dataclass
class ChatDispatcher:
    """Per-chat state machine: Idle until a photo arrives, then awaiting a format.

    Choosing a format clears the session before the conversion starts, so a
    chat may submit a new photo while an earlier conversion is still running.
    """

    telegram_client: TelegramClient
    session_store: ConversionSessionStore
    user_service: UserService
    pipeline: ConversionPipeline
    task_tracker: TaskTracker
    start_command_handler: StartCommandHandler
    cancel_command_handler: CancelCommandHandler
    help_command_handler: HelpCommandHandler

    async def dispatch(self, event: InboundEvent) -> None:
        """Handle a single inbound event."""
        if isinstance(event, CallbackReceived):
            await self.handle_callback(event)
        elif isinstance(event, PhotoReceived):
            await self.handle_photo(event)
        elif isinstance(event, ContactShared):
            await self.handle_contact(event)
        elif isinstance(event, CommandReceived):
            await self.handle_command(event)
        else:
            raise TypeError(f"Unsupported event: {type(event).__name__}")

    async def handle_photo(self, event: PhotoReceived) -> None:
        try:
            self.session_store.begin_session(event.chat_id, event.asset_ref)
        except SessionConflict:
            await self.telegram_client.send_message(
                chat_id=event.chat_id, text=ALREADY_PENDING
            )
            return
        try:
            await self.telegram_client.send_message(
                chat_id=event.chat_id,
                text=FORMAT_PROMPT,
                reply_markup=format_keyboard(),
            )
        except Exception:
            # No buttons were shown, so nothing can resolve this session.
            self.session_store.discard_session(event.chat_id)
            raise

    async def handle_callback(self, event: CallbackReceived) -> None:
        if not self.session_store.has_session(event.chat_id):
            await self._reply_to_callback(event, SEND_PHOTO_FIRST)
            return

        target_format = TargetFormat.from_callback_data(event.data)
        if target_format is None:
            await self._reply_to_callback(event, UNKNOWN_OPTION)
            return

        asset_ref = self.session_store.resolve_session(event.chat_id)
        if asset_ref is None:
            await self._reply_to_callback(event, SEND_PHOTO_FIRST)
            return

        request = ConversionRequest(
            asset_ref=asset_ref,
            target_format=target_format,
            chat_id=event.chat_id,
            telegram_user_id=event.telegram_user_id,
        )
        try:
            try:
                await self.telegram_client.send_message(
                    chat_id=event.chat_id,
                    text=f"Converting your photo to {target_format.value}…",
                )
            except Exception:
                logger.exception(
                    "Failed to send conversion notice",
                    extra={"chat_id": event.chat_id},
                )
            self.task_tracker.spawn(
                self.pipeline.run(request),
                name=f"convert-{event.chat_id}-{target_format.value}",
            )
        finally:
            await self.telegram_client.answer_callback_query(
                event.callback_id, text="Processing..."
            )

    async def handle_contact(self, event: ContactShared) -> None:
        try:
            user = self.user_service.register(
                event.name, event.phone, event.telegram_user_id
            )
        except DirectoryUnavailable:
            logger.exception(
                "Failed to register user", extra={"chat_id": event.chat_id}
            )
            await self.telegram_client.send_message(
                chat_id=event.chat_id, text=REGISTRATION_FAILED
            )
            return
        await self.telegram_client.send_message(
            chat_id=event.chat_id,
            text=f"Welcome {user.name}!",
            reply_markup={"remove_keyboard": True},
        )
        await self.telegram_client.send_message(
            chat_id=event.chat_id, text=AFTER_WELCOME
        )

    async def handle_command(self, event: CommandReceived) -> None:
        command = BotCommand.from_text(event.text)
        if command is BotCommand.START:
            await self.start_command_handler.handle(event.chat_id)
        elif command is BotCommand.CANCEL:
            await self.cancel_command_handler.handle(event.chat_id)
        elif command is BotCommand.HELP:
            await self.help_command_handler.handle(event.chat_id)

    async def _reply_to_callback(self, event: CallbackReceived, text: str) -> None:
        try:
            await self.telegram_client.send_message(chat_id=event.chat_id, text=text)
        finally:
            await self.telegram_client.answer_callback_query(event.callback_id)
