"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from photo_converter.api.telegram_models import TelegramPhotoSize, TelegramUpdate
from photo_converter.app_logging import configure_logging
from photo_converter.config import parse_allowed_user_ids
from photo_converter.containers import AppContainer
from photo_converter.domain.events import (
    CallbackReceived,
    CommandReceived,
    ContactShared,
    InboundEvent,
    PhotoReceived,
)
from photo_converter.telegram_commands import CHAT_MENU_BUTTON, telegram_commands


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    allowed_user_ids = parse_allowed_user_ids(
        container.settings.telegram_allowed_user_ids
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        try:
            await state_container.telegram_client.set_my_commands(telegram_commands())
            await state_container.telegram_client.set_chat_menu_button(
                CHAT_MENU_BUTTON
            )
        except Exception:
            logger.exception("Failed to sync Telegram bot commands")
        yield
        await state_container.task_tracker.drain(
            timeout=state_container.settings.shutdown_grace_seconds
        )
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates."""
        state_container: AppContainer = request.app.state.container
        user_id = _extract_user_id(update)
        if user_id is not None and not _is_user_allowed(user_id, allowed_user_ids):
            if update.callback_query:
                await state_container.telegram_client.answer_callback_query(
                    update.callback_query.id,
                    text="Not authorized.",
                )
            elif update.message:
                await state_container.telegram_client.send_message(
                    chat_id=update.message.chat.id,
                    text="This bot is private.",
                )
            return {"status": "ok"}

        event = parse_update(update)
        if event is None:
            return {"status": "ok"}
        try:
            await state_container.dispatcher.dispatch(event)
        except Exception:
            logger.exception(
                "Failed to handle Telegram update",
                extra={
                    "update_id": update.update_id,
                    "event": type(event).__name__,
                },
            )
        return {"status": "ok"}

    return app


def parse_update(update: TelegramUpdate) -> InboundEvent | None:
    """Translate a Telegram update into the event the bot reacts to."""
    callback = update.callback_query
    if callback:
        if callback.message is None:
            return None
        return CallbackReceived(
            callback_id=callback.id,
            chat_id=callback.message.chat.id,
            data=callback.data or "",
            telegram_user_id=callback.from_user.id,
        )

    message = update.message
    if message is None:
        return None
    sender_id = message.from_user.id if message.from_user else None
    if message.photo:
        return PhotoReceived(
            chat_id=message.chat.id,
            asset_ref=_select_largest_photo(message.photo).file_id,
            telegram_user_id=sender_id,
        )
    if message.contact:
        name = (
            message.from_user.first_name
            if message.from_user and message.from_user.first_name
            else message.contact.first_name
        )
        return ContactShared(
            chat_id=message.chat.id,
            name=name,
            phone=message.contact.phone_number,
            telegram_user_id=sender_id,
        )
    if message.text:
        return CommandReceived(
            chat_id=message.chat.id,
            text=message.text,
            telegram_user_id=sender_id,
        )
    return None


def _select_largest_photo(photos: list[TelegramPhotoSize]) -> TelegramPhotoSize:
    """Select the largest photo size from the Telegram payload."""
    return max(photos, key=lambda photo: (photo.width * photo.height))


def _extract_user_id(update: TelegramUpdate) -> int | None:
    """Extract Telegram user id from update, if present."""
    if update.callback_query:
        return update.callback_query.from_user.id
    if update.message and update.message.from_user:
        return update.message.from_user.id
    return None


def _is_user_allowed(user_id: int, allowed: set[int] | None) -> bool:
    """Return true when the user is allowed to interact with the bot."""
    return allowed is None or user_id in allowed
