"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from photo_converter.adapters.ffmpeg_converter import FfmpegImageConverter
from photo_converter.adapters.sqlite_user_repository import SqliteUserRepository
from photo_converter.adapters.supabase_user_repository import SupabaseUserRepository
from photo_converter.adapters.telegram_client import (
    HttpxTelegramClient,
    TelegramClient,
)
from photo_converter.adapters.telegram_file_client import HttpxTelegramFileClient
from photo_converter.config import Settings, load_settings
from photo_converter.services.commands import (
    CancelCommandHandler,
    HelpCommandHandler,
    StartCommandHandler,
)
from photo_converter.services.conversions import ConversionPipeline
from photo_converter.services.dispatcher import ChatDispatcher
from photo_converter.services.sessions import ConversionSessionStore
from photo_converter.services.tasks import TaskTracker
from photo_converter.services.users import UserRepository, UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient
    user_service: UserService
    session_store: ConversionSessionStore
    pipeline: ConversionPipeline
    task_tracker: TaskTracker
    dispatcher: ChatDispatcher
    close_resources: Callable[[], Awaitable[None]]


def build_user_repository(settings: Settings) -> UserRepository:
    """Use Supabase when it is configured, otherwise a local SQLite file."""
    if settings.uses_supabase:
        return SupabaseUserRepository(
            create_client(settings.supabase_url, settings.supabase_service_key)
        )
    return SqliteUserRepository.create(settings.database_path)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or load_settings()
    user_repository = build_user_repository(resolved_settings)
    user_service = UserService(user_repository)
    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)
    telegram_file_client = HttpxTelegramFileClient.create(
        resolved_settings.telegram_bot_token
    )
    converter = FfmpegImageConverter(
        binary=resolved_settings.ffmpeg_binary,
        timeout_seconds=resolved_settings.conversion_timeout_seconds,
    )
    pipeline = ConversionPipeline(
        telegram_client=telegram_client,
        file_client=telegram_file_client,
        converter=converter,
        user_service=user_service,
        debug_errors=resolved_settings.environment == "local",
    )
    session_store = ConversionSessionStore()
    task_tracker = TaskTracker()
    dispatcher = ChatDispatcher(
        telegram_client=telegram_client,
        session_store=session_store,
        user_service=user_service,
        pipeline=pipeline,
        task_tracker=task_tracker,
        start_command_handler=StartCommandHandler(telegram_client),
        cancel_command_handler=CancelCommandHandler(session_store, telegram_client),
        help_command_handler=HelpCommandHandler(telegram_client),
    )

    async def close_resources() -> None:
        await telegram_client.close()
        await telegram_file_client.close()
        if isinstance(user_repository, SqliteUserRepository):
            user_repository.close()

    return AppContainer(
        settings=resolved_settings,
        telegram_client=telegram_client,
        user_service=user_service,
        session_store=session_store,
        pipeline=pipeline,
        task_tracker=task_tracker,
        dispatcher=dispatcher,
        close_resources=close_resources,
    )
