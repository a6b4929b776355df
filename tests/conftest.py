"""Shared test fixtures."""

import asyncio
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pytest

from photo_converter.adapters.telegram_client import TelegramClient
from photo_converter.adapters.telegram_file_client import TelegramFileClient
from photo_converter.config import Settings
from photo_converter.containers import AppContainer
from photo_converter.domain.errors import (
    ConversionProcessFailed,
    DirectoryUnavailable,
    UserAlreadyExists,
)
from photo_converter.domain.models import User
from photo_converter.services.commands import (
    CancelCommandHandler,
    HelpCommandHandler,
    StartCommandHandler,
)
from photo_converter.services.conversions import ConversionPipeline, ImageConverter
from photo_converter.services.dispatcher import ChatDispatcher
from photo_converter.services.sessions import ConversionSessionStore
from photo_converter.services.tasks import TaskTracker
from photo_converter.services.users import UserRepository, UserService


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[str, User] = field(default_factory=dict)
    unavailable: bool = False

    def get_by_phone(self, phone: str) -> User | None:
        self._check()
        return self.users.get(phone)

    def get_by_telegram_id(self, telegram_user_id: int) -> User | None:
        self._check()
        for user in self.users.values():
            if user.telegram_user_id == telegram_user_id:
                return user
        return None

    def create_user(
        self, name: str, phone: str, telegram_user_id: int | None = None
    ) -> User:
        self._check()
        if phone in self.users:
            raise UserAlreadyExists(phone)
        now = datetime.now(tz=UTC)
        user = User(
            id=len(self.users) + 1,
            name=name,
            phone=phone,
            telegram_user_id=telegram_user_id,
            created_at=now,
            updated_at=now,
        )
        self.users[phone] = user
        return user

    def increment_converted_images(self, user_id: int, incr_by: int = 1) -> None:
        self._check()
        for phone, user in self.users.items():
            if user.id == user_id:
                self.users[phone] = User(
                    id=user.id,
                    name=user.name,
                    phone=user.phone,
                    telegram_user_id=user.telegram_user_id,
                    created_at=user.created_at,
                    updated_at=datetime.now(tz=UTC),
                    converted_image_counter=user.converted_image_counter + incr_by,
                )

    def _check(self) -> None:
        if self.unavailable:
            raise DirectoryUnavailable("database is locked")


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records messages."""

    messages: list[tuple[int, str]] = field(default_factory=list)
    reply_markups: list[dict | None] = field(default_factory=list)
    documents: list[tuple[int, str, bytes]] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    commands: list[dict[str, str]] | None = None
    menu_button: dict[str, object] | None = None
    fail_documents: bool = False
    fail_messages: bool = False
    on_send: Callable[[str], None] | None = None

    async def send_message(
        self, chat_id: int, text: str, reply_markup: dict | None = None
    ) -> None:
        if self.on_send is not None:
            self.on_send(text)
        if self.fail_messages:
            raise RuntimeError("sendMessage returned 502")
        self.messages.append((chat_id, text))
        self.reply_markups.append(reply_markup)

    async def send_document(self, chat_id: int, filename: str, content: bytes) -> None:
        if self.fail_documents:
            raise RuntimeError("sendDocument returned 413")
        self.documents.append((chat_id, filename, content))

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        self.callbacks.append((callback_query_id, text))

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        self.menu_button = menu_button

    def texts_for(self, chat_id: int) -> list[str]:
        return [text for sent_to, text in self.messages if sent_to == chat_id]


@dataclass
class FakeTelegramFileClient(TelegramFileClient):
    """Fake Telegram file client that writes static bytes."""

    content: bytes = b"fake-image-bytes"
    resolve_error: Exception | None = None
    download_error: Exception | None = None
    resolved: list[str] = field(default_factory=list)
    downloaded_to: list[Path] = field(default_factory=list)

    async def get_download_url(self, file_id: str) -> str:
        if self.resolve_error:
            raise self.resolve_error
        self.resolved.append(file_id)
        return f"https://files.test/{file_id}.jpg"

    async def download_to_path(self, url: str, path: Path) -> None:
        self.downloaded_to.append(path)
        if self.download_error:
            path.write_bytes(self.content[:3])
            raise self.download_error
        path.write_bytes(self.content)


@dataclass
class FakeImageConverter(ImageConverter):
    """Fake converter that copies the input and tags it with the target suffix."""

    fail: bool = False
    write_output: bool = True
    release: asyncio.Event | None = None
    calls: list[tuple[Path, Path]] = field(default_factory=list)

    async def convert(self, input_path: Path, output_path: Path) -> None:
        self.calls.append((input_path, output_path))
        if self.release is not None:
            await self.release.wait()
        if self.fail:
            raise ConversionProcessFailed("ffmpeg exited with status 1")
        if self.write_output:
            shutil.copyfile(input_path, output_path)
            with output_path.open("ab") as handle:
                handle.write(output_path.suffix.encode())


@pytest.fixture
def settings() -> Settings:
    return Settings(telegram_bot_token="test-token", database_path=":memory:")


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def file_client() -> FakeTelegramFileClient:
    return FakeTelegramFileClient()


@pytest.fixture
def converter() -> FakeImageConverter:
    return FakeImageConverter()


@pytest.fixture
def pipeline(
    tmp_path: Path,
    user_repository: InMemoryUserRepository,
    telegram_client: FakeTelegramClient,
    file_client: FakeTelegramFileClient,
    converter: FakeImageConverter,
) -> ConversionPipeline:
    return ConversionPipeline(
        telegram_client=telegram_client,
        file_client=file_client,
        converter=converter,
        user_service=UserService(user_repository),
        temp_dir=str(tmp_path),
    )


@pytest.fixture
def container(
    settings: Settings,
    user_repository: InMemoryUserRepository,
    telegram_client: FakeTelegramClient,
    pipeline: ConversionPipeline,
) -> AppContainer:
    user_service = pipeline.user_service
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
        return None

    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        user_service=user_service,
        session_store=session_store,
        pipeline=pipeline,
        task_tracker=task_tracker,
        dispatcher=dispatcher,
        close_resources=close_resources,
    )
