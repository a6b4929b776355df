"""Tests for container wiring."""

import asyncio

from photo_converter import containers
from photo_converter.adapters.sqlite_user_repository import SqliteUserRepository
from photo_converter.adapters.supabase_user_repository import SupabaseUserRepository
from photo_converter.containers import build_container, build_user_repository


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.dispatcher.pipeline is container.pipeline
    assert container.dispatcher.session_store is container.session_store
    assert isinstance(container.user_service.repository, SqliteUserRepository)
    asyncio.run(container.close_resources())


def test_supabase_is_used_when_configured(settings, monkeypatch) -> None:
    created: list[tuple[str, str]] = []

    def fake_create_client(url: str, key: str) -> object:
        created.append((url, key))
        return object()

    monkeypatch.setattr(containers, "create_client", fake_create_client)
    settings.supabase_url = "https://example.supabase.co"
    settings.supabase_service_key = "service-key"

    repository = build_user_repository(settings)

    assert isinstance(repository, SupabaseUserRepository)
    assert created == [("https://example.supabase.co", "service-key")]
