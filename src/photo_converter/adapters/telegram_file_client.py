"""Telegram file download client."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx


class TelegramFileClient(Protocol):
    """Interface for downloading Telegram files."""

    async def get_download_url(self, file_id: str) -> str:
        """Resolve a Telegram file id to a download URL."""

    async def download_to_path(self, url: str, path: Path) -> None:
        """Stream the file at the URL into a local path."""


@dataclass
class HttpxTelegramFileClient(TelegramFileClient):
    """Telegram file client using httpx."""

    bot_token: str
    http_client: httpx.AsyncClient
    chunk_size: int = 64 * 1024

    @classmethod
    def create(cls, bot_token: str) -> "HttpxTelegramFileClient":
        """Create a Telegram file client with a managed httpx session."""
        return cls(bot_token=bot_token, http_client=httpx.AsyncClient())

    async def get_download_url(self, file_id: str) -> str:
        """Resolve the download URL via getFile."""
        get_file_url = f"https://api.telegram.org/bot{self.bot_token}/getFile"
        response = await self.http_client.get(
            get_file_url, params={"file_id": file_id}, timeout=10
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("ok"):
            raise RuntimeError("Telegram getFile failed")
        file_path = payload["result"]["file_path"]
        return f"https://api.telegram.org/file/bot{self.bot_token}/{file_path}"

    async def download_to_path(self, url: str, path: Path) -> None:
        """Stream a file into the given path without buffering it in memory."""
        async with self.http_client.stream("GET", url, timeout=20) as response:
            response.raise_for_status()
            with path.open("wb") as handle:
                async for chunk in response.aiter_bytes(self.chunk_size):
                    handle.write(chunk)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
