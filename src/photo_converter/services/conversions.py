"""Download, convert and deliver a photo in the requested format."""

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from photo_converter.adapters.telegram_client import TelegramClient
from photo_converter.adapters.telegram_file_client import TelegramFileClient
from photo_converter.domain.conversions import ConversionRequest, ConvertedImage
from photo_converter.domain.errors import (
    AssetResolutionFailed,
    ConversionError,
    ConversionProcessFailed,
    DeliveryFailed,
    DirectoryUnavailable,
    DownloadFailed,
    OutputReadFailed,
)
from photo_converter.services.users import UserService

logger = logging.getLogger(__name__)


class ImageConverter(Protocol):
    """Interface for the external conversion process."""

    async def convert(self, input_path: Path, output_path: Path) -> None:
        """Write input_path to output_path in the format given by its suffix."""


@dataclass
class ConversionPipeline:
    """Runs one conversion request from asset ref to delivered document."""

    telegram_client: TelegramClient
    file_client: TelegramFileClient
    converter: ImageConverter
    user_service: UserService | None = None
    temp_dir: str | None = None
    debug_errors: bool = False

    async def convert(self, request: ConversionRequest) -> ConvertedImage:
        """Convert and deliver the photo, raising a ConversionError on failure.

        Both working files live in a scoped temporary directory that is removed
        on every exit path.
        """
        try:
            url = await self.file_client.get_download_url(request.asset_ref)
        except Exception as exc:
            raise AssetResolutionFailed(str(exc)) from exc

        with tempfile.TemporaryDirectory(
            prefix="photo-convert-", dir=self.temp_dir
        ) as workdir:
            input_path = Path(workdir) / "input.jpg"
            output_path = Path(workdir) / f"output.{request.target_format.value}"

            try:
                await self.file_client.download_to_path(url, input_path)
            except Exception as exc:
                raise DownloadFailed(str(exc)) from exc

            try:
                await self.converter.convert(input_path, output_path)
            except ConversionProcessFailed:
                raise
            except Exception as exc:
                raise ConversionProcessFailed(str(exc)) from exc

            try:
                content = output_path.read_bytes()
            except OSError as exc:
                raise OutputReadFailed(str(exc)) from exc

        image = ConvertedImage(
            filename=request.target_format.filename, content=content
        )
        try:
            await self.telegram_client.send_document(
                chat_id=request.chat_id,
                filename=image.filename,
                content=image.content,
            )
        except Exception as exc:
            raise DeliveryFailed(str(exc)) from exc
        return image

    async def run(self, request: ConversionRequest) -> ConvertedImage | None:
        """Convert the request and report any failure to the originating chat."""
        try:
            image = await self.convert(request)
        except ConversionError as exc:
            logger.exception(
                "Photo conversion failed",
                extra={
                    "chat_id": request.chat_id,
                    "asset_ref": request.asset_ref,
                    "target_format": request.target_format.value,
                    "failure": type(exc).__name__,
                },
            )
            await self._notify_failure(request.chat_id, exc)
            return None

        logger.info(
            "Delivered converted photo",
            extra={"chat_id": request.chat_id, "bytes": len(image.content)},
        )
        self._record_conversion(request)
        return image

    async def _notify_failure(self, chat_id: int, exc: ConversionError) -> None:
        text = exc.user_message
        if self.debug_errors and str(exc):
            text = f"{text} (debug: {type(exc).__name__}: {exc})"
        try:
            await self.telegram_client.send_message(chat_id=chat_id, text=text)
        except Exception:
            logger.exception(
                "Failed to send conversion failure notice", extra={"chat_id": chat_id}
            )

    def _record_conversion(self, request: ConversionRequest) -> None:
        if self.user_service is None or request.telegram_user_id is None:
            return
        try:
            self.user_service.record_conversion(request.telegram_user_id)
        except DirectoryUnavailable:
            logger.exception(
                "Failed to record conversion",
                extra={"telegram_user_id": request.telegram_user_id},
            )
