"""Image conversion through an external ffmpeg process."""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from pathlib import Path

from photo_converter.domain.errors import ConversionProcessFailed
from photo_converter.services.conversions import ImageConverter

logger = logging.getLogger(__name__)


@dataclass
class FfmpegImageConverter(ImageConverter):
    """Run ffmpeg as a subprocess; the output extension selects the format."""

    binary: str = "ffmpeg"
    timeout_seconds: float = 60.0

    def command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            self.binary,
            "-y",
            "-loglevel",
            "error",
            "-i",
            str(input_path),
            str(output_path),
        ]

    async def convert(self, input_path: Path, output_path: Path) -> None:
        """Convert input_path into output_path or raise ConversionProcessFailed."""
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command(input_path, output_path),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ConversionProcessFailed(
                f"Could not launch {self.binary}: {exc}"
            ) from exc

        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except TimeoutError as exc:
            await _terminate(process)
            raise ConversionProcessFailed(
                f"{self.binary} timed out after {self.timeout_seconds:g}s"
            ) from exc
        except BaseException:
            # Cancelled: stop ffmpeg before its working directory is removed.
            await _terminate(process)
            raise

        if process.returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            logger.warning(
                "Conversion process failed",
                extra={"returncode": process.returncode, "stderr": detail[-500:]},
            )
            raise ConversionProcessFailed(
                f"{self.binary} exited with status {process.returncode}"
            )


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill the process if it is still running and reap it."""
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    await process.wait()
