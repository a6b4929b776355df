"""Tests for the ffmpeg subprocess adapter."""

import asyncio
import os
import stat
import sys
from pathlib import Path

import pytest

from photo_converter.adapters.ffmpeg_converter import FfmpegImageConverter
from photo_converter.domain.errors import ConversionProcessFailed

pytestmark = pytest.mark.skipif(
    sys.platform == "win32", reason="uses POSIX shell scripts as a stand-in binary"
)


def _script(tmp_path: Path, body: str) -> str:
    path = tmp_path / "fake-ffmpeg"
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


def _is_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


def test_command_line_puts_output_last() -> None:
    converter = FfmpegImageConverter(binary="ffmpeg")

    command = converter.command(Path("in.jpg"), Path("out.webp"))

    assert command == ["ffmpeg", "-y", "-loglevel", "error", "-i", "in.jpg", "out.webp"]


def test_successful_process_writes_output(tmp_path: Path) -> None:
    # argv: -y -loglevel error -i <input> <output>
    binary = _script(tmp_path, 'cp "$5" "$6"')
    source = tmp_path / "input.jpg"
    source.write_bytes(b"jpeg")
    target = tmp_path / "output.png"

    asyncio.run(FfmpegImageConverter(binary=binary).convert(source, target))

    assert target.read_bytes() == b"jpeg"


def test_non_zero_exit_fails(tmp_path: Path) -> None:
    binary = _script(tmp_path, 'echo "Invalid data found" >&2; exit 1')

    with pytest.raises(ConversionProcessFailed, match="status 1"):
        asyncio.run(
            FfmpegImageConverter(binary=binary).convert(
                tmp_path / "input.jpg", tmp_path / "output.png"
            )
        )


def test_missing_binary_fails(tmp_path: Path) -> None:
    converter = FfmpegImageConverter(binary=str(tmp_path / "no-such-ffmpeg"))

    with pytest.raises(ConversionProcessFailed, match="Could not launch"):
        asyncio.run(converter.convert(tmp_path / "in.jpg", tmp_path / "out.png"))


def test_timeout_kills_process(tmp_path: Path) -> None:
    pidfile = tmp_path / "ffmpeg.pid"
    binary = _script(tmp_path, f'echo $$ > "{pidfile}"; exec sleep 30')
    converter = FfmpegImageConverter(binary=binary, timeout_seconds=0.5)

    with pytest.raises(ConversionProcessFailed, match="timed out"):
        asyncio.run(converter.convert(tmp_path / "in.jpg", tmp_path / "out.png"))

    assert not _is_running(int(pidfile.read_text()))


def test_cancelled_conversion_kills_process(tmp_path: Path) -> None:
    pidfile = tmp_path / "ffmpeg.pid"
    binary = _script(tmp_path, f'echo $$ > "{pidfile}"; exec sleep 30')
    converter = FfmpegImageConverter(binary=binary, timeout_seconds=60)

    async def scenario() -> int:
        task = asyncio.create_task(
            converter.convert(tmp_path / "in.jpg", tmp_path / "out.png")
        )
        for _ in range(500):
            if pidfile.exists() and pidfile.read_text().strip():
                break
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return int(pidfile.read_text())

    pid = asyncio.run(scenario())

    assert not _is_running(pid)
