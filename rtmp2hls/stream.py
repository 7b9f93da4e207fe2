"""Per-streamer FFmpeg processes and the manager that tracks them."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import subprocess
import threading
import time
from typing import IO, Callable, Optional, Protocol

from .config import Config

logger = logging.getLogger(__name__)


class StreamError(Exception):
    """Raised when a stream cannot be created."""


class _Process(Protocol):
    stdin: Optional[IO[bytes]]

    def wait(self, timeout: Optional[float] = None) -> Optional[int]: ...

    def kill(self) -> None: ...


CommandFactory = Callable[[str], _Process]


def build_ffmpeg_command(output_dir: str) -> list[str]:
    """Return the FFmpeg argument list that turns FLV on stdin into HLS."""
    return [
        "ffmpeg",
        "-re",
        "-fflags", "+nobuffer",
        "-flags", "low_delay",
        "-f", "flv",
        "-i", "pipe:0",
        "-c:v", "copy",
        "-c:a", "copy",
        "-f", "hls",
        "-hls_time", "1",
        "-hls_list_size", "3",
        "-hls_flags", "delete_segments+temp_file+independent_segments",
        "-hls_segment_type", "mpegts",
        "-hls_allow_cache", "0",
        "-hls_segment_filename", os.path.join(output_dir, "live_%03d.ts"),
        os.path.join(output_dir, "live.m3u8"),
    ]


def _start_ffmpeg(output_dir: str) -> subprocess.Popen:
    return subprocess.Popen(
        build_ffmpeg_command(output_dir),
        stdin=subprocess.PIPE,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


class StreamProcess:
    """One streamer's FFmpeg process and its output directory."""

    def __init__(
        self,
        username: str,
        process: _Process,
        output_dir: str,
        on_exit: Optional[Callable[["StreamProcess"], None]] = None,
    ) -> None:
        self._username = username
        self._process = process
        self._output_dir = output_dir
        self._on_exit = on_exit
        self._active = True
        self._lock = threading.Lock()

    @property
    def username(self) -> str:
        return self._username

    @property
    def stdin(self) -> Optional[IO[bytes]]:
        return self._process.stdin

    @property
    def output_dir(self) -> str:
        return self._output_dir

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active

    def _deactivate(self) -> bool:
        """Mark the stream inactive and report whether it was active before."""
        with self._lock:
            was_active = self._active
            self._active = False
            return was_active

    def _kill(self) -> None:
        with contextlib.suppress(OSError):
            self._process.kill()

    def monitor(self) -> None:
        """Wait for the process to exit, then mark the stream ended."""
        try:
            code = self._process.wait()
            if code:
                logger.info("FFmpeg exited for user %s: exit status %s", self._username, code)
            else:
                logger.info("FFmpeg exited normally for user: %s", self._username)
        finally:
            self._deactivate()
            if self._on_exit is not None:
                self._on_exit(self)
            logger.info("Stream ended and cleaned up for user: %s", self._username)

    def stop(self, config: Config) -> Optional[threading.Thread]:
        """Stop the process and schedule removal of the output directory.

        Returns the background cleanup thread, or None if already stopped.
        """
        if not self._deactivate():
            return None

        stdin = self._process.stdin
        if stdin is not None:
            with contextlib.suppress(OSError, ValueError):
                stdin.close()

        self._kill()

        try:
            self._process.wait(timeout=config.cleanup_delay)
            logger.info("FFmpeg process exited cleanly for user: %s", self._username)
        except subprocess.TimeoutExpired:
            logger.warning(
                "FFmpeg process did not exit cleanly for user: %s, forcing termination",
                self._username,
            )
            self._kill()

        cleaner = threading.Thread(
            target=self._remove_output,
            args=(config.cleanup_delay,),
            name=f"cleanup-{self._username}",
            daemon=True,
        )
        cleaner.start()
        return cleaner

    def _remove_output(self, delay: float) -> None:
        time.sleep(delay)
        try:
            shutil.rmtree(self._output_dir)
        except FileNotFoundError:
            logger.info("Cleaned up stream directory for user: %s", self._username)
        except OSError as exc:
            logger.error(
                "Error cleaning up stream directory for user %s: %s", self._username, exc
            )
        else:
            logger.info("Cleaned up stream directory for user: %s", self._username)


class StreamManager:
    """Keep one active stream per username."""

    def __init__(self, command_factory: Optional[CommandFactory] = None) -> None:
        self._factory: CommandFactory = command_factory or _start_ffmpeg
        self._streams: dict[str, StreamProcess] = {}
        self._lock = threading.Lock()

    def get_or_create_stream(self, username: str, config: Config) -> StreamProcess:
        """Return the user's active stream, starting a new one if needed."""
        with self._lock:
            existing = self._streams.get(username)
            if existing is not None:
                if existing.is_active:
                    return existing
                del self._streams[username]
            stream = self._create(username, config)
            self._streams[username] = stream

        threading.Thread(
            target=stream.monitor, name=f"monitor-{username}", daemon=True
        ).start()
        logger.info("Started new stream for user: %s", username)
        return stream

    def _create(self, username: str, config: Config) -> StreamProcess:
        output_dir = os.path.join(config.output_dir, username)
        try:
            os.makedirs(output_dir, exist_ok=True)
        except OSError as exc:
            raise StreamError(f"failed to create output directory: {exc}") from exc
        try:
            process = self._factory(output_dir)
        except OSError as exc:
            raise StreamError(f"failed to start FFmpeg: {exc}") from exc
        return StreamProcess(
            username, process, output_dir, on_exit=lambda sp: self.forget(username, sp)
        )

    def active_streams(self) -> list[str]:
        """Return the usernames of all active streams."""
        with self._lock:
            return [name for name, sp in self._streams.items() if sp.is_active]

    def forget(self, username: str, stream: StreamProcess) -> None:
        """Drop ``stream`` from the registry if it is still the user's entry."""
        with self._lock:
            if self._streams.get(username) is stream:
                del self._streams[username]