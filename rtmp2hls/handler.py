"""Per-connection RTMP event handling: authorization and FLV forwarding."""

from __future__ import annotations

import logging
import threading
import time
from typing import BinaryIO, Optional, Protocol, Union

from .auth import Authorizer
from .config import Config
from .flv_writer import FlvWriter
from .models import ConnectionInfo

logger = logging.getLogger(__name__)

Payload = Union[bytes, bytearray, memoryview, BinaryIO]


class ConnectionRejectedError(Exception):
    """Raised when a connect request's TCURL is not authorized."""


class PlayRefusedError(Exception):
    """Raised for play requests; the server only accepts publishers."""


class _Stream(Protocol):
    @property
    def username(self) -> str: ...

    @property
    def stdin(self) -> Optional[BinaryIO]: ...

    @property
    def is_active(self) -> bool: ...

    def stop(self, config: Config) -> object: ...


class _Manager(Protocol):
    def get_or_create_stream(self, username: str, config: Config) -> _Stream: ...


def _read_payload(payload: Payload) -> bytes:
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    return payload.read()


class Handler:
    """Handle the events of one RTMP connection.

    Each connection gets its own instance, which keeps that connection's
    details and forwards published media as FLV to the user's FFmpeg process.
    """

    def __init__(self, manager: _Manager, config: Config) -> None:
        self._manager = manager
        self._config = config
        self._authorizer = Authorizer(config.authorized_patterns)
        self._stream: Optional[_Stream] = None
        self._flv_writer: Optional[FlvWriter] = None
        self._connection: Optional[ConnectionInfo] = None
        self._conn_lock = threading.RLock()

    def on_serve(self) -> None:
        logger.info("New RTMP connection established")

    def on_connect(self, timestamp: int, app: str, tcurl: str) -> None:
        """Authorize the TCURL and remember the connection's variables."""
        logger.info("RTMP connection from %s", tcurl)
        variables = self._authorizer.extract_variables(tcurl)
        if variables is None:
            logger.warning("Failed to extract variables from TCURL '%s'", tcurl)
            raise ConnectionRejectedError(
                f"failed to extract variables from TCURL: {tcurl}"
            )
        if not self._authorizer.is_authorized(tcurl):
            logger.warning("Unauthorized TCURL '%s' in OnConnect", tcurl)
            raise ConnectionRejectedError(f"unauthorized TCURL: {tcurl}")
        with self._conn_lock:
            self._connection = ConnectionInfo(app=app, tcurl=tcurl, variables=variables)
        logger.info("RTMP connection authorized for path: %s", tcurl)

    def on_create_stream(self, timestamp: int) -> None:
        """Accept stream creation; nothing needs to happen yet."""

    def on_play(self, timestamp: int, stream_name: str) -> None:
        logger.info("Play connection refused: %s", stream_name)
        raise PlayRefusedError("play connections are not allowed")

    def on_publish(self, timestamp: int, publishing_name: str) -> None:
        """Authenticate the publisher and attach it to its FFmpeg process."""
        logger.info("Stream publish request on %s", self.tcurl)
        with self._conn_lock:
            connection = self._connection

        if connection is not None:
            try:
                self._authorizer.validate_authentication(
                    connection.copy_vars(), publishing_name
                )
            except Exception as exc:
                logger.warning(
                    "Authentication failed for TCURL access %s: %s", connection.tcurl, exc
                )
                raise
            logger.info("Publishing to TCURL: %s", connection.tcurl)

        tcurl = connection.tcurl if connection is not None else ""
        try:
            stream = self._manager.get_or_create_stream(publishing_name, self._config)
        except Exception as exc:
            logger.error("Failed to create stream for TCURL %s: %s", tcurl, exc)
            raise

        self._stream = stream
        self._flv_writer = FlvWriter(stream.stdin)
        logger.info("Stream started for TCURL: %s", tcurl)

    def on_close(self) -> Optional[threading.Thread]:
        """Forget the connection and schedule a stop unless the user reconnects.

        Returns the background thread that waits for the reconnect delay, or
        None when nothing was being published.
        """
        waiter: Optional[threading.Thread] = None
        stream = self._stream
        if stream is not None:
            logger.info("Connection closed for user: %s", stream.username)
            waiter = threading.Thread(
                target=self._stop_after_delay,
                args=(stream,),
                name=f"reconnect-wait-{stream.username}",
                daemon=True,
            )
            waiter.start()
        with self._conn_lock:
            self._connection = None
        return waiter

    def _stop_after_delay(self, stream: _Stream) -> None:
        time.sleep(self._config.reconnect_delay)
        if stream.is_active:
            logger.info(
                "No reconnection detected for user %s, stopping stream", stream.username
            )
            stream.stop(self._config)

    def on_set_data_frame(self, timestamp: int, payload: Payload) -> None:
        """Forward stream metadata as an FLV script tag."""
        if self._flv_writer is not None:
            self._flv_writer.write_script(timestamp, _read_payload(payload))

    def on_audio(self, timestamp: int, payload: Payload) -> None:
        """Forward an audio message as an FLV audio tag."""
        if self._flv_writer is not None:
            self._flv_writer.write_audio(timestamp, _read_payload(payload))

    def on_video(self, timestamp: int, payload: Payload) -> None:
        """Forward a video message as an FLV video tag."""
        if self._flv_writer is not None:
            self._flv_writer.write_video(timestamp, _read_payload(payload))

    @property
    def connection_info(self) -> Optional[ConnectionInfo]:
        with self._conn_lock:
            return self._connection

    @property
    def app(self) -> str:
        with self._conn_lock:
            return self._connection.app if self._connection is not None else ""

    @property
    def tcurl(self) -> str:
        with self._conn_lock:
            return self._connection.tcurl if self._connection is not None else ""

    def get_var(self, key: str) -> Optional[str]:
        """Return a variable extracted from the TCURL, or None."""
        with self._conn_lock:
            if self._connection is None:
                return None
            return self._connection.get_var(key)

    def copy_vars(self) -> dict[str, str]:
        """Return a copy of all variables extracted from the TCURL."""
        with self._conn_lock:
            if self._connection is None:
                return {}
            return self._connection.copy_vars()