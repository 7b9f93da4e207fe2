"""Command-line entry point: prepare the stream manager and serve HLS."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from http.server import ThreadingHTTPServer
from typing import Optional, Sequence

from .config import Config, default_config
from .handler import Handler
from .http_server import HlsServer
from .stream import StreamManager

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """The running parts of the server, shared by all connections."""

    config: Config
    manager: StreamManager
    http_server: ThreadingHTTPServer

    def new_handler(self) -> Handler:
        """Return a fresh handler for one incoming RTMP connection."""
        return Handler(self.manager, self.config)

    def close(self) -> None:
        self.http_server.server_close()

    def __enter__(self) -> "Application":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def prepare(config: Config) -> Application:
    """Create the output directory, the stream manager and the HTTP server."""
    os.makedirs(config.output_dir, exist_ok=True)
    manager = StreamManager()
    http_server = HlsServer(config, manager).setup_server()
    return Application(config=config, manager=manager, http_server=http_server)


def _parse_args(argv: Optional[Sequence[str]]) -> Config:
    defaults = default_config()
    parser = argparse.ArgumentParser(
        prog="rtmp2hls", description="Serve live streams as HLS."
    )
    parser.add_argument("--http-port", default=defaults.http_port)
    parser.add_argument("--rtmp-port", default=defaults.rtmp_port)
    parser.add_argument("--output-dir", default=defaults.output_dir)
    args = parser.parse_args(argv)
    defaults.http_port = args.http_port
    defaults.rtmp_port = args.rtmp_port
    defaults.output_dir = args.output_dir
    return defaults


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the HLS server until interrupted."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    config = _parse_args(argv)
    with prepare(config) as app:
        logger.info("HTTP server listening on %s", config.http_port)
        logger.info("Publish streams to: rtmp://localhost/live/{app}/{username}")
        logger.info(
            "Watch streams at: http://localhost%s/stream/{username}/live.m3u8",
            config.http_port,
        )
        try:
            app.http_server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")
    return 0