"""HTTP server that lists active streams and serves their HLS files."""

from __future__ import annotations

import html
import logging
import mimetypes
import os
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Iterable, Optional, Protocol
from urllib.parse import unquote, urlsplit

from .config import Config

logger = logging.getLogger(__name__)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Origin, Content-Type",
}

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

_CONTENT_TYPES = {
    ".m3u8": "application/vnd.apple.mpegurl",
    ".ts": "video/mp2t",
}

_NOT_FOUND_BODY = b"404 page not found\n"

_PAGE_HEAD = """<!DOCTYPE html>
<html>
<head>
    <title>RTMP2HLS Server</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; }
        .stream-list { margin-top: 20px; }
        .stream-link { display: block; margin: 10px 0; padding: 10px; background: #f0f0f0; text-decoration: none; color: #333; border-radius: 5px; }
        .stream-link:hover { background: #e0e0e0; }
        .instructions { background: #f9f9f9; padding: 20px; border-radius: 5px; margin-bottom: 20px; }
        .code { background: #f0f0f0; padding: 5px; border-radius: 3px; font-family: monospace; }
    </style>
</head>
<body>
    <h1>RTMP2HLS Multi-Streamer Server</h1>
    
    <div class="instructions">
        <h3>How to use:</h3>
        <p><strong>Publish streams (with authorization):</strong></p>
        <p><span class="code">rtmp://localhost/live/{app}/{username}</span></p>
        <p><strong>Examples:</strong></p>
        <ul>
            <li><span class="code">rtmp://localhost/live/test/johndoe</span></li>
            <li><span class="code">rtmp://localhost/live/myapp/alice</span></li>
        </ul>
        <p><strong>Watch streams:</strong></p>
        <p><span class="code">http://localhost:8080/stream/{username}/live.m3u8</span></p>
        <p><strong>Note:</strong> Play connections are blocked. This is a publish-only server.</p>
    </div>

    <h2>Active Streams (%d)</h2>
    <div class="stream-list">"""

_PAGE_TAIL = """    </div>
</body>
</html>"""


class _StreamSource(Protocol):
    def active_streams(self) -> list[str]: ...


def render_stream_list(active_streams: Iterable[str]) -> str:
    """Render the HTML index page listing ``active_streams``."""
    names = list(active_streams)
    parts = [_PAGE_HEAD % len(names)]
    if not names:
        parts.append("<p>No active streams currently.</p>")
    else:
        for name in names:
            escaped = html.escape(name)
            parts.append(
                f'<a href="/stream/{escaped}/live.m3u8" class="stream-link">'
                f"{escaped} - Click to view stream</a>"
            )
    parts.append(_PAGE_TAIL)
    return "".join(parts)


def resolve_stream_file(output_dir: str, url_path: str) -> Optional[str]:
    """Map ``/stream/{username}/...`` to a file path, or None for not found.

    A bare ``/stream/{username}`` resolves to the user's ``live.m3u8``.
    """
    parts = url_path.strip("/").split("/")
    if len(parts) < 2:
        return None
    username = parts[1]
    if not username or ".." in parts:
        return None
    stream_dir = os.path.join(output_dir, username)
    if not os.path.exists(stream_dir):
        return None
    remaining = "/".join(part for part in parts[2:] if part) or "live.m3u8"
    return os.path.join(stream_dir, *remaining.split("/"))


def _parse_address(address: str) -> tuple[str, int]:
    host, _, port = address.rpartition(":")
    return host, int(port)


def _content_type(path: str) -> str:
    ext = os.path.splitext(path)[1].lower()
    if ext in _CONTENT_TYPES:
        return _CONTENT_TYPES[ext]
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"


def _make_handler(config: Config, manager: _StreamSource) -> type[BaseHTTPRequestHandler]:
    class _Handler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            self._dispatch()

        def do_HEAD(self) -> None:
            self._dispatch()

        def do_OPTIONS(self) -> None:
            self._dispatch()

        def log_message(self, format: str, *args: object) -> None:
            logger.debug("%s - %s", self.address_string(), format % args)

        def _send(self, status: HTTPStatus, body: bytes, headers: dict[str, str]) -> None:
            self.send_response(status)
            for name, value in headers.items():
                self.send_header(name, value)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(body)

        def _not_found(self, headers: dict[str, str]) -> None:
            merged = dict(headers)
            merged["Content-Type"] = "text/plain; charset=utf-8"
            self._send(HTTPStatus.NOT_FOUND, _NOT_FOUND_BODY, merged)

        def _dispatch(self) -> None:
            path = unquote(urlsplit(self.path).path)
            if path.startswith("/stream/"):
                self._serve_stream(path)
            else:
                self._serve_root(path)

        def _serve_stream(self, path: str) -> None:
            headers = dict(_CORS_HEADERS)
            if self.command == "OPTIONS":
                self._send(HTTPStatus.OK, b"", headers)
                return
            file_path = resolve_stream_file(config.output_dir, path)
            if file_path is None or not os.path.isfile(file_path):
                self._not_found(headers)
                return
            if os.path.splitext(file_path)[1] in (".m3u8", ".ts"):
                headers.update(_NO_CACHE_HEADERS)
            try:
                with open(file_path, "rb") as fh:
                    body = fh.read()
            except OSError:
                self._not_found(headers)
                return
            headers["Content-Type"] = _content_type(file_path)
            self._send(HTTPStatus.OK, body, headers)

        def _serve_root(self, path: str) -> None:
            if path != "/":
                self._not_found({})
                return
            body = render_stream_list(manager.active_streams()).encode("utf-8")
            self._send(HTTPStatus.OK, body, {"Content-Type": "text/html"})

    return _Handler


class HlsServer:
    """HTTP front end for the HLS output of all streams."""

    def __init__(self, config: Config, manager: _StreamSource) -> None:
        self._config = config
        self._manager = manager

    def setup_server(self) -> ThreadingHTTPServer:
        """Bind and return an HTTP server; call ``serve_forever`` to run it."""
        server = ThreadingHTTPServer(
            _parse_address(self._config.http_port),
            _make_handler(self._config, self._manager),
        )
        server.daemon_threads = True
        return server