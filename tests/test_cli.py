import threading
import urllib.request
from http.server import ThreadingHTTPServer
from unittest import mock

import pytest

from rtmp2hls.cli import main, prepare
from rtmp2hls.config import Config
from rtmp2hls.handler import ConnectionRejectedError


def _config(tmp_path):
    return Config(http_port="127.0.0.1:0", output_dir=str(tmp_path / "streams"))


def test_prepare_creates_output_dir(tmp_path):
    config = _config(tmp_path)
    with prepare(config) as app:
        assert (tmp_path / "streams").is_dir()
        assert app.config is config
        assert app.manager.active_streams() == []


def test_new_handler_uses_config_patterns(tmp_path):
    with prepare(_config(tmp_path)) as app:
        handler = app.new_handler()
        handler.on_connect(0, "live", "rtmp://localhost/live/test/johndoe")
        assert handler.get_var("username") == "johndoe"
        with pytest.raises(ConnectionRejectedError):
            app.new_handler().on_connect(0, "live", "rtmp://localhost/stream/x/y")


def test_handlers_are_independent(tmp_path):
    with prepare(_config(tmp_path)) as app:
        first = app.new_handler()
        second = app.new_handler()
        first.on_connect(0, "live", "rtmp://localhost/live/myapp/alice")
        assert second.tcurl == ""


def test_prepared_server_lists_streams(tmp_path):
    with prepare(_config(tmp_path)) as app:
        server = app.http_server
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        try:
            port = server.server_address[1]
            with urllib.request.urlopen(f"http://127.0.0.1:{port}/") as resp:
                body = resp.read().decode("utf-8")
        finally:
            server.shutdown()
            thread.join(timeout=5)
    assert "Active Streams (0)" in body
    assert "No active streams currently." in body


@mock.patch.object(ThreadingHTTPServer, "serve_forever", side_effect=KeyboardInterrupt)
def test_main_runs_until_interrupted(serve_forever, tmp_path):
    out = tmp_path / "out"
    code = main(["--http-port", "127.0.0.1:0", "--output-dir", str(out)])
    assert code == 0
    assert out.is_dir()
    assert serve_forever.call_count == 1