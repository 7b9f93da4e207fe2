# rtmp2hls

Building blocks for a small publish-only live-streaming server. Each streamer
gets their own FFmpeg process, which is fed FLV on its standard input and
writes an HLS playlist and segments into a per-user directory. An HTTP server
lists the live streams and serves their HLS files.

## Requirements

- Python 3.10 or later
- `ffmpeg` on your `PATH` (used by `rtmp2hls.stream.StreamManager`)

## Installation

```
pip install .
```

## The `rtmp2hls` command

```
rtmp2hls [--http-port :8080] [--rtmp-port :1935] [--output-dir ./streams]
```

The command creates the output directory, sets up a stream manager and runs
the HTTP server on the `--http-port` address (`host:port`, or `:port` for all
interfaces) until interrupted with Ctrl+C. `--rtmp-port` is stored in the
configuration but nothing listens on it (see below).

### What the HTTP server serves

- `GET /` – an HTML page listing the streams that are currently active, each
  linking to `/stream/{username}/live.m3u8`.
- `GET /stream/{username}/...` – files from `{output_dir}/{username}/`.
  A bare `/stream/{username}` serves `live.m3u8`. Responses carry permissive
  CORS headers; `.m3u8` and `.ts` files also carry no-cache headers. Paths
  containing `..`, unknown users and missing files give 404.
- `OPTIONS /stream/...` – an empty response with the CORS headers.
- `HEAD` is handled like `GET` without a body.

## What the package does not do

The package does not implement the RTMP wire protocol: it has no RTMP
listener, handshake or chunk-stream parser, and the `rtmp2hls` command only
runs the HTTP side. `rtmp2hls.handler.Handler` holds the per-connection logic
(authorization, publish handling, FLV forwarding) and is meant to be driven by
an RTMP server that calls its `on_*` methods; `Application.new_handler()`
returns one such handler per connection.

## Library overview

### Configuration – `rtmp2hls.config`

`default_config()` returns a `Config` with `rtmp_port=":1935"`,
`http_port=":8080"`, `output_dir="./streams"`, `reconnect_delay=5.0`,
`cleanup_delay=2.0` (seconds) and
`authorized_patterns=["/live/{app}/{username}"]`.

### Authorization – `rtmp2hls.auth`, `rtmp2hls.pattern`

Patterns use `{name}` placeholders, each matching one path segment. Only the
path of a TCURL is matched, so host and scheme do not matter.

```python
from rtmp2hls.auth import Authorizer
from rtmp2hls.config import default_config

authorizer = Authorizer(default_config().authorized_patterns)

authorizer.is_authorized("rtmp://localhost/live/test/johndoe")      # True
authorizer.is_authorized("rtmp://localhost/stream/test/johndoe")    # False
authorizer.extract_variables("rtmp://example.com/live/myapp/alice")
# {'app': 'myapp', 'username': 'alice'}

authorizer.validate_authentication({"username": "alice"}, "alice")  # passes
authorizer.validate_authentication({"username": "alice"}, "bob")    # AuthenticationError
```

`validate_authentication` raises `AuthenticationError` for an empty publishing
name, or when the variables hold a `username` different from it.
`rtmp2hls.pattern` has the helpers underneath: `pattern_to_regex`,
`extract_variables` and `extract_path_from_tcurl`.

### Connection details – `rtmp2hls.models`

`ConnectionInfo(app, tcurl, variables)` with `get_var(key)` (None when
missing), `copy_vars()` and the `username`, `host` and `app_name` properties.

### RTMP event handling – `rtmp2hls.handler`

`Handler(manager, config)`:

- `on_connect(timestamp, app, tcurl)` stores the connection if the TCURL
  matches a pattern, otherwise raises `ConnectionRejectedError`.
- `on_play(timestamp, stream_name)` always raises `PlayRefusedError`.
- `on_publish(timestamp, publishing_name)` validates the name against the
  stored variables, then gets or starts the user's stream from the manager and
  attaches an `FlvWriter` to its stdin.
- `on_audio`, `on_video` and `on_set_data_frame` take bytes or a binary file
  and write FLV audio, video and script tags; before a publish they do nothing.
- `on_close()` forgets the connection and, if a stream was being published,
  starts a background thread that waits `reconnect_delay` and stops the stream
  if it is still active; the thread is returned.
- `connection_info`, `app`, `tcurl`, `get_var(key)` and `copy_vars()` read
  the stored connection.

### Streams – `rtmp2hls.stream`

`StreamManager(command_factory=None)` keeps one active `StreamProcess` per
username. `get_or_create_stream(username, config)` returns the active stream
or creates `{output_dir}/{username}` and starts FFmpeg there (the argument
list comes from `build_ffmpeg_command(output_dir)`); failures raise
`StreamError`. `active_streams()` lists active usernames. A custom
`command_factory(output_dir)` may return any object with `stdin`, `wait()` and
`kill()`.

`StreamProcess.stop(config)` closes stdin, kills the process, waits up to
`cleanup_delay` for it, and removes the output directory after a further
`cleanup_delay` on a background thread, which it returns.

### FLV – `rtmp2hls.flv_writer`, `rtmp2hls.flv_muxer`

`FlvWriter(stream)` writes the FLV file header once, then tags via
`write_audio`, `write_video`, `write_script` or `write_tag`, serialised across
threads. `make_tag_header` builds an 11-byte tag header. `flv_muxer` offers
`write_tag(tag_type, timestamp, reader, writer)` and a `BufferWriter` that
reads payloads from file-like objects.

### HTTP – `rtmp2hls.http_server`

`HlsServer(config, manager).setup_server()` returns a bound
`ThreadingHTTPServer`; `render_stream_list` and `resolve_stream_file` are the
page renderer and path resolver it uses.

## Tests

```
pip install ".[test]"
pytest
```