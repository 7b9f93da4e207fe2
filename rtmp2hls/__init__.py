"""Authorization, FLV writing, FFmpeg stream management and HLS serving for a publish-only live-streaming server."""

__version__ = "0.1.0"