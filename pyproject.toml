[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtmp2hls"
version = "0.1.0"
description = "Building blocks for a publish-only live-streaming server that turns each streamer's FLV feed into HLS with FFmpeg"
requires-python = ">=3.10"
dependencies = []
keywords = ["rtmp", "hls", "flv", "ffmpeg", "streaming", "live"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video :: Conversion",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rtmp2hls = "rtmp2hls.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rtmp2hls"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
