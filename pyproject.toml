[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mediakit"
version = "0.1.0"
description = "Building blocks for media streaming: H.265 RTP payloading, fragmented MP4 atoms, RTP/JPEG, FLV/AMF0 parsing and HomeKit protocol helpers"
requires-python = ">=3.10"
keywords = ["rtp", "h265", "hevc", "mp4", "mjpeg", "flv", "amf0", "homekit", "streaming"]
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
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "cryptography",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["mediakit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
