[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtcremote"
version = "0.1.0"
description = "Signaling server client, peer message parsing and remote-control message codec for peer-to-peer desktop sharing"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "signaling",
    "peer-to-peer",
    "remote-desktop",
    "sdp",
    "ice",
    "data-channel",
]
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
    "Topic :: Communications :: Conferencing",
    "Topic :: Internet",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rtcremote = "rtcremote.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rtcremote"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
