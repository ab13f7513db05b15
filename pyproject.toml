[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uwsproto"
version = "0.1.0"
description = "Pure-Python HTTP/1.1 and WebSocket protocol parsing primitives"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "http",
    "websocket",
    "parser",
    "chunked-encoding",
    "proxy-protocol",
    "rfc6455",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
uwsproto-build = "uwsproto.build:main"

[tool.hatch.build.targets.wheel]
packages = ["uwsproto"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
