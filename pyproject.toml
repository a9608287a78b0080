[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vdbroker"
version = "0.1.0"
description = "Building blocks for vehicle data broker clients: signal values, wire conversions, query parsing, metadata caching and channel configuration"
requires-python = ">=3.10"
dependencies = []
keywords = ["vehicle", "databroker", "vss", "kuksa", "signals", "sdv"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vdbroker"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
