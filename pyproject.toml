[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "obdcan"
version = "0.1.0"
description = "Non-blocking OBD-II mode 01 client over CAN: one-shot requests, periodic subscriptions and supported-PID scans"
requires-python = ">=3.10"
dependencies = []
keywords = ["obd", "obd-ii", "obd2", "can", "can-bus", "automotive", "ecu", "pid", "telemetry"]
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
    "Topic :: Software Development :: Embedded Systems :: Controller Area Network (CAN)",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["obdcan"]

[tool.hatch.build.targets.sdist]
include = ["obdcan", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
