[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rk86emu"
version = "0.1.0"
description = "Radio-86RK building blocks: an Intel 8080 core, RK tape image loading, a flash file system, sector storage and VGA palette helpers"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "emulator",
    "i8080",
    "intel-8080",
    "kr580vm80a",
    "radio-86rk",
    "retrocomputing",
    "crc8",
    "flash-filesystem",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[tool.hatch.build.targets.wheel]
packages = ["rk86emu"]

[tool.hatch.build.targets.sdist]
include = [
    "rk86emu",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
