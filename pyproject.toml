[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rvemu"
version = "0.1.0"
description = "A small RV32I instruction-set emulator with a terminal user interface"
requires-python = ">=3.10"
dependencies = []
keywords = ["risc-v", "rv32i", "emulator", "virtual machine", "tui", "curses"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console :: Curses",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rvemu = "rvemu.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rvemu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
