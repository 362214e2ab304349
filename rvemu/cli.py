"""Command-line entry point."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from .ui import run_tui

_DEFAULT_CODE = bytes(
    [
        0x3E, 0x80, 0x00, 0x93, 0x7D, 0x00, 0x81, 0x13, 0xC1, 0x81, 0x01, 0x93, 0x83,
        0x01, 0x82, 0x13, 0x3E, 0x82, 0x02, 0x93, 0x00, 0x01, 0x03, 0x17, 0xFE, 0xC3,
        0x03, 0x13, 0x00, 0x43, 0x03, 0x13, 0x00, 0x03, 0x23, 0x83,
    ]
)
_DEFAULT_DATA = bytes([0xDE, 0xAD, 0xBE, 0xEF])
_DEFAULT_DATA_OFFSET = 0x10004


def default_program() -> list[tuple[bytes, int]]:
    """The built-in demo: code at address 0 and a data word it loads."""
    return [(_DEFAULT_CODE, 0), (_DEFAULT_DATA, _DEFAULT_DATA_OFFSET)]


def load_programs(path: Optional[str] = None) -> list[tuple[bytes, int]]:
    """The file at ``path`` loaded at address 0, or the built-in demo without one."""
    if path is None:
        return default_program()
    return [(Path(path).read_bytes(), 0)]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, load the program and run the terminal interface."""
    parser = argparse.ArgumentParser(
        prog="rvemu", description="Step through an RV32I program in the terminal."
    )
    parser.add_argument("-f", "--file", metavar="FILE", help="raw program image to load at address 0")
    args = parser.parse_args(argv)
    try:
        programs = load_programs(args.file)
    except OSError as exc:
        parser.exit(1, f"rvemu: cannot read {args.file}: {exc.strerror or exc}\n")
    run_tui(programs)
    return 0