"""A small RV32I emulator: instruction decoding, machine state and a curses terminal view."""

__version__ = "0.1.0"
__all__ = ["cli", "instructions", "machine", "ui"]