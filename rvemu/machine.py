"""Architectural state of the machine and the execution of decoded instructions."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Optional, Union

from .instructions import (
    Instruction,
    Mnemonic,
    interpret_bytes,
    sign_extend,
    to_signed,
    to_unsigned,
)

_WORD_MASK = 0xFFFFFFFF
_REGISTER_COUNT = 32
_JALR_TARGET_MASK = 0xFFFE
DEFAULT_MEMORY_SIZE = 1 << 32


class Memory:
    """Fixed-size, zero-filled, byte-addressed memory stored sparsely."""

    def __init__(self, size: int = DEFAULT_MEMORY_SIZE) -> None:
        if size < 0:
            raise ValueError(f"memory size must not be negative: {size}")
        self._size = size
        self._cells: dict[int, int] = {}

    def __len__(self) -> int:
        return self._size

    def _check(self, index: int) -> None:
        if not 0 <= index < self._size:
            raise IndexError(
                f"address {index:#x} outside memory of {self._size} bytes"
            )

    def __getitem__(self, index: Union[int, slice]) -> Union[int, bytes]:
        if isinstance(index, slice):
            return bytes(self._cells.get(i, 0) for i in range(self._size)[index])
        self._check(index)
        return self._cells.get(index, 0)

    def __setitem__(self, index: int, value: int) -> None:
        self._check(index)
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        if value:
            self._cells[index] = value
        else:
            self._cells.pop(index, None)


class ExecutionHalted(Exception):
    """Raised when the program counter no longer points at a whole instruction."""


_REGISTER_ALU: dict[Mnemonic, Callable[[int, int], int]] = {
    Mnemonic.ADD: lambda a, b: a + b,
    Mnemonic.SUB: lambda a, b: a - b,
    Mnemonic.XOR: lambda a, b: a ^ b,
    Mnemonic.OR: lambda a, b: a | b,
    Mnemonic.AND: lambda a, b: a & b,
    Mnemonic.SLL: lambda a, b: a << (b & 31),
    Mnemonic.SRL: lambda a, b: a >> (b & 31),
    Mnemonic.SRA: lambda a, b: to_signed(a) >> (b & 31),
    Mnemonic.SLT: lambda a, b: int(to_signed(a) < to_signed(b)),
    Mnemonic.SLTU: lambda a, b: int(a < b),
}

# Right shifts by immediate keep only the low five bits of their result.
_IMMEDIATE_ALU: dict[Mnemonic, Callable[[int, int], int]] = {
    Mnemonic.ADDI: lambda a, imm: to_signed(a) + sign_extend(imm, 12),
    Mnemonic.XORI: lambda a, imm: a ^ sign_extend(imm, 12),
    Mnemonic.ORI: lambda a, imm: a | sign_extend(imm, 12),
    Mnemonic.ANDI: lambda a, imm: a & sign_extend(imm, 12),
    Mnemonic.SLLI: lambda a, imm: a << (imm & 31),
    Mnemonic.SRLI: lambda a, imm: (a >> (imm & 31)) & 0b11111,
    Mnemonic.SRAI: lambda a, imm: (to_signed(a) >> (imm & 31)) & 0b11111,
    Mnemonic.SLTI: lambda a, imm: int(to_signed(a) < sign_extend(imm, 12)),
    Mnemonic.SLTUI: lambda a, imm: int(a < to_unsigned(sign_extend(imm, 12))),
}

# Width in bytes and whether the loaded value is sign-extended.
_LOADS: dict[Mnemonic, tuple[int, bool]] = {
    Mnemonic.LB: (1, True),
    Mnemonic.LH: (2, True),
    Mnemonic.LW: (4, False),
    Mnemonic.LBU: (1, False),
    Mnemonic.LHU: (2, False),
}

_STORES: dict[Mnemonic, int] = {
    Mnemonic.SB: 1,
    Mnemonic.SH: 2,
    Mnemonic.SW: 4,
}

_BRANCHES: dict[Mnemonic, Callable[[int, int], bool]] = {
    Mnemonic.BEQ: lambda a, b: a == b,
    Mnemonic.BNE: lambda a, b: a != b,
    Mnemonic.BLT: lambda a, b: to_signed(a) < to_signed(b),
    Mnemonic.BGE: lambda a, b: to_signed(a) >= to_signed(b),
    Mnemonic.BLTU: lambda a, b: a < b,
    Mnemonic.BGEU: lambda a, b: a >= b,
}


class ArchState:
    """Registers, program counter and memory of one hart."""

    def __init__(self, mem_size: int = DEFAULT_MEMORY_SIZE) -> None:
        self._regs = [0] * (_REGISTER_COUNT - 1)
        # May go negative so that a jump can land on address 0.
        self.pc = 0
        self.mem = Memory(mem_size)

    def get_register(self, reg: int) -> int:
        """Read register ``x<reg>``; ``x0`` always reads as zero."""
        if not 0 <= reg < _REGISTER_COUNT:
            raise IndexError(f"no register x{reg}")
        return 0 if reg == 0 else self._regs[reg - 1]

    def set_register(self, index: int, value: int) -> None:
        """Write a register, truncated to 32 bits; writes to ``x0`` or unknown registers are ignored."""
        if 0 < index < _REGISTER_COUNT:
            self._regs[index - 1] = value & _WORD_MASK

    def load(self, program: Iterable[int], offset: int = 0) -> None:
        """Copy a program's bytes into memory starting at ``offset``."""
        data = bytes(program)
        if offset < 0 or offset + len(data) > len(self.mem):
            raise IndexError(
                f"{len(data)} bytes at {offset:#x} do not fit in memory of {len(self.mem)} bytes"
            )
        for address, byte in enumerate(data, start=offset):
            self.mem[address] = byte

    def _read(self, address: int, width: int) -> int:
        return int.from_bytes(
            bytes(self.mem[address + offset] for offset in range(width)), "big"
        )

    def _write(self, address: int, width: int, value: int) -> None:
        encoded = (value & _WORD_MASK).to_bytes(4, "big")[-width:]
        for offset, byte in enumerate(encoded):
            self.mem[address + offset] = byte

    def apply(self, inst: Instruction) -> None:
        """Execute one decoded instruction and advance the program counter."""
        mnemonic = inst.mnemonic
        data = inst.data

        if mnemonic in _REGISTER_ALU:
            result = _REGISTER_ALU[mnemonic](
                self.get_register(data.rs1), self.get_register(data.rs2)
            )
            self.set_register(data.rd, result)
        elif mnemonic in _IMMEDIATE_ALU:
            result = _IMMEDIATE_ALU[mnemonic](self.get_register(data.rs1), data.imm)
            self.set_register(data.rd, result)
        elif mnemonic in _LOADS:
            width, signed = _LOADS[mnemonic]
            address = self.get_register(data.rs1) + sign_extend(data.imm, 12)
            value = self._read(address, width)
            if signed:
                value = sign_extend(value, width * 8)
            self.set_register(data.rd, value)
        elif mnemonic in _STORES:
            address = (self.get_register(data.rs1) + sign_extend(data.imm, 12)) & _WORD_MASK
            self._write(address, _STORES[mnemonic], self.get_register(data.rs2))
        elif mnemonic in _BRANCHES:
            if _BRANCHES[mnemonic](self.get_register(data.rs1), self.get_register(data.rs2)):
                # The unconditional advance below makes up the four bytes.
                self.pc += sign_extend(data.imm, 12) * 2 - 4
        elif mnemonic is Mnemonic.JAL:
            self.set_register(data.rd, (self.pc & _WORD_MASK) + 4)
            self.pc += sign_extend(data.imm, 20) * 2 - 4
        elif mnemonic is Mnemonic.JALR:
            self.set_register(data.rd, (self.pc & _WORD_MASK) + 4)
            target = self.get_register(data.rs1) + sign_extend(data.imm, 12)
            target = min(max(target, 0), _WORD_MASK)
            self.pc = (target & _JALR_TARGET_MASK) - 4
        elif mnemonic is Mnemonic.LUI:
            self.set_register(data.rd, data.imm << 12)
        elif mnemonic is Mnemonic.AUIPC:
            self.set_register(data.rd, (self.pc & _WORD_MASK) + (data.imm << 12))
        else:
            raise NotImplementedError(f"instruction not implemented: {mnemonic.name}")

        self.pc += 4

    def get_instruction(self) -> Optional[Instruction]:
        """Decode the big-endian word at the program counter, or None past the end of memory."""
        if self.pc < 0 or self.pc + 4 >= len(self.mem):
            return None
        return interpret_bytes(self._read(self.pc, 4))

    def tick(self) -> None:
        """Fetch, decode and execute one instruction."""
        inst = self.get_instruction()
        if inst is None:
            raise ExecutionHalted(f"no instruction at pc {self.pc:#x}")
        self.apply(inst)