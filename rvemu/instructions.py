"""Instruction formats, mnemonics and the RV32I instruction decoder."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Union

_WORD_MASK = 0xFFFFFFFF
_REG_MASK = 0b11111


def to_signed(value: int) -> int:
    """Reinterpret a 32-bit unsigned value as a two's-complement signed value."""
    value &= _WORD_MASK
    return value - (1 << 32) if value & (1 << 31) else value


def to_unsigned(value: int) -> int:
    """Reinterpret a signed value as a 32-bit unsigned value."""
    return value & _WORD_MASK


def sign_extend(value: int, bits: int) -> int:
    """Sign-extend an immediate whose sign bit is bit ``bits - 1`` to a signed 32-bit int."""
    if value & (1 << (bits - 1)):
        value = (value + ((_WORD_MASK << bits) & _WORD_MASK)) & _WORD_MASK
    return to_signed(value)


class Mnemonic(Enum):
    """Every instruction the machine knows."""

    ADD = auto()
    SUB = auto()
    XOR = auto()
    OR = auto()
    AND = auto()
    SLL = auto()
    SRL = auto()
    SRA = auto()
    SLT = auto()
    SLTU = auto()

    ADDI = auto()
    XORI = auto()
    ORI = auto()
    ANDI = auto()
    SLLI = auto()
    SRLI = auto()
    SRAI = auto()
    SLTI = auto()
    SLTUI = auto()

    LB = auto()
    LH = auto()
    LW = auto()
    LBU = auto()
    LHU = auto()

    SB = auto()
    SH = auto()
    SW = auto()

    BEQ = auto()
    BNE = auto()
    BLT = auto()
    BGE = auto()
    BLTU = auto()
    BGEU = auto()

    JAL = auto()
    JALR = auto()

    LUI = auto()
    AUIPC = auto()

    ECALL = auto()
    EBREAK = auto()


@dataclass(frozen=True)
class RType:
    """Register-register operands."""

    rd: int
    rs1: int
    rs2: int

    def __str__(self) -> str:
        return f"rd:  x{self.rd} | rs1: x{self.rs1} | rs2: x{self.rs2}"


@dataclass(frozen=True)
class IType:
    """Register-immediate operands with a 12-bit immediate."""

    rd: int
    rs1: int
    imm: int

    def __str__(self) -> str:
        return f"rd:  x{self.rd} | rs1: x{self.rs1} | imm: {self.imm:#014b}"


@dataclass(frozen=True)
class SType:
    """Store operands with a 12-bit immediate."""

    rs1: int
    rs2: int
    imm: int

    def __str__(self) -> str:
        return f"rs1: x{self.rs1} | rs2: x{self.rs2} | imm: {self.imm:#014b}"


@dataclass(frozen=True)
class UType:
    """Upper-immediate operands with a 20-bit immediate."""

    rd: int
    imm: int

    def __str__(self) -> str:
        return f"rd:  x{self.rd} | imm: {self.imm:#022b}"


@dataclass(frozen=True)
class BType:
    """Branch operands with a 12-bit immediate."""

    rs1: int
    rs2: int
    imm: int

    def __str__(self) -> str:
        return f"rs1: x{self.rs1} | rs2: x{self.rs2} | imm: {self.imm:#014b}"


@dataclass(frozen=True)
class JType:
    """Jump operands with a 20-bit immediate."""

    rd: int
    imm: int

    def __str__(self) -> str:
        return f"rd:  x{self.rd} | imm: {self.imm:#022b}"


Operands = Union[RType, IType, SType, UType, BType, JType]


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction: what to do and the operands to do it with."""

    mnemonic: Mnemonic
    data: Operands

    @classmethod
    def nop(cls) -> Instruction:
        """The canonical no-op, ``ADDI x0, x0, 0``."""
        return cls(Mnemonic.ADDI, IType(rd=0, rs1=0, imm=0))

    def __str__(self) -> str:
        return f"{self.mnemonic.name} {self.data}"


_REGISTER_OPS = {
    0b0000: Mnemonic.ADD,
    0b1000: Mnemonic.SUB,
    0b0001: Mnemonic.SLL,
    0b1001: Mnemonic.SLL,
    0b0010: Mnemonic.SLT,
    0b1010: Mnemonic.SLT,
    0b0011: Mnemonic.SLTU,
    0b1011: Mnemonic.SLTU,
    0b0100: Mnemonic.XOR,
    0b1100: Mnemonic.XOR,
    0b0101: Mnemonic.SRL,
    0b1101: Mnemonic.SRA,
    0b0110: Mnemonic.OR,
    0b1110: Mnemonic.OR,
    0b0111: Mnemonic.AND,
    0b1111: Mnemonic.AND,
}

_IMMEDIATE_OPS = {
    0b000: Mnemonic.ADDI,
    0b010: Mnemonic.SLTI,
    0b011: Mnemonic.SLTUI,
    0b100: Mnemonic.XORI,
    0b110: Mnemonic.ORI,
    0b111: Mnemonic.ANDI,
    0b001: Mnemonic.SLLI,
}

_STORE_OPS = {
    0b000: Mnemonic.SB,
    0b001: Mnemonic.SH,
    0b010: Mnemonic.SW,
}

_LOAD_OPS = {
    0b000: Mnemonic.LB,
    0b001: Mnemonic.LH,
    0b010: Mnemonic.LW,
    0b100: Mnemonic.LBU,
    0b101: Mnemonic.LHU,
}

_BRANCH_OPS = {
    0b000: Mnemonic.BEQ,
    0b001: Mnemonic.BNE,
    0b100: Mnemonic.BLT,
    0b101: Mnemonic.BGE,
    0b110: Mnemonic.BLTU,
    0b111: Mnemonic.BGEU,
}


def interpret_bytes(word: int) -> Instruction:
    """Decode a 32-bit instruction word; unknown encodings decode to a no-op."""
    if not 0 <= word <= _WORD_MASK:
        raise ValueError(f"instruction word out of range: {word:#x}")

    opcode = word & 0b1111111
    func3 = (word >> 12) & 0b111
    rd = (word >> 7) & _REG_MASK
    rs1 = (word >> 15) & _REG_MASK
    rs2 = (word >> 20) & _REG_MASK

    if opcode == 0b0110011:
        mnemonic = _REGISTER_OPS.get(func3 + (word >> 27))
        if mnemonic is None:
            return Instruction.nop()
        return Instruction(mnemonic, RType(rd=rd, rs1=rs1, rs2=rs2))

    if opcode == 0b0010011:
        data = IType(rd=rd, rs1=rs1, imm=word >> 20)
        if func3 == 0b101:
            mnemonic = Mnemonic.SRAI if word & (1 << 30) else Mnemonic.SRLI
        else:
            mnemonic = _IMMEDIATE_OPS[func3]
        return Instruction(mnemonic, data)

    if opcode == 0b0100011:
        mnemonic = _STORE_OPS.get(func3)
        if mnemonic is None:
            return Instruction.nop()
        imm = (word >> 7) & (0b11111 + (word >> 24))
        return Instruction(mnemonic, SType(rs1=rs1, rs2=rs2, imm=imm))

    if opcode == 0b0000011:
        mnemonic = _LOAD_OPS.get(func3)
        if mnemonic is None:
            return Instruction.nop()
        return Instruction(mnemonic, IType(rd=rd, rs1=rs1, imm=word >> 20))

    if opcode == 0b1100111:
        # Register fields are taken as full bytes here, unmasked to five bits.
        return Instruction(
            Mnemonic.JALR,
            IType(rd=(word >> 7) & 0xFF, rs1=(word >> 15) & 0xFF, imm=word >> 20),
        )

    if opcode == 0b1100011:
        mnemonic = _BRANCH_OPS.get(func3)
        if mnemonic is None:
            return Instruction.nop()
        imm = (
            (((word >> 7) & (0b11111 + (word >> 24))) & 0b111111111100)
            + ((word & 0x80) << 4)
            + (word & 0x1000)
        )
        return Instruction(mnemonic, BType(rs1=rs1, rs2=rs2, imm=imm))

    if opcode == 0b1101111:
        imm = (
            ((word >> 20) & 0b1111111111)
            + (((word >> 20) & 1) << 10)
            + (((word >> 12) & 0b11111111) << 11)
            + (((word >> 30) & 1) << 19)
        )
        return Instruction(Mnemonic.JAL, JType(rd=rd, imm=imm))

    if opcode == 0b0110111:
        return Instruction(Mnemonic.LUI, UType(rd=rd, imm=word >> 12))

    if opcode == 0b0010111:
        return Instruction(Mnemonic.AUIPC, UType(rd=rd, imm=word >> 12))

    return Instruction.nop()