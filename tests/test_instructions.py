import pytest

from rvemu.instructions import (
    BType,
    IType,
    Instruction,
    JType,
    Mnemonic,
    RType,
    SType,
    UType,
    interpret_bytes,
    sign_extend,
    to_signed,
    to_unsigned,
)


def test_sign_extension():
    assert sign_extend(1, 12) == 1
    assert sign_extend(2**12 - 1, 12) == -1
    assert sign_extend(1, 20) == 1
    assert sign_extend(2**20 - 1, 20) == -1


def test_sign_extension_of_most_negative():
    assert sign_extend(0x800, 12) == -2048
    assert sign_extend(0x80000, 20) == -(2**19)


@pytest.mark.parametrize(
    "unsigned, signed",
    [(0, 0), (1, 1), (0xFFFFFFFF, -1), (0x80000000, -(2**31)), (0x7FFFFFFF, 2**31 - 1)],
)
def test_signed_round_trip(unsigned, signed):
    assert to_signed(unsigned) == signed
    assert to_unsigned(signed) == unsigned


def test_nop_is_addi_zero():
    nop = Instruction.nop()
    assert nop.mnemonic is Mnemonic.ADDI
    assert nop.data == IType(rd=0, rs1=0, imm=0)


def test_str_formats():
    assert str(Instruction.nop()) == "ADDI rd:  x0 | rs1: x0 | imm: 0b000000000000"
    assert (
        str(Instruction(Mnemonic.ADD, RType(rd=1, rs1=2, rs2=3)))
        == "ADD rd:  x1 | rs1: x2 | rs2: x3"
    )
    assert (
        str(Instruction(Mnemonic.SW, SType(rs1=1, rs2=2, imm=5)))
        == "SW rs1: x1 | rs2: x2 | imm: 0b000000000101"
    )
    assert (
        str(Instruction(Mnemonic.BEQ, BType(rs1=4, rs2=5, imm=1)))
        == "BEQ rs1: x4 | rs2: x5 | imm: 0b000000000001"
    )
    assert (
        str(Instruction(Mnemonic.LUI, UType(rd=7, imm=3)))
        == "LUI rd:  x7 | imm: 0b00000000000000000011"
    )
    assert (
        str(Instruction(Mnemonic.JAL, JType(rd=1, imm=8)))
        == "JAL rd:  x1 | imm: 0b00000000000000001000"
    )


def test_decode_addi_from_default_program():
    inst = interpret_bytes(0x3E800093)
    assert inst == Instruction(Mnemonic.ADDI, IType(rd=1, rs1=0, imm=1000))
    assert str(inst) == "ADDI rd:  x1 | rs1: x0 | imm: 0b001111101000"


def test_decode_accumulator_op():
    inst = interpret_bytes(0b1_00001_000_00001_0010011)
    assert inst == Instruction(Mnemonic.ADDI, IType(rd=1, rs1=1, imm=1))


@pytest.mark.parametrize(
    "word, mnemonic",
    [
        (0x002081B3, Mnemonic.ADD),
        (0x402081B3, Mnemonic.SUB),
        (0x0020D1B3, Mnemonic.SRL),
        (0x4020D1B3, Mnemonic.SRA),
        (0x0020C1B3, Mnemonic.XOR),
        (0x0020E1B3, Mnemonic.OR),
        (0x0020F1B3, Mnemonic.AND),
        (0x002091B3, Mnemonic.SLL),
        (0x0020A1B3, Mnemonic.SLT),
        (0x0020B1B3, Mnemonic.SLTU),
    ],
)
def test_decode_register_ops(word, mnemonic):
    inst = interpret_bytes(word)
    assert inst.mnemonic is mnemonic
    assert inst.data == RType(rd=3, rs1=1, rs2=2)


def test_decode_shift_immediates():
    assert interpret_bytes(0x0010D093).mnemonic is Mnemonic.SRLI
    assert interpret_bytes(0x4010D093).mnemonic is Mnemonic.SRAI
    assert interpret_bytes(0x00109093).mnemonic is Mnemonic.SLLI


def test_decode_loads():
    inst = interpret_bytes(0x0040A103)
    assert inst == Instruction(Mnemonic.LW, IType(rd=2, rs1=1, imm=4))
    assert interpret_bytes(0x0040C103).mnemonic is Mnemonic.LBU
    assert interpret_bytes(0x0040B103) == Instruction.nop()


def test_decode_store():
    inst = interpret_bytes(0x0020A023)
    assert inst == Instruction(Mnemonic.SW, SType(rs1=1, rs2=2, imm=0))
    assert interpret_bytes(0x0020B023) == Instruction.nop()


def test_decode_branches():
    assert interpret_bytes(0x00000063) == Instruction(
        Mnemonic.BEQ, BType(rs1=0, rs2=0, imm=0)
    )
    assert interpret_bytes(0x000000E3) == Instruction(
        Mnemonic.BEQ, BType(rs1=0, rs2=0, imm=0x800)
    )
    assert interpret_bytes(0x00002063) == Instruction.nop()
    assert interpret_bytes(0x00007063).mnemonic is Mnemonic.BGEU


def test_decode_jumps():
    assert interpret_bytes(0x0000006F) == Instruction(Mnemonic.JAL, JType(rd=0, imm=0))
    assert interpret_bytes(0x0010006F) == Instruction(Mnemonic.JAL, JType(rd=0, imm=1025))
    assert interpret_bytes(0x000080E7) == Instruction(
        Mnemonic.JALR, IType(rd=1, rs1=1, imm=0)
    )


def test_decode_upper_immediates():
    assert interpret_bytes(0x123450B7) == Instruction(
        Mnemonic.LUI, UType(rd=1, imm=0x12345)
    )
    assert interpret_bytes(0x00010317) == Instruction(
        Mnemonic.AUIPC, UType(rd=6, imm=0x10)
    )


def test_unknown_opcode_is_nop():
    assert interpret_bytes(0xDEADBEEF & ~0x7F | 0x7F) == Instruction.nop()
    assert interpret_bytes(0) == Instruction.nop()


@pytest.mark.parametrize("word", [-1, 2**32])
def test_decode_rejects_out_of_range(word):
    with pytest.raises(ValueError):
        interpret_bytes(word)