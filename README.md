# rvemu

A small emulator for a subset of the 32-bit RISC-V base integer instruction
set (RV32I). It has an interactive terminal view that shows the registers,
the memory and the instruction about to run. The view is built on `curses`,
so it needs a POSIX terminal.

## Installing

    pip install .

To run the test suite as well:

    pip install ".[test]"
    pytest

## Running

Start the emulator with its built-in demonstration program:

    rvemu

Or load a raw binary image at address 0:

    rvemu -f program.bin

The demonstration program puts its code at address 0 and a data word
(`de ad be ef`) at address `0x10004`. Memory is 4 GiB, zero-filled and
stored sparsely. Instruction words are read big-endian from memory. Execution
starts at address 0 and starts paused.

The screen has three panes:

- Left: the program counter and registers `x0` to `x31`, in hex and in decimal.
- Top right: memory, sixteen bytes to a row.
- Bottom right: the instruction at the program counter, and `||` (paused) or
  `>>` (running).

When you quit, the program prints `instructions run N`.

### Keys

| Key          | Action                                   |
|--------------|------------------------------------------|
| `space`      | pause or resume execution                |
| `→`          | execute one instruction while paused     |
| `↑` / `↓`    | scroll the pane under the mouse pointer  |
| mouse wheel  | scroll the pane under the mouse pointer  |
| `q`          | quit                                     |

## Using the machine from Python

    from rvemu.machine import ArchState, ExecutionHalted
    from rvemu.instructions import interpret_bytes

    state = ArchState(256)
    state.load(bytes([0x00, 0x10, 0x80, 0x93]), 0)  # addi x1, x1, 1
    state.tick()
    print(state.get_register(1))  # 1

    print(interpret_bytes(0x00108093))
    # ADDI rd:  x1 | rs1: x1 | imm: 0b000000000001

The modules are:

- `rvemu.instructions`: the `Mnemonic` enum and the operand classes `RType`,
  `IType`, `SType`, `UType`, `BType` and `JType`. It also has `Instruction`
  with `Instruction.nop()`, the decoder `interpret_bytes(word)` and the helpers
  `sign_extend`, `to_signed` and `to_unsigned`. Words that do not decode to a
  known instruction decode to the no-op `ADDI x0, x0, 0`.
- `rvemu.machine`: `ArchState`, which holds the registers, the `pc` and the
  `mem`, with these methods:
  - `get_register` and `set_register`
  - `load(program, offset)`, which raises `IndexError` if the bytes do not fit
  - `apply(inst)`
  - `get_instruction()`
  - `tick()`

  The module also has `Memory`, a byte-addressed memory that raises
  `IndexError` outside its bounds, and `ExecutionHalted`.
- `rvemu.ui`: the terminal interface, started with `run_tui(programs)`. It
  also has helpers that format the pane text: `format_pc`, `register_lines`,
  `memory_header` and `memory_rows`.
- `rvemu.cli`: the `rvemu` command, with `main`, `load_programs` and
  `default_program`.

`ArchState.tick()` raises `ExecutionHalted` once the program counter no longer
points at a whole instruction within memory.

## What it does not do

- It has no assembler. Programs must already be raw machine code.
- It does not execute `ECALL` or `EBREAK`. The decoder never produces them,
  and `ArchState.apply` raises `NotImplementedError` if it is given one.
- It emulates no devices and no system calls. Its only output is what the
  terminal view shows.