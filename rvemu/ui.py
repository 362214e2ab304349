"""Terminal front end: register and memory views driven by a background executor."""

from __future__ import annotations

import curses
import queue
import sys
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Sequence, Union

from .instructions import Instruction
from .machine import ArchState, ExecutionHalted

REGISTER_COUNT = 32
BYTES_PER_ROW = 16
MEMORY_PANEL_WIDTH = 3 * BYTES_PER_ROW + 8 + 4
CONTROL_PANEL_HEIGHT = 8
PC_PANEL_HEIGHT = 2

_POLL_MS = 100
_FRAME_PAUSE = 0.05
_BUTTON5_PRESSED = getattr(curses, "BUTTON5_PRESSED", 0x200000)
_MOTION_ON = "\033[?1003h"
_MOTION_OFF = "\033[?1003l"


class ScrollDirection(Enum):
    """Which way a view scrolls."""

    FORWARD = 1
    BACKWARD = -1


@dataclass(frozen=True)
class Inputs:
    """What the user asked for during one frame."""

    exit: bool = False
    step: bool = False
    toggle_pause: bool = False
    scroll_dir: Optional[ScrollDirection] = None
    mouse_loc: Optional[tuple[int, int]] = None


@dataclass
class ViewState:
    """Scroll positions of the views and where the mouse was last seen."""

    mem_scroll_pos: int = 0
    reg_scroll_pos: int = 0
    last_mouse_pos: tuple[int, int] = (0, 0)

    def scroll(self, direction: ScrollDirection, in_memory: bool, in_registers: bool) -> None:
        """Move the views under the mouse by one row, never above the top."""
        if in_memory:
            self.mem_scroll_pos = max(self.mem_scroll_pos + direction.value, 0)
        if in_registers:
            self.reg_scroll_pos = max(self.reg_scroll_pos + direction.value, 0)

    def clamp(self, mem_len: int, mem_height: int, reg_height: int) -> None:
        """Keep both scroll positions within what their views can show."""
        mem_limit = max(mem_len - mem_height, 0) + 2
        self.mem_scroll_pos = min(max(self.mem_scroll_pos, 0), mem_limit)
        reg_limit = max(REGISTER_COUNT - reg_height, 0)
        self.reg_scroll_pos = min(max(self.reg_scroll_pos, 0), reg_limit)


def inputs_from_key(key: Union[str, int]) -> Inputs:
    """Translate a key press, as a character or a curses key code."""
    if isinstance(key, int) and 0 <= key < 256:
        key = chr(key)
    if isinstance(key, str):
        return Inputs(exit=key == "q", toggle_pause=key == " ")
    if key == curses.KEY_RIGHT:
        return Inputs(step=True)
    if key == curses.KEY_DOWN:
        return Inputs(scroll_dir=ScrollDirection.FORWARD)
    if key == curses.KEY_UP:
        return Inputs(scroll_dir=ScrollDirection.BACKWARD)
    return Inputs()


def inputs_from_mouse(bstate: int, x: int, y: int) -> Inputs:
    """Translate a curses mouse event at column ``x`` and row ``y``."""
    if bstate & _BUTTON5_PRESSED:
        return Inputs(scroll_dir=ScrollDirection.FORWARD, mouse_loc=(x, y))
    if bstate & curses.BUTTON4_PRESSED:
        return Inputs(scroll_dir=ScrollDirection.BACKWARD, mouse_loc=(x, y))
    if bstate & curses.REPORT_MOUSE_POSITION:
        return Inputs(mouse_loc=(x, y))
    return Inputs()


def format_pc(pc: int) -> str:
    """The program counter line, in hex and decimal."""
    return f"pc : 0x{pc:08X} | {pc:010d}"


def register_lines(registers: Sequence[int]) -> list[str]:
    """One line per register, in hex and decimal."""
    return [
        f"x{index:<2}: 0x{value:08X} | {value:010d}"
        for index, value in enumerate(registers[:REGISTER_COUNT])
    ]


def _table_row(label: str, cells: Sequence[str]) -> str:
    return f"{label:<10} " + " ".join(cells)


def memory_header() -> str:
    """Column headings of the memory view."""
    return _table_row("--------", [f"{i:02x}".ljust(3) for i in range(BYTES_PER_ROW)]).rstrip()


def memory_rows(mem: Sequence[int], start_row: int, count: int) -> list[str]:
    """``count`` rows of sixteen bytes from row ``start_row``; bytes past the end read as zero."""
    rows = []
    for row in range(start_row, start_row + count):
        start = row * BYTES_PER_ROW
        chunk = bytes(mem[start:start + BYTES_PER_ROW]) if start < len(mem) else b""
        chunk = chunk.ljust(BYTES_PER_ROW, b"\0")
        rows.append(_table_row(f"{start:08x}", [f"{byte:02x}|" for byte in chunk]))
    return rows


class _Rect(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    def contains(self, pos: tuple[int, int]) -> bool:
        px, py = pos
        return self.x <= px < self.x + self.width and self.y <= py < self.y + self.height

    def inner(self) -> _Rect:
        return _Rect(self.x + 1, self.y + 1, max(self.width - 2, 0), max(self.height - 2, 0))


def _layout(width: int, height: int) -> tuple[_Rect, _Rect, _Rect]:
    main_width = min(width, MEMORY_PANEL_WIDTH)
    reg_width = width - main_width
    control_height = min(height, CONTROL_PANEL_HEIGHT)
    mem_height = height - control_height
    return (
        _Rect(0, 0, reg_width, height),
        _Rect(reg_width, 0, main_width, mem_height),
        _Rect(reg_width, mem_height, main_width, control_height),
    )


def _put(win, y: int, x: int, text: str, width: int, attr: int = 0) -> None:
    max_y, max_x = win.getmaxyx()
    if not 0 <= y < max_y or x < 0:
        return
    available = min(width, max_x - x)
    if available <= 0:
        return
    try:
        win.addnstr(y, x, text, available, attr)
    except curses.error:
        pass


def _put_char(win, y: int, x: int, char) -> None:
    try:
        win.addch(y, x, char)
    except curses.error:
        pass


def _draw_box(win, rect: _Rect) -> None:
    if rect.width < 2 or rect.height < 2:
        return
    right = rect.x + rect.width - 1
    bottom = rect.y + rect.height - 1
    for y in (rect.y, bottom):
        for x in range(rect.x + 1, right):
            _put_char(win, y, x, curses.ACS_HLINE)
    for x in (rect.x, right):
        for y in range(rect.y + 1, bottom):
            _put_char(win, y, x, curses.ACS_VLINE)
    _put_char(win, rect.y, rect.x, curses.ACS_ULCORNER)
    _put_char(win, rect.y, right, curses.ACS_URCORNER)
    _put_char(win, bottom, rect.x, curses.ACS_LLCORNER)
    _put_char(win, bottom, right, curses.ACS_LRCORNER)


def _draw_scrollbar(win, rect: _Rect, content_length: int, position: int) -> None:
    track = rect.height - 2
    if track <= 0 or rect.width <= 0 or content_length <= 0:
        return
    x = rect.x + rect.width - 1
    thumb = min(position * (track - 1) // max(content_length - 1, 1), track - 1)
    for offset in range(track):
        char = curses.ACS_CKBOARD if offset == thumb else curses.ACS_VLINE
        _put_char(win, rect.y + 1 + offset, x, char)


def _draw(
    win,
    paused: bool,
    pc: int,
    registers: Sequence[int],
    instruction: Instruction,
    mem: Sequence[int],
    view: ViewState,
    inputs: Inputs,
) -> None:
    height, width = win.getmaxyx()
    reg_area, mem_area, control_area = _layout(width, height)
    for area in (reg_area, mem_area, control_area):
        _draw_box(win, area)

    if inputs.scroll_dir is not None:
        view.scroll(
            inputs.scroll_dir,
            mem_area.contains(view.last_mouse_pos),
            reg_area.contains(view.last_mouse_pos),
        )

    reg_inner = reg_area.inner()
    reg_table_height = max(reg_inner.height - PC_PANEL_HEIGHT, 0)
    view.clamp(len(mem), mem_area.height, reg_table_height)

    mem_inner = mem_area.inner()
    if mem_inner.height > 0:
        _put(win, mem_inner.y, mem_inner.x, memory_header(), mem_inner.width, curses.A_REVERSE)
        rows = memory_rows(mem, view.mem_scroll_pos, max(mem_inner.height - 1, 0))
        for offset, row in enumerate(rows):
            attr = curses.A_UNDERLINE if offset % 2 else 0
            _put(win, mem_inner.y + 1 + offset, mem_inner.x, row, mem_inner.width, attr)
    _draw_scrollbar(win, mem_area, max(len(mem) - mem_area.height, 0), view.mem_scroll_pos)

    if reg_inner.height > 0:
        _put(win, reg_inner.y, reg_inner.x, format_pc(pc), reg_inner.width)
    visible = register_lines(registers)[view.reg_scroll_pos:][:reg_table_height]
    for offset, line in enumerate(visible):
        _put(win, reg_inner.y + PC_PANEL_HEIGHT + offset, reg_inner.x, line, reg_inner.width)
    _draw_scrollbar(
        win, reg_area, max(REGISTER_COUNT - reg_table_height, 0), view.reg_scroll_pos
    )

    control_inner = control_area.inner()
    if control_inner.height > 0:
        _put(win, control_inner.y, control_inner.x, str(instruction), control_inner.width)
    if control_inner.height > 2:
        _put(
            win,
            control_inner.y + 2,
            control_inner.x,
            "||" if paused else ">>",
            control_inner.width,
        )


def _read_inputs(win) -> Inputs:
    try:
        key = win.get_wch()
    except curses.error:
        return Inputs()
    if key == curses.KEY_MOUSE:
        try:
            _, x, y, _, bstate = curses.getmouse()
        except curses.error:
            return Inputs()
        return inputs_from_mouse(bstate, x, y)
    return inputs_from_key(key)


def _run_ui(
    win,
    state: ArchState,
    lock: threading.Lock,
    pause_queue: queue.SimpleQueue,
    step_queue: queue.SimpleQueue,
) -> None:
    try:
        curses.curs_set(0)
    except curses.error:
        pass
    curses.mousemask(curses.ALL_MOUSE_EVENTS | curses.REPORT_MOUSE_POSITION)
    sys.stdout.write(_MOTION_ON)
    sys.stdout.flush()
    win.timeout(_POLL_MS)

    view = ViewState()
    paused = True
    try:
        while True:
            inputs = _read_inputs(win)
            if inputs.mouse_loc is not None:
                view.last_mouse_pos = inputs.mouse_loc

            with lock:
                instruction = state.get_instruction()
                win.erase()
                _draw(
                    win,
                    paused,
                    state.pc,
                    [state.get_register(i) for i in range(REGISTER_COUNT)],
                    instruction if instruction is not None else Instruction.nop(),
                    state.mem,
                    view,
                    inputs,
                )
                win.refresh()

            if inputs.exit:
                break

            paused = paused != inputs.toggle_pause
            if inputs.toggle_pause:
                pause_queue.put(paused)
            if inputs.step and paused:
                step_queue.put(None)
                pause_queue.put(paused)

            time.sleep(_FRAME_PAUSE)
    finally:
        sys.stdout.write(_MOTION_OFF)
        sys.stdout.flush()


def _take(q: queue.SimpleQueue) -> bool:
    try:
        q.get_nowait()
    except queue.Empty:
        return False
    return True


def _execute(
    state: ArchState,
    lock: threading.Lock,
    pause_queue: queue.SimpleQueue,
    step_queue: queue.SimpleQueue,
    quit_event: threading.Event,
    result: dict,
) -> None:
    paused = True
    count = 0
    while not quit_event.is_set():
        while paused and not _take(step_queue):
            paused = pause_queue.get()
        count += 1
        with lock:
            try:
                state.tick()
            except ExecutionHalted:
                break
    result["count"] = count


def run_tui(programs: Sequence[tuple[bytes, int]]) -> None:
    """Load the programs into a fresh machine and run it under the terminal interface."""
    state = ArchState()
    for data, offset in programs:
        state.load(data, offset)

    lock = threading.Lock()
    pause_queue: queue.SimpleQueue = queue.SimpleQueue()
    step_queue: queue.SimpleQueue = queue.SimpleQueue()
    quit_event = threading.Event()
    result: dict = {}

    worker = threading.Thread(
        target=_execute,
        args=(state, lock, pause_queue, step_queue, quit_event, result),
        daemon=True,
    )
    worker.start()
    try:
        curses.wrapper(_run_ui, state, lock, pause_queue, step_queue)
    finally:
        quit_event.set()
    worker.join(timeout=_FRAME_PAUSE)
    if "count" in result:
        print(f"instructions run {result['count']}")