import os

os.environ.setdefault('ESCDELAY', '25')  # reduce escape key delay (ms)

import logging
import time
from typing import List, NamedTuple, Optional, Tuple

from blessed import Terminal

from .hooks import overridable
from .render import compute_display, instruction_for
from .turns import TurnController


logger = logging.getLogger("pickchat.ui")

TICK_INTERVAL = float(os.environ.get("PICKCHAT_TICK", "0.5"))
FRAME_TIMEOUT = 0.011
INPUT_HEIGHT = 3

SPINNER = "/-\\|"

Cell = Tuple[str, Optional[str]]  # (char, blessed formatting name e.g. "bold_white")


class Region(NamedTuple):
    x: int
    y: int
    w: int
    h: int

    def take_bottom(self, rows: int) -> Tuple['Region', 'Region']:
        """Splits off `rows` rows at the bottom: (rest, bottom)."""
        rows = max(0, min(rows, self.h))
        return (Region(self.x, self.y, self.w, self.h - rows),
                Region(self.x, self.y + self.h - rows, self.w, rows))

    def line(self, row: int) -> 'Region':
        return Region(self.x, self.y + row, self.w, 1)


class ScreenBuffer:
    '''
    One frame of cells. Writes outside the buffer are dropped.
    flush() emits one formatting call per run of same-styled cells.
    '''
    BLANK: Cell = (' ', None)

    def __init__(self, w, h):
        self.w, self.h = w, h
        self.rows: List[List[Cell]] = [[self.BLANK] * w for _ in range(h)]

    def put(self, x, y, char, style=None):
        if 0 <= x < self.w and 0 <= y < self.h:
            self.rows[y][x] = (char, style)

    def puts(self, x, y, text, style=None):
        for i, c in enumerate(text):
            self.put(x + i, y, c, style)

    def clear(self):
        for row in self.rows: row[:] = [self.BLANK] * self.w

    def row_text(self, y) -> str:
        return "".join(c for c, _ in self.rows[y])

    def flush(self, term):
        out = [term.home]
        for row in self.rows:
            run, run_style = "", None
            for c, style in row + [(None, object())]:
                if style != run_style and run:
                    fmt = getattr(term, run_style, None) if run_style else None
                    out.append(fmt(run) if fmt else run)
                    run = ""
                run_style = style
                if c is not None: run += c
        print("".join(out), end='', flush=True)

    def box(self, r: Region, style=None):
        x, y, w, h = r
        if w < 2 or h < 2: return
        self.puts(x, y, '┌' + '─' * (w - 2) + '┐', style)
        self.puts(x, y + h - 1, '└' + '─' * (w - 2) + '┘', style)
        for row in range(y + 1, y + h - 1):
            self.put(x, row, '│', style)
            self.put(x + w - 1, row, '│', style)

    def text_contained(self, txt: str, r: Region, style=None) -> int:
        """Hard-wraps `txt` into r; returns rows used."""
        x, y, w, h = r
        row, col = 0, 0
        for c in txt:
            if c == '\n': row += 1; col = 0; continue
            if col >= w: row += 1; col = 0
            if row >= h: break
            self.put(x + col, y + row, c, style)
            col += 1
        return row + 1 if col > 0 or row == 0 else row


class InputPass:
    '''
    Keys pressed this frame. Each key can be consumed once, either
    by name (KEY_ENTER, KEY_CTRL_BACKSPACE, ...) or as printable text.
    '''
    # control bytes blessed leaves unnamed
    KEY_ALIASES = {'\x17': 'KEY_CTRL_BACKSPACE', '\x7f': 'KEY_BACKSPACE', '\x1bd': 'KEY_CTRL_DELETE'}

    def __init__(self, keys: list):
        self._pending = [(self.KEY_ALIASES.get(str(k), k.name), k) for k in keys]

    def consume(self, name: str) -> bool:
        for i, (key_name, _) in enumerate(self._pending):
            if key_name == name:
                del self._pending[i]
                return True
        return False

    def consume_text(self) -> str:
        printable = [k for key_name, k in self._pending if key_name is None and str(k).isprintable()]
        self._pending = [(n, k) for n, k in self._pending if not (n is None and str(k).isprintable())]
        return "".join(str(k) for k in printable)


@overridable
def make_input(on_submit):
    '''
    Single-line editor. Returns draw(buf, inpt, r); draw.clear() empties it.
    Empty lines are submitted too (an empty pick regenerates).
    '''
    text, cursor = "", 0

    def prev_word(text, i):
        while i > 0 and not text[i-1].isalnum(): i -= 1
        while i > 0 and text[i-1].isalnum(): i -= 1
        return i

    def next_word(text, i):
        while i < len(text) and text[i].isalnum(): i += 1
        while i < len(text) and not text[i].isalnum(): i += 1
        return i

    def clear():
        nonlocal text, cursor
        text, cursor = "", 0

    def value():
        return text

    def draw(buf: ScreenBuffer, inpt: InputPass, r):
        nonlocal text, cursor
        buf.box(r, "bright_red")

        typed = inpt.consume_text()
        if typed:
            text = text[:cursor] + typed + text[cursor:]
            cursor += len(typed)
        if inpt.consume('KEY_LEFT') and cursor > 0: cursor -= 1
        if inpt.consume('KEY_RIGHT') and cursor < len(text): cursor += 1
        if inpt.consume('KEY_HOME'): cursor = 0
        if inpt.consume('KEY_END'): cursor = len(text)
        if inpt.consume('KEY_BACKSPACE') and cursor > 0:
            text = text[:cursor-1] + text[cursor:]
            cursor -= 1
        if inpt.consume('KEY_DELETE') and cursor < len(text):
            text = text[:cursor] + text[cursor+1:]
        if inpt.consume('KEY_CTRL_BACKSPACE') and cursor > 0:
            new_cursor = prev_word(text, cursor)
            text = text[:new_cursor] + text[cursor:]
            cursor = new_cursor
        if inpt.consume('KEY_CTRL_DELETE') and cursor < len(text):
            text = text[:cursor] + text[next_word(text, cursor):]
        if inpt.consume('KEY_ENTER'):
            submitted = text
            text, cursor = "", 0
            on_submit(submitted)

        blink = "█" if int(time.time() * 3) % 2 == 0 else " "
        inner_w = max(0, r[2] - 2)
        shown = text[:cursor] + blink + text[cursor:]
        # keep the cursor on screen for long lines
        start = max(0, cursor + 1 - inner_w)
        buf.puts(r[0]+1, r[1]+1, shown[start:start + inner_w], "white")

    draw.clear = clear
    draw.value = value
    return draw


class Viewport:
    '''
    Scrollable, word-wrapped transcript. Sticks to the bottom
    unless the user scrolled up.
    '''
    def __init__(self, wrap=None):
        self.wrap = wrap
        self.lines: List[str] = []
        self.offset = 0
        self.height = 0
        self.follow = True

    def set_content(self, text: str, width: int, height: int):
        self.height = height
        if self.wrap:
            self.lines = self.wrap(text, width) if width > 0 else []
        else:
            self.lines = text.split('\n')
        if self.follow:
            self.goto_bottom()
        else:
            self.offset = min(self.offset, self.max_offset())

    def max_offset(self) -> int:
        return max(0, len(self.lines) - self.height)

    def goto_bottom(self):
        self.offset = self.max_offset()
        self.follow = True

    def scroll(self, n: int):
        self.offset = max(0, min(self.offset + n, self.max_offset()))
        self.follow = self.offset == self.max_offset()

    def handle(self, inpt: InputPass):
        if inpt.consume('KEY_PGUP'): self.scroll(-max(1, self.height - 1))
        if inpt.consume('KEY_PGDOWN'): self.scroll(max(1, self.height - 1))
        if inpt.consume('KEY_UP'): self.scroll(-1)
        if inpt.consume('KEY_DOWN'): self.scroll(1)

    def visible(self) -> List[str]:
        return self.lines[self.offset:self.offset + self.height]

    def draw(self, buf: ScreenBuffer, r):
        x, y, w, h = r
        for i, line in enumerate(self.visible()):
            buf.puts(x, y + i, line[:w], "white")


def render_frame(buf: ScreenBuffer, inpt: InputPass, ctl: TurnController, view: Viewport, input_box, r):
    '''
    Paints transcript, instruction and input box.
    Layout mirrors: viewport / blank / instruction / blank / input.
    '''
    main_r, input_r = Region(*r).take_bottom(INPUT_HEIGHT)
    view_r, info_r = main_r.take_bottom(3)

    view.handle(inpt)
    view.set_content(compute_display(ctl.phase, ctl.log, ctl.candidates), view_r.w, view_r.h)
    view.draw(buf, view_r)

    instruction = instruction_for(ctl.phase)
    if ctl.phase.busy:
        instruction += " " + SPINNER[int(time.time() * 8) % len(SPINNER)]
    buf.text_contained(instruction, info_r.line(1), 'bright_black')

    if ctl.phase.accepts_input:
        input_box(buf, inpt, input_r)
    else:
        # nothing typed now could be submitted; keep keys out of the editor
        buf.box(input_r, "bright_black")


def _loop(ctl: TurnController, term, view: Viewport, input_box):
    buf = ScreenBuffer(term.width, term.height)
    keys = []
    last_tick = time.monotonic()
    while not ctl.quit_requested:
        key = term.inkey(timeout=FRAME_TIMEOUT)
        if key:
            if str(key) == '\x03':
                ctl.quit()
                break
            keys.append(key)

        now = time.monotonic()
        if now - last_tick >= TICK_INTERVAL:
            last_tick = now
            ctl.tick()

        if buf.w != term.width or buf.h != term.height:
            buf = ScreenBuffer(term.width, term.height)

        inpt = InputPass(keys)
        keys = []

        buf.clear()
        render_frame(buf, inpt, ctl, view, input_box, Region(0, 0, term.width, term.height))
        buf.flush(term)


def run(ctl: TurnController, term: Optional[Terminal] = None):
    term = term or Terminal()
    view = Viewport(wrap=term.wrap)
    input_box = make_input(ctl.submit)
    ctl.on_clear_input = getattr(input_box, "clear", None)

    with term.cbreak(), term.hidden_cursor(), term.fullscreen():
        try:
            _loop(ctl, term, view, input_box)
        except KeyboardInterrupt:
            # cbreak keeps ISIG on, so Ctrl-C usually arrives as SIGINT
            ctl.quit()
    logger.info("exiting at phase %s", ctl.phase.value)
