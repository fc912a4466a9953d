import curses
from typing import Callable, Optional

from sheet_model import COLUMN_TYPES


class ColumnPrompt:
    TYPE_CHOICES = list(COLUMN_TYPES)
    _TYPE_MAP = {
        "text": "text",
        "str": "text",
        "string": "text",
        "t": "text",
        "date": "date",
        "datetime": "date",
        "d": "date",
        "number": "number",
        "num": "number",
        "int": "number",
        "float": "number",
        "n": "number",
        "tags": "tags",
        "tag": "tags",
        "list": "tags",
    }

    def __init__(self, session, grid, set_status_cb: Callable[[str, int], None]):
        self.session = session
        self.grid = grid
        self._set_status = set_status_cb

        self.active = False
        self.action: Optional[str] = None  # insert_before | insert_after | rename
        self.step: Optional[str] = None  # name | type
        self.target_col: Optional[int] = None
        self.pending_name: Optional[str] = None
        self.buffer = ""
        self.cursor = 0
        self.hscroll = 0

    # ---------- public API ----------
    def start_insert_before(self, col_idx: int):
        self._start("insert_before", col_idx)

    def start_insert_after(self, col_idx: int):
        self._start("insert_after", col_idx)

    def start_rename(self, col_idx: int):
        self._start("rename", col_idx)
        columns = self.session.sheet.columns
        if 0 <= col_idx < len(columns):
            self.buffer = columns[col_idx].name
            self.cursor = len(self.buffer)

    def handle_key(self, ch):
        if not self.active:
            return

        if ch in (10, 13):  # Enter
            self._handle_enter()
            return

        if ch == 27:  # Esc
            self._set_status("Action canceled", 3)
            self._reset()
            return

        if ch in (curses.KEY_BACKSPACE, 127, 8):
            if self.cursor > 0:
                self.buffer = self.buffer[: self.cursor - 1] + self.buffer[self.cursor :]
                self.cursor -= 1
            return

        if ch == curses.KEY_LEFT:
            self.cursor = max(0, self.cursor - 1)
            return

        if ch == curses.KEY_RIGHT:
            self.cursor = min(len(self.buffer), self.cursor + 1)
            return

        if ch == curses.KEY_HOME:
            self.cursor = 0
            return

        if ch == curses.KEY_END:
            self.cursor = len(self.buffer)
            return

        if 32 <= ch <= 126:
            self.buffer = self.buffer[: self.cursor] + chr(ch) + self.buffer[self.cursor :]
            self.cursor += 1
            return

    def draw(self, win):
        if not self.active:
            return

        prompt = self._prompt_text()
        h, w = win.getmaxyx()
        text_w = max(1, w - len(prompt) - 1)

        if self.cursor < self.hscroll:
            self.hscroll = self.cursor
        elif self.cursor > self.hscroll + text_w:
            self.hscroll = self.cursor - text_w

        start = self.hscroll
        end = start + text_w
        visible = self.buffer[start:end]

        try:
            win.addnstr(0, 0, prompt, len(prompt))
            win.addnstr(0, len(prompt), visible, text_w)
            win.move(0, len(prompt) + (self.cursor - self.hscroll))
        except curses.error:
            pass
        win.refresh()

    # ---------- internals ----------
    def _start(self, action: str, col_idx: int):
        self.active = True
        self.action = action
        self.target_col = col_idx
        self.step = "name"
        self.pending_name = None
        self.buffer = ""
        self.cursor = 0
        self.hscroll = 0

    def _handle_enter(self):
        text = self.buffer.strip()

        if self.step == "name":
            if not text:
                self._set_status("Name required", 3)
                return
            if self.action in ("insert_before", "insert_after"):
                self.pending_name = text
                self.step = "type"
                self.buffer = ""
                self.cursor = 0
                self.hscroll = 0
                return

            if self.action == "rename":
                self.session.dispatch("rename_column", index=self.target_col, name=text)
                self._reset()
                return

        elif self.step == "type":
            column_type = self._normalize_type(text or "text")
            if not column_type:
                self._set_status("Use one of: " + "/".join(self.TYPE_CHOICES), 4)
                return
            self._apply_insert(column_type)
            self._reset()
            return

    def _normalize_type(self, text: str) -> Optional[str]:
        return self._TYPE_MAP.get(text.strip().lower()) if text else None

    def _apply_insert(self, column_type: str):
        if self.pending_name is None or self.target_col is None:
            self._set_status("Missing column context", 4)
            return
        columns = self.session.sheet.columns
        loc = self.target_col if self.action == "insert_before" else self.target_col + 1
        loc = min(loc, len(columns))
        result = self.session.dispatch(
            "insert_column", index=loc, name=self.pending_name, column_type=column_type
        )
        if not result.ok:
            return
        self.grid.curr_col = loc
        self.grid.adjust_col_viewport()

    def _reset(self):
        self.active = False
        self.action = None
        self.step = None
        self.target_col = None
        self.pending_name = None
        self.buffer = ""
        self.cursor = 0
        self.hscroll = 0

    def _prompt_text(self) -> str:
        if self.action in ("insert_before", "insert_after"):
            direction = "before" if self.action == "insert_before" else "after"
            if self.step == "type":
                return f"Insert {direction} type ({'/'.join(self.TYPE_CHOICES)}): "
            return f"Insert {direction} col name: "

        if self.action == "rename":
            return "Rename column to: "

        return "Column action: "
