import curses
from typing import List


class OverlayView:
    """Full-height help listing over the sheet, scrolled with j/k."""

    def __init__(self, layout):
        self.layout = layout
        self.visible = False
        self.lines: List[str] = []
        self.scroll = 0
        self.win = None

    def open_help(self, lines: List[str]):
        self.lines = list(lines or [])
        self.scroll = 0
        self.win = curses.newwin(max(3, self.layout.table_h), self.layout.W, 0, 0)
        self.win.leaveok(True)
        self.visible = True

    def close(self):
        self.visible = False
        self.lines = []
        self.scroll = 0
        self.win = None

    def handle_key(self, ch):
        if not self.visible or self.win is None:
            return
        if ch == -1:
            return

        h, _ = self.win.getmaxyx()
        max_scroll = max(0, len(self.lines) - h)

        if ch in (27, ord("q"), 10, 13, curses.KEY_ENTER, ord("?")):
            self.close()
            return

        if ch in (ord("j"), curses.KEY_DOWN):
            self.scroll = min(max_scroll, self.scroll + 1)
        elif ch in (ord("k"), curses.KEY_UP):
            self.scroll = max(0, self.scroll - 1)

    def draw(self):
        if not self.visible or not self.win:
            return

        win = self.win
        win.erase()
        h, w = win.getmaxyx()

        dim_attr = curses.A_DIM if hasattr(curses, "A_DIM") else 0
        blank = " " * max(1, w - 1)
        for row in range(max(0, h)):
            try:
                win.addnstr(row, 0, blank, w - 1, dim_attr)
            except curses.error:
                pass

        start = self.scroll
        end = start + max(0, h)
        for idx, line in enumerate(self.lines[start:end]):
            try:
                win.addnstr(idx, 0, line.ljust(w - 1), w - 1)
            except curses.error:
                pass

        win.refresh()
