import curses
from typing import Callable, Optional


class ConfirmPrompt:
    """Modal y/n prompt on the status line.

    Used as the session's ``confirm(message)`` callable: it draws the
    question, reads keys until one answers it, and returns the answer. The
    pending action only runs after ``True`` comes back.
    """

    YES_KEYS = (ord('y'), ord('Y'))
    NO_KEYS = (ord('n'), ord('N'), 27)

    def __init__(self, read_key: Callable[[], int], win_provider: Callable[[], object],
                 set_status_cb: Optional[Callable[[str, int], None]] = None):
        self._read_key = read_key
        self._win_provider = win_provider
        self._set_status = set_status_cb

        self.active = False
        self.message = ""
        self.answer: Optional[bool] = None

    def __call__(self, message: str) -> bool:
        self.start(message)
        while self.active:
            self.draw(self._win_provider())
            ch = self._read_key()
            if ch == -1:
                continue
            self.handle_key(ch)
        return bool(self.answer)

    def start(self, message: str):
        self.active = True
        self.message = message
        self.answer = None

    def handle_key(self, ch):
        if not self.active:
            return
        if ch in self.YES_KEYS:
            self.answer = True
            self.active = False
            return
        if ch in self.NO_KEYS or ch in (3, 24):
            self.answer = False
            self.active = False
            if self._set_status:
                self._set_status("Canceled", 2)

    def draw(self, win):
        if win is None:
            return
        prompt = f"{self.message} [y/n] "
        _, w = win.getmaxyx()
        try:
            win.erase()
            win.addnstr(0, 0, prompt.ljust(w), max(1, w - 1), curses.A_BOLD)
        except curses.error:
            pass
        win.refresh()
