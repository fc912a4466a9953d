import curses
import time

from column_prompt import ColumnPrompt
from confirm_prompt import ConfirmPrompt
from grid_pane import GridPane
from overlay import OverlayView
from screen_layout import ScreenLayout
from sheet_editor import SheetEditor
from status_bar import render_status


class Orchestrator:
    def __init__(self, stdscr, session, config=None):
        self.stdscr = stdscr
        config = config or {}
        curses.curs_set(0)
        curses.raw()
        self.stdscr.nodelay(False)
        self.stdscr.timeout(100)

        self.session = session
        self.layout = ScreenLayout(stdscr)
        self.grid = GridPane(session)

        # ---- status ----
        self.status_msg = None
        self.status_msg_until = 0

        # ---- overlay ----
        self.overlay = OverlayView(self.layout)

        # ---- prompts ----
        self.column_prompt = ColumnPrompt(session, self.grid, self._set_status)
        self.confirm_prompt = ConfirmPrompt(
            self._read_key, lambda: self.layout.status_win, self._set_status
        )
        session.bind_ui(confirm=self._confirm, set_status=self._set_status)
        self.exit_requested = False

        # ---- sheet editor ----
        self.editor = SheetEditor(
            session,
            self.grid,
            self._set_status,
            self.column_prompt,
            export_dir=config.get("export_dir", "."),
        )
        self._saved_doc = session.sheet.to_dict()

    # ---------------- helpers ----------------

    def _set_status(self, msg, seconds=3):
        self.status_msg = msg
        self.status_msg_until = time.time() + seconds

    def _read_key(self):
        return self.stdscr.getch()

    def _confirm(self, message):
        # the grid stays visible behind the question
        self.redraw()
        return self.confirm_prompt(message)

    @property
    def dirty(self) -> bool:
        return self.session.sheet.to_dict() != self._saved_doc

    # ---------------- UI ----------------

    def redraw(self):
        try:
            prompt_active = self.column_prompt.active or self.editor.mode == "cell_insert"
            curses.curs_set(1 if prompt_active and not self.overlay.visible else 0)
        except curses.error:
            pass

        if self.overlay.visible:
            self.overlay.draw()
            return

        self.grid.draw(self.layout.table_win, placeholder=self.editor.placeholder_index())

        sw = self.layout.status_win
        sw.erase()
        h, w = sw.getmaxyx()

        if self.column_prompt.active:
            self.column_prompt.draw(sw)
            return

        if self.editor.mode == "cell_insert":
            self._draw_cell_buffer(sw, w)
            return

        sheet = self.session.sheet
        text = render_status(
            {
                "status_msg": self.status_msg,
                "status_until": self.status_msg_until,
                "mode": self.editor.mode,
                "user": self.session.user,
                "rows": len(sheet.rows),
                "visible": len(self.session.visible_indices()),
                "selected": len(self.session.selection),
                "undo_depth": len(self.session.undo),
                "dirty": self.dirty,
            },
            w,
        )
        try:
            sw.addnstr(0, 0, text, max(1, w - 1))
        except curses.error:
            pass
        sw.refresh()

    def _draw_cell_buffer(self, win, w):
        column = self.session.sheet.columns[self.grid.curr_col]
        prompt = f"{column.name}: "
        text_w = max(1, w - len(prompt) - 1)
        start = self.editor.cell_hscroll
        visible = self.editor.cell_buffer[start : start + text_w]
        try:
            win.addnstr(0, 0, prompt, len(prompt))
            win.addnstr(0, len(prompt), visible, text_w)
            win.move(0, len(prompt) + (self.editor.cell_cursor - start))
        except curses.error:
            pass
        win.refresh()

    # ---------------- saving ----------------

    def _save(self, save_and_exit=False):
        if self.editor.mode == "cell_insert":
            self.editor.handle_key(27)
        saved = self.session.save()
        if saved:
            self._saved_doc = self.session.sheet.to_dict()
            if save_and_exit:
                self.exit_requested = True
        return saved

    # ---------------- main loop ----------------

    def run(self):
        self.stdscr.clear()
        self.stdscr.refresh()
        self.redraw()

        while True:
            ch = self.stdscr.getch()

            if ch in (3, 24):  # Ctrl+C / Ctrl+X
                break

            if self.overlay.visible:
                self.overlay.handle_key(ch)
                self.redraw()
                continue

            if self.column_prompt.active:
                self.column_prompt.handle_key(ch)
                self.redraw()
                continue

            if ch == -1:
                self.redraw()
                continue

            if ch in (19, 20):  # Ctrl+S / Ctrl+T
                self._save(save_and_exit=(ch == 20))
                self.redraw()
                if self.exit_requested:
                    break
                continue

            if ch == ord("?") and self.editor.mode == "normal" and not self.editor.leader_state:
                self.overlay.open_help(self.editor.help_lines())
            else:
                self.editor.handle_key(ch)

            self.redraw()

            if self.exit_requested:
                break
