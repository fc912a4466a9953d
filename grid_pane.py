import curses

import hierarchy
from cell_coercion import format_cell_value
from hierarchy import group_span


class GridPane:
    PAIR_CELL_TEXT = 1
    PAIR_SELECTED = 2
    PAIR_PLACEHOLDER = 3
    PAIR_SUB_TEXT = 4
    MAX_COL_WIDTH = 40
    HANDLE = "⋮"

    def __init__(self, session):
        self.session = session
        try:
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(self.PAIR_CELL_TEXT, curses.COLOR_WHITE, -1)
            curses.init_pair(self.PAIR_SELECTED, curses.COLOR_BLACK, curses.COLOR_CYAN)
            curses.init_pair(self.PAIR_PLACEHOLDER, curses.COLOR_YELLOW, -1)
            curses.init_pair(self.PAIR_SUB_TEXT, curses.COLOR_CYAN, -1)
        except curses.error:
            pass

        # cursor is in visible-row coordinates
        self.curr_row = 0
        self.curr_col = 0
        self.row_offset = 0
        self.col_offset = 0

    # ---------- projection helpers ----------
    @property
    def sheet(self):
        return self.session.sheet

    def visible(self):
        return hierarchy.visible_indices(self.sheet.rows)

    def visible_count(self) -> int:
        return len(self.visible())

    def current_flat_index(self):
        vis = self.visible()
        if not vis:
            return None
        self.curr_row = max(0, min(self.curr_row, len(vis) - 1))
        return vis[self.curr_row]

    def focus_flat_index(self, index):
        pos = hierarchy.flat_to_visible(self.sheet.rows, index)
        if pos >= 0:
            self.curr_row = pos
        self.clamp()

    def clamp(self):
        total_rows = self.visible_count()
        total_cols = len(self.sheet.columns)
        self.curr_row = max(0, min(self.curr_row, max(0, total_rows - 1)))
        self.curr_col = max(0, min(self.curr_col, max(0, total_cols - 1)))

    def cell_text(self, row, ci) -> str:
        column = self.sheet.columns[ci]
        text = format_cell_value(column.type, row.cells[ci] if ci < len(row.cells) else "")
        if row.sub and ci == 1:
            text = f"↳ {text}"
        return text.replace("\n", " ")

    def get_col_width(self, col_idx):
        if col_idx < 0 or col_idx >= len(self.sheet.columns):
            return self.MAX_COL_WIDTH
        column = self.sheet.columns[col_idx]
        max_len = len(column.name) + 2
        for row in self.sheet.rows:
            max_len = max(max_len, len(self.cell_text(row, col_idx)))
        return min(self.MAX_COL_WIDTH, max_len + 2)

    def adjust_col_viewport(self, win=None):
        """Keep curr_col inside the horizontal viewport."""
        if not self.sheet.columns:
            self.col_offset = 0
            return
        if win is not None:
            _, w = win.getmaxyx()
        else:
            w = 120
        avail_w = max(20, w - (self._number_width() + 1))
        header_widths = [
            min(self.MAX_COL_WIDTH, len(c.name) + 4) for c in self.sheet.columns
        ]
        visible_count = 0
        used = 0
        for cw in header_widths[self.col_offset :]:
            if used + cw + 1 > avail_w:
                break
            used += cw + 1
            visible_count += 1
        visible_count = max(1, visible_count)

        if self.curr_col < self.col_offset:
            self.col_offset = self.curr_col
        elif self.curr_col >= self.col_offset + visible_count:
            self.col_offset = self.curr_col - visible_count + 1
        self.col_offset = max(0, min(self.col_offset, len(self.sheet.columns) - visible_count))

    def _number_width(self) -> int:
        longest = max((len(n) for n in self.session.numbers().values()), default=1)
        return max(5, longest + 4)

    # ---------- navigation ----------
    def move_left(self):
        self.curr_col = max(0, self.curr_col - 1)

    def move_right(self):
        self.curr_col = min(len(self.sheet.columns) - 1, self.curr_col + 1)

    def move_down(self, count=1):
        self.curr_row = min(max(0, self.visible_count() - 1), self.curr_row + count)

    def move_up(self, count=1):
        self.curr_row = max(0, self.curr_row - count)

    # ---------- rendering ----------
    def _marker(self, rows, index) -> str:
        row = rows[index]
        if row.sub:
            return " "
        start, end = group_span(rows, index)
        if end - start == 1:
            return " "
        return "▸" if row.collapsed else "▾"

    def draw(self, win, placeholder=None):
        win.erase()
        try:
            win.bkgd(" ", curses.color_pair(self.PAIR_CELL_TEXT))
        except curses.error:
            pass
        h, w = win.getmaxyx()
        rows = self.sheet.rows
        vis = self.visible()
        numbers = self.session.numbers()
        selection = self.session.selection
        self.clamp()

        num_w = self._number_width()
        widths = [self.get_col_width(c) for c in range(len(self.sheet.columns))]
        avail_w = w - (num_w + 1)
        max_cols = 0
        used = 0
        for cw in widths[self.col_offset :]:
            if used + cw + 1 > avail_w:
                break
            used += cw + 1
            max_cols += 1
        max_cols = max(1, max_cols)
        if self.curr_col < self.col_offset:
            self.col_offset = self.curr_col
        elif self.curr_col >= self.col_offset + max_cols:
            self.col_offset = self.curr_col - max_cols + 1
        self.col_offset = max(0, self.col_offset)
        visible_cols = tuple(
            range(self.col_offset, min(len(widths), self.col_offset + max_cols))
        )

        # header
        try:
            win.addnstr(1, 0, "#".rjust(num_w), num_w, curses.A_BOLD)
        except curses.error:
            pass
        x = num_w + 1
        for c in visible_cols:
            eff_cw = min(widths[c], max(1, w - x - 1))
            column = self.sheet.columns[c]
            label = f"{column.name}:{column.type[0]}"
            try:
                win.addnstr(1, x, label[:eff_cw].ljust(eff_cw), eff_cw, curses.A_BOLD)
            except curses.error:
                pass
            x += eff_cw + 1

        base_y = 2
        budget = max(1, h - base_y - 1)
        if self.curr_row < self.row_offset:
            self.row_offset = self.curr_row
        elif self.curr_row >= self.row_offset + budget:
            self.row_offset = self.curr_row - budget + 1
        self.row_offset = max(0, self.row_offset)

        y = base_y
        for pos in range(self.row_offset, len(vis) + 1):
            if y >= h - 1:
                break
            if placeholder is not None and pos == placeholder:
                try:
                    win.addnstr(y, 0, "─" * (w - 1), w - 1, curses.color_pair(self.PAIR_PLACEHOLDER))
                except curses.error:
                    pass
                y += 1
                if y >= h - 1:
                    break
            if pos == len(vis):
                break
            index = vis[pos]
            row = rows[index]
            handle = self.HANDLE if not row.sub else " "
            gutter = f"{handle}{self._marker(rows, index)}{numbers.get(row.id, '')}"
            base_attr = curses.color_pair(self.PAIR_CELL_TEXT)
            if selection.is_selected(row.id):
                base_attr = curses.color_pair(self.PAIR_SELECTED)
            try:
                win.addnstr(y, 0, gutter.ljust(num_w), num_w, base_attr)
            except curses.error:
                pass
            x = num_w + 1
            for c in visible_cols:
                eff_cw = min(widths[c], max(1, w - x - 1))
                attr = base_attr
                if row.sub and c == 1 and not selection.is_selected(row.id):
                    attr = curses.color_pair(self.PAIR_SUB_TEXT)
                if pos == self.curr_row and c == self.curr_col:
                    attr |= curses.A_REVERSE
                text = self.cell_text(row, c)[:eff_cw].ljust(eff_cw)
                try:
                    win.addnstr(y, x, text, eff_cw, attr)
                except curses.error:
                    pass
                x += eff_cw + 1
            y += 1

        try:
            win.hline(h - 1, 0, " ", w)
        except curses.error:
            pass
        win.refresh()
