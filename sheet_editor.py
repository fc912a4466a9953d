import curses
import os

from cell_coercion import format_cell_value
from hierarchy import group_head_index, group_span
from sheet_export import export_sheet
from sheet_model import PersistenceError, SheetValidationError


class SheetEditor:
    """Handles sheet editing state and key interactions."""

    def __init__(self, session, grid, set_status_cb, column_prompt=None, export_dir="."):
        self.session = session
        self.grid = grid
        self._set_status = set_status_cb
        self.column_prompt = column_prompt
        self.export_dir = export_dir
        self._leader_ttl = 1.5

        self.mode = "normal"  # normal | cell_insert | move
        self.cell_buffer = ""
        self.cell_initial = ""
        self.cell_cursor = 0
        self.cell_hscroll = 0
        self.leader_state = None  # None | 'leader' | 'i' | 'd' | 'r' | 'e'
        self.pending_op = None  # None | 'd'

        # Numeric prefix (Vim-style counts)
        self.pending_count: int | None = None

    @staticmethod
    def help_lines():
        return [
            "j/k  move row        h/l  move column",
            "Space select row      v  toggle row in selection   V  select range",
            "Esc  clear selection / cancel move",
            "a  add row   O/o  insert above/below   s  add sub-row   y  duplicate",
            "dd  delete row (with sub-rows)   D  delete selected   u  undo",
            "z  collapse/expand   Z  collapse all   E  expand all",
            "m  move row: j/k to pick a spot, Enter to drop, Esc to cancel",
            "i  edit cell (Enter or Esc to commit)",
            ",ic / ,iC  insert column left / right   ,dc  delete column",
            ",rn  rename column   ,t  cycle column type   ,c  cycle column color",
            ",ej  export JSON   ,ex  export XLSX",
            "Ctrl+S save   Ctrl+T save and exit   Ctrl+C/Ctrl+X exit",
        ]

    # ---------- helpers ----------
    def _leader_seq(self, state: str | None) -> str:
        if not state:
            return ""
        mapping = {
            "leader": ",",
            "i": ",i",
            "d": ",d",
            "r": ",r",
            "e": ",e",
        }
        return mapping.get(state, ",")

    def _show_leader_status(self, seq: str):
        if not seq:
            return
        cp = getattr(self, "column_prompt", None)
        if cp is not None and getattr(cp, "active", False):
            return
        self._set_status(f"Leader: {seq}", self._leader_ttl)

    def _reset_count(self):
        self.pending_count = None

    def _push_count_digit(self, digit: int):
        if digit < 0 or digit > 9:
            return
        if self.pending_count is None:
            self.pending_count = digit
        else:
            self.pending_count = min(9999, self.pending_count * 10 + digit)

    def _consume_count(self, default: int = 1) -> int:
        count = self.pending_count if self.pending_count is not None else default
        self.pending_count = None
        return max(1, count)

    def _current_index(self):
        return self.grid.current_flat_index()

    def _current_row(self):
        index = self._current_index()
        if index is None:
            return None
        return self.session.sheet.rows[index]

    def _dispatch(self, name, **kwargs):
        return self.session.dispatch(name, **kwargs)

    def _focus_row_id(self, row_id):
        if row_id is None:
            self.grid.clamp()
            return
        index = self.session.sheet.index_of(row_id)
        if index >= 0:
            self.grid.focus_flat_index(index)
        else:
            self.grid.clamp()

    def _autoscroll_insert(self):
        cw = self.grid.get_col_width(self.grid.curr_col)
        if self.cell_cursor < self.cell_hscroll:
            self.cell_hscroll = self.cell_cursor
        elif self.cell_cursor > self.cell_hscroll + cw - 1:
            self.cell_hscroll = self.cell_cursor - (cw - 1)
        self.cell_hscroll = max(0, self.cell_hscroll)

    # ---------- row commands ----------
    def _add_row(self):
        self._dispatch("add_row")
        rows = self.session.sheet.rows
        if rows:
            self._focus_row_id(rows[-1].id)

    def _insert_row(self, above: bool):
        index = self._current_index()
        rows = self.session.sheet.rows
        if index is None:
            target = 0
        elif above:
            target = group_head_index(rows, index)
        else:
            # below the whole group so sub-blocks stay contiguous
            target = group_span(rows, group_head_index(rows, index))[1]
        result = self._dispatch("insert_row_at", index=target)
        if result.ok and result.undo_record is not None:
            rows = self.session.sheet.rows
            inserted = [r for r in rows if r.id not in result.undo_record.snapshot.row_ids()]
            if inserted:
                self._focus_row_id(inserted[0].id)

    def _add_sub_row(self):
        index = self._current_index()
        if index is None:
            self._set_status("No rows", 3)
            return
        # a sub-row's sub-row goes to its parent
        index = group_head_index(self.session.sheet.rows, index)
        result = self._dispatch("add_sub_row", parent_index=index)
        if result.undo_record is not None:
            self._focus_row_id(self.session.sheet.rows[index + 1].id)

    def _duplicate_row(self):
        index = self._current_index()
        if index is None:
            self._set_status("No rows", 3)
            return
        self._dispatch("duplicate_row", index=index)

    def _delete_row(self):
        index = self._current_index()
        if index is None:
            self._set_status("No rows", 3)
            return
        self._dispatch("delete_row", index=index)
        self.grid.clamp()

    def _delete_selected(self):
        self._dispatch("delete_selected")
        self.grid.clamp()

    def _select(self, shift=False, modifier=False):
        row = self._current_row()
        if row is None:
            return
        self._dispatch("select", row_id=row.id, shift=shift, modifier=modifier)

    def _toggle_collapsed(self):
        index = self._current_index()
        if index is None:
            return
        rows = self.session.sheet.rows
        row_id = rows[index].id
        if rows[index].sub:
            # collapsing from a sub-row folds its parent
            index = group_head_index(rows, index)
            row_id = rows[index].id
        self._dispatch("toggle_collapsed", index=index)
        self._focus_row_id(row_id)

    def _undo(self):
        row = self._current_row()
        row_id = row.id if row is not None else None
        self._dispatch("undo")
        self._focus_row_id(row_id)

    # ---------- column commands ----------
    def _start_insert_column(self, after: bool):
        if self.column_prompt is None:
            self._set_status("Column prompt unavailable", 3)
            return
        if after:
            self.column_prompt.start_insert_after(self.grid.curr_col)
        else:
            self.column_prompt.start_insert_before(self.grid.curr_col)

    def _start_rename_column(self):
        if self.column_prompt is None:
            self._set_status("Column prompt unavailable", 3)
            return
        self.column_prompt.start_rename(self.grid.curr_col)

    def _delete_current_column(self):
        self._dispatch("delete_column", index=self.grid.curr_col)
        self.grid.clamp()
        self.grid.adjust_col_viewport()

    def _export(self, ext: str):
        name = self.session.user or "sheet"
        path = os.path.join(self.export_dir, f"{name}{ext}")
        try:
            export_sheet(self.session.sheet, path)
        except (PersistenceError, SheetValidationError) as e:
            self._set_status(f"Export failed: {e}", 4)
            return
        self._set_status(f"Exported {path}", 3)

    # ---------- move mode ----------
    def _start_move(self):
        index = self._current_index()
        if index is None:
            return
        result = self._dispatch("drag_start", index=index)
        if result.ok and self.session.drag.active:
            self.mode = "move"

    def _handle_move_key(self, ch):
        drag = self.session.drag
        if ch in (ord("j"), curses.KEY_DOWN):
            self._dispatch("drag_move_by", delta=self._consume_count())
            return
        if ch in (ord("k"), curses.KEY_UP):
            self._dispatch("drag_move_by", delta=-self._consume_count())
            return
        if ch in (10, 13):
            source_id = drag.source_id
            self._dispatch("drag_drop")
            self.mode = "normal"
            self._focus_row_id(source_id)
            return
        if ch == 27:
            self._dispatch("drag_cancel")
            self.mode = "normal"
            return
        if ord("0") <= ch <= ord("9"):
            self._push_count_digit(ch - ord("0"))

    def placeholder_index(self):
        return self.session.drag.placeholder_index() if self.mode == "move" else None

    # ---------- cell editing ----------
    def _start_cell_insert(self):
        row = self._current_row()
        if row is None:
            self._set_status("No rows", 3)
            return
        col = self.grid.curr_col
        column = self.session.sheet.columns[col]
        base = format_cell_value(column.type, row.cells[col])
        if column.type == "date" and isinstance(row.cells[col], str):
            base = row.cells[col]
        self.cell_buffer = base
        self.cell_initial = base
        self.cell_cursor = len(base)
        self.cell_hscroll = 0
        self._autoscroll_insert()
        self.mode = "cell_insert"

    def _commit_cell(self):
        text = self.cell_buffer.strip()
        index = self._current_index()
        if index is not None and text != self.cell_initial.strip():
            self._dispatch("set_cell", index=index, col=self.grid.curr_col, text=text)
        self.cell_buffer = ""
        self.cell_initial = ""
        self.cell_cursor = 0
        self.cell_hscroll = 0
        self.mode = "normal"

    def _handle_cell_insert_key(self, ch):
        if ch in (27, 10, 13):
            self._commit_cell()
            return

        if ch in (curses.KEY_BACKSPACE, 127, 8):
            if self.cell_cursor > 0:
                self.cell_buffer = (
                    self.cell_buffer[: self.cell_cursor - 1]
                    + self.cell_buffer[self.cell_cursor :]
                )
                self.cell_cursor -= 1
            self._autoscroll_insert()
            return

        if ch == curses.KEY_LEFT:
            self.cell_cursor = max(0, self.cell_cursor - 1)
            self._autoscroll_insert()
            return

        if ch == curses.KEY_RIGHT:
            self.cell_cursor = min(len(self.cell_buffer), self.cell_cursor + 1)
            self._autoscroll_insert()
            return

        if 32 <= ch <= 0x10FFFF:
            try:
                ch_str = chr(ch)
            except ValueError:
                return
            self.cell_buffer = (
                self.cell_buffer[: self.cell_cursor] + ch_str + self.cell_buffer[self.cell_cursor :]
            )
            self.cell_cursor += 1
            self._autoscroll_insert()

    # ---------- leader ----------
    def _handle_leader(self, ch):
        state = self.leader_state
        self.leader_state = None

        if state == "leader":
            if ch in (ord("i"), ord("d"), ord("r"), ord("e")):
                self.leader_state = chr(ch)
                self._show_leader_status(self._leader_seq(self.leader_state))
                return
            if ch == ord("t"):
                self._show_leader_status(",t")
                self._dispatch("cycle_column_type", index=self.grid.curr_col)
                return
            if ch == ord("c"):
                self._show_leader_status(",c")
                self._dispatch("cycle_column_color", index=self.grid.curr_col)
                return
            self._show_leader_status("")
            return

        if state == "i":
            if ch == ord("c"):
                self._start_insert_column(after=False)
                return
            if ch == ord("C"):
                self._start_insert_column(after=True)
                return
            return

        if state == "d":
            if ch == ord("c"):
                self._show_leader_status(",dc")
                self._delete_current_column()
            return

        if state == "r":
            if ch == ord("n"):
                self._start_rename_column()
            return

        if state == "e":
            if ch == ord("j"):
                self._export(".json")
                return
            if ch == ord("x"):
                self._export(".xlsx")
                return

    # ---------- public API ----------
    def handle_key(self, ch):
        if self.mode == "cell_insert":
            self._handle_cell_insert_key(ch)
            return

        if self.mode == "move":
            self._handle_move_key(ch)
            if not self.session.drag.active:
                self.mode = "normal"
            return

        if self.leader_state:
            self._handle_leader(ch)
            self._reset_count()
            return

        if self.pending_op == "d":
            self.pending_op = None
            if ch == ord("d"):
                self._delete_row()
            self._reset_count()
            return

        if ord("1") <= ch <= ord("9") or (ch == ord("0") and self.pending_count is not None):
            self._push_count_digit(ch - ord("0"))
            return

        if ch == ord(","):
            self.leader_state = "leader"
            self._show_leader_status(self._leader_seq("leader"))
            return

        if ch in (ord("j"), curses.KEY_DOWN):
            self.grid.move_down(self._consume_count())
            return
        if ch in (ord("k"), curses.KEY_UP):
            self.grid.move_up(self._consume_count())
            return
        if ch in (ord("h"), curses.KEY_LEFT):
            self.grid.move_left()
            self.grid.adjust_col_viewport()
            self._reset_count()
            return
        if ch in (ord("l"), curses.KEY_RIGHT):
            self.grid.move_right()
            self.grid.adjust_col_viewport()
            self._reset_count()
            return

        self._reset_count()

        if ch == ord(" "):
            self._select()
        elif ch == ord("v"):
            self._select(modifier=True)
        elif ch == ord("V"):
            self._select(shift=True)
        elif ch == 27:
            if self.session.selection:
                self._dispatch("clear_selection")
                self._set_status("Selection cleared", 2)
        elif ch == ord("a"):
            self._add_row()
        elif ch == ord("O"):
            self._insert_row(above=True)
        elif ch == ord("o"):
            self._insert_row(above=False)
        elif ch == ord("s"):
            self._add_sub_row()
        elif ch == ord("y"):
            self._duplicate_row()
        elif ch == ord("d"):
            self.pending_op = "d"
        elif ch == ord("D"):
            self._delete_selected()
        elif ch == ord("u"):
            self._undo()
        elif ch == ord("z"):
            self._toggle_collapsed()
        elif ch == ord("Z"):
            row = self._current_row()
            self._dispatch("collapse_all")
            self._focus_row_id(row.id if row is not None else None)
        elif ch == ord("E"):
            row = self._current_row()
            self._dispatch("expand_all")
            self._focus_row_id(row.id if row is not None else None)
        elif ch == ord("m"):
            self._start_move()
        elif ch == ord("i"):
            self._start_cell_insert()
