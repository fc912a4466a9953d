from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import hierarchy
from sheet_drag import SheetDrag
from sheet_ids import IdGenerator, now_iso
from sheet_model import PersistenceError, Row, Sheet, SheetValidationError
from sheet_ops import SheetOps
from sheet_reader import read_sheet_document
from sheet_selection import SheetSelection
from sheet_undo import DEFAULT_UNDO_LIMIT, SheetUndo


@dataclass
class CommandResult:
    sheet: Sheet
    undo_record: Any = None
    ok: bool = True
    error: Optional[str] = None


class SheetSession:
    """One open sheet with its selection, undo log, drag state and collaborators."""

    def __init__(
        self,
        sheet: Optional[Sheet] = None,
        *,
        user: Optional[str] = None,
        storage=None,
        confirm: Optional[Callable[[str], bool]] = None,
        set_status: Optional[Callable[[str, float], None]] = None,
        clock: Optional[Callable[[], str]] = None,
        ids: Optional[IdGenerator] = None,
        undo_limit: int = DEFAULT_UNDO_LIMIT,
    ):
        self.user = user
        self.storage = storage
        self.ids = ids or IdGenerator()
        self.clock = clock or now_iso
        self.confirm = confirm or (lambda _msg: True)
        self._set_status_cb = set_status
        self.status_msg: Optional[str] = None

        self.selection = SheetSelection()
        self.undo = SheetUndo(undo_limit)
        self.ops = SheetOps(self)
        self.drag = SheetDrag(self)

        if sheet is None:
            sheet = self.new_sheet()
        else:
            self.ids.register(sheet.row_ids())
            sheet.normalize_rows()
        self.sheet = sheet

        self._commands: Dict[str, Callable[..., Any]] = {
            "add_row": self.ops.add_row,
            "add_sub_row": self.ops.add_sub_row,
            "insert_row_at": self.ops.insert_row_at,
            "delete_row": self.ops.delete_row,
            "delete_selected": self.ops.delete_selected,
            "duplicate_row": self.ops.duplicate_row,
            "set_cell": self.ops.set_cell,
            "toggle_collapsed": self.ops.toggle_collapsed,
            "collapse_all": self.ops.collapse_all,
            "expand_all": self.ops.expand_all,
            "insert_column": self.ops.insert_column,
            "delete_column": self.ops.delete_column,
            "rename_column": self.ops.rename_column,
            "set_column_type": self.ops.set_column_type,
            "cycle_column_type": self.ops.cycle_column_type,
            "cycle_column_color": self.ops.cycle_column_color,
            "select": self._select,
            "clear_selection": self._clear_selection,
            "drag_start": self.drag.start,
            "drag_move": self.drag.move,
            "drag_move_by": self.drag.move_by,
            "drag_move_to": self.drag.move_to,
            "drag_drop": self.drag.drop,
            "drag_cancel": self.drag.cancel,
            "undo": self._undo,
        }

    # ---------- collaborators ----------
    def bind_ui(self, confirm=None, set_status=None):
        if confirm is not None:
            self.confirm = confirm
        if set_status is not None:
            self._set_status_cb = set_status

    def set_status(self, msg, seconds=3):
        self.status_msg = msg
        if self._set_status_cb is not None:
            self._set_status_cb(msg, seconds)

    def new_sheet(self) -> Sheet:
        sheet = Sheet()
        cells = sheet.blank_cells()
        cells[0] = self.clock()
        sheet.rows.append(Row(id=self.ids.new_id(), cells=cells))
        return sheet

    # ---------- command dispatch ----------
    def dispatch(self, name: str, /, **kwargs) -> CommandResult:
        handler = self._commands.get(name)
        if handler is None:
            self.set_status(f"Unknown command: {name}", 3)
            return CommandResult(self.sheet, ok=False, error=f"Unknown command: {name}")
        try:
            result = handler(**kwargs)
        except SheetValidationError as e:
            self.set_status(str(e), 3)
            return CommandResult(self.sheet, ok=False, error=str(e))
        record = result if getattr(result, "kind", None) else None
        return CommandResult(self.sheet, undo_record=record)

    def _select(self, row_id, shift=False, modifier=False):
        self.selection.toggle(row_id, self.sheet.row_ids(), shift=shift, modifier=modifier)
        n = len(self.selection)
        self.set_status(f"{n} row{'s' if n != 1 else ''} selected", 2)

    def _clear_selection(self):
        self.selection.clear()

    def _undo(self):
        self.drag.cancel()
        self.undo.undo(self)

    # ---------- projections ----------
    def visible_indices(self):
        return hierarchy.visible_indices(self.sheet.rows)

    def numbers(self):
        return hierarchy.compute_numbers(self.sheet.rows)

    # ---------- import / persistence ----------
    def replace_sheet(self, sheet: Sheet, undoable: bool = True):
        if undoable:
            self.undo.push_snapshot(self.sheet, "replace sheet")
        self.ids.register(sheet.row_ids())
        sheet.normalize_rows()
        self.sheet = sheet
        self.selection.clear()
        self.drag.cancel()

    def import_document(self, doc) -> CommandResult:
        """All-or-nothing import; a malformed document leaves the live sheet alone."""
        try:
            sheet = read_sheet_document(doc, self.ids)
        except SheetValidationError as e:
            self.set_status(f"Import error: {e}", 4)
            return CommandResult(self.sheet, ok=False, error=str(e))
        self.replace_sheet(sheet)
        self.set_status(f"Imported {len(sheet.rows)} rows", 3)
        return CommandResult(self.sheet, undo_record=self.undo.peek())

    def load(self) -> bool:
        if self.storage is None or not self.user:
            self.set_status("No storage configured", 3)
            return False
        try:
            sheet = self.storage.load(self.user)
        except PersistenceError as e:
            self.set_status(f"Load failed: {e}", 4)
            return False
        if sheet is None:
            if not self.sheet.rows:
                self.sheet = self.new_sheet()
            self.set_status(f"New sheet for {self.user}", 3)
            return True
        self.replace_sheet(sheet, undoable=False)
        self.undo.clear()
        self.set_status(f"Loaded {self.user}", 3)
        return True

    def save(self) -> bool:
        if self.storage is None or not self.user:
            self.set_status("No storage configured", 3)
            return False
        try:
            self.storage.save(self.user, self.sheet.copy())
        except PersistenceError as e:
            self.set_status(f"Save failed: {e}", 4)
            return False
        self.set_status("Saved", 3)
        return True
