import copy

from cell_coercion import coerce_cell_value
from hierarchy import group_span, snap_to_group_boundary
from sheet_model import (
    COLUMN_TYPES,
    PALETTE,
    Column,
    Row,
    SheetValidationError,
    pick_color_for_new_column,
)
from sheet_undo import DeleteRowsRecord


class SheetOps:
    """Row and column mutations on a session's sheet.

    Each method returns the undo record it pushed, or None when nothing
    changed. Out-of-range indices are no-ops reported on the status line.
    """

    def __init__(self, ctx):
        self.ctx = ctx

    @property
    def sheet(self):
        return self.ctx.sheet

    # ----- helpers -----
    def _valid_row(self, index) -> bool:
        if index is None or index < 0 or index >= len(self.sheet.rows):
            self.ctx.set_status("No such row", 2)
            return False
        return True

    def _valid_col(self, index) -> bool:
        if index is None or index < 0 or index >= len(self.sheet.columns):
            self.ctx.set_status("No such column", 2)
            return False
        return True

    def _new_row(self, sub=False, parent=None) -> Row:
        cells = self.sheet.blank_cells()
        if cells:
            cells[0] = self.ctx.clock()
        return Row(id=self.ctx.ids.new_id(), cells=cells, sub=sub, parent=parent)

    def _copy_row(self, row: Row, parent=None) -> Row:
        dup = copy.deepcopy(row)
        dup.id = self.ctx.ids.new_id()
        if parent is not None:
            dup.parent = parent
        return dup

    # ----- row operations -----
    def add_row(self):
        record = self.ctx.undo.push_snapshot(self.sheet, "add row")
        row = self._new_row()
        self.sheet.rows.append(row)
        self.ctx.set_status("Row added", 2)
        return record

    def add_sub_row(self, parent_index):
        if not self._valid_row(parent_index):
            return None
        parent = self.sheet.rows[parent_index]
        if parent.sub:
            self.ctx.set_status("Sub-rows cannot have sub-rows", 3)
            return None
        record = self.ctx.undo.push_snapshot(self.sheet, "add sub-row")
        parent.collapsed = False
        self.sheet.rows.insert(parent_index + 1, self._new_row(sub=True, parent=parent.id))
        self.ctx.set_status("Sub-row added", 2)
        return record

    def insert_row_at(self, index):
        rows = self.sheet.rows
        index = snap_to_group_boundary(rows, max(0, min(index, len(rows))))
        record = self.ctx.undo.push_snapshot(self.sheet, "insert row")
        rows.insert(index, self._new_row())
        self.ctx.set_status("Row inserted", 2)
        return record

    def delete_row(self, index):
        if not self._valid_row(index):
            return None
        rows = self.sheet.rows
        row = rows[index]
        if row.sub:
            prompt = "Delete this sub-row?"
        else:
            prompt = "Delete this row and all its sub-rows?"
        if not self.ctx.confirm(prompt):
            self.ctx.set_status("Delete canceled", 2)
            return None
        start, end = group_span(rows, index)
        record = DeleteRowsRecord([(i, rows[i]) for i in range(start, end)])
        del rows[start:end]
        self.ctx.undo.push(record)
        self.ctx.selection.prune(self.sheet.row_ids())
        n = len(record)
        self.ctx.set_status(f"Deleted {n} row{'s' if n != 1 else ''}", 2)
        return record

    def delete_selected(self):
        rows = self.sheet.rows
        live = set(self.sheet.row_ids())
        selected = {rid for rid in self.ctx.selection.get() if rid in live}
        if not selected:
            self.ctx.set_status("No rows selected", 2)
            return None
        if not self.ctx.confirm("Delete selected rows and their sub-rows?"):
            self.ctx.set_status("Delete canceled", 2)
            return None

        items = []
        kept = []
        i = 0
        while i < len(rows):
            if rows[i].id in selected:
                start, end = group_span(rows, i)
                items.extend((j, rows[j]) for j in range(start, end))
                i = end
            else:
                kept.append(rows[i])
                i += 1
        rows[:] = kept

        record = DeleteRowsRecord(items)
        self.ctx.undo.push(record)
        self.ctx.selection.clear()
        n = len(record)
        self.ctx.set_status(f"Deleted {n} row{'s' if n != 1 else ''}", 2)
        return record

    def duplicate_row(self, index):
        if not self._valid_row(index):
            return None
        rows = self.sheet.rows
        row = rows[index]
        record = self.ctx.undo.push_snapshot(self.sheet, "duplicate row")
        if row.sub:
            rows.insert(index + 1, self._copy_row(row))
            self.ctx.set_status("Sub-row duplicated", 2)
            return record

        start, end = group_span(rows, index)
        head = self._copy_row(row)
        group = [head] + [self._copy_row(r, parent=head.id) for r in rows[start + 1 : end]]
        rows[end:end] = group
        self.ctx.set_status(
            f"Duplicated row with {len(group) - 1} sub-row{'s' if len(group) != 2 else ''}",
            2,
        )
        return record

    # ----- cells -----
    def set_cell(self, index, col, text):
        if not self._valid_row(index) or not self._valid_col(col):
            return None
        column = self.sheet.columns[col]
        try:
            value = coerce_cell_value(column.type, text)
        except (ValueError, TypeError) as e:
            raise SheetValidationError(f"Invalid {column.type} value: {text!r}") from e
        row = self.sheet.rows[index]
        if row.cells[col] == value:
            return None
        record = self.ctx.undo.push_snapshot(self.sheet, "edit cell")
        row.cells[col] = value
        self.ctx.set_status("Cell updated", 2)
        return record

    # ----- collapse state -----
    def toggle_collapsed(self, index):
        if not self._valid_row(index):
            return None
        row = self.sheet.rows[index]
        if row.sub:
            return None
        row.collapsed = not row.collapsed
        self.ctx.set_status("Row collapsed" if row.collapsed else "Row expanded", 2)
        return None

    def collapse_all(self):
        self._set_all_collapsed(True)
        self.ctx.set_status("All rows collapsed", 2)

    def expand_all(self):
        self._set_all_collapsed(False)
        self.ctx.set_status("All rows expanded", 2)

    def _set_all_collapsed(self, value: bool):
        for row in self.sheet.rows:
            if not row.sub:
                row.collapsed = value

    # ----- column operations -----
    def insert_column(self, index, name=None, column_type="text"):
        if column_type not in COLUMN_TYPES:
            raise SheetValidationError(f"Unknown column type: {column_type}")
        index = max(0, min(index, len(self.sheet.columns)))
        record = self.ctx.undo.push_snapshot(self.sheet, "insert column")
        column = Column(
            name or f"Column {index + 1}",
            column_type,
            pick_color_for_new_column(self.sheet.columns),
        )
        self.sheet.columns.insert(index, column)
        for row in self.sheet.rows:
            row.cells.insert(index, "")
        self.sheet.normalize_rows()
        self.ctx.set_status(f"Inserted column '{column.name}'", 2)
        return record

    def delete_column(self, index):
        if len(self.sheet.columns) <= 1:
            raise SheetValidationError("Cannot delete all columns")
        if not self._valid_col(index):
            return None
        name = self.sheet.columns[index].name
        if not self.ctx.confirm(f"Delete column '{name}'?"):
            self.ctx.set_status("Delete canceled", 2)
            return None
        record = self.ctx.undo.push_snapshot(self.sheet, "delete column")
        del self.sheet.columns[index]
        for row in self.sheet.rows:
            if index < len(row.cells):
                del row.cells[index]
        self.sheet.normalize_rows()
        self.ctx.set_status(f"Deleted column '{name}'", 3)
        return record

    def rename_column(self, index, name):
        if not self._valid_col(index):
            return None
        name = (name or "").strip()
        if not name:
            raise SheetValidationError("Name required")
        if self.sheet.columns[index].name == name:
            return None
        record = self.ctx.undo.push_snapshot(self.sheet, "rename column")
        self.sheet.columns[index].name = name
        self.ctx.set_status(f"Renamed column to '{name}'", 2)
        return record

    def set_column_type(self, index, column_type):
        if column_type not in COLUMN_TYPES:
            raise SheetValidationError(f"Unknown column type: {column_type}")
        if not self._valid_col(index):
            return None
        if self.sheet.columns[index].type == column_type:
            return None
        record = self.ctx.undo.push_snapshot(self.sheet, "column type")
        self.sheet.columns[index].type = column_type
        self.ctx.set_status(f"Column type set to {column_type}", 2)
        return record

    def cycle_column_type(self, index):
        if not self._valid_col(index):
            return None
        current = self.sheet.columns[index].type
        pos = COLUMN_TYPES.index(current) if current in COLUMN_TYPES else -1
        return self.set_column_type(index, COLUMN_TYPES[(pos + 1) % len(COLUMN_TYPES)])

    def cycle_column_color(self, index):
        if not self._valid_col(index):
            return None
        column = self.sheet.columns[index]
        pos = PALETTE.index(column.color) if column.color in PALETTE else -1
        column.color = PALETTE[(pos + 1) % len(PALETTE)]
        self.ctx.set_status(f"Column color {column.color}", 2)
        return None
