from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sheet_model import Row, Sheet

DEFAULT_UNDO_LIMIT = 20


@dataclass
class DeleteRowsRecord:
    # (index in the row list before the delete began, removed row), ascending
    items: List[Tuple[int, Row]] = field(default_factory=list)
    kind: str = "delete-rows"

    def __len__(self):
        return len(self.items)


@dataclass
class ModifySheetRecord:
    snapshot: Sheet
    label: str = ""
    kind: str = "modify-sheet"


class SheetUndo:
    """Bounded undo log for a sheet session; the oldest record is dropped first."""

    def __init__(self, limit: int = DEFAULT_UNDO_LIMIT):
        self.limit = max(1, int(limit))
        self.stack: list = []

    # ---------- stack helpers ----------
    def push(self, record):
        if record is None:
            return
        self.stack.append(record)
        if len(self.stack) > self.limit:
            self.stack.pop(0)

    def push_snapshot(self, sheet: Sheet, label: str = "") -> ModifySheetRecord:
        record = ModifySheetRecord(sheet.copy(), label)
        self.push(record)
        return record

    def peek(self):
        return self.stack[-1] if self.stack else None

    def clear(self):
        self.stack.clear()

    def __len__(self):
        return len(self.stack)

    # ---------- undo ----------
    def undo(self, session) -> Optional[object]:
        if not self.stack:
            session.set_status("Nothing to undo", 2)
            return None
        record = self.stack.pop()
        if record.kind == "delete-rows":
            rows = session.sheet.rows
            for index, row in sorted(record.items, key=lambda item: item[0]):
                rows.insert(min(index, len(rows)), row)
            session.sheet.normalize_rows()
        elif record.kind == "modify-sheet":
            session.sheet = record.snapshot
            session.sheet.normalize_rows()
            session.selection.prune(session.sheet.row_ids())
        remaining = len(self.stack)
        session.set_status(f"Undone ({remaining} more)" if remaining else "Undone", 2)
        return record
