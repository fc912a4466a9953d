from typing import List, Optional, Sequence, Tuple

from hierarchy import (
    flat_to_visible,
    group_span,
    snap_to_group_boundary,
    visible_indices,
    visible_to_flat,
)
from sheet_undo import ModifySheetRecord

IDLE = "idle"
DRAGGING = "dragging"


def reorder_group(rows: list, source_index: int, dest_index: int) -> bool:
    """Move the group headed at ``source_index`` so it starts before flat ``dest_index``.

    ``dest_index`` is measured before the group is removed. Returns False when
    the move would leave the order unchanged.
    """
    start, end = group_span(rows, source_index)
    if start >= end:
        return False
    dest_index = max(0, min(dest_index, len(rows)))
    if start <= dest_index <= end:
        return False
    group = rows[start:end]
    del rows[start:end]
    if dest_index > start:
        dest_index -= len(group)
    dest_index = snap_to_group_boundary(rows, dest_index)
    rows[dest_index:dest_index] = group
    # a snap can land the group back where it started
    return dest_index != start


def target_from_pointer(pointer_y: float, row_bounds: Sequence[Tuple[float, float]]) -> int:
    """First visible row whose vertical midpoint lies below the pointer.

    ``row_bounds`` holds ``(top, height)`` per visible row, in visible order.
    """
    for i, (top, height) in enumerate(row_bounds):
        if pointer_y < top + height / 2:
            return i
    return len(row_bounds)


class SheetDrag:
    """idle -> dragging -> idle; the sheet is only touched on drop."""

    def __init__(self, ctx):
        self.ctx = ctx
        self.state = IDLE
        self.source_id: Optional[str] = None
        self.target: Optional[int] = None

    @property
    def active(self) -> bool:
        return self.state == DRAGGING

    def start(self, index) -> bool:
        rows = self.ctx.sheet.rows
        if self.active or index is None or index < 0 or index >= len(rows):
            return False
        row = rows[index]
        if row.sub:
            self.ctx.set_status("Sub-rows move with their parent", 2)
            return False
        self.state = DRAGGING
        self.source_id = row.id
        self.target = None
        self.ctx.set_status("Moving row (Enter to drop, Esc to cancel)", 3)
        return True

    def move(self, pointer_y, row_bounds):
        if not self.active:
            return None
        self.target = target_from_pointer(pointer_y, row_bounds)
        return self.target

    def move_to(self, visible_index: int):
        if not self.active:
            return None
        count = len(visible_indices(self.ctx.sheet.rows))
        self.target = max(0, min(visible_index, count))
        return self.target

    def _boundaries(self) -> List[int]:
        # visible insertion points that sit between groups
        rows = self.ctx.sheet.rows
        vis = visible_indices(rows)
        points = [pos for pos, i in enumerate(vis) if not rows[i].sub]
        points.append(len(vis))
        return points

    def move_by(self, delta: int):
        """Keyboard drag: step the placeholder one group boundary at a time."""
        if not self.active:
            return None
        points = self._boundaries()
        if self.target is None:
            src = self.ctx.sheet.index_of(self.source_id)
            pos = flat_to_visible(self.ctx.sheet.rows, src)
            current = points.index(pos) if pos in points else 0
            if delta > 0:
                # the boundary right after the source group is a no-op target
                current += 1
        else:
            current = 0
            for i, p in enumerate(points):
                if p <= self.target:
                    current = i
        current = max(0, min(current + delta, len(points) - 1))
        self.target = points[current]
        return self.target

    def placeholder_index(self) -> Optional[int]:
        return self.target if self.active else None

    def drop(self):
        if not self.active:
            return None
        target = self.target
        source_id = self.source_id
        self._reset()
        sheet = self.ctx.sheet
        src = sheet.index_of(source_id) if source_id else -1
        if target is None or src < 0:
            self.ctx.set_status("Move canceled", 2)
            return None
        dest = visible_to_flat(sheet.rows, target)
        before = sheet.copy()
        if not reorder_group(sheet.rows, src, dest):
            self.ctx.set_status("Row not moved", 2)
            return None
        record = ModifySheetRecord(before, "reorder")
        self.ctx.undo.push(record)
        self.ctx.set_status("Row moved", 2)
        return record

    def cancel(self):
        if self.active:
            self.ctx.set_status("Move canceled", 2)
        self._reset()

    def _reset(self):
        self.state = IDLE
        self.source_id = None
        self.target = None
