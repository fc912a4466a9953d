from typing import Iterable, List, Optional


class SheetSelection:
    """Selected row ids plus the anchor used for shift-range selection."""

    def __init__(self):
        self._selected: dict[str, None] = {}
        self.anchor: Optional[str] = None

    def toggle(self, row_id: str, row_ids: List[str], shift: bool = False, modifier: bool = False):
        if shift and self.anchor is not None:
            try:
                a = row_ids.index(self.anchor)
                b = row_ids.index(row_id)
            except ValueError:
                self._selected[row_id] = None
                self.anchor = row_id
                return
            lo, hi = min(a, b), max(a, b)
            for rid in row_ids[lo : hi + 1]:
                self._selected[rid] = None
            return

        if modifier:
            if row_id in self._selected:
                del self._selected[row_id]
            else:
                self._selected[row_id] = None
            self.anchor = row_id
            return

        self._selected = {row_id: None}
        self.anchor = row_id

    def clear(self):
        self._selected = {}
        self.anchor = None

    def is_selected(self, row_id: str) -> bool:
        return row_id in self._selected

    def get(self) -> List[str]:
        return list(self._selected)

    def set_from(self, ids: Iterable[str]):
        self._selected = {rid: None for rid in ids}

    def prune(self, live_ids: Iterable[str]):
        live = set(live_ids)
        self._selected = {rid: None for rid in self._selected if rid in live}
        if self.anchor is not None and self.anchor not in live:
            self.anchor = None

    def __len__(self):
        return len(self._selected)

    def __bool__(self):
        return bool(self._selected)
