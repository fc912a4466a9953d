"""Visible-order and hierarchical numbering projections of the flat row list.

All functions are pure; they never mutate the rows they are given.
"""

from typing import Dict, List, Tuple


def collapsed_parents(rows) -> Dict[str, bool]:
    return {r.id: bool(r.collapsed) for r in rows if not r.sub}


def visible_indices(rows) -> List[int]:
    collapsed = collapsed_parents(rows)
    out = []
    for idx, row in enumerate(rows):
        if row.sub and row.parent and collapsed.get(row.parent, False):
            continue
        out.append(idx)
    return out


def visible_rows(rows) -> list:
    return [rows[i] for i in visible_indices(rows)]


def compute_numbers(rows) -> Dict[str, str]:
    """Map row id -> dotted number for every visible row.

    Hidden sub-rows get no entry, so collapsing a parent shortens the
    numbered sequence instead of leaving gaps.
    """
    numbers: Dict[str, str] = {}
    child_counts: Dict[str, int] = {}
    top = 0
    for row in visible_rows(rows):
        if not row.sub:
            top += 1
            numbers[row.id] = str(top)
            child_counts[row.id] = 0
            continue
        parent_num = numbers.get(row.parent) or str(max(top, 1))
        child_counts[row.parent] = child_counts.get(row.parent, 0) + 1
        numbers[row.id] = f"{parent_num}.{child_counts[row.parent]}"
    return numbers


def numbered_visible(rows) -> List[Tuple[int, str]]:
    """(flat index, number) pairs in visible order."""
    numbers = compute_numbers(rows)
    return [(i, numbers[rows[i].id]) for i in visible_indices(rows)]


def number_for_index(rows, index: int) -> str:
    if index < 0 or index >= len(rows):
        return ""
    return compute_numbers(rows).get(rows[index].id, "")


def visible_to_flat(rows, visible_index: int) -> int:
    mapping = visible_indices(rows)
    if visible_index < 0:
        visible_index = 0
    if visible_index >= len(mapping):
        return len(rows)
    return mapping[visible_index]


def flat_to_visible(rows, index: int) -> int:
    """Visible position of a flat index, or -1 if hidden."""
    try:
        return visible_indices(rows).index(index)
    except ValueError:
        return -1


def group_span(rows, index: int) -> Tuple[int, int]:
    """Flat [start, end) slice of the group headed at ``index``."""
    if index < 0 or index >= len(rows):
        return (index, index)
    head = rows[index]
    end = index + 1
    if head.sub:
        return (index, end)
    while end < len(rows) and rows[end].sub and rows[end].parent == head.id:
        end += 1
    return (index, end)


def group_head_index(rows, index: int) -> int:
    """Flat index of the non-sub row owning ``index``."""
    while index > 0 and rows[index].sub:
        index -= 1
    return index


def snap_to_group_boundary(rows, index: int) -> int:
    """Move an insertion point that falls inside a sub-block to the end of that group."""
    if index <= 0 or index >= len(rows):
        return max(0, min(index, len(rows)))
    if not rows[index].sub:
        return index
    start, end = group_span(rows, group_head_index(rows, index))
    return end
