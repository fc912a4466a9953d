import pytest

import hierarchy
from sheet_model import Row


def _rows(layout):
    """layout: list of (id, is_sub); sub-rows belong to the nearest head above."""
    rows = []
    head = None
    for row_id, sub in layout:
        if sub:
            rows.append(Row(id=row_id, cells=[], sub=True, parent=head))
        else:
            rows.append(Row(id=row_id, cells=[]))
            head = row_id
    return rows


LAYOUT = [("a", False), ("a1", True), ("a2", True), ("b", False), ("b1", True), ("c", False)]


def test_numbers_follow_visible_order():
    rows = _rows(LAYOUT)
    assert hierarchy.compute_numbers(rows) == {
        "a": "1",
        "a1": "1.1",
        "a2": "1.2",
        "b": "2",
        "b1": "2.1",
        "c": "3",
    }


def test_collapsed_parent_hides_its_sub_rows():
    rows = _rows([("a", False), ("a1", True), ("b", False)])
    rows[0].collapsed = True
    assert hierarchy.visible_indices(rows) == [0, 2]
    assert [n for _, n in hierarchy.numbered_visible(rows)] == ["1", "2"]
    assert hierarchy.number_for_index(rows, 1) == ""


def test_numbering_is_deterministic():
    rows = _rows(LAYOUT)
    assert hierarchy.compute_numbers(rows) == hierarchy.compute_numbers(rows)


def test_projection_does_not_mutate_rows():
    rows = _rows(LAYOUT)
    rows[3].collapsed = True
    before = [r.to_dict() for r in rows]
    hierarchy.numbered_visible(rows)
    assert [r.to_dict() for r in rows] == before


@pytest.mark.parametrize(
    "index, expected",
    [(0, (0, 3)), (1, (1, 2)), (3, (3, 5)), (5, (5, 6))],
)
def test_group_span(index, expected):
    assert hierarchy.group_span(_rows(LAYOUT), index) == expected


def test_visible_and_flat_mapping():
    rows = _rows(LAYOUT)
    rows[0].collapsed = True
    assert hierarchy.visible_to_flat(rows, 1) == 3
    assert hierarchy.visible_to_flat(rows, 99) == len(rows)
    assert hierarchy.flat_to_visible(rows, 3) == 1
    assert hierarchy.flat_to_visible(rows, 1) == -1


@pytest.mark.parametrize(
    "index, expected",
    [(0, 0), (1, 3), (2, 3), (3, 3), (4, 5), (6, 6)],
)
def test_snap_to_group_boundary(index, expected):
    assert hierarchy.snap_to_group_boundary(_rows(LAYOUT), index) == expected
