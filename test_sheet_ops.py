import unittest

from sheet_ids import IdGenerator
from sheet_model import Column, Row, Sheet, SheetValidationError
from sheet_session import SheetSession

CLOCK = "2024-05-01T09:30:00.000Z"


def _sheet(layout, columns=None):
    rows = []
    head = None
    for row_id, sub in layout:
        cells = [CLOCK, row_id, ""]
        if sub:
            rows.append(Row(id=row_id, cells=cells, sub=True, parent=head))
        else:
            rows.append(Row(id=row_id, cells=cells))
            head = row_id
    return Sheet(columns, rows)


class OpsTestCase(unittest.TestCase):
    def _session(self, layout, confirm=True):
        self.prompts = []
        self.messages = []

        def _confirm(msg):
            self.prompts.append(msg)
            return confirm

        return SheetSession(
            _sheet(layout),
            confirm=_confirm,
            set_status=lambda m, _: self.messages.append(m),
            clock=lambda: CLOCK,
            ids=IdGenerator(seed=7),
        )


class RowOpsTests(OpsTestCase):
    def test_add_row_appends_with_timestamp(self):
        session = self._session([("a", False)])
        result = session.dispatch("add_row")
        self.assertTrue(result.ok)
        self.assertEqual(len(session.sheet.rows), 2)
        new = session.sheet.rows[-1]
        self.assertEqual(new.cells, [CLOCK, "", ""])
        self.assertFalse(new.sub)
        self.assertEqual(result.undo_record.kind, "modify-sheet")

    def test_add_sub_row_goes_right_under_parent_and_expands_it(self):
        session = self._session([("a", False), ("a1", True), ("b", False)])
        session.sheet.rows[0].collapsed = True
        session.dispatch("add_sub_row", parent_index=0)
        rows = session.sheet.rows
        self.assertTrue(rows[1].sub)
        self.assertEqual(rows[1].parent, "a")
        self.assertFalse(rows[0].collapsed)
        self.assertEqual([r.id for r in rows][2:], ["a1", "b"])

    def test_add_sub_row_under_sub_row_is_refused(self):
        session = self._session([("a", False), ("a1", True)])
        result = session.dispatch("add_sub_row", parent_index=1)
        self.assertIsNone(result.undo_record)
        self.assertEqual(len(session.sheet.rows), 2)

    def test_insert_row_inside_sub_block_snaps_to_group_end(self):
        session = self._session([("a", False), ("a1", True), ("b", False)])
        session.dispatch("insert_row_at", index=1)
        rows = session.sheet.rows
        self.assertEqual([r.id for r in rows[:2]], ["a", "a1"])
        self.assertFalse(rows[2].sub)

    def test_delete_parent_cascades_and_one_undo_restores(self):
        session = self._session(
            [("x", False), ("a", False), ("a1", True), ("a2", True), ("a3", True), ("b", False)]
        )
        before = session.sheet.to_dict()

        result = session.dispatch("delete_row", index=1)

        self.assertEqual(session.sheet.row_ids(), ["x", "b"])
        self.assertEqual(len(result.undo_record), 4)
        self.assertEqual(self.prompts, ["Delete this row and all its sub-rows?"])

        session.dispatch("undo")
        self.assertEqual(session.sheet.to_dict(), before)

    def test_delete_sub_row_removes_only_it(self):
        session = self._session([("a", False), ("a1", True), ("a2", True)])
        session.dispatch("delete_row", index=1)
        self.assertEqual(session.sheet.row_ids(), ["a", "a2"])
        self.assertEqual(self.prompts, ["Delete this sub-row?"])

    def test_declined_delete_leaves_sheet_untouched(self):
        session = self._session([("a", False), ("a1", True)], confirm=False)
        before = session.sheet.to_dict()
        result = session.dispatch("delete_row", index=0)
        self.assertIsNone(result.undo_record)
        self.assertEqual(session.sheet.to_dict(), before)
        self.assertEqual(len(session.undo), 0)

    def test_delete_selected_removes_groups_and_restores_order(self):
        session = self._session(
            [("a", False), ("a1", True), ("b", False), ("c", False), ("c1", True), ("d", False)]
        )
        before = session.sheet.to_dict()
        session.dispatch("select", row_id="a")
        session.dispatch("select", row_id="c", modifier=True)
        session.dispatch("select", row_id="d", modifier=True)

        session.dispatch("delete_selected")
        self.assertEqual(session.sheet.row_ids(), ["b"])
        self.assertFalse(session.selection)
        self.assertEqual(self.prompts, ["Delete selected rows and their sub-rows?"])

        session.dispatch("undo")
        self.assertEqual(session.sheet.to_dict(), before)

    def test_delete_selected_with_nothing_selected(self):
        session = self._session([("a", False)])
        result = session.dispatch("delete_selected")
        self.assertIsNone(result.undo_record)
        self.assertIn("No rows selected", self.messages)
        self.assertEqual(self.prompts, [])

    def test_duplicate_parent_copies_whole_group_after_it(self):
        session = self._session([("a", False), ("a1", True), ("a2", True), ("b", False)])
        session.dispatch("duplicate_row", index=0)
        rows = session.sheet.rows
        self.assertEqual(len(rows), 7)
        self.assertEqual([r.id for r in rows[:3]], ["a", "a1", "a2"])
        copies = rows[3:6]
        self.assertEqual(rows[6].id, "b")
        self.assertEqual(len({r.id for r in rows}), 7)
        self.assertFalse(copies[0].sub)
        self.assertEqual([r.parent for r in copies[1:]], [copies[0].id, copies[0].id])
        self.assertEqual([r.cells[1] for r in copies], ["a", "a1", "a2"])

    def test_duplicate_sub_row_inserts_after_it_with_same_parent(self):
        session = self._session([("a", False), ("a1", True), ("a2", True)])
        session.dispatch("duplicate_row", index=1)
        rows = session.sheet.rows
        self.assertEqual(rows[2].cells[1], "a1")
        self.assertEqual(rows[2].parent, "a")
        self.assertNotEqual(rows[2].id, "a1")
        self.assertEqual(rows[3].id, "a2")

    def test_out_of_range_row_is_a_no_op(self):
        session = self._session([("a", False)])
        result = session.dispatch("delete_row", index=5)
        self.assertTrue(result.ok)
        self.assertIsNone(result.undo_record)
        self.assertIn("No such row", self.messages)

    def test_collapse_does_not_touch_undo_log(self):
        session = self._session([("a", False), ("a1", True), ("b", False)])
        session.dispatch("toggle_collapsed", index=0)
        self.assertTrue(session.sheet.rows[0].collapsed)
        session.dispatch("expand_all")
        self.assertFalse(session.sheet.rows[0].collapsed)
        session.dispatch("collapse_all")
        self.assertTrue(all(r.collapsed for r in session.sheet.rows if not r.sub))
        self.assertEqual(len(session.undo), 0)

    def test_only_the_newest_twenty_deletes_can_be_undone(self):
        session = self._session([(f"r{i}", False) for i in range(30)])
        for _ in range(25):
            session.dispatch("delete_row", index=0)
        self.assertEqual(session.sheet.row_ids(), [f"r{i}" for i in range(25, 30)])

        for _ in range(25):
            session.dispatch("undo")

        self.assertEqual(session.sheet.row_ids(), [f"r{i}" for i in range(5, 30)])
        self.assertEqual(len(session.undo), 0)
        self.assertEqual(self.messages[-1], "Nothing to undo")

    def test_deleted_row_id_is_never_reissued(self):
        session = self._session([("a", False), ("b", False)])
        session.dispatch("delete_row", index=0)
        for _ in range(50):
            session.dispatch("add_row")
        self.assertNotIn("a", session.sheet.row_ids())
        self.assertEqual(len(set(session.sheet.row_ids())), 51)


class CellOpsTests(OpsTestCase):
    def test_set_cell_coerces_numbers(self):
        session = self._session([("a", False)])
        session.sheet.columns[2] = Column("Hours", "number")
        session.dispatch("set_cell", index=0, col=2, text="2.5")
        self.assertEqual(session.sheet.rows[0].cells[2], 2.5)

    def test_set_cell_rejects_bad_number(self):
        session = self._session([("a", False)])
        session.sheet.columns[2] = Column("Hours", "number")
        result = session.dispatch("set_cell", index=0, col=2, text="lots")
        self.assertFalse(result.ok)
        self.assertEqual(session.sheet.rows[0].cells[2], "")
        self.assertEqual(len(session.undo), 0)

    def test_unchanged_value_pushes_nothing(self):
        session = self._session([("a", False)])
        result = session.dispatch("set_cell", index=0, col=1, text="a")
        self.assertIsNone(result.undo_record)


class ColumnOpsTests(OpsTestCase):
    def test_insert_column_keeps_rows_aligned(self):
        session = self._session([("a", False), ("a1", True)])
        session.dispatch("insert_column", index=1, name="Owner")
        self.assertEqual([c.name for c in session.sheet.columns][:2], ["Timestamp", "Owner"])
        for row in session.sheet.rows:
            self.assertEqual(len(row.cells), 4)
            self.assertEqual(row.cells[1], "")

    def test_delete_column_keeps_rows_aligned(self):
        session = self._session([("a", False)])
        session.dispatch("delete_column", index=0)
        self.assertEqual(len(session.sheet.columns), 2)
        self.assertEqual(session.sheet.rows[0].cells, ["a", ""])

    def test_cannot_delete_last_column(self):
        session = SheetSession(
            Sheet([Column("Only")], [Row(id="a", cells=["x"])]),
            set_status=lambda m, _: None,
        )
        with self.assertRaises(SheetValidationError):
            session.ops.delete_column(0)
        result = session.dispatch("delete_column", index=0)
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "Cannot delete all columns")
        self.assertEqual(len(session.sheet.columns), 1)

    def test_rename_and_cycle_type_are_undoable(self):
        session = self._session([("a", False)])
        session.dispatch("rename_column", index=1, name="Todo")
        session.dispatch("cycle_column_type", index=1)
        self.assertEqual(session.sheet.columns[1].name, "Todo")
        self.assertEqual(session.sheet.columns[1].type, "date")
        session.dispatch("undo")
        session.dispatch("undo")
        self.assertEqual(session.sheet.columns[1].name, "Task")
        self.assertEqual(session.sheet.columns[1].type, "text")

    def test_unknown_column_type_is_rejected(self):
        session = self._session([("a", False)])
        result = session.dispatch("set_column_type", index=1, column_type="money")
        self.assertFalse(result.ok)


if __name__ == "__main__":
    unittest.main()
