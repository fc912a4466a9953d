import unittest
from types import SimpleNamespace

from sheet_model import Row, Sheet
from sheet_selection import SheetSelection
from sheet_undo import DEFAULT_UNDO_LIMIT, DeleteRowsRecord, SheetUndo


def _session(rows):
    messages = []
    session = SimpleNamespace(
        sheet=Sheet(rows=rows),
        selection=SheetSelection(),
        set_status=lambda m, _=None: messages.append(m),
    )
    session.sheet.normalize_rows()
    return session, messages


class SheetUndoTests(unittest.TestCase):
    def test_log_keeps_only_the_newest_twenty(self):
        undo = SheetUndo()
        sheet = Sheet()
        for i in range(25):
            undo.push_snapshot(sheet, f"edit {i}")
        self.assertEqual(DEFAULT_UNDO_LIMIT, 20)
        self.assertEqual(len(undo), 20)
        self.assertEqual(undo.stack[0].label, "edit 5")
        self.assertEqual(undo.peek().label, "edit 24")

    def test_undo_on_empty_log_reports_nothing(self):
        session, messages = _session([])
        self.assertIsNone(SheetUndo().undo(session))
        self.assertEqual(messages, ["Nothing to undo"])

    def test_snapshot_undo_restores_previous_sheet(self):
        session, messages = _session([Row(id="a", cells=["x"])])
        undo = SheetUndo()
        undo.push_snapshot(session.sheet, "edit")
        session.sheet.rows[0].cells[1] = "changed"
        session.sheet.rows.append(Row(id="b", cells=[]))

        undo.undo(session)

        self.assertEqual(session.sheet.row_ids(), ["a"])
        self.assertEqual(session.sheet.rows[0].cells, ["x", "", ""])
        self.assertEqual(messages[-1], "Undone")

    def test_snapshot_is_isolated_from_later_edits(self):
        session, _ = _session([Row(id="a", cells=["x"])])
        undo = SheetUndo()
        record = undo.push_snapshot(session.sheet)
        session.sheet.rows[0].cells[0] = "y"
        self.assertEqual(record.snapshot.rows[0].cells[0], "x")

    def test_delete_record_reinserts_rows_at_original_positions(self):
        rows = [Row(id=c, cells=[]) for c in "abcdef"]
        session, messages = _session(list(rows))
        removed = [(1, rows[1]), (2, rows[2]), (4, rows[4])]
        del session.sheet.rows[4]
        del session.sheet.rows[1:3]
        undo = SheetUndo()
        undo.push(DeleteRowsRecord(removed))
        undo.push(DeleteRowsRecord([]))

        undo.undo(session)
        self.assertEqual(messages[-1], "Undone (1 more)")
        undo.undo(session)

        self.assertEqual(session.sheet.row_ids(), list("abcdef"))

    def test_limit_is_configurable(self):
        undo = SheetUndo(limit=3)
        for _ in range(5):
            undo.push_snapshot(Sheet())
        self.assertEqual(len(undo), 3)


if __name__ == "__main__":
    unittest.main()
