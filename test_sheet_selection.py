import unittest

from sheet_selection import SheetSelection

IDS = ["a", "b", "c", "d", "e"]


class SheetSelectionTests(unittest.TestCase):
    def test_plain_toggle_selects_only_that_row(self):
        sel = SheetSelection()
        sel.toggle("a", IDS)
        sel.toggle("c", IDS)
        self.assertEqual(sel.get(), ["c"])
        self.assertEqual(sel.anchor, "c")

    def test_shift_selects_flat_range_between_anchor_and_target(self):
        sel = SheetSelection()
        sel.toggle("a", IDS)
        sel.toggle("d", IDS, shift=True)
        self.assertEqual(sorted(sel.get()), ["a", "b", "c", "d"])
        self.assertEqual(sel.anchor, "a")

    def test_shift_range_upward(self):
        sel = SheetSelection()
        sel.toggle("e", IDS)
        sel.toggle("c", IDS, shift=True)
        self.assertEqual(sorted(sel.get()), ["c", "d", "e"])

    def test_shift_without_anchor_behaves_like_plain_toggle(self):
        sel = SheetSelection()
        sel.toggle("b", IDS, shift=True)
        self.assertEqual(sel.get(), ["b"])
        self.assertEqual(sel.anchor, "b")

    def test_modifier_toggles_membership(self):
        sel = SheetSelection()
        sel.toggle("a", IDS)
        sel.toggle("c", IDS, modifier=True)
        self.assertEqual(sorted(sel.get()), ["a", "c"])
        sel.toggle("a", IDS, modifier=True)
        self.assertEqual(sel.get(), ["c"])
        self.assertEqual(sel.anchor, "a")

    def test_shift_with_stale_anchor_adds_row_and_moves_anchor(self):
        sel = SheetSelection()
        sel.toggle("gone", IDS + ["gone"])
        sel.toggle("b", IDS, shift=True)
        self.assertTrue(sel.is_selected("b"))
        self.assertEqual(sel.anchor, "b")

    def test_prune_drops_dead_ids_and_anchor(self):
        sel = SheetSelection()
        sel.toggle("a", IDS)
        sel.toggle("c", IDS, shift=True)
        sel.prune(["b", "c"])
        self.assertEqual(sorted(sel.get()), ["b", "c"])
        self.assertIsNone(sel.anchor)

    def test_set_from_replaces_selection_in_order(self):
        sel = SheetSelection()
        sel.toggle("a", IDS)
        sel.set_from(["d", "b"])
        self.assertEqual(sel.get(), ["d", "b"])
        self.assertTrue(sel.is_selected("b"))
        self.assertFalse(sel.is_selected("a"))

    def test_clear(self):
        sel = SheetSelection()
        sel.toggle("a", IDS)
        sel.clear()
        self.assertFalse(sel)
        self.assertIsNone(sel.anchor)


if __name__ == "__main__":
    unittest.main()
