import time

from status_bar import render_status


def test_active_message_wins():
    text = render_status({"status_msg": "Saved", "status_until": time.time() + 5}, 30)
    assert text == " Saved".ljust(30)


def test_expired_message_falls_back_to_summary():
    text = render_status(
        {
            "status_msg": "Saved",
            "status_until": time.time() - 1,
            "mode": "move",
            "user": "alice",
            "rows": 5,
            "visible": 3,
            "selected": 2,
            "undo_depth": 4,
            "dirty": True,
        },
        80,
    )
    assert text.startswith(" SHEET:MOVE | alice [+] | 3/5 rows | sel 2 | undo 4")
    assert len(text) == 80


def test_output_is_clipped_to_width():
    assert len(render_status({"user": "x" * 100}, 20)) == 20
