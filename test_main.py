import json
import os
import sys
import tempfile
from unittest import mock

import pytest

import main
from sheet_model import Sheet
from sheet_storage import SheetStorage


@pytest.mark.parametrize(
    "args, expected",
    [
        ([], (None, None, None)),
        (["alice"], ("alice", None, None)),
        (["--import", "in.json"], (None, "in.json", None)),
        (["bob", "--export", "out.xlsx"], ("bob", None, "out.xlsx")),
        (["--import", "a.json", "carol", "--export", "b.csv"], ("carol", "a.json", "b.csv")),
    ],
)
def test_parse_args(args, expected):
    assert main._parse_args(args) == expected


@pytest.mark.parametrize(
    "args",
    [
        ["--import"],
        ["--bogus"],
        ["alice", "bob"],
    ],
)
def test_parse_args_rejects_bad_usage(args):
    with pytest.raises(ValueError):
        main._parse_args(args)


def _config(tmp):
    return {
        "undo_limit": 20,
        "data_dir": os.path.join(tmp, "data"),
        "default_user": "alice",
        "export_dir": tmp,
    }


def _run(argv, tmp):
    with mock.patch.object(sys, "argv", ["lighttasksheet"] + argv), mock.patch.object(
        main, "load_config", return_value=_config(tmp)
    ), mock.patch.object(main, "ensure_config_dirs"):
        with pytest.raises(SystemExit) as exc:
            main.main()
    return exc.value.code


def test_headless_import_saves_user_sheet():
    with tempfile.TemporaryDirectory() as tmp:
        src = os.path.join(tmp, "in.json")
        with open(src, "w", encoding="utf-8") as f:
            json.dump({"columns": ["Task"], "rows": [["one"], ["two"]]}, f)

        assert _run(["--import", src], tmp) == 0

        saved = SheetStorage(os.path.join(tmp, "data")).load("alice")
        assert [r.cells for r in saved.rows] == [["one"], ["two"]]


def test_headless_export_writes_file():
    with tempfile.TemporaryDirectory() as tmp:
        SheetStorage(os.path.join(tmp, "data")).save("alice", Sheet())
        out = os.path.join(tmp, "out.json")

        assert _run(["--export", out], tmp) == 0
        with open(out, encoding="utf-8") as f:
            assert json.load(f)["columns"][0]["name"] == "Timestamp"


def test_headless_import_of_malformed_document_fails():
    with tempfile.TemporaryDirectory() as tmp:
        src = os.path.join(tmp, "in.json")
        with open(src, "w", encoding="utf-8") as f:
            json.dump({"columns": ["Task"]}, f)
        assert _run(["--import", src], tmp) == 1


def test_version_flag_prints_version(capsys):
    with mock.patch.object(sys, "argv", ["lighttasksheet", "-v"]):
        main.main()
    assert capsys.readouterr().out.strip() == main.__version__
