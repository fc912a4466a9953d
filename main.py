import sys
import os
import curses
import json

from config_paths import ensure_config_dirs, load_config
from sheet_export import export_sheet
from sheet_model import PersistenceError, SheetValidationError
from sheet_session import SheetSession
from sheet_storage import SheetStorage

# Make ESC snappy
os.environ.setdefault("ESCDELAY", "25")
from orchestrator import Orchestrator

try:
    from _version import __version__
except ImportError:
    __version__ = "0.0.0"


USAGE = (
    "lighttasksheet - terminal task sheet with sub-rows\n\n"
    "Usage:\n"
    "  lighttasksheet [user]\n"
    "  lighttasksheet [user] --import PATH\n"
    "  lighttasksheet [user] --export PATH   (.json, .xlsx or .csv)\n"
    "  lighttasksheet -v\n"
)


def _parse_args(args):
    """Returns (user, import_path, export_path); raises ValueError on bad usage."""
    user = None
    import_path = None
    export_path = None
    i = 0
    while i < len(args):
        arg = args[i]
        if arg in ("--import", "--export"):
            if i + 1 >= len(args):
                raise ValueError(f"{arg} requires a path")
            if arg == "--import":
                import_path = args[i + 1]
            else:
                export_path = args[i + 1]
            i += 2
            continue
        if arg.startswith("-"):
            raise ValueError(f"Unknown option: {arg}")
        if user is not None:
            raise ValueError("Only one user may be given")
        user = arg
        i += 1
    return user, import_path, export_path


def _print_status(msg, seconds=3):
    print(msg)


def _run_import(session, path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Import failed: {e}", file=sys.stderr)
        return 1
    result = session.import_document(doc)
    if not result.ok:
        print(f"Import failed: {result.error}", file=sys.stderr)
        return 1
    return 0 if session.save() else 1


def _run_export(session, path):
    try:
        export_sheet(session.sheet, path)
    except (PersistenceError, SheetValidationError) as e:
        print(f"Export failed: {e}", file=sys.stderr)
        return 1
    print(f"Exported {path}")
    return 0


def main():
    args = sys.argv[1:]

    if "-v" in args or "-V" in args:
        print(__version__)
        return

    if "-h" in args or "--help" in args:
        print(USAGE)
        return

    try:
        user, import_path, export_path = _parse_args(args)
    except ValueError as e:
        print(f"{e}\n\n{USAGE}", file=sys.stderr)
        sys.exit(2)

    config = load_config()
    user = user or config["default_user"]
    try:
        ensure_config_dirs(config["data_dir"])
    except OSError as e:
        print(f"Cannot create data dir: {e}", file=sys.stderr)
        sys.exit(1)

    storage = SheetStorage(config["data_dir"])
    headless = import_path is not None or export_path is not None
    session = SheetSession(
        user=user,
        storage=storage,
        undo_limit=config["undo_limit"],
        set_status=_print_status if headless else None,
    )
    if not session.load():
        print(session.status_msg or "Load failed", file=sys.stderr)
        sys.exit(1)

    if headless:
        rc = 0
        if import_path is not None:
            rc = _run_import(session, import_path)
        if rc == 0 and export_path is not None:
            rc = _run_export(session, export_path)
        sys.exit(rc)

    def curses_main(stdscr):
        Orchestrator(stdscr, session, config).run()

    curses.wrapper(curses_main)


if __name__ == "__main__":
    main()
