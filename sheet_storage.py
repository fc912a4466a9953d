import json
import os
import re
import tempfile
from typing import Optional

from sheet_model import PersistenceError, Sheet, SheetValidationError
from sheet_reader import read_sheet_document

_USER_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class SheetStorage:
    """One JSON document per user key under ``data_dir``."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir

    def path_for(self, user: str) -> str:
        if not isinstance(user, str) or not _USER_KEY.match(user) or user in {".", ".."}:
            raise PersistenceError(f"Invalid user key: {user!r}")
        return os.path.join(self.data_dir, f"{user}.json")

    def load(self, user: str) -> Optional[Sheet]:
        path = self.path_for(user)
        if not os.path.exists(path) or os.path.getsize(path) == 0:
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {path}: {e}") from e
        if doc is None:
            return None
        try:
            return read_sheet_document(doc)
        except SheetValidationError as e:
            raise PersistenceError(f"Malformed sheet in {path}: {e}") from e

    def save(self, user: str, sheet: Sheet) -> None:
        path = self.path_for(user)
        payload = sheet.to_dict()
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{user}.", suffix=".tmp", dir=self.data_dir)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e
