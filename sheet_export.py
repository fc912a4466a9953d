import json
import os

import numpy as np
import pandas as pd

from cell_coercion import split_tags
from sheet_model import PersistenceError, Sheet, SheetValidationError
from sheet_reader import read_sheet_document

SUB_PREFIX = "↳"
SUB_TEXT_COLUMN = 1
EXPORT_SHEET_NAME = "Sheet1"
SUPPORTED_EXPORTS = {".json", ".xlsx", ".csv"}


def _unique_labels(names):
    seen = {}
    labels = []
    for i, name in enumerate(names):
        base = str(name) if name else f"Column {i + 1}"
        count = seen.get(base, 0) + 1
        seen[base] = count
        labels.append(base if count == 1 else f"{base} ({count})")
    return labels


def _export_value(column_type, value):
    if column_type == "tags":
        return ", ".join(split_tags(value))
    if value is None:
        return ""
    return value


def sheet_to_frame(sheet: Sheet) -> pd.DataFrame:
    """Tabular view of the sheet as stored; numbering is not included."""
    labels = _unique_labels([c.name for c in sheet.columns])
    records = []
    for row in sheet.rows:
        values = []
        for ci, column in enumerate(sheet.columns):
            value = _export_value(column.type, row.cells[ci] if ci < len(row.cells) else "")
            if row.sub and ci == SUB_TEXT_COLUMN:
                value = f"{SUB_PREFIX} {value}" if value != "" else SUB_PREFIX
            values.append(value)
        records.append(values)
    frame = pd.DataFrame(records, columns=labels)

    for label, column in zip(labels, sheet.columns):
        if column.type != "number" or frame.empty:
            continue
        values = frame[label].replace("", np.nan)
        numeric = pd.to_numeric(values, errors="coerce")
        if numeric.notna().sum() == values.notna().sum():
            frame[label] = numeric
    return frame


def export_json(sheet: Sheet, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(sheet.to_dict(), f, indent=2, ensure_ascii=False)


def _ensure_excel_engine():
    try:
        import openpyxl  # noqa: F401
    except ImportError as e:
        raise PersistenceError(
            "XLSX export requires openpyxl. Install via: pip install openpyxl"
        ) from e


def export_xlsx(sheet: Sheet, path: str) -> None:
    _ensure_excel_engine()
    frame = sheet_to_frame(sheet)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name=EXPORT_SHEET_NAME)


def export_csv(sheet: Sheet, path: str) -> None:
    sheet_to_frame(sheet).to_csv(path, index=False)


def export_sheet(sheet: Sheet, path: str) -> str:
    _, ext = os.path.splitext(path)
    ext = ext.lower()
    if ext not in SUPPORTED_EXPORTS:
        raise SheetValidationError("Unsupported export type (use .json, .xlsx, or .csv)")
    try:
        if ext == ".json":
            export_json(sheet, path)
        elif ext == ".xlsx":
            export_xlsx(sheet, path)
        else:
            export_csv(sheet, path)
    except OSError as e:
        raise PersistenceError(f"Export failed: {e}") from e
    return path


def import_json(path: str, id_gen=None) -> Sheet:
    try:
        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
    except ValueError as e:
        raise SheetValidationError(f"Invalid JSON: {e}") from e
    except OSError as e:
        raise PersistenceError(f"Cannot read {path}: {e}") from e
    return read_sheet_document(doc, id_gen)
