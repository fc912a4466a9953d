"""Versioned sheet document reader.

Stored sheets come in several shapes. Columns may be bare name strings or
mappings; rows may be bare cell lists, "indexed" mappings (numeric keys for the
cells plus ``_id/_sub/_parent/_collapsed``) or canonical mappings with a
``cells`` list. Each row is tagged with its format first and then passed to
the canonicalizer registered for that tag.
"""

from typing import Any, Callable, Dict, List, Optional

from sheet_ids import IdGenerator
from sheet_model import (
    COLUMN_TYPES,
    DOCUMENT_VERSION,
    PALETTE,
    Column,
    Row,
    Sheet,
    SheetValidationError,
    default_columns,
)

ROW_LIST = "list"
ROW_INDEXED = "indexed"
ROW_CANONICAL = "canonical"

MAX_INDEXED_CELLS = 1000


# ---------- columns ----------
def migrate_column(raw: Any, index: int) -> Column:
    color = PALETTE[index % len(PALETTE)]
    if isinstance(raw, Column):
        return Column(raw.name, raw.type, raw.color)
    if isinstance(raw, str):
        return Column(raw or f"Column {index + 1}", "text", color)
    if isinstance(raw, dict):
        ctype = raw.get("type") or "text"
        if ctype not in COLUMN_TYPES:
            ctype = "text"
        return Column(
            str(raw.get("name") or f"Column {index + 1}"),
            ctype,
            raw.get("color") or color,
        )
    raise SheetValidationError(f"Column {index + 1} has unsupported shape")


def migrate_columns(raw_columns: List[Any]) -> List[Column]:
    return [migrate_column(c, i) for i, c in enumerate(raw_columns)]


# ---------- rows ----------
def detect_row_format(raw: Any) -> str:
    if isinstance(raw, Row):
        return ROW_CANONICAL
    if isinstance(raw, (list, tuple)):
        return ROW_LIST
    if isinstance(raw, dict):
        if "cells" in raw:
            return ROW_CANONICAL
        return ROW_INDEXED
    raise SheetValidationError(f"Unsupported row shape: {type(raw).__name__}")


def _row_from_list(raw, id_gen: IdGenerator) -> Row:
    return Row(id=id_gen.new_id(), cells=list(raw))


def _indexed_cells(raw: dict) -> list:
    cells = []
    for i in range(MAX_INDEXED_CELLS):
        if i in raw:
            cells.append(raw[i])
        elif str(i) in raw:
            cells.append(raw[str(i)])
        else:
            break
    return cells


def _row_from_indexed(raw: dict, id_gen: IdGenerator) -> Row:
    return Row(
        id=str(raw.get("_id") or id_gen.new_id()),
        cells=_indexed_cells(raw),
        sub=bool(raw.get("_sub")),
        parent=raw.get("_parent") or None,
        collapsed=bool(raw.get("_collapsed")),
    )


def _row_from_canonical(raw, id_gen: IdGenerator) -> Row:
    if isinstance(raw, Row):
        raw = raw.to_dict()
    cells = raw.get("cells")
    return Row(
        id=str(raw.get("id") or id_gen.new_id()),
        cells=list(cells) if isinstance(cells, list) else [],
        sub=bool(raw.get("sub")),
        parent=raw.get("parent") or None,
        collapsed=bool(raw.get("collapsed")),
    )


ROW_CANONICALIZERS: Dict[str, Callable[[Any, IdGenerator], Row]] = {
    ROW_LIST: _row_from_list,
    ROW_INDEXED: _row_from_indexed,
    ROW_CANONICAL: _row_from_canonical,
}


def migrate_row(raw: Any, id_gen: IdGenerator) -> Row:
    return ROW_CANONICALIZERS[detect_row_format(raw)](raw, id_gen)


def repair_hierarchy(rows: List[Row], id_gen: IdGenerator) -> List[Row]:
    """Make every sub-row belong to the group it sits in.

    A sub-row with no group above it is promoted to a top-level row; a sub-row
    pointing elsewhere is re-pointed at the group head it sits under. Duplicate
    ids get a fresh id.
    """
    seen = set()
    head: Optional[Row] = None
    for row in rows:
        if row.id in seen:
            row.id = id_gen.new_id()
        seen.add(row.id)
        if not row.sub:
            row.parent = None
            head = row
            continue
        if head is None:
            row.sub = False
            row.parent = None
            head = row
        elif row.parent != head.id:
            row.parent = head.id
    return rows


# ---------- documents ----------
def unwrap_document(doc: Any) -> dict:
    if isinstance(doc, dict) and "columns" not in doc and isinstance(doc.get("sheet"), dict):
        doc = doc["sheet"]
    if not isinstance(doc, dict):
        raise SheetValidationError("Sheet document must be an object")
    missing = [k for k in ("columns", "rows") if k not in doc]
    if missing:
        raise SheetValidationError(f"Sheet document missing: {', '.join(missing)}")
    if not isinstance(doc["columns"], list) or not isinstance(doc["rows"], list):
        raise SheetValidationError("Sheet columns and rows must be lists")
    version = doc.get("version", DOCUMENT_VERSION)
    if not isinstance(version, int) or version > DOCUMENT_VERSION:
        raise SheetValidationError(f"Unsupported sheet version: {version!r}")
    return doc


def read_sheet_document(doc: Any, id_gen: Optional[IdGenerator] = None) -> Sheet:
    """Validate and canonicalize a stored document into a fresh Sheet.

    Nothing outside the returned Sheet is touched, so a rejected document
    never leaves a half-imported state behind.
    """
    id_gen = id_gen or IdGenerator()
    doc = unwrap_document(doc)
    columns = migrate_columns(doc["columns"]) or default_columns()
    id_gen.register(
        r.get("id") or r.get("_id")
        for r in doc["rows"]
        if isinstance(r, dict)
    )
    rows = [migrate_row(r, id_gen) for r in doc["rows"]]
    sheet = Sheet(columns, repair_hierarchy(rows, id_gen))
    sheet.normalize_rows()
    return sheet


def canonicalize(sheet: Sheet, id_gen: Optional[IdGenerator] = None) -> Sheet:
    return read_sheet_document(sheet.to_dict(), id_gen)
