import copy
from dataclasses import dataclass, field
from typing import Any, List, Optional

PALETTE = [
    "#ffd8a8",
    "#c6f6d5",
    "#dbeafe",
    "#fde68a",
    "#fbcfe8",
    "#e6e6fa",
    "#d1fae5",
    "#fce7f3",
]
COLUMN_TYPES = ("text", "date", "number", "tags")
DOCUMENT_VERSION = 1


class SheetValidationError(ValueError):
    """Rejected input or operation; the sheet is left untouched."""


class PersistenceError(RuntimeError):
    """Load/save through the storage collaborator failed."""


@dataclass
class Column:
    name: str
    type: str = "text"
    color: str = PALETTE[0]

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.type, "color": self.color}


@dataclass
class Row:
    id: str
    cells: List[Any] = field(default_factory=list)
    sub: bool = False
    parent: Optional[str] = None
    collapsed: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cells": copy.deepcopy(self.cells),
            "sub": self.sub,
            "parent": self.parent,
            "collapsed": self.collapsed,
        }


def default_columns() -> List[Column]:
    return [
        Column("Timestamp", "date", PALETTE[2]),
        Column("Task", "text", PALETTE[0]),
        Column("Notes", "text", PALETTE[1]),
    ]


class Sheet:
    """Ordered columns plus the flat ordered row list; the persisted unit."""

    def __init__(self, columns=None, rows=None):
        self.columns: List[Column] = list(columns) if columns else default_columns()
        self.rows: List[Row] = list(rows or [])

    def normalize_rows(self):
        width = len(self.columns)
        for row in self.rows:
            if len(row.cells) < width:
                row.cells.extend([""] * (width - len(row.cells)))
            elif len(row.cells) > width:
                del row.cells[width:]

    def index_of(self, row_id: str) -> int:
        for idx, row in enumerate(self.rows):
            if row.id == row_id:
                return idx
        return -1

    def row_ids(self) -> List[str]:
        return [r.id for r in self.rows]

    def blank_cells(self) -> list:
        return [""] * len(self.columns)

    def copy(self) -> "Sheet":
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "version": DOCUMENT_VERSION,
            "columns": [c.to_dict() for c in self.columns],
            "rows": [r.to_dict() for r in self.rows],
        }

    def __len__(self):
        return len(self.rows)

    def __repr__(self):
        return f"Sheet(columns={len(self.columns)}, rows={len(self.rows)})"


def pick_color_for_new_column(columns: List[Column]) -> str:
    used = {c.color for c in columns}
    for token in PALETTE:
        if token not in used:
            return token
    return PALETTE[len(columns) % len(PALETTE)]
