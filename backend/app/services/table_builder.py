"""In-memory draft of a dynamic table while it is being edited.

The builder owns an ordered list of column definitions and an ordered list
of rows, both as plain JSON-compatible dicts in the same shape that is
persisted in ``DynamicTable.columns`` / ``DynamicTable.rows``. Every row
keeps an entry for every column: adding a column backfills a type default,
deleting one strips its key.
"""

from __future__ import annotations

import copy
import uuid
from typing import Any

# Types a user can create from the builder. ``date`` and ``status`` are
# display-only legacy types.
BUILDER_TYPES = ("text", "number", "image", "link", "richtext")

_DEFAULTS: dict[str, Any] = {
    "text": "",
    "link": "",
    "image": "",
    "richtext": "",
    "number": 0,
}


def default_for_type(col_type: str) -> Any:
    return _DEFAULTS.get(col_type, "")


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class TableBuilder:
    def __init__(self, columns: list[dict] | None = None, rows: list[dict] | None = None) -> None:
        self.columns: list[dict] = []
        self.rows: list[dict] = []
        self._dragged_row: str | None = None
        self.load_table(columns or [], rows or [])

    # ── Columns ────────────────────────────────────────────────────

    def add_column(self, name: str, col_type: str, icon: str | None = None) -> str:
        if col_type not in BUILDER_TYPES:
            raise ValueError(f"Column type '{col_type}' cannot be created from the builder")
        column: dict[str, Any] = {"id": _new_id("col"), "name": name, "type": col_type}
        if icon:
            column["icon"] = icon
        self.columns.append(column)

        default = default_for_type(col_type)
        for row in self.rows:
            row["data"][column["id"]] = default
        return column["id"]

    def update_column(self, column_id: str, **fields: Any) -> None:
        fields.pop("id", None)
        for column in self.columns:
            if column["id"] == column_id:
                column.update(fields)
                return

    def delete_column(self, column_id: str) -> None:
        self.columns = [c for c in self.columns if c["id"] != column_id]
        for row in self.rows:
            row["data"].pop(column_id, None)

    # ── Rows ───────────────────────────────────────────────────────

    def add_row(self) -> str:
        row = {
            "id": _new_id("row"),
            "data": {c["id"]: default_for_type(c["type"]) for c in self.columns},
        }
        self.rows.append(row)
        return row["id"]

    def update_row(self, row_id: str, data: dict[str, Any]) -> None:
        for row in self.rows:
            if row["id"] == row_id:
                row["data"].update(data)
                return

    def delete_row(self, row_id: str) -> None:
        self.rows = [r for r in self.rows if r["id"] != row_id]

    def move_row(self, from_index: int, to_index: int) -> None:
        """Splice the row at ``from_index`` out and back in at ``to_index``.

        This is not a swap: rows between the two positions shift by one.
        Moving back requires indices recomputed after the first move.
        """
        if not 0 <= from_index < len(self.rows):
            raise IndexError(f"row index {from_index} out of range")
        row = self.rows.pop(from_index)
        self.rows.insert(to_index, row)

    def index_of_row(self, row_id: str) -> int:
        for i, row in enumerate(self.rows):
            if row["id"] == row_id:
                return i
        return -1

    # ── Drag & drop ────────────────────────────────────────────────

    def drag_start(self, row_id: str) -> None:
        self._dragged_row = row_id

    def drop(self, target_row_id: str) -> bool:
        """Move the dragged row onto the target row's position.

        Returns ``False`` without changes when nothing is being dragged, the
        target is the dragged row itself, or either row no longer exists.
        """
        source_id, self._dragged_row = self._dragged_row, None
        if source_id is None or source_id == target_row_id:
            return False
        from_index = self.index_of_row(source_id)
        to_index = self.index_of_row(target_row_id)
        if from_index == -1 or to_index == -1:
            return False
        self.move_row(from_index, to_index)
        return True

    # ── Whole-table ────────────────────────────────────────────────

    def reset_table(self) -> None:
        self.columns = []
        self.rows = []

    def load_table(self, columns: list[dict], rows: list[dict]) -> None:
        self.columns = copy.deepcopy(list(columns))
        self.rows = copy.deepcopy(list(rows))
        for row in self.rows:
            row.setdefault("data", {})

    def to_payload(self) -> dict[str, list[dict]]:
        return {"columns": copy.deepcopy(self.columns), "rows": copy.deepcopy(self.rows)}
