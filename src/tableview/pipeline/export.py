"""
CSV Export of table rows.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Sequence

from tableview.domain.entities import ColumnDefinition
from tableview.domain.paths import get_nested_value


def rows_to_csv(rows: Sequence[Any], columns: Sequence[ColumnDefinition]) -> str:
    """
    Render rows as CSV text.

    The header row holds column titles (field path when untitled); every
    value is quoted, missing values become empty strings.

    Args:
        rows: Rows to export, in order
        columns: Columns to export, in order

    Returns:
        CSV text with "\\n" line endings
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([column.header for column in columns])
    for row in rows:
        values = []
        for column in columns:
            value = get_nested_value(row, column.field)
            values.append("" if value is None else str(value))
        writer.writerow(values)
    return buffer.getvalue()
