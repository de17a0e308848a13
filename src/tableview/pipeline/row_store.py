"""
Row Store - In-Memory Rows and Their Metadata.

The RowStore holds one dataset together with the metadata built for it.
Metadata lives in an arena aligned with the row list: the row handle is
the row's original index. Rows are located by object identity, so a row
object replaced outside of a full rebuild is no longer found.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from tableview.domain.entities import RowId
from tableview.domain.value_objects import RowHandle, RowMetadata

logger = logging.getLogger(__name__)


class UnknownRowError(KeyError):
    """Raised when a row object is not part of the current dataset."""

    def __str__(self) -> str:
        return "The provided row does not exist in the current dataset"


class RowStore:
    """
    Arena of rows and their metadata.

    Attributes:
        rows: Rows in insertion order
        metadata: Metadata, index-aligned with rows
    """

    def __init__(self, rows: List[Any], metadata: List[RowMetadata]) -> None:
        if len(rows) != len(metadata):
            raise ValueError(
                f"metadata count ({len(metadata)}) does not match rows ({len(rows)})"
            )
        self.rows = rows
        self.metadata = metadata
        self._handle_by_identity: Dict[int, RowHandle] = {
            id(row): handle for handle, row in enumerate(rows)
        }
        self._handle_by_id: Dict[RowId, RowHandle] = {
            meta.id: meta.index for meta in metadata
        }

    @classmethod
    def empty(cls) -> RowStore:
        return cls([], [])

    def handles(self) -> List[RowHandle]:
        """All handles in insertion order."""
        return list(range(len(self.rows)))

    def handle_of(self, row: Any) -> RowHandle:
        """
        Handle of a row object.

        Raises:
            UnknownRowError: If the object is not in this dataset
        """
        handle = self._handle_by_identity.get(id(row))
        if handle is None or self.rows[handle] is not row:
            raise UnknownRowError()
        return handle

    def metadata_of(self, row: Any) -> RowMetadata:
        return self.metadata[self.handle_of(row)]

    def handle_for_id(self, row_id: RowId) -> Optional[RowHandle]:
        return self._handle_by_id.get(row_id)

    def row_for_id(self, row_id: RowId) -> Optional[Any]:
        handle = self._handle_by_id.get(row_id)
        return None if handle is None else self.rows[handle]

    def reset_search(self) -> None:
        for meta in self.metadata:
            meta.reset_search()

    def __contains__(self, row: Any) -> bool:
        handle = self._handle_by_identity.get(id(row))
        return handle is not None and self.rows[handle] is row

    def __len__(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f"RowStore(rows={len(self.rows)}, ids={len(self._handle_by_id)})"
