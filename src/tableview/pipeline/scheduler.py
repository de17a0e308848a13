"""
Dirty-Flag Scheduler - Lazy, Memoized Recomputation.

Mutations only mark stages stale; the next read reconciles:
    - index_dirty: rebuild row metadata (implies a filter pass)
    - filter_dirty: run filter -> search -> sort
    - sort_dirty: run sort only

Flags are cleared only after the stages succeed, so a run aborted by a
failing callback is retried on the next read. Inside batch() reads return
the last committed result; leaving the outermost batch reconciles once.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

logger = logging.getLogger(__name__)


class DirtyFlagScheduler:
    """Tracks stale pipeline stages and runs them on demand."""

    def __init__(self) -> None:
        self.index_dirty = False
        self.filter_dirty = False
        self.sort_dirty = False
        self._batch_depth = 0

    def mark_index_dirty(self) -> None:
        self.index_dirty = True
        self.filter_dirty = True

    def mark_filter_dirty(self) -> None:
        self.filter_dirty = True

    def mark_sort_dirty(self) -> None:
        self.sort_dirty = True

    @property
    def is_dirty(self) -> bool:
        return self.index_dirty or self.filter_dirty or self.sort_dirty

    @property
    def in_batch(self) -> bool:
        return self._batch_depth > 0

    def reconcile(
        self,
        run_index: Callable[[], None],
        run_filter: Callable[[], None],
        run_sort: Callable[[], None],
    ) -> bool:
        """
        Run whatever stages are stale.

        Args:
            run_index: Rebuilds row metadata
            run_filter: Runs filter, search and sort
            run_sort: Runs sort only

        Returns:
            True if any stage ran
        """
        if self.in_batch or not self.is_dirty:
            return False

        if self.index_dirty:
            run_index()
            self.index_dirty = False

        if self.filter_dirty:
            run_filter()
        else:
            run_sort()
        self.filter_dirty = False
        self.sort_dirty = False
        return True

    @contextmanager
    def batch(self, on_commit: Callable[[], None]) -> Iterator[None]:
        """
        Suppress reconciling until the outermost batch exits.

        Args:
            on_commit: Called once when the outermost batch exits normally
        """
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0:
            logger.debug("Batch committed")
            on_commit()
