"""
TableView - Main Controller.

The TableView owns the dataset, the column registry and the view inputs
(filters, query, search options) and exposes the ordered visible rows.
Every mutator only marks pipeline stages stale; the next read runs
index -> filter -> search -> sort as needed and caches the result.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import (
    Any,
    Callable,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

from tableview.config.loader import load_config
from tableview.config.models import ViewConfig
from tableview.domain.entities import (
    ColumnDefinition,
    ColumnState,
    RestorableTableState,
    RowId,
    SelectionMode,
    SortOrder,
    TableState,
    TokenizerCallback,
)
from tableview.domain.paths import assign_fields, get_nested_value
from tableview.domain.value_objects import (
    HighlightDict,
    PipelineRun,
    QueryToken,
    RowHandle,
    StageResult,
)
from tableview.filters.evaluator import FilterEvaluator, Filters, strict_equals
from tableview.indexing.collation import Collator
from tableview.indexing.indexer import RowIdCallback, RowIndexer
from tableview.pipeline.export import rows_to_csv
from tableview.pipeline.row_store import RowStore
from tableview.pipeline.scheduler import DirtyFlagScheduler
from tableview.pipeline.selection import RowSelection
from tableview.registry.column_registry import ColumnNotSortableError, ColumnRegistry
from tableview.resilience.callback_guard import CallbackGuard
from tableview.search.engine import SearchEngine, compile_query
from tableview.search.tokenizer import create_regex_tokenizer
from tableview.sorting.engine import SortEngine
from tableview.sorting.priority import apply_sort, next_sort_order

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TableView:
    """Pull-based controller computing the visible rows of a table."""

    def __init__(
        self,
        columns: Optional[Iterable[ColumnDefinition]] = None,
        rows: Optional[Iterable[Any]] = None,
        *,
        config: Optional[ViewConfig] = None,
        row_id: Optional[RowIdCallback] = None,
        tokenizer: Optional[TokenizerCallback] = None,
        filters: Filters = None,
    ) -> None:
        """
        Initialize the view.

        Args:
            columns: Column definitions; defaults to the columns in config
            rows: Initial dataset
            config: View configuration (search, collation, resilience,
                selection, declarative columns)
            row_id: (row, index) -> id callback
            tokenizer: Table-wide tokenizer; defaults to the configured
                token pattern
            filters: Initial filters
        """
        self.config = config or ViewConfig()

        self._guard = CallbackGuard(self.config.resilience.callback_policy)
        self._registry = ColumnRegistry()
        self._indexer = RowIndexer(
            Collator(self.config.collation.locale, self.config.collation.numeric),
            self._guard,
        )
        self._filter_evaluator = FilterEvaluator(self._registry, self._guard)
        self._search_engine = SearchEngine(scoring=self.config.search.scoring)
        self._sort_engine = SortEngine()
        self._scheduler = DirtyFlagScheduler()
        self._selection = RowSelection(self.config.selection_mode)

        self._tokenization_enabled = self.config.search.tokenize
        self._tokenizer: TokenizerCallback = tokenizer or create_regex_tokenizer(
            self.config.search.token_pattern
        )
        self._row_id = row_id
        self._filters: Filters = filters
        self._query = ""
        self._query_tokens: Optional[List[QueryToken]] = None

        self._rows: List[Any] = []
        self._store = RowStore.empty()
        self._committed_store = self._store
        self._visible_handles: List[RowHandle] = []
        self._visible_rows: List[Any] = []
        self._trail: List[StageResult] = []
        self._last_run: Optional[PipelineRun] = None
        self._data_updated_at: Optional[datetime] = None

        if columns is None:
            columns = [column.to_definition() for column in self.config.columns]
        self.set_columns(columns)
        self._apply_configured_states()
        if rows is not None:
            self.set_rows(rows)

    @classmethod
    def from_config(
        cls,
        config: ViewConfig,
        rows: Optional[Iterable[Any]] = None,
        column_callbacks: Optional[Mapping[str, Mapping[str, Callable]]] = None,
        **kwargs: Any,
    ) -> TableView:
        """
        Create a view from configuration.

        Args:
            config: Validated view configuration
            rows: Initial dataset
            column_callbacks: field -> {"tokenizer"|"filter"|"sort_value": fn}
            **kwargs: row_id, tokenizer, filters

        Returns:
            Configured TableView
        """
        column_callbacks = column_callbacks or {}
        columns = [
            column.to_definition(**column_callbacks.get(column.field, {}))
            for column in config.columns
        ]
        return cls(columns, rows, config=config, **kwargs)

    def _apply_configured_states(self) -> None:
        states = [
            column.to_state()
            for column in self.config.columns
            if column.field in self._registry
        ]
        if states:
            self.set_column_states(states)

    # ------------------------------------------------------------------
    # Dataset and view inputs
    # ------------------------------------------------------------------

    @property
    def rows(self) -> List[Any]:
        """Copy of the full, unfiltered dataset."""
        return list(self._rows)

    def set_rows(self, rows: Iterable[Any]) -> None:
        """Replace the dataset. All row metadata is rebuilt on the next read."""
        self._rows = list(rows)
        self._data_updated_at = datetime.now()
        self._scheduler.mark_index_dirty()

    @property
    def data_updated_at(self) -> Optional[datetime]:
        """When the dataset was last replaced or modified."""
        return self._data_updated_at

    @property
    def columns(self) -> List[ColumnDefinition]:
        return self._registry.columns

    @property
    def display_columns(self) -> List[ColumnDefinition]:
        return self._registry.display_columns

    def set_columns(self, columns: Iterable[ColumnDefinition]) -> None:
        """Replace every column definition."""
        self._registry.replace_all(columns)
        self._scheduler.mark_index_dirty()

    def get_column(self, field: str) -> Optional[ColumnDefinition]:
        return self._registry.get(field)

    @property
    def filters(self) -> Filters:
        return self._filters

    def set_filters(self, filters: Filters) -> None:
        """
        Set the filter definition.

        Args:
            filters: None, a (row, index) -> bool callback, or a mapping of
                field path -> criterion (AND across keys)
        """
        self._filters = filters
        self._scheduler.mark_filter_dirty()

    @property
    def query(self) -> str:
        return self._query

    def set_query(self, query: str) -> None:
        """Set the free-text search query."""
        if query == self._query:
            return
        self._query = query
        self._compile_query()
        self._scheduler.mark_filter_dirty()

    search = set_query

    @property
    def tokenizer(self) -> TokenizerCallback:
        return self._tokenizer

    def set_tokenizer(self, tokenizer: TokenizerCallback) -> None:
        """Replace the table-wide tokenizer used for queries and tokenized columns."""
        if tokenizer is self._tokenizer:
            return
        self._tokenizer = tokenizer
        self._compile_query()
        self._scheduler.mark_index_dirty()

    @property
    def tokenization_enabled(self) -> bool:
        return self._tokenization_enabled

    def set_tokenization_enabled(self, enabled: bool) -> None:
        if enabled == self._tokenization_enabled:
            return
        self._tokenization_enabled = enabled
        self._compile_query()
        self._scheduler.mark_filter_dirty()

    @property
    def scoring_enabled(self) -> bool:
        return self._search_engine.scoring

    def set_scoring_enabled(self, enabled: bool) -> None:
        if enabled == self._search_engine.scoring:
            return
        self._search_engine.scoring = enabled
        self._scheduler.mark_filter_dirty()

    @property
    def row_id_callback(self) -> Optional[RowIdCallback]:
        return self._row_id

    def set_row_id_callback(self, callback: Optional[RowIdCallback]) -> None:
        if callback is self._row_id:
            return
        self._row_id = callback
        self._scheduler.mark_index_dirty()

    def _compile_query(self) -> None:
        self._query_tokens = compile_query(
            self._query, self._tokenizer, self._tokenization_enabled, self._guard
        )

    # ------------------------------------------------------------------
    # Reading the view
    # ------------------------------------------------------------------

    def visible_rows(self) -> List[Any]:
        """
        Filtered, searched and sorted rows.

        Returns:
            A new list on every call; mutating it does not affect the view

        Raises:
            CallbackError: If a user callback fails under the PROPAGATE
                policy; the stale stages are retried on the next read
        """
        self._reconcile()
        return list(self._visible_rows)

    @property
    def last_run(self) -> Optional[PipelineRun]:
        """Audit record of the most recent pipeline run."""
        return self._last_run

    @contextmanager
    def batch(self) -> Iterator[TableView]:
        """
        Group several mutations into one recompute.

        Reads inside the block return the last committed view; leaving the
        outermost block runs the pipeline once.

        Example:
            >>> with view.batch():
            ...     view.set_query("apple")
            ...     view.sort("name", SortOrder.ASC)
        """
        with self._scheduler.batch(self._reconcile):
            yield self

    def _reconcile(self) -> None:
        scheduler = self._scheduler
        if scheduler.in_batch or not scheduler.is_dirty:
            return

        start = time.perf_counter()
        trigger = "filter" if scheduler.filter_dirty else "sort"
        self._trail = []
        self._guard.reset()

        scheduler.reconcile(self._run_index, self._run_filter, self._run_sort)
        self._committed_store = self._store

        duration = time.perf_counter() - start
        self._last_run = PipelineRun(
            trigger=trigger,
            audit_trail=self._trail,
            duration_seconds=duration,
            row_count=len(self._visible_rows),
            callback_failures=self._guard.failure_count,
        )
        if self._guard.failure_count:
            logger.warning(
                f"Pipeline run completed with {self._guard.failure_count} "
                f"isolated callback failures"
            )
        logger.debug(
            f"Pipeline run ({trigger}): {len(self._visible_rows)}/{len(self._store)} "
            f"rows visible ({duration:.4f}s)"
        )

    def _execute_stage(self, name: str, input_count: int, func: Callable[[], T]) -> T:
        stage_start = time.perf_counter()
        result = func()
        output_count = (
            len(result) if isinstance(result, (list, RowStore)) else result.passed_count
        )
        self._trail.append(
            StageResult(
                stage_name=name,
                input_count=input_count,
                output_count=output_count,
                duration_seconds=time.perf_counter() - stage_start,
            )
        )
        return result

    def _run_index(self) -> None:
        self._store = self._execute_stage(
            self._indexer.name,
            len(self._rows),
            lambda: self._indexer.build(
                self._rows, self._registry.columns, self._tokenizer, self._row_id
            ),
        )
        # The cached view now points into a stale arena.
        self._visible_handles = []

    def _run_filter(self) -> None:
        handles = self._store.handles()
        filtered = self._execute_stage(
            self._filter_evaluator.name,
            len(handles),
            lambda: self._filter_evaluator.apply(handles, self._store, self._filters),
        )
        searched = self._execute_stage(
            self._search_engine.name,
            filtered.passed_count,
            lambda: self._search_engine.apply(
                filtered.passed,
                self._store,
                self._registry.searchable_fields,
                self._query_tokens,
            ),
        )
        self._visible_handles = searched.passed
        self._run_sort()

    def _run_sort(self) -> None:
        rank_by_score = self._search_engine.scoring and self._query_tokens is not None
        self._visible_handles = self._execute_stage(
            self._sort_engine.name,
            len(self._visible_handles),
            lambda: self._sort_engine.apply(
                self._visible_handles,
                self._store,
                self._registry.states,
                rank_by_score,
            ),
        )
        self._visible_rows = [self._store.rows[h] for h in self._visible_handles]

    def _current_store(self) -> RowStore:
        """Row store that reflects the current dataset, rebuilding it if needed."""
        if self._scheduler.index_dirty:
            if self._scheduler.in_batch:
                self._run_index()
                self._scheduler.index_dirty = False
            else:
                self._reconcile()
        return self._store

    def _store_holding(self, row: Any) -> RowStore:
        """
        Row store to read a row's metadata from.

        Rows handed out by visible_rows() inside a batch belong to the last
        committed view, so they resolve against that store even after the
        dataset was replaced. Other rows resolve against the current dataset.
        """
        self._reconcile()
        if row in self._committed_store:
            return self._committed_store
        return self._current_store()

    # ------------------------------------------------------------------
    # Per-row accessors
    # ------------------------------------------------------------------

    def get_row_id(self, row: Any) -> RowId:
        """
        Raises:
            UnknownRowError: If the row is neither in the committed view's
                dataset nor in the current one
        """
        return self._store_holding(row).metadata_of(row).id

    def get_row_index(self, row: Any) -> int:
        """Original (unfiltered) index of a row."""
        return self._store_holding(row).metadata_of(row).index

    def get_highlight_ranges(self, row: Any) -> HighlightDict:
        """Per-field [start, end) ranges matched by the current query."""
        ranges = self._store_holding(row).metadata_of(row).highlight_ranges
        return {field: list(field_ranges) for field, field_ranges in ranges.items()}

    def get_search_score(self, row: Any) -> float:
        return self._store_holding(row).metadata_of(row).search_score

    def get_row(self, row_id: RowId) -> Optional[Any]:
        """Row with the given id in the current dataset, or None."""
        return self._current_store().row_for_id(row_id)

    def find_row(self, field: str, value: Any) -> Optional[Any]:
        """First row in the dataset whose field equals value."""
        index = self.find_row_index(field, value)
        return None if index < 0 else self._rows[index]

    def find_row_index(self, field: str, value: Any) -> int:
        """Original index of the first row whose field equals value, or -1."""
        for index, row in enumerate(self._rows):
            if strict_equals(value, get_nested_value(row, field)):
                return index
        return -1

    # ------------------------------------------------------------------
    # Row mutation
    # ------------------------------------------------------------------

    def update_row(self, row_id: RowId, changes: Mapping[str, Any]) -> bool:
        """
        Assign top-level members of a row in place.

        Returns:
            True if a row with this id exists
        """
        row = self.get_row(row_id)
        if row is None:
            return False
        self._modify(row, changes)
        return True

    def update_row_at_index(self, index: int, changes: Mapping[str, Any]) -> bool:
        if not 0 <= index < len(self._rows):
            return False
        self._modify(self._rows[index], changes)
        return True

    def _modify(self, row: Any, changes: Mapping[str, Any]) -> None:
        assign_fields(row, changes)
        self._data_updated_at = datetime.now()
        self._scheduler.mark_index_dirty()

    def delete_rows(self, *row_ids: RowId) -> int:
        """
        Delete rows by id.

        Returns:
            Number of rows deleted
        """
        store = self._current_store()
        handles = [store.handle_for_id(row_id) for row_id in row_ids]
        return self.delete_rows_at_index(*(h for h in handles if h is not None))

    def delete_rows_at_index(self, *indexes: int) -> int:
        """
        Delete rows by original index. Deleted ids leave the selection.

        Returns:
            Number of rows deleted
        """
        store = self._current_store()
        doomed = {i for i in indexes if 0 <= i < len(store)}
        if not doomed:
            return 0
        self._selection.discard(store.metadata[i].id for i in doomed)
        self.set_rows(row for i, row in enumerate(store.rows) if i not in doomed)
        logger.debug(f"Deleted {len(doomed)} rows")
        return len(doomed)

    # ------------------------------------------------------------------
    # Column state
    # ------------------------------------------------------------------

    def get_column_state(self, field: str) -> ColumnState:
        """
        Raises:
            UnknownColumnError: If the field is not registered
        """
        return self._registry.get_state(field)

    @property
    def column_states(self) -> List[ColumnState]:
        return self._registry.states

    def set_column_states(self, states: Iterable[ColumnState]) -> None:
        """
        Replace the state of one or more columns as one update.

        Raises:
            UnknownColumnError: If a field is not registered
            SortPriorityConflict: If two active sorts would share a priority
        """
        changes = self._registry.set_states(states)
        if "sort" in changes:
            self._scheduler.mark_sort_dirty()

    def update_column_state(self, field: str, **changes: Any) -> ColumnState:
        """
        Change members of one column's state.

        Args:
            field: Column field
            **changes: visible, sort (SortState, dict or None), width

        Returns:
            The new state
        """
        current = self._registry.get_state(field)
        state = ColumnState.model_validate(
            {**current.model_dump(), **changes, "field": field}
        )
        self.set_column_states([state])
        return state

    def sort(
        self,
        field: str,
        order: Union[SortOrder, str, None],
        clear: bool = True,
    ) -> None:
        """
        Sort by a column.

        Args:
            field: Column field
            order: "asc", "desc", or None to remove this column's sort
            clear: Reset every other column's sort (exclusive sort)

        Raises:
            UnknownColumnError: If the field is not registered
            ColumnNotSortableError: If the column is not sortable
        """
        column = self._registry.require(field)
        if not column.sortable:
            raise ColumnNotSortableError(f"Column '{field}' is not sortable")
        if order is not None:
            order = SortOrder(order)

        states = {state.field: state for state in self._registry.states}
        changed = apply_sort(states, field, order, len(self._registry), clear)
        if changed:
            self.set_column_states(changed)

    def toggle_sort(self, field: str, multi: bool = False) -> Optional[SortOrder]:
        """
        Advance a column through unsorted -> asc -> desc -> unsorted.

        Args:
            field: Column field
            multi: Keep other columns' sorts (additive multi-column sort)

        Returns:
            The column's new order
        """
        current = self._registry.get_state(field).sort
        order = next_sort_order(current.order if current else None)
        self.sort(field, order, clear=not multi)
        return order

    def clear_sort(self) -> None:
        self.set_column_states(
            state.model_copy(update={"sort": None})
            for state in self._registry.states
            if state.sort is not None
        )

    def toggle_column_visibility(self, field: str, visible: Optional[bool] = None) -> bool:
        """
        Show or hide a column; flips visibility when `visible` is None.

        Returns:
            The new visibility
        """
        state = self._registry.get_state(field)
        new_visibility = (not state.visible) if visible is None else visible
        if new_visibility != state.visible:
            self.update_column_state(field, visible=new_visibility)
        return new_visibility

    def show_column(self, field: str) -> None:
        self.toggle_column_visibility(field, True)

    def hide_column(self, field: str) -> None:
        self.toggle_column_visibility(field, False)

    def move_column(self, field: str, position: Union[int, str]) -> bool:
        """Move a display column to an index, or to the position of another field."""
        return self._registry.move(field, position)

    def resize_column(self, field: str, width: Optional[float]) -> None:
        self.update_column_state(field, width=width)

    def get_column_filter_values(self, field: str, include_none: bool = False) -> Counter:
        """
        Count the distinct values of a field among the visible rows.

        List values contribute each element.
        """
        counts: Counter = Counter()
        for row in self.visible_rows():
            value = get_nested_value(row, field)
            values = value if isinstance(value, (list, tuple)) else [value]
            for element in values:
                if element is not None or include_none:
                    counts[element] += 1
        return counts

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def selection_mode(self) -> Optional[SelectionMode]:
        return self._selection.mode

    def set_selection_mode(self, mode: Union[SelectionMode, str, None]) -> None:
        self._selection.mode = SelectionMode(mode) if mode is not None else None

    @property
    def selected_row_ids(self) -> List[RowId]:
        return self._selection.ids

    def set_selected_row_ids(self, row_ids: Iterable[RowId]) -> None:
        self._selection.replace(row_ids)

    def is_row_selected(self, row: Any) -> bool:
        return self._selection.contains(self.get_row_id(row))

    def toggle_row_selection(self, row: Any, selected: Optional[bool] = None) -> bool:
        """
        Select or deselect a row; flips the selection when `selected` is None.

        Returns:
            The row's new selection state
        """
        row_id = self.get_row_id(row)
        is_selected = self._selection.contains(row_id)
        new_state = (not is_selected) if selected is None else selected
        if new_state == is_selected or self._selection.mode is None:
            return is_selected

        if not new_state:
            self._selection.discard([row_id])
        elif self._selection.mode == SelectionMode.SINGLE:
            self._selection.replace([row_id])
        else:
            self._selection.replace([*self._selection.ids, row_id])
        return new_state

    def select_row(self, row: Any) -> None:
        self.toggle_row_selection(row, True)

    def deselect_row(self, row: Any) -> None:
        self.toggle_row_selection(row, False)

    def select_all(self) -> None:
        """Select every visible row (multi mode only)."""
        if self._selection.mode != SelectionMode.MULTI:
            return
        rows = self.visible_rows()
        store = self._committed_store
        self._selection.replace(store.metadata_of(row).id for row in rows)

    def deselect_all(self) -> None:
        self._selection.replace([])

    # ------------------------------------------------------------------
    # Table state and export
    # ------------------------------------------------------------------

    def get_table_state(self) -> TableState:
        """Copy of the query, selection and column states."""
        return TableState(
            query=self._query,
            selected_row_ids=self.selected_row_ids,
            columns=self.column_states,
        )

    def update_table_state(
        self, state: Union[RestorableTableState, Mapping[str, Any]]
    ) -> None:
        """
        Restore a (partial) table state as one update.

        Column states for fields that are no longer registered are skipped.

        Raises:
            ValidationError: If the state or a restored column state is
                invalid; nothing is applied in that case
        """
        if not isinstance(state, RestorableTableState):
            state = RestorableTableState.model_validate(state)
        columns = self._restored_states(state) if state.columns is not None else None

        with self.batch():
            if state.query is not None:
                self.set_query(state.query)
            if state.selected_row_ids is not None:
                self.set_selected_row_ids(state.selected_row_ids)
            if columns is not None:
                self.set_column_states(columns)

    def _restored_states(self, state: RestorableTableState) -> List[ColumnState]:
        restored = []
        for column in state.columns or []:
            if column.field not in self._registry:
                logger.warning(f"Skipping state for unknown column '{column.field}'")
                continue
            changes = {
                name: getattr(column, name)
                for name in column.model_fields_set
                if name != "field"
            }
            current = self._registry.get_state(column.field)
            restored.append(
                ColumnState.model_validate(
                    {**current.model_dump(), **changes, "field": column.field}
                )
            )
        return restored

    def export_csv(
        self,
        include_all_rows: bool = False,
        include_hidden_columns: bool = False,
        include_internal_columns: bool = False,
    ) -> str:
        """
        Export rows as CSV text.

        Args:
            include_all_rows: Export the full dataset instead of visible rows
            include_hidden_columns: Include hidden columns
            include_internal_columns: Include internal columns

        Returns:
            CSV text
        """
        rows = self.rows if include_all_rows else self.visible_rows()
        columns: Sequence[ColumnDefinition] = (
            self.columns if include_internal_columns else self.display_columns
        )
        if not include_hidden_columns:
            columns = [c for c in columns if self._registry.get_state(c.field).visible]
        return rows_to_csv(rows, columns)

    def __repr__(self) -> str:
        return (
            f"TableView(rows={len(self._rows)}, columns={len(self._registry)}, "
            f"query={self._query!r}, dirty={self._scheduler.is_dirty})"
        )


def create_table_view(
    config_path: Union[str, Path],
    profile: Optional[str] = None,
    rows: Optional[Iterable[Any]] = None,
    base_path: Optional[Path] = None,
    **kwargs: Any,
) -> TableView:
    """
    Load configuration from YAML and create a TableView.

    Args:
        config_path: Path to YAML config file
        profile: Optional profile name
        rows: Initial dataset
        base_path: Base path for resolving relative paths
        **kwargs: column_callbacks, row_id, tokenizer, filters

    Returns:
        Configured TableView
    """
    config = load_config(config_path, profile=profile, base_path=base_path)
    return TableView.from_config(config, rows=rows, **kwargs)
