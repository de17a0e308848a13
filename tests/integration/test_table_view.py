"""
Integration Tests for TableView.

Tests cover:
    - Full index -> filter -> search -> sort workflow
    - Lazy recomputation, batching and the run audit trail
    - Row, column-state, selection and table-state APIs
    - CSV export and configuration-driven construction
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Any, Dict, List

import pytest
from pydantic import ValidationError

from tableview.config.models import CallbackPolicy, ResilienceConfig, SearchConfig, ViewConfig
from tableview.domain.entities import (
    ColumnDefinition,
    ColumnState,
    SelectionMode,
    SortOrder,
    SortState,
    TableState,
)
from tableview.pipeline.row_store import UnknownRowError
from tableview.pipeline.table_view import TableView, create_table_view
from tableview.registry.column_registry import ColumnNotSortableError, UnknownColumnError
from tableview.resilience.callback_guard import CallbackError


def names(rows: List[Dict[str, Any]]) -> List[str]:
    return [row["name"] for row in rows]


class TestVisibleRows:
    """Test cases for the computed view."""

    def test_scored_search_orders_by_relevance(self) -> None:
        """
        SCENARIO: Query "apple" over Apple Pie / Apple / Pineapple with scoring
        EXPECTED: Exact before prefix before substring
        """
        # Arrange
        config = ViewConfig(search=SearchConfig(tokenize=True, scoring=True))
        columns = [ColumnDefinition(field="name", searchable=True, tokenize=True)]
        rows = [{"name": "Apple Pie"}, {"name": "Apple"}, {"name": "Pineapple"}]
        view = TableView(columns, rows, config=config)

        # Act
        view.set_query("apple")
        visible = view.visible_rows()

        # Assert
        assert names(visible) == ["Apple", "Apple Pie", "Pineapple"]
        scores = [view.get_search_score(row) for row in visible]
        assert scores[0] > scores[1] > scores[2] > 0

    def test_binary_search_keeps_insertion_order(self) -> None:
        columns = [ColumnDefinition(field="name", searchable=True)]
        rows = [{"name": "Apple Pie"}, {"name": "Kiwi"}, {"name": "Pineapple"}]
        view = TableView(columns, rows)

        view.set_query("APPLE")

        assert names(view.visible_rows()) == ["Apple Pie", "Pineapple"]
        assert view.get_highlight_ranges(rows[2]) == {"name": [(4, 9)]}

    def test_empty_quoted_run_is_not_a_wildcard(self) -> None:
        """
        SCENARIO: Tokenized query 'zzz ""' over rows containing neither part
        EXPECTED: No rows visible
        """
        # Arrange
        columns = [ColumnDefinition(field="name", searchable=True)]
        rows = [{"id": 1, "name": "Apple"}, {"id": 2, "name": "Pear"}]
        view = TableView(columns, rows, config=ViewConfig(search=SearchConfig(tokenize=True)))

        # Act
        view.set_query('zzz ""')

        # Assert
        assert view.visible_rows() == []

    def test_or_filter(self, view: TableView) -> None:
        """
        SCENARIO: filter {status: ["active", "pending"]}
        EXPECTED: Rows with either status kept, others dropped
        """
        view.set_filters({"status": ["active", "pending"]})

        assert names(view.visible_rows()) == ["Carol", "Bob", "Dave", "Émile"]

    def test_age_then_name(self, view: TableView) -> None:
        """
        SCENARIO: Sort name asc, then add age asc (age gets the smaller priority)
        EXPECTED: Primarily by age, ties broken by name
        """
        view.sort("name", "asc")
        view.sort("age", SortOrder.ASC, clear=False)

        assert view.get_column_state("age").sort.priority < view.get_column_state("name").sort.priority
        assert names(view.visible_rows()) == ["Dave", "alice", "Bob", "Carol", "Émile"]

    def test_empty_query_with_filter(self, view: TableView) -> None:
        """
        SCENARIO: Filter set, query empty
        EXPECTED: Exactly the filter-passing rows, all with score 0
        """
        view.set_filters({"address.city": re.compile("^berlin$", re.IGNORECASE)})

        visible = view.visible_rows()

        assert names(visible) == ["Carol", "Bob"]
        assert all(view.get_search_score(row) == 0 for row in visible)
        assert all(view.get_highlight_ranges(row) == {} for row in visible)

    def test_none_ids_fall_back_to_indexes(self, caplog) -> None:
        """
        SCENARIO: Row-id callback returns None for both rows
        EXPECTED: Ids equal to indexes, one warning
        """
        caplog.set_level(logging.WARNING, logger="tableview.indexing.indexer")
        rows = [{"name": "a"}, {"name": "b"}]
        view = TableView([ColumnDefinition(field="name")], rows, row_id=lambda row, i: None)

        ids = [view.get_row_id(row) for row in rows]

        assert ids == [0, 1]
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1

    def test_output_is_filtered_subset(self, view: TableView, people) -> None:
        view.set_filters(lambda row, index: row["age"] is not None and row["age"] >= 30)
        view.set_query("b")

        visible = view.visible_rows()

        assert names(visible) == ["Carol", "Bob"]
        assert all(any(row is p for p in people) for row in visible)

    def test_reads_are_idempotent_copies(self, view: TableView) -> None:
        first = view.visible_rows()
        first.clear()

        second = view.visible_rows()

        assert len(second) == 5
        assert second == view.visible_rows()
        assert second is not view.visible_rows()

    def test_highlights_reset_between_queries(self, view: TableView, people) -> None:
        view.set_query("car")
        assert view.get_highlight_ranges(people[0]) == {"name": [(0, 3)]}

        view.set_query("bob")

        assert view.get_highlight_ranges(people[0]) == {}
        assert view.get_highlight_ranges(people[2]) == {"name": [(0, 3)]}

    def test_scoring_toggle_reorders(self, view: TableView) -> None:
        """
        SCENARIO: Query "berlin" with and without scoring, name sort active
        EXPECTED: Same rows; with equal scores the name sort decides
        """
        view.sort("name", SortOrder.DESC)
        view.set_query("berlin")
        assert names(view.visible_rows()) == ["Carol", "Bob"]

        view.set_scoring_enabled(True)

        assert names(view.visible_rows()) == ["Carol", "Bob"]
        assert view.get_search_score(view.visible_rows()[0]) == 600


class TestPipelineRuns:
    """Test cases for lazy recomputation and the audit trail."""

    def test_full_run_audit_trail(self, view: TableView) -> None:
        view.set_filters({"status": "active"})
        view.visible_rows()

        run = view.last_run
        assert run.trigger == "filter"
        assert [s.stage_name for s in run.audit_trail] == ["index", "filter", "search", "sort"]
        assert run.audit_trail[1].input_count == 5
        assert run.audit_trail[1].output_count == 3
        assert run.row_count == 3

    def test_sort_change_runs_sort_only(self, view: TableView) -> None:
        view.visible_rows()

        view.toggle_sort("age")
        view.visible_rows()

        assert view.last_run.trigger == "sort"
        assert [s.stage_name for s in view.last_run.audit_trail] == ["sort"]

    def test_clean_read_does_not_rerun(self, view: TableView) -> None:
        view.visible_rows()
        run = view.last_run

        view.visible_rows()

        assert view.last_run is run

    def test_batch_commits_once(self, view: TableView) -> None:
        """
        SCENARIO: Query and sort changed inside a batch
        EXPECTED: Reads inside return the committed view; one run on exit
        """
        view.visible_rows()
        before = view.last_run

        with view.batch():
            view.set_query("a")
            view.sort("name", "desc")
            assert len(view.visible_rows()) == 5
            assert view.last_run is before

        assert view.last_run is not before
        assert names(view.visible_rows()) == ["Dave", "Carol", "alice"]

    def test_committed_rows_resolve_after_set_rows_in_batch(
        self, view: TableView, people
    ) -> None:
        """
        SCENARIO: Dataset replaced inside a batch, then rows returned by
            visible_rows() used with the per-row API in the same batch
        EXPECTED: Committed rows resolve against the committed view, new
            rows against the new dataset; the replacement shows after the batch
        """
        # Arrange
        view.set_selection_mode("multi")
        view.visible_rows()
        replacement = [{"id": 10, "name": "Zoe"}]

        with view.batch():
            view.set_rows(replacement)

            # Act
            rows = view.visible_rows()
            ids = [view.get_row_id(row) for row in rows]
            index = view.get_row_index(rows[2])
            score = view.get_search_score(rows[0])
            new_row = view.get_row(10)
            view.select_all()

            # Assert
            assert ids == [1, 2, 3, 4, 5]
            assert index == 2
            assert score == 0
            assert view.get_highlight_ranges(rows[0]) == {}
            assert new_row is replacement[0]
            assert view.get_row_id(replacement[0]) == 10
            assert view.get_row_id(rows[4]) == 5
            assert view.is_row_selected(rows[0])
            assert view.selected_row_ids == [1, 2, 3, 4, 5]

        assert names(view.visible_rows()) == ["Zoe"]
        with pytest.raises(UnknownRowError):
            view.get_row_id(people[0])

    def test_failing_callback_propagates_and_retries(self, view: TableView) -> None:
        """
        SCENARIO: Filter callback fails once under PROPAGATE
        EXPECTED: CallbackError; the next read succeeds
        """
        calls = {"count": 0}

        def flaky(row, index):
            calls["count"] += 1
            if calls["count"] == 1:
                raise RuntimeError("transient")
            return True

        view.set_filters(flaky)

        with pytest.raises(CallbackError):
            view.visible_rows()
        assert len(view.visible_rows()) == 5

    def test_failing_callback_isolated(self, people_columns, people) -> None:
        config = ViewConfig(resilience=ResilienceConfig(callback_policy=CallbackPolicy.ISOLATE))
        view = TableView(people_columns, people, config=config)

        view.set_filters(lambda row, index: row["address"]["city"] != "Paris")

        assert names(view.visible_rows()) == ["Carol", "Bob", "Émile"]
        assert view.last_run.callback_failures == 1


class TestRowApi:
    """Test cases for row lookup and mutation."""

    def test_lookup(self, view: TableView, people) -> None:
        assert view.get_row(3) is people[2]
        assert view.get_row(99) is None
        assert view.get_row_index(people[4]) == 4
        assert view.find_row("name", "Bob") is people[2]
        assert view.find_row_index("address.city", "Lyon") == 4
        assert view.find_row_index("age", True) == -1

    def test_foreign_row(self, view: TableView) -> None:
        with pytest.raises(UnknownRowError):
            view.get_row_id({"id": 1})

    def test_update_row_reindexes(self, view: TableView, people) -> None:
        """
        SCENARIO: Rename a row while sorted by name
        EXPECTED: New position and new rank
        """
        view.sort("name", "asc")
        view.visible_rows()

        assert view.update_row(2, {"name": "Zed"}) is True

        assert names(view.visible_rows())[-1] == "Zed"
        assert people[1]["name"] == "Zed"
        assert view.update_row(99, {"name": "x"}) is False

    def test_update_row_at_index(self, view: TableView) -> None:
        assert view.update_row_at_index(0, {"status": "inactive"}) is True
        assert view.update_row_at_index(7, {"status": "x"}) is False

        view.set_filters({"status": "inactive"})

        assert names(view.visible_rows()) == ["Carol", "alice"]

    def test_delete_rows_updates_selection(self, view: TableView) -> None:
        """
        SCENARIO: Delete two selected rows by id
        EXPECTED: Rows gone, ids removed from the selection
        """
        view.set_selection_mode("multi")
        view.set_selected_row_ids([2, 3, 4])

        deleted = view.delete_rows(2, 4, 99)

        assert deleted == 2
        assert names(view.visible_rows()) == ["Carol", "Bob", "Émile"]
        assert view.selected_row_ids == [3]

    def test_delete_rows_at_index(self, view: TableView) -> None:
        assert view.delete_rows_at_index(0, 0, 10) == 1
        assert len(view.rows) == 4
        assert view.delete_rows_at_index() == 0


class TestColumnApi:
    """Test cases for column state operations."""

    def test_sort_unknown_column(self, view: TableView) -> None:
        with pytest.raises(UnknownColumnError):
            view.sort("missing", "asc")

    def test_sort_not_sortable(self, view: TableView) -> None:
        with pytest.raises(ColumnNotSortableError):
            view.sort("address.city", "asc")

    def test_toggle_sort_cycle(self, view: TableView) -> None:
        assert view.toggle_sort("age") == SortOrder.ASC
        assert view.toggle_sort("age") == SortOrder.DESC
        assert names(view.visible_rows())[0] == "Émile"
        assert view.toggle_sort("age") is None
        assert names(view.visible_rows())[0] == "Carol"

    def test_exclusive_and_multi_toggle(self, view: TableView) -> None:
        view.toggle_sort("age")
        view.toggle_sort("name", multi=True)
        assert view.get_column_state("age").sort is not None

        view.toggle_sort("status")

        sorted_fields = [s.field for s in view.column_states if s.sort is not None]
        assert sorted_fields == ["status"]

    def test_clear_sort(self, view: TableView) -> None:
        view.sort("age", "desc")
        view.clear_sort()

        assert names(view.visible_rows()) == ["Carol", "alice", "Bob", "Dave", "Émile"]

    def test_hidden_column_sort_ignored(self, view: TableView) -> None:
        view.sort("age", "desc")

        view.hide_column("age")

        assert names(view.visible_rows())[0] == "Carol"
        assert view.toggle_column_visibility("age") is True
        assert names(view.visible_rows())[0] == "Émile"

    def test_update_column_state(self, view: TableView) -> None:
        state = view.update_column_state("status", sort={"order": "desc", "priority": 1}, width=80)

        assert state == ColumnState(
            field="status", sort=SortState(order=SortOrder.DESC, priority=1), width=80
        )
        assert names(view.visible_rows())[0] == "Dave"

    def test_move_and_resize(self, view: TableView) -> None:
        assert view.move_column("address.city", "name") is True
        view.resize_column("name", 200)

        assert [c.field for c in view.display_columns] == ["address.city", "name", "age", "status"]
        assert view.get_column_state("name").width == 200

    def test_column_filter_values(self, view: TableView) -> None:
        """
        SCENARIO: Distinct values of scalar and list fields
        EXPECTED: Counts over visible rows, list elements counted singly
        """
        assert view.get_column_filter_values("status") == {"active": 3, "inactive": 1, "pending": 1}
        assert view.get_column_filter_values("tags") == {"ops": 3, "dev": 2, "admin": 1}

        view.set_filters({"status": "active"})

        assert view.get_column_filter_values("age") == {30: 2, 41: 1}
        assert view.get_column_filter_values("address.city", include_none=True) == {
            "Berlin": 1, "berlin": 1, "Lyon": 1,
        }

    def test_set_columns_reindexes(self, view: TableView) -> None:
        view.set_columns([ColumnDefinition(field="status", sortable=True)])

        view.sort("status", "asc")

        assert names(view.visible_rows()) == ["Carol", "Bob", "Émile", "alice", "Dave"]

    def test_decimal_and_nan_sort_values(self) -> None:
        """
        SCENARIO: Sort a column of Decimal prices that also holds a NaN
        EXPECTED: Numeric order with NaN first; descending puts NaN last
        """
        # Arrange
        columns = [ColumnDefinition(field="price", sortable=True)]
        rows = [
            {"id": 1, "price": Decimal("10")},
            {"id": 2, "price": Decimal("9.5")},
            {"id": 3, "price": float("nan")},
            {"id": 4, "price": Decimal("-1")},
        ]
        view = TableView(columns, rows)

        # Act
        view.sort("price", "asc")
        ascending = [row["id"] for row in view.visible_rows()]
        view.sort("price", "desc")
        descending = [row["id"] for row in view.visible_rows()]

        # Assert
        assert ascending == [3, 4, 2, 1]
        assert descending == [1, 2, 4, 3]


class TestSelection:
    """Test cases for row selection."""

    def test_disabled_by_default(self, view: TableView, people) -> None:
        assert view.toggle_row_selection(people[0]) is False
        assert view.selected_row_ids == []

    def test_multi_selection(self, view: TableView, people) -> None:
        view.set_selection_mode(SelectionMode.MULTI)

        view.select_row(people[0])
        view.toggle_row_selection(people[2])

        assert view.selected_row_ids == [1, 3]
        assert view.is_row_selected(people[2])
        assert view.toggle_row_selection(people[2]) is False
        assert view.selected_row_ids == [1]

    def test_single_selection_replaces(self, view: TableView, people) -> None:
        view.set_selection_mode("single")

        view.select_row(people[0])
        view.select_row(people[1])

        assert view.selected_row_ids == [2]

    def test_select_all_visible(self, view: TableView) -> None:
        view.set_selection_mode("multi")
        view.set_filters({"status": "active"})

        view.select_all()

        assert view.selected_row_ids == [1, 3, 5]
        view.deselect_all()
        assert view.selected_row_ids == []

    def test_selection_survives_filtering(self, view: TableView, people) -> None:
        view.set_selection_mode("multi")
        view.select_row(people[1])

        view.set_filters({"status": "active"})
        view.visible_rows()

        assert view.selected_row_ids == [2]


class TestTableState:
    """Test cases for snapshot and restore."""

    def test_round_trip(self, view: TableView) -> None:
        """
        SCENARIO: Snapshot a configured view and restore it into a fresh one
        EXPECTED: Same visible rows
        """
        # Arrange
        view.set_selection_mode("multi")
        view.set_query("e")
        view.sort("age", "desc")
        view.hide_column("status")
        view.set_selected_row_ids([5])
        snapshot = view.get_table_state()
        fresh = TableView(view.columns, view.rows)
        fresh.set_selection_mode("multi")

        # Act
        fresh.update_table_state(snapshot.model_dump())

        # Assert
        assert isinstance(snapshot, TableState)
        assert names(fresh.visible_rows()) == names(view.visible_rows())
        assert fresh.selected_row_ids == [5]
        assert fresh.get_column_state("status").visible is False

    def test_partial_restore(self, view: TableView, caplog) -> None:
        """
        SCENARIO: Restore only visibility of one column plus an unknown column
        EXPECTED: Other members kept, unknown column skipped with a warning
        """
        view.resize_column("age", 60)

        view.update_table_state({
            "columns": [{"field": "age", "visible": False}, {"field": "gone", "visible": False}],
        })

        state = view.get_column_state("age")
        assert state.visible is False
        assert state.width == 60
        assert view.query == ""
        assert any("gone" in r.getMessage() for r in caplog.records)

    def test_explicit_null_sort_clears(self, view: TableView) -> None:
        view.sort("age", "asc")

        view.update_table_state({"columns": [{"field": "age", "sort": None}]})

        assert view.get_column_state("age").sort is None

    def test_invalid_column_state_rejected_without_partial_apply(
        self, view: TableView
    ) -> None:
        """
        SCENARIO: Restore with an explicit null visibility next to a new query
        EXPECTED: ValidationError; neither the query nor any column state changes
        """
        # Act
        with pytest.raises(ValidationError):
            view.update_table_state({
                "query": "bob",
                "columns": [{"field": "age", "visible": None}],
            })

        # Assert
        assert view.get_column_state("age").visible is True
        assert view.query == ""
        assert len(view.visible_rows()) == 5


class TestExportAndConfig:
    """Test cases for CSV export and config-driven construction."""

    def test_export_visible(self, view: TableView) -> None:
        view.set_filters({"id": [1, 4]})

        text = view.export_csv()

        assert text.splitlines() == [
            '"Name","Age","Status","City"',
            '"Carol","30","active","Berlin"',
            '"Dave","","pending",""',
        ]

    def test_export_options(self, view: TableView) -> None:
        view.hide_column("age")
        view.set_query("bob")

        default_header = view.export_csv().splitlines()[0]
        full = view.export_csv(
            include_all_rows=True, include_hidden_columns=True, include_internal_columns=True
        ).splitlines()

        assert default_header == '"Name","Status","City"'
        assert full[0] == '"Name","Age","Status","City","tags"'
        assert len(full) == 6

    def test_create_from_yaml(self, fixtures_path, people) -> None:
        """
        SCENARIO: View built from the sample YAML config
        EXPECTED: Configured columns, states and search options in effect
        """
        view = create_table_view("sample_config.yaml", rows=people, base_path=fixtures_path)

        view.set_query("berlin")

        assert names(view.visible_rows()) == ["Carol", "Bob"]
        assert view.scoring_enabled is True
        assert view.selection_mode == SelectionMode.MULTI
        assert view.get_column_state("notes").visible is False
        assert view.get_column_state("address.city").width == 120

    def test_from_config_with_callbacks(self, people) -> None:
        config = ViewConfig.model_validate(
            {"columns": [{"field": "status", "sortable": True}, {"field": "name"}]}
        )
        order = {"pending": 0, "active": 1, "inactive": 2}

        view = TableView.from_config(
            config, rows=people, column_callbacks={"status": {"sort_value": order.get}}
        )
        view.sort("status", "asc")

        assert names(view.visible_rows()) == ["Dave", "Carol", "Bob", "Émile", "alice"]

    def test_repr(self, view: TableView) -> None:
        assert repr(view).startswith("TableView(rows=5, columns=5")
