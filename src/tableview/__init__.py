"""
tableview - Row-Processing Core for Tabular Views.

Computes, from an in-memory collection of records, the subset and order
a table should currently present: column definitions, a free-text query,
structured filters and one-or-many column sorts go in; an ordered view
plus per-row presentation hints (row id, highlight ranges, match score)
comes out.

Architecture:
    - Pull-based pipeline: mutators set dirty flags, reads reconcile
    - Stages: index -> filter -> search -> sort
    - Callback-driven extensibility stored on column definitions
    - Configuration-driven behavior via YAML

Main Components:
    - domain: Column definitions/state, row metadata, value objects
    - registry: Column registry
    - indexing: Collation, rank maps, row metadata indexer
    - filters: Structured and callback filter evaluation
    - search: Tokenizer, relevance scoring, search engine
    - sorting: Multi-column sort engine and sort priority transitions
    - pipeline: Row store, dirty-flag scheduler, TableView controller
    - config: Configuration models and loaders

Example:
    >>> from tableview import TableView, ColumnDefinition
    >>> view = TableView(
    ...     columns=[ColumnDefinition(field="name", searchable=True, sortable=True)],
    ...     rows=[{"name": "Apple"}, {"name": "Pineapple"}],
    ... )
    >>> view.set_query("apple")
    >>> len(view.visible_rows())
    2

"""

import logging

__version__ = "0.4.0"


def configure_logging(
    level: int = logging.INFO,
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
) -> None:
    """
    Configure logging for tableview.

    Call this at application startup to see log messages.
    By default, only WARNING and above are visible.

    Args:
        level: Logging level (default: INFO)
        format: Log message format

    Example:
        >>> import tableview
        >>> tableview.configure_logging(logging.DEBUG)
    """
    logging.basicConfig(
        level=level,
        format=format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("tableview").setLevel(level)


from tableview.domain.entities import (  # noqa: E402
    ColumnDefinition,
    ColumnRole,
    ColumnState,
    SortOrder,
    SortState,
)
from tableview.domain.value_objects import QueryToken  # noqa: E402
from tableview.pipeline.table_view import TableView, create_table_view  # noqa: E402

__all__ = [
    "ColumnDefinition",
    "ColumnRole",
    "ColumnState",
    "QueryToken",
    "SortOrder",
    "SortState",
    "TableView",
    "configure_logging",
    "create_table_view",
]
