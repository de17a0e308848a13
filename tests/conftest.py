"""
Pytest Configuration and Shared Fixtures.

This module contains fixtures available to all tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import pytest

from tableview.config.models import ViewConfig
from tableview.domain.entities import ColumnDefinition, ColumnRole
from tableview.pipeline.table_view import TableView


@pytest.fixture
def fixtures_path() -> Path:
    """Directory holding YAML fixtures."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_config_path(fixtures_path: Path) -> Path:
    """Path to sample configuration file."""
    return fixtures_path / "sample_config.yaml"


@pytest.fixture
def default_config() -> ViewConfig:
    """Create default view configuration."""
    return ViewConfig()


@pytest.fixture
def people() -> List[Dict[str, Any]]:
    """Small dataset of people with nested addresses."""
    return [
        {"id": 1, "name": "Carol", "age": 30, "status": "active",
         "address": {"city": "Berlin"}, "tags": ["admin", "ops"]},
        {"id": 2, "name": "alice", "age": 25, "status": "inactive",
         "address": {"city": "Paris"}, "tags": ["dev"]},
        {"id": 3, "name": "Bob", "age": 30, "status": "active",
         "address": {"city": "berlin"}, "tags": []},
        {"id": 4, "name": "Dave", "age": None, "status": "pending",
         "address": None, "tags": ["dev", "ops"]},
        {"id": 5, "name": "Émile", "age": 41, "status": "active",
         "address": {"city": "Lyon"}, "tags": ["ops"]},
    ]


@pytest.fixture
def people_columns() -> List[ColumnDefinition]:
    """Columns matching the people dataset."""
    return [
        ColumnDefinition(field="name", title="Name", sortable=True, searchable=True),
        ColumnDefinition(field="age", title="Age", sortable=True),
        ColumnDefinition(field="status", title="Status", sortable=True),
        ColumnDefinition(field="address.city", title="City", searchable=True),
        ColumnDefinition(field="tags", role=ColumnRole.INTERNAL),
    ]


@pytest.fixture
def view(people_columns, people) -> TableView:
    """TableView over the people dataset."""
    return TableView(people_columns, people)
