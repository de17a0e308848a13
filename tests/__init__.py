"""
Test Suite for tableview.

Test organization:
    - unit/: Unit tests for individual components
    - integration/: TableView end-to-end tests
    - performance/: Coarse timing bounds
    - fixtures/: Sample YAML configuration and profiles

Running Tests:
    pytest tests/                           # All tests
    pytest tests/unit/                      # Unit tests only
    pytest tests/integration/               # Integration tests only
    pytest --cov=src/tableview              # With coverage
"""
