"""
Performance Tests.

Benchmarks for TableView:
    - 20,000 rows full pipeline < 5 seconds
    - 20,000 rows sort-only change < 2 seconds
"""
