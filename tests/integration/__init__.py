"""
Integration Tests - End-to-End TableView Tests.

Test Files:
    - test_table_view.py: Full view workflow through the public controller
"""
