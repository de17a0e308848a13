"""
Unit Tests - Testing Individual Components in Isolation.

Unit tests should be fast, deterministic, and focused.

Test Files:
    - test_rank_map.py: Collation and rank maps
    - test_row_indexer.py: Row metadata and id fallback
    - test_search.py: Tokenizer, scoring, search engine
    - test_filter_evaluator.py: Filter matching rules
    - test_sorting.py: Sort engine and priority transitions
    - test_column_registry.py: Column definitions and state
    - test_scheduler.py: Dirty flags and batching
    - test_callback_guard.py: Callback failure policies
    - test_row_store.py: Row store, selection, CSV export
    - test_config_loader.py: Configuration loading/validation
"""
