"""
Test Fixtures - Shared Test Configurations.

This package contains reusable test fixtures:
    - sample_config.yaml: Sample view configuration
    - profiles/strict.yaml: Profile overlay for sample_config.yaml
"""
