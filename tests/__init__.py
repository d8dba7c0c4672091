"""
Test suite for the rental catalog importer.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_row_transformer.py -v
"""
