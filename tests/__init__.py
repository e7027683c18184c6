"""
Test suite for the vendor catalog back office.

Run all tests: pytest
Run with coverage: pytest --cov=. --cov-report=html
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_sku_conflict_resolver.py -v
"""
