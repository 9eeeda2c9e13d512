# src/gaepan/services/__init__.py
"""Service layer: trial lifecycle, vote ledger, moderation and caches."""
