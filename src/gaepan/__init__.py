"""Gaepan: crowd-adjudicated trials, vote ledger and moderation gateway."""

__version__ = "0.1.0"
