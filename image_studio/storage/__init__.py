"""
Storage layer for Image Studio.

In-memory and SQLite-backed usage ledgers.
"""
