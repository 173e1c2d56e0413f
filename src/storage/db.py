"""
Storage adapter.

For now, this wraps the SQLite ViolationStore implementation.
"""

from __future__ import annotations

from storage.database import ViolationStore

__all__ = ["ViolationStore"]
