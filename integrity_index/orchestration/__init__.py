"""
Orchestration package for Integrity Index.

Coordinates adapters, repositories and audit services for a sync run.
"""

from .sync_engine import SyncEngine

__all__ = [
    "SyncEngine",
]
