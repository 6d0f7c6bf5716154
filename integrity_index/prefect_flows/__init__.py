"""
Prefect flows for Integrity Index.
"""

from .sync_flow import integrity_sync_flow, verify_sync_flow

__all__ = [
    "integrity_sync_flow",
    "verify_sync_flow",
]
