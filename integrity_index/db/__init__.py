"""
Database package: ORM models, engine/session management and repositories.
"""

from .session import Database, db, get_session

__all__ = ["Database", "db", "get_session"]
