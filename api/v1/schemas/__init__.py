"""
Pydantic response schemas for the v1 API.
"""

from .integrity import (
    AdminStatusResponse,
    ConflictFlagSchema,
    MemberIntegrityResponse,
)

__all__ = [
    "AdminStatusResponse",
    "ConflictFlagSchema",
    "MemberIntegrityResponse",
]
