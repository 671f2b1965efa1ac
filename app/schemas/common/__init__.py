"""
Common schemas shared across API modules.
"""

from app.schemas.common.base import BaseSchema
from app.schemas.common.pagination import PaginatedResponse, PaginationMeta, PaginationParams

__all__ = ["BaseSchema", "PaginatedResponse", "PaginationMeta", "PaginationParams"]
