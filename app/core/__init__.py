"""Core application modules."""

from .exceptions import BaseAppException, ErrorCode

__all__ = ["BaseAppException", "ErrorCode"]
