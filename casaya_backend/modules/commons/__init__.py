"""Common schemas and utilities shared across modules."""

from .schemas import ApiModel, BaseResponse

__all__ = [
    "ApiModel",
    "BaseResponse",
]
