"""
Common Schemas

Response envelope shared by every endpoint:
    {"success": true, "message"?: str, "data"?: ..., "pagination"?: {...}}
Errors use the same top-level shape with success=false (see main.py).
"""
from math import ceil
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, Field, model_serializer

T = TypeVar("T")

# Phone numbers: optional leading +, no leading zero, up to 16 digits
PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"


class PaginationMeta(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(
            currentPage=page,
            totalPages=ceil(total / limit) if limit else 0,
            totalItems=total,
            itemsPerPage=limit,
        )


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    pagination: Optional[PaginationMeta] = None

    @model_serializer(mode="wrap")
    def _omit_empty(self, handler):
        # message and pagination are only present when set
        data = handler(self)
        for key in ("message", "pagination"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class TenantScopedCreate(BaseModel):
    """
    Base for create payloads of tenant-owned rows.

    The tenant always comes from the actor. company_id is accepted only so
    a mismatching value can be rejected instead of silently ignored.
    """
    company_id: Optional[str] = Field(None, exclude=True)
