"""
Response envelope shared by every endpoint.

Success:  {"success": true,  "message": "...", "data": {...}}
Failure:  {"success": false, "message": "...", "errors": [...]}   (see core/error_handlers.py)
"""
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def build(cls, items: list, total: int, page: int, limit: int) -> "Page":
        return cls(items=items, total=total, page=page, limit=limit, pages=-(-total // limit))
