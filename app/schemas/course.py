from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal


class CourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    instructor_id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: float
    capacity: Optional[int] = None
    is_published: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("id", "instructor_id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> str:
        return str(v)


class CourseCreateRequest(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    capacity: Optional[int] = Field(default=None, gt=0)

    @field_validator("title")
    @classmethod
    def title_stripped(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Title must be at least 3 characters")
        return v


class CourseUpdateRequest(BaseModel):
    """All fields optional — only provided fields are changed."""
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    capacity: Optional[int] = Field(default=None, gt=0)

    # Omitting a field leaves it alone; an explicit null would hit a NOT NULL column
    @field_validator("title", "price", mode="before")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v
