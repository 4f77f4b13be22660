"""
Pydantic schemas for concert-related request/response validation.

Request bodies accept the client's camelCase `totalSeats`; responses
mirror the table columns.
"""

from typing import Optional
from pydantic import BaseModel, Field


class ConcertCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    total_seats: int = Field(..., gt=0, alias="totalSeats", strict=True)

    model_config = {"populate_by_name": True}


class ConcertUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    total_seats: Optional[int] = Field(None, gt=0, alias="totalSeats", strict=True)

    model_config = {"populate_by_name": True}


class ConcertResponse(BaseModel):
    id: int
    name: str
    description: str
    total_seats: int
    available_seats: int

    model_config = {"from_attributes": True}
