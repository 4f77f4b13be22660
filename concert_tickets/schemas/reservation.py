"""
Pydantic schemas for reservation-related request/response validation.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from concert_tickets.models.reservation import ReservationStatus
from concert_tickets.schemas.concert import ConcertResponse
from concert_tickets.schemas.user import UserResponse


class ReservationCreate(BaseModel):
    user_id: int = Field(..., gt=0, alias="userId", strict=True)
    concert_id: int = Field(..., gt=0, alias="concertId", strict=True)

    model_config = {"populate_by_name": True}


class ReservationUpdate(BaseModel):
    status: ReservationStatus


class ReservationResponse(BaseModel):
    id: int
    status: ReservationStatus
    created_at: datetime
    user: UserResponse
    concert: ConcertResponse

    model_config = {"from_attributes": True}
