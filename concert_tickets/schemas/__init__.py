from concert_tickets.schemas.user import UserCreate, UserUpdate, UserLogin, UserResponse
from concert_tickets.schemas.concert import ConcertCreate, ConcertUpdate, ConcertResponse
from concert_tickets.schemas.reservation import (
    ReservationCreate, ReservationUpdate, ReservationResponse,
)

__all__ = [
    "UserCreate", "UserUpdate", "UserLogin", "UserResponse",
    "ConcertCreate", "ConcertUpdate", "ConcertResponse",
    "ReservationCreate", "ReservationUpdate", "ReservationResponse",
]
