from concert_tickets.models.concert import Concert
from concert_tickets.models.user import User, UserRole
from concert_tickets.models.reservation import Reservation, ReservationStatus

__all__ = ["Concert", "User", "UserRole", "Reservation", "ReservationStatus"]
