"""
Reservation endpoints: the seat-accounting ledger.
"""

from fastapi import APIRouter, Depends, status

from concert_tickets.api.deps import get_reservation_service
from concert_tickets.schemas.reservation import (
    ReservationCreate,
    ReservationResponse,
    ReservationUpdate,
)
from concert_tickets.services.cache_service import invalidate_concert_cache
from concert_tickets.services.reservation_service import ReservationService

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    reservation_data: ReservationCreate,
    service: ReservationService = Depends(get_reservation_service),
):
    """
    Reserve one seat for a user.

    Rejected with 400 when the user already holds a reservation row for
    the concert (even a cancelled one) or no seat is left.
    """
    reservation = await service.create(reservation_data.user_id, reservation_data.concert_id)
    # available_seats changed, so the cached concert list is stale
    await invalidate_concert_cache()
    return reservation


@router.get("", response_model=list[ReservationResponse])
async def list_reservations(service: ReservationService = Depends(get_reservation_service)):
    """All reservations, newest first."""
    return await service.find_all()


@router.get("/user/{user_id}", response_model=list[ReservationResponse])
async def list_user_reservations(
    user_id: int,
    service: ReservationService = Depends(get_reservation_service),
):
    return await service.find_by_user(user_id)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
):
    return await service.find_one(reservation_id)


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: int,
    reservation_data: ReservationUpdate,
    service: ReservationService = Depends(get_reservation_service),
):
    """Cancel (status=cancelled) or reinstate (status=reserved) a reservation."""
    reservation = await service.update(reservation_id, reservation_data.status)
    await invalidate_concert_cache()
    return reservation


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
):
    """Delete a reservation, freeing its seat if it was still reserved."""
    await service.remove(reservation_id)
    await invalidate_concert_cache()
