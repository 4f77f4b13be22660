"""
Concert endpoints with Redis caching on the list operation.
"""

from fastapi import APIRouter, Depends, status

from concert_tickets.api.deps import get_concert_service
from concert_tickets.schemas.concert import ConcertCreate, ConcertUpdate, ConcertResponse
from concert_tickets.services.concert_service import ConcertService
from concert_tickets.services.cache_service import (
    get_cached_concerts,
    set_cached_concerts,
    invalidate_concert_cache,
)
from concert_tickets.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/concerts", tags=["Concerts"])


@router.post("", response_model=ConcertResponse, status_code=status.HTTP_201_CREATED)
async def create_concert(
    concert_data: ConcertCreate,
    service: ConcertService = Depends(get_concert_service),
):
    """Create a concert with all seats available."""
    concert = await service.create(
        name=concert_data.name,
        description=concert_data.description,
        total_seats=concert_data.total_seats,
    )
    await invalidate_concert_cache()
    return concert


@router.get("", response_model=list[ConcertResponse])
async def list_concerts(service: ConcertService = Depends(get_concert_service)):
    """
    List all concerts ordered by id.
    Served from Redis when cached; invalidated by any concert or
    reservation change.
    """
    cached, generation = await get_cached_concerts()
    if cached is not None:
        logger.debug("concert_list_cache_hit")
        return cached

    concerts = await service.find_all()
    data = [ConcertResponse.model_validate(c).model_dump() for c in concerts]
    await set_cached_concerts(data, generation)
    return data


@router.get("/{concert_id}", response_model=ConcertResponse)
async def get_concert(
    concert_id: int,
    service: ConcertService = Depends(get_concert_service),
):
    """Get a single concert. Never cached (needs real-time seat counts)."""
    return await service.find_one(concert_id)


@router.put("/{concert_id}", response_model=ConcertResponse)
async def update_concert(
    concert_id: int,
    concert_data: ConcertUpdate,
    service: ConcertService = Depends(get_concert_service),
):
    """
    Partially update a concert. Changing totalSeats recomputes
    available seats and is rejected below the reserved count.
    """
    concert = await service.update(
        concert_id,
        name=concert_data.name,
        description=concert_data.description,
        total_seats=concert_data.total_seats,
    )
    await invalidate_concert_cache()
    return concert


@router.delete("/{concert_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_concert(
    concert_id: int,
    service: ConcertService = Depends(get_concert_service),
):
    """Delete a concert together with its reservations."""
    await service.remove(concert_id)
    await invalidate_concert_cache()
