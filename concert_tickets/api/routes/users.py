"""
User endpoints: registration, login, profile CRUD and reservation history.
"""

from fastapi import APIRouter, Depends, status

from concert_tickets.api.deps import get_user_service
from concert_tickets.schemas.reservation import ReservationResponse
from concert_tickets.schemas.user import UserCreate, UserLogin, UserResponse, UserUpdate
from concert_tickets.services.cache_service import invalidate_concert_cache
from concert_tickets.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    service: UserService = Depends(get_user_service),
):
    """Register a new user account. Role defaults to 'user'."""
    return await service.create(
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
        role=user_data.role,
    )


@router.get("", response_model=list[UserResponse])
async def list_users(service: UserService = Depends(get_user_service)):
    return await service.find_all()


@router.post("/login", response_model=UserResponse)
async def login(
    login_data: UserLogin,
    service: UserService = Depends(get_user_service),
):
    """Check credentials and return the user. Session handling is client-side."""
    return await service.authenticate(login_data.email, login_data.password)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    return await service.find_one(user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    service: UserService = Depends(get_user_service),
):
    return await service.update(
        user_id,
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
        role=user_data.role,
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, service: UserService = Depends(get_user_service)):
    """Delete a user and their reservations, releasing any held seats."""
    await service.remove(user_id)
    # Seats held by the deleted reservations went back to their concerts
    await invalidate_concert_cache()


@router.get("/{user_id}/history", response_model=list[ReservationResponse])
async def reservation_history(user_id: int, service: UserService = Depends(get_user_service)):
    """The user's reservations, newest first."""
    return await service.get_reservation_history(user_id)
