"""
Shared helpers for building test data through the HTTP API and for
checking the seat-accounting invariant directly in the database.
"""

from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from concert_tickets.models import Concert, Reservation, ReservationStatus


async def create_user(client: AsyncClient, name: str = "Alice", role: str = "user") -> dict:
    response = await client.post("/api/users", json={
        "name": name,
        "email": f"{name.lower().replace(' ', '.')}@example.com",
        "password": "secret1",
        "role": role,
    })
    assert response.status_code == 201, response.text
    return response.json()


async def create_concert(client: AsyncClient, total_seats: int = 5, name: str = "Test Concert") -> dict:
    response = await client.post("/api/concerts", json={
        "name": name,
        "description": "A test concert",
        "totalSeats": total_seats,
    })
    assert response.status_code == 201, response.text
    return response.json()


async def reserve(client: AsyncClient, user_id: int, concert_id: int):
    return await client.post("/api/reservations", json={"userId": user_id, "concertId": concert_id})


async def get_concert(client: AsyncClient, concert_id: int) -> dict:
    response = await client.get(f"/api/concerts/{concert_id}")
    assert response.status_code == 200
    return response.json()


async def assert_seat_invariant(session: AsyncSession, concert_id: int) -> None:
    """available_seats must equal total_seats minus the reserved rows."""
    concert = (
        await session.execute(
            select(Concert)
            .where(Concert.id == concert_id)
            .execution_options(populate_existing=True)
        )
    ).scalar_one()
    reserved = (
        await session.execute(
            select(func.count())
            .select_from(Reservation)
            .where(
                Reservation.concert_id == concert_id,
                Reservation.status == ReservationStatus.RESERVED.value,
            )
        )
    ).scalar_one()
    assert concert.available_seats == concert.total_seats - reserved


