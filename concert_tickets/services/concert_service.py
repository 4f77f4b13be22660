"""
Concert catalog service.

SEAT-COUNT EDITS
================

An admin may change a concert's total_seats after reservations exist.
The reserved count is derived from the row itself:

    reserved = total_seats - available_seats

and availability is re-derived from that, not adjusted by a delta:

    available_seats = new_total - reserved

A new total below `reserved` would strand existing reservations, so it
is rejected. The edit runs with the concert row locked, the same lock a
reservation create takes, so a seat cannot be taken between reading the
counters and writing the new ones.
"""

from typing import Optional

from concert_tickets.core.exceptions import InvalidRequestError, NotFoundError
from concert_tickets.core.logging import get_logger
from concert_tickets.core.metrics import record_seat_edit
from concert_tickets.models import Concert
from concert_tickets.repositories import UnitOfWork

logger = get_logger(__name__)


class ConcertService:

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def create(self, name: str, description: str, total_seats: int) -> Concert:
        """Create a concert with every seat available."""
        if total_seats < 1:
            raise InvalidRequestError("Total seats must be a positive integer")

        concert = Concert(
            name=name,
            description=description,
            total_seats=total_seats,
            available_seats=total_seats,
        )
        async with self.uow.transaction():
            await self.uow.concerts.save(concert)

        logger.info("concert_created", concert_id=concert.id, name=concert.name, seats=total_seats)
        return concert

    async def find_all(self) -> list[Concert]:
        return await self.uow.concerts.find_all()

    async def find_one(self, concert_id: int) -> Concert:
        concert = await self.uow.concerts.find(concert_id)
        if concert is None:
            raise NotFoundError("Concert", concert_id)
        return concert

    async def update(
        self,
        concert_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        total_seats: Optional[int] = None,
    ) -> Concert:
        """Apply a partial edit; None means 'leave unchanged'."""
        async with self.uow.transaction():
            concert = await self.uow.concerts.find(concert_id, for_update=True)
            if concert is None:
                raise NotFoundError("Concert", concert_id)

            if name is not None:
                concert.name = name
            if description is not None:
                concert.description = description

            if total_seats is not None:
                reserved = concert.reserved_seats
                if total_seats < reserved:
                    record_seat_edit(applied=False)
                    raise InvalidRequestError(
                        f"Cannot set total seats below currently reserved seats ({reserved})"
                    )
                concert.total_seats = total_seats
                concert.available_seats = total_seats - reserved
                record_seat_edit(applied=True)

            await self.uow.concerts.save(concert)

        logger.info(
            "concert_updated",
            concert_id=concert.id,
            total_seats=concert.total_seats,
            available_seats=concert.available_seats,
        )
        return concert

    async def remove(self, concert_id: int) -> None:
        """
        Delete a concert. Its reservations go with it through the foreign
        key cascade; there is no seat count left to reconcile.
        """
        async with self.uow.transaction():
            concert = await self.uow.concerts.find(concert_id)
            if concert is None:
                raise NotFoundError("Concert", concert_id)
            await self.uow.concerts.remove(concert)

        logger.info("concert_removed", concert_id=concert_id)
