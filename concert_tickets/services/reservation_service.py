"""
Reservation ledger with seat accounting.

INVARIANT
=========

For every concert:

    available_seats == total_seats - count(reservations WHERE status = 'reserved')

Every operation below that changes a reservation's status (or deletes a
reserved one) moves available_seats by exactly one in the same
transaction.

STATE MACHINE (per user/concert pair)
=====================================

    NONE --create--> RESERVED --cancel--> CANCELLED --reinstate--> RESERVED

  - A pair gets at most one row, ever. Cancelling flips the status; a
    second create for the pair is rejected whatever the row's status.
  - Updating to the current status is a no-op: nothing is written or
    committed.
  - remove deletes the row; a RESERVED row gives its seat back first.

CONCURRENCY STRATEGY: Pessimistic row lock
==========================================

Two users racing for the last seat both read available_seats=1. To keep
both from decrementing, every ledger write reads the concert with
SELECT ... FOR UPDATE inside the transaction. The second request blocks
until the first commits, then sees available_seats=0 and is rejected.

Cancel, reinstate and remove then lock the reservation row as well and
decide from its re-read status, never from the unlocked read that found
it. Two overlapping cancels of one reservation therefore release one
seat; two overlapping deletes free one seat and the second gets a 404.
Locks are always taken concert first, reservation second.

Backstops at the database level: the unique (user_id, concert_id)
constraint and CHECK (available_seats >= 0). If either fires, the
IntegrityError propagates untouched; the request is not retried because
its precondition checks were made against a snapshot that is now stale.
"""

from typing import Union

from concert_tickets.core.exceptions import InvalidRequestError, NotFoundError
from concert_tickets.core.logging import get_logger
from concert_tickets.core.metrics import record_reservation, reservation_latency
from concert_tickets.models import Concert, Reservation, ReservationStatus
from concert_tickets.repositories import UnitOfWork

logger = get_logger(__name__)


class ReservationService:

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def create(self, user_id: int, concert_id: int) -> Reservation:
        """
        Reserve one seat of a concert for a user.

        Existence checks, the duplicate guard, the availability check, the
        seat decrement and the insert all commit together or not at all.
        """
        with reservation_latency.time():
            async with self.uow.transaction():
                user = await self.uow.users.find(user_id)
                if user is None:
                    raise NotFoundError("User", user_id)

                concert = await self.uow.concerts.find(concert_id, for_update=True)
                if concert is None:
                    raise NotFoundError("Concert", concert_id)

                if await self.uow.reservations.find_for_pair(user_id, concert_id) is not None:
                    record_reservation("create", success=False)
                    logger.warning("reservation_rejected", reason="duplicate",
                                   user_id=user_id, concert_id=concert_id)
                    raise InvalidRequestError("User already has a reservation for this concert")

                if concert.available_seats < 1:
                    record_reservation("create", success=False)
                    logger.warning("reservation_rejected", reason="sold_out",
                                   user_id=user_id, concert_id=concert_id)
                    raise InvalidRequestError("No seats available for this concert")

                concert.available_seats -= 1
                await self.uow.concerts.save(concert)

                reservation = Reservation(
                    user=user,
                    concert=concert,
                    status=ReservationStatus.RESERVED.value,
                )
                await self.uow.reservations.save(reservation)

        record_reservation("create", success=True)
        logger.info(
            "reservation_created",
            reservation_id=reservation.id,
            user_id=user_id,
            concert_id=concert_id,
            available_seats=concert.available_seats,
        )
        return reservation

    async def find_all(self) -> list[Reservation]:
        return await self.uow.reservations.find_all()

    async def find_by_user(self, user_id: int) -> list[Reservation]:
        return await self.uow.reservations.find_all(user_id=user_id)

    async def find_one(self, reservation_id: int) -> Reservation:
        reservation = await self.uow.reservations.find(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    async def update(
        self,
        reservation_id: int,
        status: Union[ReservationStatus, str],
    ) -> Reservation:
        """Move a reservation to `status`: cancel, reinstate or no-op."""
        reservation = await self.find_one(reservation_id)
        target = _parse_status(status)

        if ReservationStatus(reservation.status) is target:
            return reservation

        async with self.uow.transaction():
            concert = await self._lock_concert(reservation.concert_id)
            reservation = await self._lock_reservation(reservation_id)
            current = ReservationStatus(reservation.status)

            if target is current:
                # An overlapping request made the same change first.
                return reservation

            if current is ReservationStatus.RESERVED and target is ReservationStatus.CANCELLED:
                concert.available_seats += 1
                operation = "cancel"
            elif current is ReservationStatus.CANCELLED and target is ReservationStatus.RESERVED:
                if concert.available_seats < 1:
                    record_reservation("reinstate", success=False)
                    raise InvalidRequestError("No seats available to reinstate the reservation")
                concert.available_seats -= 1
                operation = "reinstate"
            else:
                raise InvalidRequestError("Unsupported reservation status transition")

            await self.uow.concerts.save(concert)
            reservation.status = target.value
            await self.uow.reservations.save(reservation)

        record_reservation(operation, success=True)
        logger.info(
            "reservation_status_changed",
            reservation_id=reservation.id,
            from_status=current.value,
            to_status=target.value,
            available_seats=concert.available_seats,
        )
        return reservation

    async def remove(self, reservation_id: int) -> None:
        """Delete a reservation, giving its seat back if it still held one."""
        async with self.uow.transaction():
            reservation = await self.find_one(reservation_id)
            concert = await self._lock_concert(reservation.concert_id)
            reservation = await self._lock_reservation(reservation_id)
            frees_seat = reservation.status == ReservationStatus.RESERVED.value

            if frees_seat:
                concert.available_seats += 1
                await self.uow.concerts.save(concert)

            await self.uow.reservations.remove(reservation)

        record_reservation("remove", success=True)
        logger.info("reservation_removed", reservation_id=reservation_id, freed_seat=frees_seat)

    async def _lock_concert(self, concert_id: int) -> Concert:
        concert = await self.uow.concerts.find(concert_id, for_update=True)
        if concert is None:
            # Only reachable if the concert was deleted mid-transaction.
            raise NotFoundError("Concert", concert_id)
        return concert

    async def _lock_reservation(self, reservation_id: int) -> Reservation:
        # Taken after the concert lock, the order create uses too.
        reservation = await self.uow.reservations.find(reservation_id, for_update=True)
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        return reservation


def _parse_status(status: Union[ReservationStatus, str]) -> ReservationStatus:
    try:
        return ReservationStatus(status)
    except ValueError:
        raise InvalidRequestError("Unsupported reservation status transition") from None
