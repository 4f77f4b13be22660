"""
Service-level tests: seat accounting, atomicity and the user/concert
services, driven directly on a unit of work.
"""

from unittest.mock import AsyncMock, patch

import pytest

from concert_tickets.core.exceptions import InvalidRequestError, NotFoundError, UnauthorizedError
from concert_tickets.models import ReservationStatus
from concert_tickets.repositories import SqlAlchemyUnitOfWork
from concert_tickets.services.concert_service import ConcertService
from concert_tickets.services.reservation_service import ReservationService, _parse_status
from concert_tickets.services.user_service import UserService
from tests.helpers import assert_seat_invariant


async def _seed(uow, seats: int = 5, users: int = 1):
    concert = await ConcertService(uow).create("Service Show", "Seeded", seats)
    people = [
        await UserService(uow).create(f"Fan {i}", f"fan{i}@example.com", "secret1")
        for i in range(users)
    ]
    return concert.id, [p.id for p in people]


@pytest.mark.asyncio
async def test_invariant_holds_through_a_reservation_lifecycle(uow, db_session):
    concert_id, (alice, bob) = await _seed(uow, seats=3, users=2)
    service = ReservationService(uow)

    first = await service.create(alice, concert_id)
    await assert_seat_invariant(db_session, concert_id)

    second = await service.create(bob, concert_id)
    await assert_seat_invariant(db_session, concert_id)

    await service.update(first.id, ReservationStatus.CANCELLED)
    await assert_seat_invariant(db_session, concert_id)

    await service.update(first.id, "reserved")
    await assert_seat_invariant(db_session, concert_id)

    await service.remove(second.id)
    await assert_seat_invariant(db_session, concert_id)

    concert = await ConcertService(uow).find_one(concert_id)
    assert concert.available_seats == 2


@pytest.mark.asyncio
async def test_failed_insert_rolls_back_seat_decrement(uow, db_session):
    """If the reservation row cannot be written, the seat is not taken either."""
    concert_id, (alice,) = await _seed(uow)
    service = ReservationService(uow)

    with patch.object(uow.reservations, "save", new=AsyncMock(side_effect=RuntimeError("disk full"))):
        with pytest.raises(RuntimeError):
            await service.create(alice, concert_id)

    concert = await uow.concerts.find(concert_id, for_update=True)
    assert concert.available_seats == 5
    assert await uow.reservations.find_all() == []
    await assert_seat_invariant(db_session, concert_id)


@pytest.mark.asyncio
async def test_rejected_reservation_writes_nothing(uow, db_session):
    concert_id, (alice, bob) = await _seed(uow, seats=1, users=2)
    service = ReservationService(uow)
    await service.create(alice, concert_id)

    with pytest.raises(InvalidRequestError, match="No seats available"):
        await service.create(bob, concert_id)

    assert len(await uow.reservations.find_all()) == 1
    await assert_seat_invariant(db_session, concert_id)


@pytest.mark.asyncio
async def test_same_status_update_writes_nothing(uow):
    concert_id, (alice,) = await _seed(uow)
    service = ReservationService(uow)
    reservation = await service.create(alice, concert_id)

    with patch.object(uow.concerts, "save", new=AsyncMock()) as concert_save, \
            patch.object(uow.reservations, "save", new=AsyncMock()) as reservation_save, \
            patch.object(uow.session, "commit", new=AsyncMock()) as commit:
        result = await service.update(reservation.id, ReservationStatus.RESERVED)

    assert result.status == ReservationStatus.RESERVED.value
    concert_save.assert_not_awaited()
    reservation_save.assert_not_awaited()
    commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_unknown_reservation(uow):
    with pytest.raises(NotFoundError):
        await ReservationService(uow).update(12345, ReservationStatus.CANCELLED)


def test_parse_status_rejects_unknown_values():
    assert _parse_status("cancelled") is ReservationStatus.CANCELLED
    with pytest.raises(InvalidRequestError):
        _parse_status("pending")


@pytest.mark.asyncio
async def test_concert_create_rejects_non_positive_seats(uow):
    with pytest.raises(InvalidRequestError):
        await ConcertService(uow).create("Empty", "No room", 0)


@pytest.mark.asyncio
async def test_concert_seat_edit_below_reserved(uow, db_session):
    concert_id, (alice, bob) = await _seed(uow, seats=4, users=2)
    reservations = ReservationService(uow)
    await reservations.create(alice, concert_id)
    await reservations.create(bob, concert_id)

    with pytest.raises(InvalidRequestError, match=r"\(2\)"):
        await ConcertService(uow).update(concert_id, total_seats=1)

    concert = await ConcertService(uow).update(concert_id, total_seats=2)
    assert concert.available_seats == 0
    await assert_seat_invariant(db_session, concert_id)


@pytest.mark.asyncio
async def test_concert_find_one_missing(uow):
    with pytest.raises(NotFoundError, match="Concert with id 42 not found"):
        await ConcertService(uow).find_one(42)


@pytest.mark.asyncio
async def test_authenticate(uow):
    users = UserService(uow)
    created = await users.create("Dana", "dana@example.com", "hunter22")

    assert await users.authenticate("dana@example.com", "hunter22") == created

    with pytest.raises(UnauthorizedError, match="Invalid email or password"):
        await users.authenticate("dana@example.com", "hunter23")
    with pytest.raises(UnauthorizedError, match="Invalid email or password"):
        await users.authenticate("nobody@example.com", "hunter22")


@pytest.mark.asyncio
async def test_user_remove_hands_back_seats(uow, db_session):
    concert_id, (alice, bob) = await _seed(uow, seats=3, users=2)
    reservations = ReservationService(uow)
    await reservations.create(alice, concert_id)
    await reservations.create(bob, concert_id)

    await UserService(uow).remove(alice)

    concert = await uow.concerts.find(concert_id, for_update=True)
    assert concert.available_seats == 2
    await assert_seat_invariant(db_session, concert_id)


@pytest.mark.asyncio
async def test_history_for_missing_user(uow):
    with pytest.raises(NotFoundError):
        await UserService(uow).get_reservation_history(777)


def _before_first_concert_lock(uow, other_request):
    """Run `other_request` to completion right before `uow` takes its first concert lock."""
    real_find = uow.concerts.find
    pending = [other_request]

    async def find(concert_id, *, for_update=False):
        if for_update and pending:
            await pending.pop()()
        return await real_find(concert_id, for_update=for_update)

    return patch.object(uow.concerts, "find", new=find)


@pytest.mark.asyncio
async def test_overlapping_cancels_release_one_seat(uow, db_session, session_factory):
    concert_id, (alice, bob) = await _seed(uow, seats=5, users=2)
    service = ReservationService(uow)
    mine = (await service.create(alice, concert_id)).id
    await service.create(bob, concert_id)

    async def cancel_elsewhere():
        async with session_factory() as other:
            await ReservationService(SqlAlchemyUnitOfWork(other)).update(mine, "cancelled")

    with _before_first_concert_lock(uow, cancel_elsewhere):
        result = await service.update(mine, ReservationStatus.CANCELLED)

    assert result.status == ReservationStatus.CANCELLED.value
    concert = await uow.concerts.find(concert_id, for_update=True)
    assert concert.available_seats == 4
    await assert_seat_invariant(db_session, concert_id)


@pytest.mark.asyncio
async def test_overlapping_removes_free_one_seat(uow, db_session, session_factory):
    concert_id, (alice, bob) = await _seed(uow, seats=5, users=2)
    service = ReservationService(uow)
    mine = (await service.create(alice, concert_id)).id
    await service.create(bob, concert_id)

    async def remove_elsewhere():
        async with session_factory() as other:
            await ReservationService(SqlAlchemyUnitOfWork(other)).remove(mine)

    with _before_first_concert_lock(uow, remove_elsewhere):
        with pytest.raises(NotFoundError):
            await service.remove(mine)

    concert = await uow.concerts.find(concert_id, for_update=True)
    assert concert.available_seats == 4
    await assert_seat_invariant(db_session, concert_id)


@pytest.mark.asyncio
async def test_user_remove_skips_seat_cancelled_meanwhile(uow, db_session, session_factory):
    concert_id, (alice, bob) = await _seed(uow, seats=5, users=2)
    service = ReservationService(uow)
    mine = (await service.create(alice, concert_id)).id
    await service.create(bob, concert_id)

    async def cancel_elsewhere():
        async with session_factory() as other:
            await ReservationService(SqlAlchemyUnitOfWork(other)).update(mine, "cancelled")

    with _before_first_concert_lock(uow, cancel_elsewhere):
        await UserService(uow).remove(alice)

    concert = await uow.concerts.find(concert_id, for_update=True)
    assert concert.available_seats == 4
    await assert_seat_invariant(db_session, concert_id)
