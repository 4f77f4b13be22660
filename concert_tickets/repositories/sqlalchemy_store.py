"""
SQLAlchemy implementations of the repository interfaces.

All repositories of one unit of work share a single AsyncSession, so
everything a service does between `transaction()` entry and exit lands in
the same database transaction.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload, undefer

from concert_tickets.core.logging import get_logger
from concert_tickets.models import Concert, Reservation, User
from concert_tickets.repositories.interfaces import (
    ConcertRepository,
    ReservationRepository,
    UnitOfWork,
    UserRepository,
)

logger = get_logger(__name__)


class SqlAlchemyConcertRepository(ConcertRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_all(self) -> list[Concert]:
        result = await self.session.execute(select(Concert).order_by(Concert.id.asc()))
        return list(result.scalars().all())

    async def find(self, concert_id: int, *, for_update: bool = False) -> Optional[Concert]:
        stmt = select(Concert).where(Concert.id == concert_id)
        if for_update:
            # SELECT ... FOR UPDATE, and overwrite whatever stale copy the
            # identity map already holds for this row.
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, concert: Concert) -> Concert:
        self.session.add(concert)
        await self.session.flush()
        return concert

    async def remove(self, concert: Concert) -> None:
        await self.session.delete(concert)
        await self.session.flush()


class SqlAlchemyUserRepository(UserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_all(self) -> list[User]:
        result = await self.session.execute(select(User).order_by(User.id.asc()))
        return list(result.scalars().all())

    async def find(self, user_id: int) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str, *, with_password: bool = False) -> Optional[User]:
        stmt = select(User).where(User.email == email)
        if with_password:
            stmt = stmt.options(undefer(User.password)).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        return user

    async def remove(self, user: User) -> None:
        await self.session.delete(user)
        await self.session.flush()


class SqlAlchemyReservationRepository(ReservationRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _expanded():
        return select(Reservation).options(
            selectinload(Reservation.concert),
            selectinload(Reservation.user),
        )

    @staticmethod
    def _locked(stmt):
        return stmt.with_for_update(of=Reservation).execution_options(populate_existing=True)

    async def find_all(
        self, user_id: Optional[int] = None, *, for_update: bool = False
    ) -> list[Reservation]:
        stmt = self._expanded()
        if user_id is not None:
            stmt = stmt.where(Reservation.user_id == user_id)
        stmt = stmt.order_by(Reservation.created_at.desc(), Reservation.id.desc())
        if for_update:
            stmt = self._locked(stmt)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find(self, reservation_id: int, *, for_update: bool = False) -> Optional[Reservation]:
        stmt = self._expanded().where(Reservation.id == reservation_id)
        if for_update:
            stmt = self._locked(stmt)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_for_pair(self, user_id: int, concert_id: int) -> Optional[Reservation]:
        result = await self.session.execute(
            select(Reservation).where(
                Reservation.user_id == user_id,
                Reservation.concert_id == concert_id,
            )
        )
        return result.scalar_one_or_none()

    async def save(self, reservation: Reservation) -> Reservation:
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def remove(self, reservation: Reservation) -> None:
        await self.session.delete(reservation)
        await self.session.flush()


class SqlAlchemyUnitOfWork(UnitOfWork):

    def __init__(self, session: AsyncSession):
        self.session = session
        self.concerts = SqlAlchemyConcertRepository(session)
        self.users = SqlAlchemyUserRepository(session)
        self.reservations = SqlAlchemyReservationRepository(session)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        # The session autobegins on first use, so the transaction also
        # covers any reads issued inside the block.
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.debug("transaction_rolled_back")
            raise
