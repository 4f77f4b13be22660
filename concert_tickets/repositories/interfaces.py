"""
Repository interfaces for dependency inversion.

Services receive a UnitOfWork in their constructor and only talk to the
repositories it exposes, so the storage backend can be swapped without
touching the seat-accounting rules.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Optional

from concert_tickets.models import Concert, Reservation, User


class ConcertRepository(ABC):

    @abstractmethod
    async def find_all(self) -> list[Concert]:
        """Return all concerts ordered by id ascending."""

    @abstractmethod
    async def find(self, concert_id: int, *, for_update: bool = False) -> Optional[Concert]:
        """
        Return a concert by id, or None.

        With for_update=True the row is locked until the surrounding
        transaction ends and the instance is refreshed from the database.
        """

    @abstractmethod
    async def save(self, concert: Concert) -> Concert:
        pass

    @abstractmethod
    async def remove(self, concert: Concert) -> None:
        pass


class UserRepository(ABC):

    @abstractmethod
    async def find_all(self) -> list[User]:
        """Return all users ordered by id ascending, without credentials."""

    @abstractmethod
    async def find(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def find_by_email(self, email: str, *, with_password: bool = False) -> Optional[User]:
        pass

    @abstractmethod
    async def save(self, user: User) -> User:
        pass

    @abstractmethod
    async def remove(self, user: User) -> None:
        pass


class ReservationRepository(ABC):

    @abstractmethod
    async def find_all(
        self, user_id: Optional[int] = None, *, for_update: bool = False
    ) -> list[Reservation]:
        """
        Return reservations newest first with concert and user loaded,
        optionally restricted to one user. for_update locks the rows as
        ConcertRepository.find does.
        """

    @abstractmethod
    async def find(self, reservation_id: int, *, for_update: bool = False) -> Optional[Reservation]:
        """
        Return a reservation with concert and user loaded, or None.

        With for_update=True the row is locked and its status re-read, so
        callers decide on the committed state rather than an earlier read.
        """

    @abstractmethod
    async def find_for_pair(self, user_id: int, concert_id: int) -> Optional[Reservation]:
        """Return the reservation of a (user, concert) pair whatever its status."""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    async def remove(self, reservation: Reservation) -> None:
        pass


class UnitOfWork(ABC):
    concerts: ConcertRepository
    users: UserRepository
    reservations: ReservationRepository

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """
        Commit everything done inside the block on normal exit, roll it
        all back if the block raises. The exception is re-raised as is.
        """
