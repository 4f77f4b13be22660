"""
User directory service: accounts, login and reservation history.

Every value handed back to callers is a UserResponse, so the password
never leaves this module. Passwords are stored and compared verbatim.
"""

import secrets
from typing import Optional

from concert_tickets.core.exceptions import InvalidRequestError, NotFoundError, UnauthorizedError
from concert_tickets.core.logging import get_logger
from concert_tickets.core.metrics import record_login
from concert_tickets.models import Reservation, ReservationStatus, User, UserRole
from concert_tickets.repositories import UnitOfWork
from concert_tickets.schemas.user import UserResponse

logger = get_logger(__name__)


def _to_safe(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


class UserService:

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def _get(self, user_id: int) -> User:
        user = await self.uow.users.find(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def _ensure_email_free(self, email: str) -> None:
        if await self.uow.users.find_by_email(email) is not None:
            logger.warning("user_rejected", reason="email_exists", email=email)
            raise InvalidRequestError("Email already registered")

    async def create(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> UserResponse:
        async with self.uow.transaction():
            await self._ensure_email_free(email)
            user = User(name=name, email=email, password=password, role=UserRole(role).value)
            await self.uow.users.save(user)

        logger.info("user_registered", user_id=user.id, role=user.role)
        return _to_safe(user)

    async def find_all(self) -> list[UserResponse]:
        return [_to_safe(user) for user in await self.uow.users.find_all()]

    async def find_one(self, user_id: int) -> UserResponse:
        return _to_safe(await self._get(user_id))

    async def update(
        self,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[UserRole] = None,
    ) -> UserResponse:
        async with self.uow.transaction():
            user = await self._get(user_id)

            if email is not None and email != user.email:
                await self._ensure_email_free(email)
                user.email = email
            if name is not None:
                user.name = name
            if password is not None:
                user.password = password
            if role is not None:
                user.role = UserRole(role).value

            await self.uow.users.save(user)

        logger.info("user_updated", user_id=user.id)
        return _to_safe(user)

    async def remove(self, user_id: int) -> None:
        """
        Delete a user. The foreign key cascade drops their reservations,
        so seats still held by them are handed back first to keep every
        concert's available_seats in line with its reserved count.

        Concerts are locked in id order, then the user's reservations are
        re-read under lock; only rows still RESERVED at that point give a
        seat back.
        """
        released = 0
        async with self.uow.transaction():
            user = await self._get(user_id)

            held = await self.uow.reservations.find_all(user_id=user_id)
            concerts = {}
            for concert_id in sorted({reservation.concert_id for reservation in held}):
                concerts[concert_id] = await self.uow.concerts.find(concert_id, for_update=True)

            for reservation in await self.uow.reservations.find_all(user_id=user_id, for_update=True):
                if reservation.status != ReservationStatus.RESERVED.value:
                    continue
                concert = concerts.get(reservation.concert_id)
                if concert is None:
                    # Reserved after the first read.
                    concert = await self.uow.concerts.find(reservation.concert_id, for_update=True)
                concert.available_seats += 1
                await self.uow.concerts.save(concert)
                released += 1

            await self.uow.users.remove(user)

        logger.info("user_removed", user_id=user_id, seats_released=released)

    async def authenticate(self, email: str, password: str) -> UserResponse:
        """
        Exact-match login. Unknown email and wrong password raise the same
        error so the response does not reveal which accounts exist.
        """
        user = await self.uow.users.find_by_email(email, with_password=True)

        if user is None or not secrets.compare_digest(
            user.password.encode("utf-8"), password.encode("utf-8")
        ):
            record_login(success=False)
            logger.warning("login_failed", email=email)
            raise UnauthorizedError("Invalid email or password")

        record_login(success=True)
        logger.info("user_logged_in", user_id=user.id)
        return _to_safe(user)

    async def get_reservation_history(self, user_id: int) -> list[Reservation]:
        """A user's reservations, newest first, with concert and user loaded."""
        await self._get(user_id)
        return await self.uow.reservations.find_all(user_id=user_id)
