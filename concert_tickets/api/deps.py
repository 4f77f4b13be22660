"""
FastAPI dependencies wiring a request's session into the services.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from concert_tickets.db.session import get_db
from concert_tickets.repositories import SqlAlchemyUnitOfWork, UnitOfWork
from concert_tickets.services.concert_service import ConcertService
from concert_tickets.services.reservation_service import ReservationService
from concert_tickets.services.user_service import UserService


def get_uow(db: AsyncSession = Depends(get_db)) -> UnitOfWork:
    return SqlAlchemyUnitOfWork(db)


def get_concert_service(uow: UnitOfWork = Depends(get_uow)) -> ConcertService:
    return ConcertService(uow)


def get_user_service(uow: UnitOfWork = Depends(get_uow)) -> UserService:
    return UserService(uow)


def get_reservation_service(uow: UnitOfWork = Depends(get_uow)) -> ReservationService:
    return ReservationService(uow)
