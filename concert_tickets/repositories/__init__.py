"""
Storage layer - repositories over the relational store.
Keeps business logic clean from ORM query details.
"""

from .interfaces import ConcertRepository, ReservationRepository, UnitOfWork, UserRepository
from .sqlalchemy_store import SqlAlchemyUnitOfWork

__all__ = [
    'ConcertRepository',
    'ReservationRepository',
    'UnitOfWork',
    'UserRepository',
    'SqlAlchemyUnitOfWork',
]
