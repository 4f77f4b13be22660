"""
Domain errors raised by the services.

Each error carries the HTTP status the API layer answers with, so the
services stay free of FastAPI imports. Persistence errors are never
wrapped in these; they propagate as raised by SQLAlchemy.
"""

from fastapi import status


class ConcertTicketsError(Exception):
    """Base class for all business-rule failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ConcertTicketsError):
    """A referenced concert, user or reservation does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class InvalidRequestError(ConcertTicketsError):
    """Business-rule violation: seat counts, duplicates, bad transitions."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ConcertTicketsError):
    status_code = status.HTTP_401_UNAUTHORIZED
