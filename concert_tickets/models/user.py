"""
User model.

The password column is deferred with raiseload: a default SELECT never
fetches it and touching it on such an instance raises instead of
silently issuing a query. Only the login lookup undefers it.
"""

import enum

from sqlalchemy import Column, Integer, String, CheckConstraint
from sqlalchemy.orm import deferred

from concert_tickets.db.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = deferred(Column(String(255), nullable=False), raiseload=True)
    role = Column(String(10), nullable=False, default=UserRole.USER.value)

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'user')", name="check_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
