"""
Reservation model: one user's claim on one seat of one concert.

Key design decisions:
- Unique constraint on (user_id, concert_id): a pair gets one row for
  life, cancelling flips `status` instead of deleting
- ON DELETE CASCADE on both foreign keys, so removing a concert or a user
  removes its reservations at the database level
- Relationships are lazy="raise"; the repository eager-loads them
  explicitly when a read needs the expanded view
"""

import enum

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import relationship

from concert_tickets.db.base import Base, CreatedAtMixin


class ReservationStatus(str, enum.Enum):
    RESERVED = "reserved"
    CANCELLED = "cancelled"


class Reservation(Base, CreatedAtMixin):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    concert_id = Column(
        Integer, ForeignKey("concerts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(20), nullable=False, default=ReservationStatus.RESERVED.value)

    user = relationship("User", lazy="raise")
    concert = relationship("Concert", lazy="raise")

    __table_args__ = (
        UniqueConstraint("user_id", "concert_id", name="uq_reservation_user_concert"),
        CheckConstraint("status IN ('reserved', 'cancelled')", name="check_reservation_status"),
        Index("ix_reservations_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, user={self.user_id}, concert={self.concert_id}, status={self.status})>"
