"""
Concert model with seat inventory tracking.

Key design decisions:
- `available_seats` is denormalized: it always equals total_seats minus
  the number of this concert's reservations in status 'reserved'
- CHECK constraints keep the counter inside [0, total_seats] even if a
  service bug slips through
- No relationship back to reservations; deleting a concert relies on the
  ON DELETE CASCADE of reservations.concert_id
"""

from sqlalchemy import Column, Integer, String, Text, CheckConstraint

from concert_tickets.db.base import Base


class Concert(Base):
    __tablename__ = "concerts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("total_seats > 0", name="check_total_seats_positive"),
        CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        CheckConstraint("available_seats <= total_seats", name="check_available_lte_total"),
    )

    @property
    def reserved_seats(self) -> int:
        return self.total_seats - self.available_seats

    def __repr__(self) -> str:
        return f"<Concert(id={self.id}, name={self.name}, available={self.available_seats}/{self.total_seats})>"
