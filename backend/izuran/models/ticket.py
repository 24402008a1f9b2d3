"""
Issued ticket.

`ticket_id` is the public reference printed on the confirmation;
`code` is the signed token encoded in the QR image. Status only ever moves
valid -> used (door scan) or valid -> void (cancellation).
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    ForeignKey,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from izuran.db.base import Base, TimestampMixin

TICKET_STATUSES = ("valid", "used", "void")


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(String(32), nullable=False, unique=True, index=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ticket_type = Column(String(32), nullable=False)
    owner_user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    attendee_name = Column(String(255), nullable=False)
    attendee_email = Column(String(255), nullable=False)
    attendee_phone = Column(String(50), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(String(10), nullable=False, default="valid")
    code = Column(String(512), nullable=False, unique=True)
    used_at = Column(DateTime(timezone=True), nullable=True)
    used_by = Column(String(100), nullable=True)

    event = relationship("Event", back_populates="tickets")
    owner = relationship("User", back_populates="tickets")

    __table_args__ = (
        CheckConstraint("status IN ('valid', 'used', 'void')", name="check_ticket_status"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(ticket_id={self.ticket_id}, event={self.event_id}, status={self.status})>"
