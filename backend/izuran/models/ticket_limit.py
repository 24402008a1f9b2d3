"""
Per-event, per-ticket-type inventory.

Key design decisions:
- `sold_tickets` is a counter on the limit row, bumped by a conditional
  UPDATE (see inventory_service) so admission is one statement
- CHECK constraints are the last line of defence against overselling
- One row per (event, ticket_type); deactivate instead of deleting
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    Numeric,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from izuran.db.base import Base, TimestampMixin


class TicketLimit(Base, TimestampMixin):
    __tablename__ = "ticket_limits"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ticket_type = Column(String(32), nullable=False)
    max_tickets = Column(Integer, nullable=False)
    sold_tickets = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    is_active = Column(Boolean, nullable=False, default=True)

    event = relationship("Event", back_populates="ticket_limits")

    __table_args__ = (
        UniqueConstraint("event_id", "ticket_type", name="uq_ticket_limit_event_type"),
        CheckConstraint("max_tickets >= 0", name="check_max_tickets_non_negative"),
        CheckConstraint("sold_tickets >= 0", name="check_sold_tickets_non_negative"),
        CheckConstraint("sold_tickets <= max_tickets", name="check_sold_lte_max"),
        CheckConstraint("price >= 0", name="check_ticket_price_non_negative"),
    )

    @property
    def available(self) -> int:
        return max(self.max_tickets - self.sold_tickets, 0)

    def __repr__(self) -> str:
        return (
            f"<TicketLimit(event={self.event_id}, type={self.ticket_type}, "
            f"sold={self.sold_tickets}/{self.max_tickets})>"
        )
