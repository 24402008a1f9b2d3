"""
Audit trail of door scans. One row per validation attempt, including
rejected ones; `ticket_id` is null when the code matched nothing.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func

from izuran.db.base import Base


class TicketValidationLog(Base):
    __tablename__ = "ticket_validation_logs"

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(
        Integer, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=True, index=True
    )
    validated_by = Column(String(100), nullable=False)
    result = Column(String(20), nullable=False)  # accepted, not_found, already_used, void
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
