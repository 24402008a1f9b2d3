"""
Door scanning: consume a ticket code exactly once.

The valid -> used transition is a single conditional UPDATE keyed on the
full code, the same way inventory admission works:

    UPDATE tickets SET status = 'used', used_at = :now, used_by = :scanner
     WHERE code = :code AND status = 'valid'

Of any number of concurrent scans of one code, exactly one updates a row.
Everyone else reads the row back and is told why they lost (already used,
void). A code whose signature does not verify never reaches the database
lookup and is reported as not found, as is a well-signed code with no row.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from izuran.models.ticket import Ticket
from izuran.models.validation_log import TicketValidationLog
from izuran.schemas.ticket import ScanOutcome, ScanResult, TicketResponse
from izuran.services.ticket_codes import verify_ticket_code
from izuran.core.metrics import record_scan
from izuran.core.logging import get_logger

logger = get_logger(__name__)

_MESSAGES = {
    ScanOutcome.ACCEPTED: "Ticket is valid. Entry granted.",
    ScanOutcome.NOT_FOUND: "Ticket not found",
    ScanOutcome.ALREADY_USED: "Ticket has already been used",
    ScanOutcome.VOID: "Ticket is void",
}


async def _log_attempt(
    db: AsyncSession,
    ticket: Optional[Ticket],
    scanner_id: str,
    outcome: ScanOutcome,
    ip_address: Optional[str],
    user_agent: Optional[str],
) -> None:
    db.add(TicketValidationLog(
        ticket_id=ticket.id if ticket else None,
        validated_by=scanner_id,
        result=outcome.value,
        ip_address=ip_address,
        user_agent=user_agent[:255] if user_agent else None,
    ))
    await db.flush()


async def validate_ticket(
    db: AsyncSession,
    code: str,
    scanner_id: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> ScanResult:
    now = datetime.now(timezone.utc)
    ticket: Optional[Ticket] = None

    claims = verify_ticket_code(code)
    if claims is None:
        outcome = ScanOutcome.NOT_FOUND
    else:
        result = await db.execute(
            update(Ticket)
            .where(Ticket.code == code, Ticket.status == "valid")
            .values(status="used", used_at=now, used_by=scanner_id)
            .execution_options(synchronize_session=False)
        )
        ticket = (
            await db.execute(
                select(Ticket)
                .where(Ticket.code == code)
                .execution_options(populate_existing=True)
            )
        ).scalar_one_or_none()

        if result.rowcount == 1:
            outcome = ScanOutcome.ACCEPTED
        elif ticket is None:
            outcome = ScanOutcome.NOT_FOUND
        elif ticket.status == "used":
            outcome = ScanOutcome.ALREADY_USED
        else:
            outcome = ScanOutcome.VOID

    await _log_attempt(db, ticket, scanner_id, outcome, ip_address, user_agent)
    record_scan(outcome.value)

    log = logger.info if outcome is ScanOutcome.ACCEPTED else logger.warning
    log(
        "ticket_scan_accepted" if outcome is ScanOutcome.ACCEPTED else "ticket_scan_rejected",
        reason=outcome.value,
        ticket_id=ticket.ticket_id if ticket else (claims or {}).get("tid"),
        scanner_id=scanner_id,
    )

    return ScanResult(
        accepted=outcome is ScanOutcome.ACCEPTED,
        reason=outcome,
        message=_MESSAGES[outcome],
        ticket=TicketResponse.model_validate(ticket) if ticket else None,
        scanned_at=now,
    )
