"""
Door staff endpoints: scan a ticket code, void a ticket.

Rejected scans are not HTTP errors. The scanner always gets a 200 with
`accepted` and a `reason`, so the door device can show the right message.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from izuran.db.session import get_db
from izuran.models.user import User
from izuran.schemas.ticket import ScanRequest, ScanResult, VoidResponse
from izuran.services.validation_service import validate_ticket
from izuran.services.ticket_service import void_ticket
from izuran.core.security import require_admin

router = APIRouter(prefix="/admin/tickets", tags=["Scanner"])


@router.post("/validate", response_model=ScanResult)
async def validate(
    scan: ScanRequest,
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await validate_ticket(
        db,
        scan.code,
        scanner_id=scan.scanner_id or admin.username,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/{ticket_id}/void", response_model=VoidResponse)
async def void(
    ticket_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Void a valid ticket and return its unit to inventory."""
    ticket = await void_ticket(db, ticket_id)
    return VoidResponse(message="Ticket voided", ticket_id=ticket.ticket_id, status=ticket.status)
