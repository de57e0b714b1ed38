"""
Card scan endpoint (kiosk).

Every outcome of a scan is a 200 with a ``status`` field; only an unknown
code is an error (404).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from fastapi import APIRouter, Depends

from app.api.v1.deps import get_clock, get_store
from app.db.store import AttendanceStore
from app.schemas.attendance import ScanRequest, ScanResponse, ScanSubject
from app.services.debounce import ScanRejected
from app.services.scan import ScanService, get_scan_service

router = APIRouter(tags=["scan"])
logger = logging.getLogger(__name__)

_REJECT_MESSAGES = {
    "empty": "Please scan or enter a valid code.",
    "cooldown": "Please wait before scanning the same card again.",
}


@router.post("/scan", response_model=ScanResponse)
async def scan_card(
    body: ScanRequest,
    store: AttendanceStore = Depends(get_store),
    service: ScanService = Depends(get_scan_service),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ScanResponse:
    """Record a card tap as a sign-in or sign-out, or explain why not."""
    result = await service.process_scan(store, body.code, clock())

    if isinstance(result, ScanRejected):
        return ScanResponse(
            success=False,
            status="REJECTED",
            message=_REJECT_MESSAGES[result.reason],
            reason=result.reason,
            retry_after=result.retry_after or None,
        )

    return ScanResponse(
        success=result.decision.creates_event,
        status=result.decision.value,
        message=result.decision.message,
        subject=ScanSubject.model_validate(result.subject),
        event_id=result.event.id if result.event else None,
        event_timestamp=result.event.timestamp if result.event else None,
    )
