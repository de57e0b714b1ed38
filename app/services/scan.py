"""
Card scan processing: debounce -> look up -> decide -> append.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from app.core.config import settings
from app.core.exceptions import SubjectNotFoundError
from app.db.store import AttendanceStore
from app.models.subject import AttendanceEvent, Subject
from app.services.debounce import (CodeHandler, ScanDebouncer, ScanInputReader,
                                   ScanRejected)
from app.services.state_machine import Decision, SubjectAttendanceSnapshot, decide

logger = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    decision: Decision
    subject: Subject
    event: Optional[AttendanceEvent] = None


ScanResult = Union[ScanOutcome, ScanRejected]


class ScanService:
    """Turn one raw code into at most one attendance event.

    The debouncer lives as long as the service (one per process); everything
    else is re-read from storage on each scan.
    """

    def __init__(self, debouncer: ScanDebouncer) -> None:
        self.debouncer = debouncer

    async def process_scan(
        self, store: AttendanceStore, raw_input: str | None, now: datetime
    ) -> ScanResult:
        verdict = self.debouncer.accept(raw_input, now)
        if isinstance(verdict, ScanRejected):
            logger.info("Scan rejected (%s) for code %r", verdict.reason, verdict.code)
            return verdict

        try:
            subject, decision, event = await self._decide_and_record(store, verdict.code, now)
        except Exception:
            # A failed scan leaves no cooldown behind.
            self.debouncer.forget(verdict.code)
            raise

        if decision is Decision.STATE_ERROR:
            logger.warning(
                "Inconsistent attendance for %s (id %d): last_sign_in=%s last_sign_out=%s",
                subject.display_name,
                subject.id,
                subject.last_sign_in,
                subject.last_sign_out,
            )
        else:
            logger.info("Scan %s for %s (code %s)", decision.value, subject.display_name, subject.code)

        return ScanOutcome(decision=decision, subject=subject, event=event)

    async def _decide_and_record(
        self, store: AttendanceStore, code: str, now: datetime
    ) -> tuple[Subject, Decision, Optional[AttendanceEvent]]:
        subject = await store.get_subject_by_code(code, lock=True)
        if subject is None:
            await store.release()
            raise SubjectNotFoundError(code=code)

        decision = decide(SubjectAttendanceSnapshot.of(subject), now)

        event: AttendanceEvent | None = None
        if decision is Decision.SIGN_IN:
            event = await store.record_sign_in(subject, now)
        elif decision is Decision.SIGN_OUT:
            event = await store.record_sign_out(subject, now)
        else:
            await store.release()
        return subject, decision, event


_scan_service: ScanService | None = None


def get_scan_service() -> ScanService:
    """Process-wide service so the cooldown map survives across requests."""
    global _scan_service
    if _scan_service is None:
        _scan_service = ScanService(
            ScanDebouncer(
                cooldown=timedelta(seconds=settings.SCAN_COOLDOWN_SECONDS),
                retention_windows=settings.SCAN_COOLDOWN_RETENTION_WINDOWS,
                max_entries=settings.SCAN_COOLDOWN_MAX_ENTRIES,
            )
        )
    return _scan_service


def make_scan_reader(on_code: CodeHandler) -> ScanInputReader:
    """Keystroke reader for a kiosk, using the configured idle flush gap."""
    return ScanInputReader(on_code, idle_gap=settings.SCAN_IDLE_FLUSH_MS / 1000)
