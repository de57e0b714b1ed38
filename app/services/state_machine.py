"""
Sign-in / sign-out decision for a single card scan.

No state is kept between scans: the decision is re-derived every time from
the subject's two most recent timestamps, compared by *local calendar day*.

====================  ==========================================  ===================
sign-in today?        sign-out today?                             decision
====================  ==========================================  ===================
no                    no                                          SIGN_IN
yes                   no                                          SIGN_OUT
yes                   yes, at or after the sign-in                ALREADY_RECORDED
yes                   yes, before the sign-in (stale pair)        SIGN_IN
no                    yes                                         STATE_ERROR
====================  ==========================================  ===================
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional

from app.core.clock import ensure_utc, local_date


class Decision(str, enum.Enum):
    SIGN_IN = "SIGN_IN"
    SIGN_OUT = "SIGN_OUT"
    ALREADY_RECORDED = "ALREADY_RECORDED"
    STATE_ERROR = "STATE_ERROR"

    @property
    def creates_event(self) -> bool:
        return self in (Decision.SIGN_IN, Decision.SIGN_OUT)

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    Decision.SIGN_IN: "Signed in",
    Decision.SIGN_OUT: "Signed out",
    Decision.ALREADY_RECORDED: "Attendance already recorded for today (both sign-in and sign-out).",
    Decision.STATE_ERROR: "Unexpected attendance state. Please check records.",
}


@dataclass(frozen=True)
class SubjectAttendanceSnapshot:
    subject_id: Optional[int]
    last_sign_in: Optional[datetime] = None
    last_sign_out: Optional[datetime] = None

    @classmethod
    def of(cls, subject) -> "SubjectAttendanceSnapshot":
        """Snapshot any object exposing ``id`` / ``last_sign_in`` / ``last_sign_out``."""
        return cls(
            subject_id=subject.id,
            last_sign_in=subject.last_sign_in,
            last_sign_out=subject.last_sign_out,
        )


def decide(
    snapshot: SubjectAttendanceSnapshot,
    now: datetime,
    tz: tzinfo | None = None,
) -> Decision:
    today = local_date(now, tz)
    sign_in = ensure_utc(snapshot.last_sign_in) if snapshot.last_sign_in else None
    sign_out = ensure_utc(snapshot.last_sign_out) if snapshot.last_sign_out else None

    in_today = sign_in is not None and local_date(sign_in, tz) == today
    out_today = sign_out is not None and local_date(sign_out, tz) == today

    if in_today and out_today:
        if sign_out >= sign_in:  # type: ignore[operator]
            return Decision.ALREADY_RECORDED
        return Decision.SIGN_IN
    if in_today:
        return Decision.SIGN_OUT
    if out_today:
        return Decision.STATE_ERROR
    return Decision.SIGN_IN
