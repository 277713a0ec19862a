"""
Work session tracking for Kintai.

- ledger: session records, state derivation and start/suspend/resume/end transitions
- rows: spreadsheet row codec, date keys and worksheet names
"""

from kintai.session.ledger import (
    BreakInterval,
    InvalidTimestamp,
    SessionRecord,
    WorkState,
    derive_state,
    end_session,
    is_valid_timestamp,
    recompute,
    resume_session,
    start_session,
    suspend_session,
)

__all__ = [
    "BreakInterval",
    "InvalidTimestamp",
    "SessionRecord",
    "WorkState",
    "derive_state",
    "end_session",
    "is_valid_timestamp",
    "recompute",
    "resume_session",
    "start_session",
    "suspend_session",
]
