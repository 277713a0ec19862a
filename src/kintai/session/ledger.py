"""
Work session ledger.

Holds the state machine and duration accounting for a single day's work
session:

- start:   open a new session
- suspend: open a break interval
- resume:  close the current break interval
- end:     close the session and any open break

Records are immutable. Every transition returns a new record and leaves its
input untouched; the session state is derived from the record's timestamps
on every read rather than stored.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Literal, Optional, Tuple, Union

WorkState = Literal["working", "break", "completed"]


@dataclass(frozen=True)
class InvalidTimestamp:
    """A timestamp cell that was present but could not be parsed."""

    raw: str


Timestamp = Optional[Union[datetime, InvalidTimestamp]]


def is_valid_timestamp(t: Timestamp) -> bool:
    """True only for a real point in time; absent and unparseable are both invalid."""
    return isinstance(t, datetime)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _minutes_between(a: datetime, b: datetime) -> float:
    return abs((b - a).total_seconds()) / 60


@dataclass(frozen=True)
class BreakInterval:
    """One pause period within a session."""

    start: Timestamp = None
    end: Timestamp = None

    @property
    def is_open(self) -> bool:
        return is_valid_timestamp(self.start) and not is_valid_timestamp(self.end)

    @property
    def minutes(self) -> float:
        """Length of the break, or 0 when either side is not a valid timestamp."""
        if not is_valid_timestamp(self.start) or not is_valid_timestamp(self.end):
            return 0.0
        return _minutes_between(self.start, self.end)


@dataclass(frozen=True)
class SessionRecord:
    """
    One day's work session.

    ``break_minutes`` and ``working_minutes`` are maintained by the transition
    functions in this module; ``state`` is always derived from ``end_time``
    and the last break.
    """

    session_id: str
    start_time: Timestamp = None
    end_time: Timestamp = None
    breaks: Tuple[BreakInterval, ...] = ()
    break_minutes: float = 0
    working_minutes: float = 0

    def __post_init__(self):
        # Accept any iterable of intervals but always hold an immutable tuple
        if not isinstance(self.breaks, tuple):
            object.__setattr__(self, "breaks", tuple(self.breaks))

    @property
    def state(self) -> WorkState:
        return derive_state(self)


def derive_state(record: SessionRecord) -> WorkState:
    """
    Derive the session state from its timestamps.

    A valid end time always means ``completed``, even if a break is still
    open. Otherwise the session is on ``break`` while its last break has a
    valid start and no valid end.
    """
    if is_valid_timestamp(record.end_time):
        return "completed"

    last = record.breaks[-1] if record.breaks else None
    if last is not None and last.is_open:
        return "break"

    return "working"


def recompute(record: SessionRecord) -> SessionRecord:
    """
    Recalculate break and working minutes.

    Working minutes are only recalculated when both the session start and end
    are valid; otherwise the previous value is kept. The result is not clamped
    at zero.
    """
    break_minutes = sum((b.minutes for b in record.breaks), 0.0)

    if not is_valid_timestamp(record.start_time) or not is_valid_timestamp(
        record.end_time
    ):
        return replace(record, break_minutes=break_minutes)

    total = _minutes_between(record.start_time, record.end_time)
    return replace(
        record,
        break_minutes=break_minutes,
        working_minutes=total - break_minutes,
    )


def start_session(session_id: str, now: Optional[datetime] = None) -> SessionRecord:
    """Open a new working session keyed by ``session_id``."""
    return SessionRecord(
        session_id=session_id,
        start_time=now or _utcnow(),
        end_time=None,
        breaks=(),
        break_minutes=0,
        working_minutes=0,
    )


def suspend_session(
    record: SessionRecord, now: Optional[datetime] = None
) -> SessionRecord:
    """
    Start a break.

    A session already on break gets another open interval appended.
    Aggregates are left as they are since no interval is closed.
    """
    now = now or _utcnow()
    breaks = record.breaks + (BreakInterval(start=now, end=None),)
    return replace(record, breaks=breaks)


def resume_session(
    record: SessionRecord, now: Optional[datetime] = None
) -> SessionRecord:
    """
    Close the current break.

    Returns ``record`` itself when there is no break to close.
    """
    if not record.breaks:
        return record

    now = now or _utcnow()
    breaks = record.breaks[:-1] + (replace(record.breaks[-1], end=now),)
    return recompute(replace(record, breaks=breaks))


def end_session(record: SessionRecord, now: Optional[datetime] = None) -> SessionRecord:
    """
    Finish the session.

    Breaks without a valid start are dropped, open breaks are closed at the
    session end time, and breaks whose end is still unparseable are dropped.
    """
    now = now or _utcnow()

    started = [b for b in record.breaks if is_valid_timestamp(b.start)]
    closed = [replace(b, end=now) if b.end is None else b for b in started]
    breaks = tuple(b for b in closed if is_valid_timestamp(b.end))

    return recompute(replace(record, end_time=now, breaks=breaks))
