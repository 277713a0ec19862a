"""
Spreadsheet row codec for session records.

Each worksheet holds one month; each row one day:

    date | threadId | startTime | endTime | breakTimeRecords | breakTime | workingTime

Timestamps are ISO-8601 strings in UTC. Empty cells mean "absent". Text that
cannot be parsed is kept verbatim so a corrupted cell survives a rewrite.
"""

import json
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kintai.logger import get_logger
from kintai.session.ledger import (
    BreakInterval,
    InvalidTimestamp,
    SessionRecord,
    Timestamp,
    recompute,
)

logger = get_logger(__name__)

HEADERS = [
    "date",
    "threadId",
    "startTime",
    "endTime",
    "breakTimeRecords",
    "breakTime",
    "workingTime",
]
RECORD_RANGE = "A2:G"
BLANK_ROW = [""] * len(HEADERS)
LOCAL_TZ = ZoneInfo("Asia/Tokyo")

DayLedger = Dict[str, SessionRecord]


class BreakPayload(BaseModel):
    """JSON shape of one entry in the ``breakTimeRecords`` cell."""

    model_config = ConfigDict(populate_by_name=True)

    start: Any = Field(default=None, alias="startTime")
    end: Any = Field(default=None, alias="endTime")


# ─── Timestamps ──────────────────────────────────────────────────────


def parse_timestamp(value: Any) -> Timestamp:
    """Parse a cell value; empty or missing becomes ``None``."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return InvalidTimestamp(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(t: Timestamp) -> str:
    """Format a timestamp for a cell; absent becomes the empty string."""
    if t is None:
        return ""
    if isinstance(t, InvalidTimestamp):
        return t.raw
    utc = t.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_minutes(value: Any) -> float:
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        return 0
    return minutes if math.isfinite(minutes) else 0


def _format_minutes(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


# ─── Break records ───────────────────────────────────────────────────


def _payload_timestamp(value: Any) -> Timestamp:
    """Non-string JSON values are kept as invalid timestamps, not dropped."""
    if value is None or isinstance(value, str):
        return parse_timestamp(value)
    return InvalidTimestamp(json.dumps(value))


def parse_breaks(cell: Any) -> List[BreakInterval]:
    """
    Decode the ``breakTimeRecords`` JSON cell.

    Entries that are not objects are skipped one by one so the valid
    intervals of a partly corrupted cell survive a rewrite.
    """
    if not cell:
        return []
    try:
        data = json.loads(cell)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Discarding malformed break records {cell!r}: {e}")
        return []
    if not isinstance(data, list):
        logger.warning(f"Discarding break records that are not a list: {cell!r}")
        return []

    breaks = []
    for item in data:
        try:
            payload = BreakPayload.model_validate(item)
        except ValidationError:
            logger.warning(f"Skipping malformed break record {item!r}")
            continue
        breaks.append(
            BreakInterval(
                start=_payload_timestamp(payload.start),
                end=_payload_timestamp(payload.end),
            )
        )
    return breaks


def format_breaks(breaks) -> str:
    """Encode break intervals, omitting absent timestamps."""
    entries = []
    for b in breaks:
        payload = BreakPayload(
            start=format_timestamp(b.start) or None,
            end=format_timestamp(b.end) or None,
        )
        entries.append(payload.model_dump(by_alias=True, exclude_none=True))
    return json.dumps(entries, ensure_ascii=False)


# ─── Rows ────────────────────────────────────────────────────────────


def _cell(row: List[Any], name: str) -> Any:
    index = HEADERS.index(name)
    return row[index] if index < len(row) else None


def row_to_record(row: List[Any]) -> SessionRecord:
    """Build a record from one sheet row (the date column is ignored)."""
    return SessionRecord(
        session_id=str(_cell(row, "threadId") or ""),
        start_time=parse_timestamp(_cell(row, "startTime")),
        end_time=parse_timestamp(_cell(row, "endTime")),
        breaks=tuple(parse_breaks(_cell(row, "breakTimeRecords"))),
        break_minutes=_parse_minutes(_cell(row, "breakTime")),
        working_minutes=_parse_minutes(_cell(row, "workingTime")),
    )


def record_to_row(date_key: str, record: SessionRecord) -> List[str]:
    """Serialize a record to the fixed column order."""
    return [
        date_key,
        record.session_id,
        format_timestamp(record.start_time),
        format_timestamp(record.end_time),
        format_breaks(record.breaks),
        _format_minutes(record.break_minutes),
        _format_minutes(record.working_minutes),
    ]


def rows_to_ledger(rows: Optional[List[List[Any]]]) -> DayLedger:
    """Key every row by its date column. Later rows win on duplicate dates."""
    ledger: DayLedger = {}
    for row in rows or []:
        date_key = _cell(row, "date")
        if not date_key:
            continue
        ledger[str(date_key)] = row_to_record(row)
    return ledger


def ledger_to_rows(ledger: DayLedger) -> List[List[str]]:
    """
    Serialize a ledger in insertion order.

    The last entry is the one most recently touched by a command, so its
    aggregates are recalculated before writing.
    """
    items = list(ledger.items())
    if items:
        date_key, record = items[-1]
        items[-1] = (date_key, recompute(record))
    return [record_to_row(date_key, record) for date_key, record in items]


# ─── Date keys ───────────────────────────────────────────────────────


def today_key(now: Optional[datetime] = None) -> str:
    """Date key (``YYYY/MM/DD``) for ``now`` in Japan local time."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(LOCAL_TZ).strftime("%Y/%m/%d")


def sheet_name_for(date_key: str) -> str:
    """Worksheet holding ``date_key``: ``YYYY/MM``."""
    parts = date_key.split("/")
    if len(parts) < 2:
        raise ValueError(f"Invalid date key: {date_key!r}")
    return f"{parts[0]}/{parts[1].zfill(2)}"
