"""Unit tests for the spreadsheet row codec (kintai.session.rows)."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from kintai.session.ledger import (
    BreakInterval,
    InvalidTimestamp,
    SessionRecord,
    end_session,
    start_session,
    suspend_session,
)
from kintai.session.rows import (
    format_breaks,
    format_timestamp,
    ledger_to_rows,
    parse_breaks,
    parse_timestamp,
    record_to_row,
    row_to_record,
    rows_to_ledger,
    sheet_name_for,
    today_key,
)


class TestTimestamps:
    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_is_absent(self, value):
        assert parse_timestamp(value) is None

    def test_parse_iso_with_z_suffix(self):
        assert parse_timestamp("2024-01-15T09:30:00.000Z") == datetime(
            2024, 1, 15, 9, 30, tzinfo=timezone.utc
        )

    def test_naive_timestamp_assumed_utc(self):
        parsed = parse_timestamp("2024-01-15T09:30:00")
        assert parsed.tzinfo is not None
        assert parsed == datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)

    def test_unparseable_is_kept_as_invalid(self):
        assert parse_timestamp("yesterday-ish") == InvalidTimestamp("yesterday-ish")

    def test_format_absent_is_empty(self):
        assert format_timestamp(None) == ""

    def test_format_invalid_keeps_raw_text(self):
        assert format_timestamp(InvalidTimestamp("yesterday-ish")) == "yesterday-ish"

    def test_format_converts_to_utc_with_milliseconds(self):
        jst = timezone(timedelta(hours=9))
        t = datetime(2024, 1, 15, 18, 30, 5, 123456, tzinfo=jst)
        assert format_timestamp(t) == "2024-01-15T09:30:05.123Z"


class TestBreaks:
    def test_parse_missing_keys_are_absent(self):
        cell = json.dumps([{"startTime": "2024-01-15T03:00:00.000Z"}, {}])

        breaks = parse_breaks(cell)

        assert breaks == [
            BreakInterval(datetime(2024, 1, 15, 3, 0, tzinfo=timezone.utc), None),
            BreakInterval(None, None),
        ]

    def test_parse_null_values_are_absent(self):
        breaks = parse_breaks('[{"startTime": null, "endTime": null}]')
        assert breaks == [BreakInterval(None, None)]

    @pytest.mark.parametrize("cell", [None, "", "not json", '{"a": 1}', "[1, 2]"])
    def test_malformed_cell_is_empty(self, cell):
        assert parse_breaks(cell) == []

    def test_mixed_cell_keeps_valid_entries(self):
        cell = json.dumps(
            [
                {
                    "startTime": "2024-01-15T03:00:00.000Z",
                    "endTime": "2024-01-15T03:30:00.000Z",
                },
                "garbage",
                {"startTime": 1705311000000},
            ]
        )

        breaks = parse_breaks(cell)

        assert breaks == [
            BreakInterval(
                datetime(2024, 1, 15, 3, 0, tzinfo=timezone.utc),
                datetime(2024, 1, 15, 3, 30, tzinfo=timezone.utc),
            ),
            BreakInterval(InvalidTimestamp("1705311000000"), None),
        ]

    def test_mixed_cell_survives_end_session(self):
        start = datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc)
        row = [
            "2024/01/15",
            "thread-1",
            "2024-01-15T00:00:00.000Z",
            "",
            json.dumps(
                [
                    {
                        "startTime": "2024-01-15T03:00:00.000Z",
                        "endTime": "2024-01-15T03:30:00.000Z",
                    },
                    {"startTime": 1705311000000},
                ]
            ),
            "0",
            "0",
        ]

        ended = end_session(row_to_record(row), now=start + timedelta(hours=8))

        assert len(ended.breaks) == 1
        assert ended.break_minutes == 30
        assert ended.working_minutes == 8 * 60 - 30

    def test_format_omits_absent_timestamps(self):
        start = datetime(2024, 1, 15, 3, 0, tzinfo=timezone.utc)

        cell = format_breaks([BreakInterval(start, None)])

        assert json.loads(cell) == [{"startTime": "2024-01-15T03:00:00.000Z"}]

    def test_format_keeps_invalid_raw_text(self):
        start = datetime(2024, 1, 15, 3, 0, tzinfo=timezone.utc)

        cell = format_breaks([BreakInterval(start, InvalidTimestamp("oops"))])

        assert json.loads(cell) == [
            {"startTime": "2024-01-15T03:00:00.000Z", "endTime": "oops"}
        ]


class TestRows:
    def test_row_round_trip(self, t0):
        record = end_session(
            suspend_session(start_session("1234567890", now=t0), now=t0 + timedelta(hours=3)),
            now=t0 + timedelta(hours=4),
        )

        row = record_to_row("2024/01/15", record)

        assert row == [
            "2024/01/15",
            "1234567890",
            "2024-01-15T00:00:00.000Z",
            "2024-01-15T04:00:00.000Z",
            json.dumps(
                [
                    {
                        "startTime": "2024-01-15T03:00:00.000Z",
                        "endTime": "2024-01-15T04:00:00.000Z",
                    }
                ]
            ),
            "60",
            "180",
        ]
        assert row_to_record(row) == record

    def test_empty_cells_are_absent_not_epoch(self):
        record = row_to_record(["2024/01/15", "thread-1", "", "", "[]", "", ""])

        assert record.start_time is None
        assert record.end_time is None
        assert record.breaks == ()
        assert record.break_minutes == 0
        assert record.working_minutes == 0
        assert record.state == "working"

    def test_short_row_is_padded(self):
        record = row_to_record(["2024/01/15", "thread-1", "2024-01-15T00:00:00.000Z"])

        assert record.session_id == "thread-1"
        assert record.end_time is None
        assert record.breaks == ()

    def test_non_numeric_minutes_are_zero(self):
        record = row_to_record(["d", "t", "", "", "[]", "abc", "NaN"])

        assert record.break_minutes == 0
        assert record.working_minutes == 0

    def test_fractional_minutes_round_trip(self, t0):
        record = SessionRecord("t", start_time=t0, break_minutes=12.5, working_minutes=-3.25)

        row = record_to_row("2024/01/15", record)

        assert row[5:] == ["12.5", "-3.25"]
        assert row_to_record(row).break_minutes == 12.5

    def test_rows_to_ledger_keys_by_date(self):
        rows = [
            ["2024/01/15", "a", "", "", "[]", "0", "0"],
            ["", "orphan", "", "", "[]", "0", "0"],
            ["2024/01/16", "b", "", "", "[]", "0", "0"],
        ]

        ledger = rows_to_ledger(rows)

        assert list(ledger) == ["2024/01/15", "2024/01/16"]
        assert ledger["2024/01/16"].session_id == "b"

    def test_rows_to_ledger_handles_missing_values(self):
        assert rows_to_ledger(None) == {}

    def test_ledger_to_rows_recomputes_last_entry(self, t0):
        stale = SessionRecord(
            "t",
            start_time=t0,
            end_time=t0 + timedelta(minutes=90),
            breaks=[BreakInterval(t0, t0 + timedelta(minutes=30))],
        )
        ledger = {"2024/01/14": stale, "2024/01/15": stale}

        rows = ledger_to_rows(ledger)

        assert rows[0][5:] == ["0", "0"]
        assert rows[1][5:] == ["30", "60"]


class TestDateKeys:
    def test_today_key_uses_japan_time(self):
        # 16:00 UTC is already the next day in Tokyo
        assert today_key(datetime(2024, 1, 15, 16, 0, tzinfo=timezone.utc)) == "2024/01/16"
        assert today_key(datetime(2024, 1, 15, 14, 59, tzinfo=timezone.utc)) == "2024/01/15"

    def test_today_key_defaults_to_now(self):
        assert len(today_key()) == len("2024/01/15")

    def test_sheet_name_is_year_and_month(self):
        assert sheet_name_for("2024/01/15") == "2024/01"

    def test_sheet_name_pads_month(self):
        assert sheet_name_for("2024/1/5") == "2024/01"

    def test_sheet_name_rejects_bad_key(self):
        with pytest.raises(ValueError):
            sheet_name_for("20240115")
