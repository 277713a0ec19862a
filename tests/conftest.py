"""Shared pytest fixtures and configuration."""

from datetime import datetime, timezone

import pytest

from kintai.config import OrgDirectory
from kintai.session.rows import ledger_to_rows, rows_to_ledger


class InMemorySheetStore:
    """SheetStore stand-in that keeps serialized rows per worksheet."""

    def __init__(self):
        self.sheets = {}
        self.writes = []

    def read_ledger(self, sheet_id, sheet_name):
        return rows_to_ledger(self.sheets.get((sheet_id, sheet_name)))

    def write_ledger(self, sheet_id, sheet_name, ledger):
        rows = ledger_to_rows(ledger)
        self.sheets[(sheet_id, sheet_name)] = rows
        self.writes.append((sheet_id, sheet_name, rows))


@pytest.fixture
def t0():
    """A fixed session start time."""
    return datetime(2024, 1, 15, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def org_directory():
    return OrgDirectory.from_dict({"acme": {"sheetId": "sheet-acme"}})


@pytest.fixture
def sheet_store():
    return InMemorySheetStore()
