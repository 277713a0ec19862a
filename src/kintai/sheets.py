"""
Google Sheets backing store for day ledgers.

Each organization owns one spreadsheet; each month is a worksheet named
``YYYY/MM`` whose rows ``A2:G`` hold one session per day.
"""

import threading
from typing import Any, Dict, Optional, Tuple

from kintai.logger import get_logger
from kintai.session.rows import (
    BLANK_ROW,
    RECORD_RANGE,
    DayLedger,
    ledger_to_rows,
    rows_to_ledger,
)

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class SheetStore:
    """
    Reads and writes day ledgers through the Sheets v4 API.

    The underlying HTTP transport is not thread-safe, so every request made
    from worker threads is serialized on one store-wide lock.
    """

    def __init__(self, credentials_path: Optional[str] = None, service: Any = None):
        self.credentials_path = credentials_path
        self._service = service
        self._lock = threading.Lock()
        # Raw row count last seen per worksheet, blank rows included.
        self._row_counts: Dict[Tuple[str, str], int] = {}

    @property
    def service(self) -> Any:
        # Callers hold self._lock.
        if self._service is None:
            from google.oauth2 import service_account
            from googleapiclient.discovery import build

            credentials = service_account.Credentials.from_service_account_file(
                self.credentials_path, scopes=SCOPES
            )
            self._service = build(
                "sheets", "v4", credentials=credentials, cache_discovery=False
            )
            logger.info("Google Sheets client initialized")
        return self._service

    @staticmethod
    def _range(sheet_name: str) -> str:
        return f"{sheet_name}!{RECORD_RANGE}"

    def read_ledger(self, sheet_id: str, sheet_name: str) -> DayLedger:
        """Load every row of a month worksheet."""
        with self._lock:
            res = (
                self.service.spreadsheets()
                .values()
                .get(spreadsheetId=sheet_id, range=self._range(sheet_name))
                .execute()
            )
            rows = res.get("values") or []
            self._row_counts[(sheet_id, sheet_name)] = len(rows)
        ledger = rows_to_ledger(rows)
        logger.debug(f"Read {len(ledger)} records ({len(rows)} rows) from {sheet_name}")
        return ledger

    def write_ledger(self, sheet_id: str, sheet_name: str, ledger: DayLedger) -> None:
        """
        Overwrite the month worksheet with ``ledger``.

        Blank rows are dropped on read, so the rewrite can be shorter than
        what the sheet holds. The tail is padded with empty rows up to the
        last read row count so no stale copy of a moved row is left behind.
        """
        rows = ledger_to_rows(ledger)
        key = (sheet_id, sheet_name)
        with self._lock:
            padding = self._row_counts.get(key, 0) - len(rows)
            values = rows + [list(BLANK_ROW) for _ in range(max(padding, 0))]
            (
                self.service.spreadsheets()
                .values()
                .update(
                    spreadsheetId=sheet_id,
                    range=self._range(sheet_name),
                    valueInputOption="USER_ENTERED",
                    body={"values": values},
                )
                .execute()
            )
            self._row_counts[key] = len(rows)
        if padding > 0:
            logger.debug(f"Cleared {padding} trailing rows in {sheet_name}")
        logger.debug(f"Wrote {len(rows)} rows to {sheet_name}")
