"""
Work commands: start, suspend, resume and end a day's session.

Each command reads the month worksheet, applies one ledger transition to the
day's record and writes the worksheet back. Commands touching the same
worksheet are serialized with a per-worksheet lock.
"""

import asyncio
from typing import Callable, Dict, Optional

from kintai.config import OrgDirectory
from kintai.logger import get_logger
from kintai.session.ledger import (
    SessionRecord,
    end_session,
    resume_session,
    start_session,
    suspend_session,
)
from kintai.session.rows import sheet_name_for
from kintai.sheets import SheetStore

logger = get_logger(__name__)

Transition = Callable[[SessionRecord], SessionRecord]


class WorkService:
    """Applies work commands to the backing spreadsheet."""

    def __init__(self, store: SheetStore, directory: OrgDirectory):
        self.store = store
        self.directory = directory
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_lock(self, sheet_id: str, sheet_name: str) -> asyncio.Lock:
        key = f"{sheet_id}:{sheet_name}"
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def start(self, org: str, date_key: str, session_id: str) -> SessionRecord:
        """Record a new session for ``date_key``, replacing any existing one."""
        sheet_id = self.directory.lookup_sheet_id(org)
        sheet_name = sheet_name_for(date_key)

        async with self._get_lock(sheet_id, sheet_name):
            ledger = await asyncio.to_thread(self.store.read_ledger, sheet_id, sheet_name)
            if date_key in ledger:
                logger.warning(f"Overwriting existing session for {org} on {date_key}")
            record = start_session(session_id)
            ledger[date_key] = record
            await asyncio.to_thread(
                self.store.write_ledger, sheet_id, sheet_name, ledger
            )

        logger.info(f"Started session {session_id} for {org} on {date_key}")
        return record

    async def suspend(self, org: str, date_key: str) -> Optional[SessionRecord]:
        return await self._apply(org, date_key, "suspend", suspend_session)

    async def resume(self, org: str, date_key: str) -> Optional[SessionRecord]:
        return await self._apply(org, date_key, "resume", resume_session)

    async def end(self, org: str, date_key: str) -> Optional[SessionRecord]:
        return await self._apply(org, date_key, "end", end_session)

    async def _apply(
        self, org: str, date_key: str, action: str, transition: Transition
    ) -> Optional[SessionRecord]:
        """
        Apply ``transition`` to the record stored under ``date_key``.

        Returns the new record, or None when no session was started that day.
        """
        sheet_id = self.directory.lookup_sheet_id(org)
        sheet_name = sheet_name_for(date_key)

        async with self._get_lock(sheet_id, sheet_name):
            ledger = await asyncio.to_thread(self.store.read_ledger, sheet_id, sheet_name)
            current = ledger.get(date_key)
            if current is None:
                logger.warning(f"Cannot {action}: no session for {org} on {date_key}")
                return None

            record = transition(current)
            if record is current:
                logger.info(f"{action} had no effect on session {record.session_id}")
                return record

            ledger[date_key] = record
            await asyncio.to_thread(
                self.store.write_ledger, sheet_id, sheet_name, ledger
            )

        logger.info(
            f"Session {record.session_id} {action}: state={record.state} "
            f"break={record.break_minutes:.1f}m working={record.working_minutes:.1f}m"
        )
        return record
