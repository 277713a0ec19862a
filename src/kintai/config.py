# src/kintai/config.py

import json
import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field

DEFAULT_CREDENTIALS_PATH = (
    "/etc/discord-kintai-bot/google_service_account_credentials.json"
)
DEFAULT_ORG_CONF_PATH = "/etc/discord-kintai-bot/org_to_sheet_id.json"

PROJECT_DIR = Path(__file__).resolve().parent.parent.parent


class UnknownOrganizationError(KeyError):
    """No spreadsheet is configured for an organization."""


class Settings(BaseModel):
    """Process settings, read from the environment at startup."""

    discord_token: Optional[str] = None
    credentials_path: str = DEFAULT_CREDENTIALS_PATH
    org_conf_path: str = DEFAULT_ORG_CONF_PATH
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            discord_token=os.getenv("DISCORD_BOT_TOKEN") or None,
            credentials_path=os.getenv(
                "GOOGLE_SERVICE_ACCOUNT_CREDENTIALS_PATH", DEFAULT_CREDENTIALS_PATH
            ),
            org_conf_path=os.getenv("ORG_TO_SHEET_ID_CONF_PATH", DEFAULT_ORG_CONF_PATH),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
        )


class OrgEntry(BaseModel):
    sheet_id: str = Field(alias="sheetId")


class OrgDirectory:
    """
    Organization to spreadsheet mapping.

    The file format is ``{"<org>": {"sheetId": "<spreadsheet id>"}}``.
    """

    def __init__(self, entries: Optional[Dict[str, OrgEntry]] = None):
        self.entries: Dict[str, OrgEntry] = dict(entries or {})

    @classmethod
    def from_dict(cls, data: Dict) -> "OrgDirectory":
        return cls({org: OrgEntry.model_validate(v) for org, v in data.items()})

    @classmethod
    def from_file(cls, path: str) -> "OrgDirectory":
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def lookup_sheet_id(self, org: str) -> str:
        entry = self.entries.get(org)
        if entry is None:
            raise UnknownOrganizationError(org)
        return entry.sheet_id

    def __contains__(self, org: str) -> bool:
        return org in self.entries

    def __len__(self) -> int:
        return len(self.entries)
