"""Client configuration.

Endpoints and polling budgets come from the environment. `.env` and then
`.env.local` (overriding) are loaded from the working directory first, so a
local checkout can be configured without exporting variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .errors import ConfigurationError


class ImportSettings(BaseModel):
    """Addresses and timing for the import client."""

    import_endpoint: Optional[str] = Field(default=None, description="Create-job URL (POST).")
    status_endpoint: Optional[str] = Field(default=None, description="Job status URL (GET ?id=).")

    poll_interval_s: float = Field(default=2.0, gt=0)
    poll_timeout_s: float = Field(default=120.0, gt=0)
    http_timeout_s: float = Field(default=20.0, gt=0)

    @classmethod
    def from_env(cls, root: Optional[Path] = None) -> "ImportSettings":
        root = root or Path.cwd()
        load_dotenv(root / ".env")
        load_dotenv(root / ".env.local", override=True)

        return cls(
            import_endpoint=os.getenv("IMPORT_ENDPOINT") or None,
            status_endpoint=os.getenv("IMPORT_STATUS_ENDPOINT") or None,
            poll_interval_s=float(os.getenv("IMPORT_POLL_INTERVAL_S", "2.0")),
            poll_timeout_s=float(os.getenv("IMPORT_POLL_TIMEOUT_S", "120.0")),
            http_timeout_s=float(os.getenv("IMPORT_HTTP_TIMEOUT_S", "20.0")),
        )

    def require_import_endpoint(self) -> str:
        return require_endpoint(self.import_endpoint, "IMPORT_ENDPOINT")

    def require_status_endpoint(self) -> str:
        return require_endpoint(self.status_endpoint, "IMPORT_STATUS_ENDPOINT")


def require_endpoint(value: Optional[str], env_name: str) -> str:
    if not value or not value.strip():
        raise ConfigurationError(f"{env_name} is not set. Add it to the environment or .env and restart.")
    return value.strip()
