"""Run identifier helpers."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from regverify.common.errors import ContractError

_RUN_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def generate_run_id(prefix: str = "batch") -> str:
    now = datetime.now(tz=timezone.utc)
    return now.strftime(f"{prefix}-%Y%m%dT%H%M%S%fZ")


def validate_run_id(run_id: str) -> str:
    # Run ids become file names under the output directory.
    if not _RUN_ID_RE.match(run_id):
        raise ContractError(f"Invalid run id: {run_id!r}")
    return run_id
