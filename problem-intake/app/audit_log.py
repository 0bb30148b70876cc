"""Append-only JSONL audit trail for the Problem Intake form.

Stores one JSON object per line in date-partitioned files under data/audit/.
Files are named YYYY-MM-DD.jsonl. Records submissions received, rejected and
saved locally, and classification changes seen by the dashboard.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from app.config import get_settings
from app.schema import AuditEntry

DATA_DIR = get_settings().data_dir / "audit"


def _file_for_date(date_str: str) -> Path:
    return DATA_DIR / f"{date_str}.jsonl"


def log_action(
    action: str,
    submission_id: str = "",
    details: dict | None = None,
) -> AuditEntry:
    """Append an AuditEntry to today's JSONL file and return it."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)

    now = datetime.now(timezone.utc)
    entry = AuditEntry(
        timestamp=now.isoformat(),
        action=action,
        submission_id=submission_id,
        details=details or {},
    )

    path = _file_for_date(now.strftime("%Y-%m-%d"))
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")

    return entry


def _read_entries(path: Path) -> list[AuditEntry]:
    """Read a day's entries, newest first. Unreadable lines are skipped."""
    entries: list[AuditEntry] = []
    if not path.exists():
        return entries
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(AuditEntry.from_dict(json.loads(line)))
            except (json.JSONDecodeError, TypeError):
                continue
    entries.reverse()
    return entries


def _audit_files_newest_first() -> list[Path]:
    if not DATA_DIR.exists():
        return []
    return sorted(DATA_DIR.glob("*.jsonl"), key=lambda p: p.stem, reverse=True)


def get_recent_entries(limit: int = 50) -> list[AuditEntry]:
    """Most recent entries across all days, newest first."""
    results: list[AuditEntry] = []
    for path in _audit_files_newest_first():
        results.extend(_read_entries(path))
        if len(results) >= limit:
            break
    return results[:limit]


def get_entries_for_action(action: str, limit: int = 100) -> list[AuditEntry]:
    """Entries with a given action, newest first."""
    results: list[AuditEntry] = []
    for path in _audit_files_newest_first():
        for entry in _read_entries(path):
            if entry.action == action:
                results.append(entry)
                if len(results) >= limit:
                    return results
    return results


def get_entries_for_date(date_str: str) -> list[AuditEntry]:
    """All entries for a specific date (YYYY-MM-DD), newest first."""
    return _read_entries(_file_for_date(date_str))
