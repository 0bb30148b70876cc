"""Submission storage for the Problem Intake backend.

Each accepted submission is written to its own JSON file
(submission-<id>.json) and appended as a row to submissions.csv for easy
viewing. The CSV is a convenience copy: a failure to write it is logged and
does not fail the submission.
"""

from __future__ import annotations

import csv
import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.catalog import Catalog
from app.config import get_config_value, get_settings
from app.propagation import FormSession
from app.schema import Submission
from app.visibility import is_empty

logger = logging.getLogger(__name__)

DATA_DIR = get_settings().data_dir / "submissions"


def new_submission_id() -> str:
    """Generate a short unique ID for a submission."""
    return uuid.uuid4().hex[:12]


def required_fields_for(catalog: Catalog, answers: dict[str, Any]) -> list[str]:
    """Field ids that must be answered for this set of answers.

    Uses the ``required_fields`` override when configured; otherwise the
    required fields that are visible for the submitted answers.
    """
    configured = get_config_value("required_fields", None)
    if configured:
        return list(configured)
    session = FormSession(catalog, answers)
    session.start()
    return [f.field_id for f in session.visible_fields() if f.required]


def find_missing_fields(catalog: Catalog, answers: dict[str, Any]) -> list[str]:
    """Required field ids whose answer is absent or blank."""
    return [
        field_id for field_id in required_fields_for(catalog, answers)
        if is_empty(answers.get(field_id))
    ]


def save_submission(answers: dict[str, Any]) -> Submission:
    """Stamp and persist a submission; returns it.

    Raises OSError if the JSON file cannot be written.
    """
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    submission = Submission(
        submission_id=new_submission_id(),
        submitted_at=datetime.now(timezone.utc).isoformat(),
        answers=dict(answers),
    )
    path = DATA_DIR / f"submission-{submission.submission_id}.json"
    path.write_text(json.dumps(submission.to_dict(), indent=2, ensure_ascii=False))

    try:
        append_to_csv(submission)
    except OSError:
        logger.exception("CSV write failed for submission %s", submission.submission_id)

    return submission


def _csv_cell(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "|".join(str(v) for v in value)
    return "" if value is None else str(value)


def append_to_csv(submission: Submission) -> None:
    """Append a submission as a CSV row, writing the header on first use.

    Rows follow the existing header; keys the header doesn't know are dropped.
    """
    path = DATA_DIR / "submissions.csv"
    row = submission.to_dict()

    if path.exists():
        with path.open("r", encoding="utf-8", newline="") as f:
            header = next(csv.reader(f), list(row))
    else:
        header = list(row)
        with path.open("w", encoding="utf-8", newline="") as f:
            csv.writer(f).writerow(header)

    with path.open("a", encoding="utf-8", newline="") as f:
        csv.writer(f).writerow([_csv_cell(row.get(col)) for col in header])


def load_submission(submission_id: str) -> Submission | None:
    """Load a submission by ID, or None if missing or unreadable."""
    path = DATA_DIR / f"submission-{submission_id}.json"
    if not path.exists():
        return None
    try:
        return Submission.from_dict(json.loads(path.read_text()))
    except (json.JSONDecodeError, OSError):
        return None


def list_submissions() -> list[dict]:
    """Return summary info for all stored submissions, newest first."""
    if not DATA_DIR.exists():
        return []
    summaries: list[dict] = []
    for p in DATA_DIR.glob("submission-*.json"):
        try:
            d = json.loads(p.read_text())
        except (json.JSONDecodeError, OSError):
            continue
        summaries.append({
            "submissionId": d.get("submissionId", ""),
            "submittedAt": d.get("submittedAt", ""),
            "status": d.get("status", ""),
            "organization": d.get("organizationcompanyname", ""),
        })
    summaries.sort(key=lambda s: s["submittedAt"], reverse=True)
    return summaries
