"""FastAPI backend for the Problem Intake form.

Serves the form configuration, resolves field visibility for a set of
answers, accepts completed submissions (written to disk as JSON plus a CSV
roll-up) and stores the autosave / collapsed-section state.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app import draft_store
from app.audit_log import log_action
from app.catalog import Catalog, load_catalog
from app.config import get_settings
from app.propagation import FormSession
from app.submissions import find_missing_fields, list_submissions, save_submission

logger = logging.getLogger(__name__)

CATALOG_PATH = get_settings().catalog_path

app = FastAPI(title="Problem Intake API")


def _catalog() -> Catalog:
    try:
        return load_catalog(CATALOG_PATH)
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail="Form configuration is not available.")


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class VisibilityRequest(BaseModel):
    """Answers to resolve field visibility against."""

    values: dict[str, str | list[str]] = {}


class AutosaveRequest(BaseModel):
    """In-progress answers to keep until submission."""

    form_data: dict[str, str | list[str]]


class CollapsedSectionsRequest(BaseModel):
    section_ids: list[str]


# ---------------------------------------------------------------------------
# Health and configuration
# ---------------------------------------------------------------------------

@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/form-config")
def form_config() -> dict[str, Any]:
    """Return the field catalog grouped by section, in display order."""
    return _catalog().to_dict()


@app.post("/api/visibility")
def resolve_visibility(request: VisibilityRequest) -> dict[str, Any]:
    """Resolve classification and field/section visibility for answers.

    Values of fields that end up hidden are reported cleared.
    """
    session = FormSession(_catalog(), request.values)
    session.start()
    return {
        "classification": session.state.to_dict(),
        "fields": session.visibility,
        "sections": session.sections,
        "values": session.values,
    }


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------

@app.post("/api/submit-form")
def submit_form(answers: dict[str, Any] = Body(...)) -> Any:
    """Validate required answers and store the submission.

    Returns 400 with the missing field ids when required answers are blank,
    and 500 when the submission cannot be written.
    """
    missing = find_missing_fields(_catalog(), answers)
    if missing:
        log_action("submission_rejected", details={"missing_fields": missing})
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Missing required fields",
                "missingFields": missing,
            },
        )

    try:
        submission = save_submission(answers)
    except OSError:
        logger.exception("Submission error")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to process submission"},
        )

    log_action("submission_received", submission.submission_id)
    return {
        "success": True,
        "message": "Form submitted successfully",
        "submissionId": submission.submission_id,
        "clearLocalStorage": True,
    }


@app.get("/api/submissions")
def submissions() -> list[dict[str, Any]]:
    """List stored submissions, newest first."""
    return list_submissions()


# ---------------------------------------------------------------------------
# Local state
# ---------------------------------------------------------------------------

@app.get("/api/autosave")
def get_autosave() -> dict[str, Any]:
    saved = draft_store.load_autosave()
    if saved is None:
        raise HTTPException(status_code=404, detail="No autosaved answers.")
    form_data, timestamp = saved
    return {"form_data": form_data, "timestamp": timestamp}


@app.put("/api/autosave")
def put_autosave(request: AutosaveRequest) -> dict[str, Any]:
    timestamp = draft_store.save_autosave(request.form_data)
    return {"status": "saved", "timestamp": timestamp}


@app.delete("/api/autosave")
def delete_autosave() -> dict[str, str]:
    draft_store.clear_autosave()
    return {"status": "deleted"}


@app.get("/api/collapsed-sections")
def get_collapsed_sections() -> dict[str, Any]:
    """Collapsed section ids; ``null`` when never saved."""
    return {"section_ids": draft_store.load_collapsed_sections()}


@app.put("/api/collapsed-sections")
def put_collapsed_sections(request: CollapsedSectionsRequest) -> dict[str, Any]:
    draft_store.save_collapsed_sections(request.section_ids)
    return {"status": "saved", "section_ids": request.section_ids}
