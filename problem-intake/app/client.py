"""Submission client for the Problem Intake form.

Probes the backend health endpoint before every submission. When the backend
is reachable the answers are POSTed as JSON; when it isn't (or the response
isn't JSON) they go to the local outbox in app.draft_store, to be resent
later with ``resubmit_pending``. Only one submission may be in flight at a
time; overlapping attempts are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import requests

from app import draft_store
from app.config import get_settings
from app.submissions import new_submission_id

logger = logging.getLogger(__name__)

OUTBOX_METADATA = ("submissionId", "submittedAt", "status", "missingFields")


@dataclass
class SubmissionResult:
    """What happened to one submit attempt."""

    status: str                # submitted | saved_locally | rejected | failed | dropped
    submission_id: str = ""
    error: str = ""
    missing_fields: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status in ("submitted", "saved_locally")


class SubmissionClient:
    def __init__(
        self,
        api_base: str | None = None,
        health_timeout: float | None = None,
        submit_timeout: float | None = None,
    ):
        settings = get_settings()
        self.api_base = (api_base or settings.api_base).rstrip("/")
        self.health_timeout = health_timeout or settings.health_timeout
        self.submit_timeout = submit_timeout or settings.submit_timeout
        self.is_submitting = False

    def check_health(self) -> bool:
        """True only if the backend answers its health probe with a 2xx."""
        try:
            resp = requests.get(f"{self.api_base}/api/health", timeout=self.health_timeout)
        except requests.RequestException:
            return False
        return resp.ok

    def submit(self, answers: dict) -> SubmissionResult:
        """Submit answers, falling back to the local outbox when offline."""
        if self.is_submitting:
            return SubmissionResult("dropped", error="A submission is already in progress.")
        self.is_submitting = True
        try:
            if not self.check_health():
                return self._save_locally(answers)
            try:
                return self._post(answers)
            except (requests.RequestException, ValueError) as e:
                logger.warning("Submission transport failed, saving locally: %s", e)
                return self._save_locally(answers)
        finally:
            self.is_submitting = False

    def _post(self, answers: dict) -> SubmissionResult:
        """POST answers to the backend.

        Raises requests.RequestException on transport errors and ValueError
        when the response is not JSON.
        """
        resp = requests.post(
            f"{self.api_base}/api/submit-form",
            json=answers,
            timeout=self.submit_timeout,
        )
        content_type = resp.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise ValueError("Server not available. Please ensure the server is running.")
        result = resp.json()

        if result.get("success"):
            if result.get("clearLocalStorage"):
                draft_store.clear_autosave()
            return SubmissionResult("submitted", submission_id=result.get("submissionId", ""))

        missing = result.get("missingFields") or []
        if missing:
            return SubmissionResult(
                "rejected",
                error=result.get("error", "Missing required fields"),
                missing_fields=list(missing),
            )
        return SubmissionResult("failed", error=result.get("error") or "Submission failed")

    def _save_locally(self, answers: dict) -> SubmissionResult:
        submission = {
            **answers,
            "submissionId": new_submission_id(),
            "submittedAt": datetime.now(timezone.utc).isoformat(),
            "status": "saved_locally",
        }
        draft_store.append_outbox(submission)
        draft_store.clear_autosave()
        return SubmissionResult("saved_locally", submission_id=submission["submissionId"])

    def resubmit_pending(self) -> list[SubmissionResult]:
        """Resend outbox entries; only accepted ones leave the outbox.

        Rejected entries stay, marked ``rejected`` with their missing fields,
        and their results carry the local submission id.
        """
        pending = draft_store.load_outbox()
        if not pending or not self.check_health():
            return []

        results: list[SubmissionResult] = []
        accepted: list[str] = []
        for entry in pending:
            local_id = entry.get("submissionId", "")
            answers = {k: v for k, v in entry.items() if k not in OUTBOX_METADATA}
            try:
                result = self._post(answers)
            except (requests.RequestException, ValueError) as e:
                logger.warning("Resubmission of %s failed: %s", local_id, e)
                break
            if result.status == "submitted":
                accepted.append(local_id)
            elif result.status == "rejected":
                result.submission_id = local_id
                draft_store.update_outbox_entry(
                    local_id, {"status": "rejected", "missingFields": result.missing_fields},
                )
            results.append(result)

        if accepted:
            draft_store.remove_from_outbox(accepted)
        return results
