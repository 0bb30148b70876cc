"""Local persisted state for the Problem Intake form.

Autosaved answers, the autosave timestamp, the collapsed section ids and
the outbox of submissions saved while the backend was unreachable all live
in one JSON file (data/local/state.json), under the same keys the browser
version of this form used for localStorage.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

from app.config import get_settings

DATA_DIR = get_settings().data_dir / "local"

FORM_DATA_KEY = "talentHubFormData"
TIMESTAMP_KEY = "talentHubFormTimestamp"
COLLAPSED_KEY = "collapsedSections"
OUTBOX_KEY = "talentHubSubmissions"


def _load_state() -> dict:
    path = DATA_DIR / "state.json"
    if not path.exists():
        return {}
    try:
        state = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return {}
    return state if isinstance(state, dict) else {}


def _save_state(state: dict) -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    path = DATA_DIR / "state.json"
    path.write_text(json.dumps(state, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Autosave
# ---------------------------------------------------------------------------

def save_autosave(form_data: dict) -> str:
    """Save the in-progress answers; returns the timestamp written."""
    state = _load_state()
    timestamp = datetime.now(timezone.utc).isoformat()
    state[FORM_DATA_KEY] = form_data
    state[TIMESTAMP_KEY] = timestamp
    _save_state(state)
    return timestamp


def load_autosave() -> tuple[dict, str] | None:
    """Return (answers, timestamp) of the last autosave, or None."""
    state = _load_state()
    form_data = state.get(FORM_DATA_KEY)
    if not form_data:
        return None
    return form_data, state.get(TIMESTAMP_KEY, "")


def clear_autosave() -> None:
    state = _load_state()
    if FORM_DATA_KEY in state or TIMESTAMP_KEY in state:
        state.pop(FORM_DATA_KEY, None)
        state.pop(TIMESTAMP_KEY, None)
        _save_state(state)


# ---------------------------------------------------------------------------
# Collapsed sections
# ---------------------------------------------------------------------------

def save_collapsed_sections(section_ids: list[str]) -> None:
    state = _load_state()
    state[COLLAPSED_KEY] = list(section_ids)
    _save_state(state)


def load_collapsed_sections() -> list[str] | None:
    """Collapsed section ids, or None if never saved (collapse all on first load)."""
    collapsed = _load_state().get(COLLAPSED_KEY)
    if collapsed is None:
        return None
    return list(collapsed)


# ---------------------------------------------------------------------------
# Outbox of locally saved submissions
# ---------------------------------------------------------------------------

def append_outbox(submission: dict) -> None:
    state = _load_state()
    state.setdefault(OUTBOX_KEY, []).append(submission)
    _save_state(state)


def load_outbox() -> list[dict]:
    return list(_load_state().get(OUTBOX_KEY, []))


def update_outbox_entry(submission_id: str, changes: dict) -> bool:
    """Merge *changes* into the outbox entry with this submissionId."""
    state = _load_state()
    for entry in state.get(OUTBOX_KEY, []):
        if entry.get("submissionId") == submission_id:
            entry.update(changes)
            _save_state(state)
            return True
    return False


def remove_from_outbox(submission_ids: list[str]) -> int:
    """Drop outbox entries by submissionId; returns how many were removed."""
    state = _load_state()
    outbox = state.get(OUTBOX_KEY, [])
    kept = [s for s in outbox if s.get("submissionId") not in submission_ids]
    removed = len(outbox) - len(kept)
    if removed:
        state[OUTBOX_KEY] = kept
        _save_state(state)
    return removed


def clear_all() -> None:
    """Forget autosave and collapse state (application reset)."""
    state = _load_state()
    for key in (FORM_DATA_KEY, TIMESTAMP_KEY, COLLAPSED_KEY):
        state.pop(key, None)
    _save_state(state)
