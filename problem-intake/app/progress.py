"""Completion tracking over the visible fields of a form session."""

from __future__ import annotations

from typing import Any

from app.propagation import FormSession
from app.visibility import is_empty


def is_field_completed(value: Any) -> bool:
    """True once a field has an answer.

    A checkbox group counts once any option is checked, anything else once
    its stripped value is non-empty.
    """
    return not is_empty(value)


def calculate_completion(session: FormSession) -> dict:
    """Summarize how much of the visible form has been answered.

    Returns:
        Dict with keys:
        - total_fields: number of visible fields
        - completed_fields: visible fields with a value
        - total_required: visible required fields
        - completed_required: visible required fields with a value
        - required_missing: ids of visible required fields without a value
        - completion_pct: percentage complete (0-100)
    """
    visible = session.visible_fields()
    total = len(visible)
    completed = [f for f in visible if is_field_completed(session.values[f.field_id])]
    required = [f for f in visible if f.required]
    completed_ids = {f.field_id for f in completed}

    return {
        "total_fields": total,
        "completed_fields": len(completed),
        "total_required": len(required),
        "completed_required": sum(1 for f in required if f.field_id in completed_ids),
        "required_missing": [f.field_id for f in required if f.field_id not in completed_ids],
        "completion_pct": round(len(completed) / total * 100) if total else 0,
    }
