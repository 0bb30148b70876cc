"""Complexity and project-type classification.

The complexity level is the higher of the levels implied by the budget range
and the project duration; either dimension alone can push a project into a
higher bracket. The project type is the selected problem category, lowercased.

Mapping tables can be overridden through the tool config
(``budget_complexity`` / ``duration_complexity``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from app.config import get_config_value
from app.schema import (
    COMPLEXITY_LEVELS,
    DEFAULT_COMPLEXITY,
    DEFAULT_PROJECT_TYPE,
    ClassificationState,
    FieldDescriptor,
)
from app.visibility import passes_classification_gate, value_as_text

BUDGET_FIELD = "budgetrange"
DURATION_FIELD = "projectduration"
CATEGORY_FIELD = "problemcategory"

COMPLEXITY_INPUTS = (BUDGET_FIELD, DURATION_FIELD)
TYPE_INPUTS = (CATEGORY_FIELD,)

_DEFAULT_BUDGET_COMPLEXITY: dict[str, str] = {
    "Under $5K": "simple",
    "$5K-15K": "simple",
    "$15K-50K": "standard",
    "$50K-100K": "standard",
    "$100K-250K": "complex",
    "$250K+": "complex",
}

_DEFAULT_DURATION_COMPLEXITY: dict[str, str] = {
    "1-2 weeks": "simple",
    "3-4 weeks": "simple",
    "1-3 months": "standard",
    "3-6 months": "standard",
    "6-12 months": "complex",
    "12+ months": "complex",
}


def budget_complexity_map() -> dict[str, str]:
    return get_config_value("budget_complexity", _DEFAULT_BUDGET_COMPLEXITY)


def duration_complexity_map() -> dict[str, str]:
    return get_config_value("duration_complexity", _DEFAULT_DURATION_COMPLEXITY)


def _rank(level: str) -> int:
    try:
        return COMPLEXITY_LEVELS.index(level)
    except ValueError:
        return 0


def complexity_for_budget(budget: str) -> str:
    """Map a budget range to a complexity level (simple when unmapped)."""
    return budget_complexity_map().get(budget or "", DEFAULT_COMPLEXITY)


def complexity_for_duration(duration: str) -> str:
    """Map a project duration to a complexity level (simple when unmapped)."""
    return duration_complexity_map().get(duration or "", DEFAULT_COMPLEXITY)


def classify(budget: str, duration: str) -> str:
    """Return the higher of the budget and duration complexity levels."""
    levels = (complexity_for_budget(budget), complexity_for_duration(duration))
    return max(levels, key=_rank)


def project_type_for(category: str) -> str:
    """Return the project type for a problem category (strategic when empty)."""
    return category.lower() if category else DEFAULT_PROJECT_TYPE


def classify_values(values: Mapping[str, Any]) -> ClassificationState:
    """Derive the classification state from current form values."""
    return ClassificationState(
        complexity=classify(
            value_as_text(values.get(BUDGET_FIELD)),
            value_as_text(values.get(DURATION_FIELD)),
        ),
        project_type=project_type_for(value_as_text(values.get(CATEGORY_FIELD))),
    )


def explain(values: Mapping[str, Any]) -> dict[str, str]:
    """Break down how the current classification was reached."""
    budget = value_as_text(values.get(BUDGET_FIELD))
    duration = value_as_text(values.get(DURATION_FIELD))
    state = classify_values(values)
    return {
        "budget_range": budget,
        "project_duration": duration,
        "budget_complexity": complexity_for_budget(budget),
        "duration_complexity": complexity_for_duration(duration),
        "complexity": state.complexity,
        "project_type": state.project_type,
    }


def expected_field_counts(
    fields: Iterable[FieldDescriptor],
    project_type: str,
) -> dict[str, int]:
    """Count the fields admitted at each complexity level for a project type.

    Only the classification gate is applied; dependencies are ignored.
    """
    fields = list(fields)
    return {
        level: sum(
            1 for f in fields
            if passes_classification_gate(f, ClassificationState(level, project_type))
        )
        for level in COMPLEXITY_LEVELS
    }
