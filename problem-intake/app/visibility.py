"""Conditional field visibility.

A field is visible when two independent gates both pass:

1. Classification gate: the field is universal, or it is flagged for both the
   current complexity level and the current project type.
2. Dependency gate: the field has no ``depends_on_field``, or the referenced
   field's current value is one of ``depends_on_values``.

Everything here is a pure decision over a catalog, a ClassificationState and
a mapping of field id -> current value. ``values`` must hold a key for every
field in the live form; a dependency on a key that isn't there fails closed.
Applying decisions (clearing hidden values, re-rendering) is up to the
caller; see app.propagation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from app.schema import ClassificationState, FieldDescriptor


def value_as_text(value: Any) -> str:
    """Return the comparable text of a value.

    Checkbox groups hold a list of checked option values, joined with ``|``;
    single-valued controls hold the literal value.
    """
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "|".join(str(v) for v in value)
    return str(value)


def empty_value(field: FieldDescriptor) -> str | list[str]:
    """The cleared value for a field's kind."""
    return [] if field.is_multi_valued else ""


def is_empty(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return not str(value or "").strip()


def passes_classification_gate(field: FieldDescriptor, state: ClassificationState) -> bool:
    if field.is_universal:
        return True
    return bool(
        field.complexity_flags.get(state.complexity, False)
        and field.type_flags.get(state.project_type, False)
    )


def passes_dependency_gate(field: FieldDescriptor, values: Mapping[str, Any]) -> bool:
    if not field.depends_on_field:
        return True
    if field.depends_on_field not in values:
        return False
    current = value_as_text(values[field.depends_on_field])
    return current in field.depends_on_values


def resolve(
    field: FieldDescriptor,
    state: ClassificationState,
    values: Mapping[str, Any],
) -> bool:
    """Decide whether *field* is visible."""
    return passes_classification_gate(field, state) and passes_dependency_gate(field, values)


def resolve_all(
    fields: Iterable[FieldDescriptor],
    state: ClassificationState,
    values: Mapping[str, Any],
) -> dict[str, bool]:
    """Decide visibility for every field, keyed by field id."""
    return {f.field_id: resolve(f, state, values) for f in fields}


def initial_visibility(field: FieldDescriptor) -> bool:
    """Render state before the first resolution pass.

    Hidden when ``show_by_default`` is off, and for fields that are neither
    universal nor dependent (those wait for classification).
    """
    if not field.show_by_default:
        return False
    return field.is_universal or bool(field.depends_on_field)


def section_visibility(
    fields: Iterable[FieldDescriptor],
    visibility: Mapping[str, bool],
) -> dict[str, bool]:
    """A section is visible iff at least one of its fields is visible."""
    result: dict[str, bool] = {}
    for f in fields:
        result[f.section] = result.get(f.section, False) or visibility.get(f.field_id, False)
    return result
