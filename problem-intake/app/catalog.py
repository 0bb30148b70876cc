"""Field catalog for the Problem Intake form.

Parses the CSV form configuration into an ordered list of FieldDescriptor
objects and indexes them by field id, section and dependency.

The CSV is split on commas at most ``len(headers) - 1`` times per line, so
commas inside the trailing option-label column stay part of that column.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from app.config import get_settings
from app.schema import (
    COMPLEXITY_LEVELS,
    FIELD_KINDS,
    PROJECT_TYPES,
    FieldDescriptor,
)

logger = logging.getLogger(__name__)

MAX_OPTIONS = 6


def parse_csv(text: str) -> list[dict[str, str]]:
    """Parse catalog CSV text into a list of row dicts keyed by header."""
    lines = text.strip().replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if not lines or not lines[0].strip():
        return []

    headers = [h.strip() for h in lines[0].split(",")]
    num_columns = len(headers)

    rows: list[dict[str, str]] = []
    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue
        values = [v.strip() for v in line.split(",", num_columns - 1)]
        values.extend([""] * (num_columns - len(values)))
        rows.append(dict(zip(headers, values)))
    return rows


def _flag(value: str) -> bool:
    return value.strip().upper() == "TRUE"


def normalize_field_id(label: str) -> str:
    """Derive a field id from a label: lowercase, non-alphanumerics stripped."""
    return re.sub(r"[^a-z0-9]", "", label.lower())


def _build_field(row: dict[str, str], field_id: str) -> FieldDescriptor:
    complexity_flags = {
        level: _flag(row.get(f"complexity_{level}", ""))
        for level in COMPLEXITY_LEVELS
    }
    # Any type_<name> column is a project type, not only the documented three.
    type_names = list(PROJECT_TYPES) + [
        k[len("type_"):] for k in row
        if k.startswith("type_") and k[len("type_"):] not in PROJECT_TYPES
    ]
    type_flags = {name: _flag(row.get(f"type_{name}", "")) for name in type_names}

    depends_on_values = tuple(
        v.strip() for v in row.get("depends_on_values", "").split("|") if v.strip()
    )
    options = tuple(
        row[f"item_label_{i}"]
        for i in range(1, MAX_OPTIONS + 1)
        if row.get(f"item_label_{i}")
    )

    return FieldDescriptor(
        field_id=field_id,
        label=row["form_label"].strip(),
        kind=row["form_class"].strip(),
        section=row.get("section_title", "").strip(),
        instructions=row.get("form_instructions", ""),
        placeholder=row.get("placeholder", ""),
        required=_flag(row.get("required", "")),
        is_universal=_flag(row.get("is_universal", "")),
        show_by_default=row.get("show_by_default", "").strip().upper() != "FALSE",
        complexity_flags=complexity_flags,
        type_flags=type_flags,
        depends_on_field=row.get("depends_on_field", "").strip(),
        depends_on_values=depends_on_values,
        options=options,
    )


class Catalog:
    """Ordered, immutable collection of form fields."""

    def __init__(self, fields: list[FieldDescriptor]):
        self._fields = list(fields)
        self._by_id = {f.field_id: f for f in self._fields}
        self._dependents: dict[str, list[FieldDescriptor]] = {}
        for f in self._fields:
            if f.depends_on_field:
                self._dependents.setdefault(f.depends_on_field, []).append(f)

    def __iter__(self):
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._by_id

    @property
    def fields(self) -> list[FieldDescriptor]:
        return list(self._fields)

    def get(self, field_id: str) -> FieldDescriptor | None:
        return self._by_id.get(field_id)

    def dependents_of(self, field_id: str) -> list[FieldDescriptor]:
        """Fields whose depends_on_field names *field_id*."""
        return list(self._dependents.get(field_id, []))

    def sections(self) -> list[str]:
        """Section titles in first-appearance order."""
        seen: dict[str, None] = {}
        for f in self._fields:
            seen.setdefault(f.section, None)
        return list(seen)

    def get_fields_by_section(self) -> dict[str, list[FieldDescriptor]]:
        """Group fields by section, maintaining order."""
        result: dict[str, list[FieldDescriptor]] = {}
        for f in self._fields:
            result.setdefault(f.section, []).append(f)
        return result

    def to_dict(self) -> dict:
        return {
            "sections": [
                {"title": title, "fields": [f.to_dict() for f in fields]}
                for title, fields in self.get_fields_by_section().items()
            ]
        }


def build_catalog(rows: list[dict[str, str]]) -> Catalog:
    """Build a Catalog from parsed rows, dropping rows that can't be used.

    A row without a label or with an unknown form_class is skipped. Field
    ids come from the optional ``field_id`` column or the normalized label;
    a repeated id gets a ``_2``, ``_3`` ... suffix.
    """
    fields: list[FieldDescriptor] = []
    taken: set[str] = set()

    for index, row in enumerate(rows, start=1):
        label = row.get("form_label", "").strip()
        kind = row.get("form_class", "").strip()
        if not label or kind not in FIELD_KINDS:
            logger.warning("Dropping catalog row %d (label=%r, form_class=%r)", index, label, kind)
            continue

        base_id = row.get("field_id", "").strip() or normalize_field_id(label)
        if not base_id:
            logger.warning("Dropping catalog row %d: label %r yields an empty id", index, label)
            continue
        field_id = base_id
        suffix = 2
        while field_id in taken:
            field_id = f"{base_id}_{suffix}"
            suffix += 1
        taken.add(field_id)

        fields.append(_build_field(row, field_id))

    return Catalog(fields)


def load_catalog(path: Path | None = None) -> Catalog:
    """Load and build the catalog from a CSV file.

    Raises FileNotFoundError if the file is missing.
    """
    path = path or get_settings().catalog_path
    text = Path(path).read_text(encoding="utf-8")
    return build_catalog(parse_csv(text))
