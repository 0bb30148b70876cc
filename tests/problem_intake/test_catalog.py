"""Tests for problem-intake/app/catalog.py -- CSV parsing and field catalog."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "problem-intake"))

from app.catalog import (
    build_catalog,
    load_catalog,
    normalize_field_id,
    parse_csv,
)

HEADER = "section_title,form_label,form_class,item_label_1,item_label_2"


# ── parse_csv ────────────────────────────────────────────────────────────


class TestParseCsv:
    def test_rows_keyed_by_header(self):
        rows = parse_csv(f"{HEADER}\nBasics,Name,text,,\n")
        assert rows == [{
            "section_title": "Basics",
            "form_label": "Name",
            "form_class": "text",
            "item_label_1": "",
            "item_label_2": "",
        }]

    def test_overflow_stays_in_last_column(self):
        rows = parse_csv(f"{HEADER}\nBasics,Skills,checkbox-group,Data,Other (specify, below)\n")
        assert rows[0]["item_label_2"] == "Other (specify, below)"

    def test_short_rows_padded(self):
        rows = parse_csv(f"{HEADER}\nBasics,Name\n")
        assert rows[0]["form_class"] == ""
        assert rows[0]["item_label_2"] == ""

    def test_blank_lines_skipped(self):
        rows = parse_csv(f"{HEADER}\n\nBasics,Name,text\n   \nBasics,Email,text\n")
        assert [r["form_label"] for r in rows] == ["Name", "Email"]

    def test_crlf_line_endings(self):
        rows = parse_csv(f"{HEADER}\r\nBasics,Name,text\r\n")
        assert rows[0]["form_class"] == "text"

    def test_values_stripped(self):
        rows = parse_csv(f"{HEADER}\n Basics , Name ,text\n")
        assert rows[0]["section_title"] == "Basics"
        assert rows[0]["form_label"] == "Name"

    def test_empty_text(self):
        assert parse_csv("") == []

    def test_header_only(self):
        assert parse_csv(HEADER) == []


# ── Field ids ────────────────────────────────────────────────────────────


class TestFieldIds:
    def test_normalize_strips_punctuation_and_case(self):
        assert normalize_field_id("Organization/Company Name") == "organizationcompanyname"
        assert normalize_field_id("Budget Range ($)") == "budgetrange"

    def test_explicit_field_id_column_wins(self):
        catalog = build_catalog([
            {"form_label": "Budget Range", "form_class": "select", "field_id": "budget"},
        ])
        assert catalog.get("budget") is not None
        assert "budgetrange" not in catalog

    def test_colliding_ids_get_suffix(self):
        catalog = build_catalog([
            {"form_label": "Notes", "form_class": "text"},
            {"form_label": "Notes!", "form_class": "textarea"},
            {"form_label": "NOTES", "form_class": "text"},
        ])
        assert [f.field_id for f in catalog] == ["notes", "notes_2", "notes_3"]


# ── build_catalog ────────────────────────────────────────────────────────


class TestBuildCatalog:
    def test_drops_rows_without_label(self):
        catalog = build_catalog([
            {"form_label": "", "form_class": "text"},
            {"form_label": "Name", "form_class": "text"},
        ])
        assert len(catalog) == 1

    def test_drops_unknown_kind(self):
        catalog = build_catalog([
            {"form_label": "Signature", "form_class": "canvas"},
            {"form_label": "Name", "form_class": "text"},
        ])
        assert [f.field_id for f in catalog] == ["name"]

    def test_flags_parsed(self, small_catalog_csv):
        catalog = build_catalog(parse_csv(small_catalog_csv))
        api = catalog.get("apisurface")
        assert api.complexity_flags == {"simple": False, "standard": True, "complex": False}
        assert api.type_flags == {"strategic": False, "technical": True, "operational": False}
        assert api.is_universal is False
        assert api.required is False

    def test_show_by_default_only_false_when_explicit(self):
        catalog = build_catalog([
            {"form_label": "A", "form_class": "text", "show_by_default": ""},
            {"form_label": "B", "form_class": "text", "show_by_default": "FALSE"},
        ])
        assert catalog.get("a").show_by_default is True
        assert catalog.get("b").show_by_default is False

    def test_dependency_values_split_on_pipe(self, small_catalog_csv):
        catalog = build_catalog(parse_csv(small_catalog_csv))
        current = catalog.get("currentsystems")
        assert current.depends_on_field == "problemcategory"
        assert current.depends_on_values == ("Technical", "Operational")

    def test_options_in_column_order(self, small_catalog_csv):
        catalog = build_catalog(parse_csv(small_catalog_csv))
        assert catalog.get("deploymenttargets").options == ("Cloud", "On-premise", "Edge")

    def test_extra_type_columns(self):
        catalog = build_catalog([
            {"form_label": "Dataset", "form_class": "text", "type_research": "TRUE"},
        ])
        assert catalog.get("dataset").type_flags["research"] is True
        assert catalog.get("dataset").type_flags["strategic"] is False

    def test_dependents_of(self, small_catalog_csv):
        catalog = build_catalog(parse_csv(small_catalog_csv))
        assert [f.field_id for f in catalog.dependents_of("problemcategory")] == ["currentsystems"]
        assert catalog.dependents_of("organizationname") == []

    def test_sections_in_first_appearance_order(self, small_catalog_csv):
        catalog = build_catalog(parse_csv(small_catalog_csv))
        assert catalog.sections() == ["Basics", "Technical Detail", "Logistics"]
        grouped = catalog.get_fields_by_section()
        assert [f.field_id for f in grouped["Logistics"]] == [
            "workmode", "officelocation", "milestoneschedule",
        ]

    def test_to_dict(self, small_catalog_csv):
        data = build_catalog(parse_csv(small_catalog_csv)).to_dict()
        assert [s["title"] for s in data["sections"]] == ["Basics", "Technical Detail", "Logistics"]
        first = data["sections"][0]["fields"][0]
        assert first["field_id"] == "organizationname"
        assert first["placeholder"] == "e.g. Acme Corp"
        assert isinstance(first["options"], list)


# ── load_catalog ─────────────────────────────────────────────────────────


class TestLoadCatalog:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalog(tmp_path / "nope.csv")

    def test_shipped_catalog(self, form_csv_path):
        catalog = load_catalog(form_csv_path)
        assert len(catalog) == 29
        ids = [f.field_id for f in catalog]
        assert len(ids) == len(set(ids))
        for f in catalog:
            if f.depends_on_field:
                assert f.depends_on_field in catalog

    def test_shipped_catalog_keeps_comma_in_last_option(self, form_csv_path):
        skills = load_catalog(form_csv_path).get("requiredskills")
        assert skills.options[-1] == "Other (specify in notes, below)"
