"""Tests for problem-intake/app/classification.py -- complexity and project type."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "problem-intake"))

import app.config as config_mod
from app.catalog import build_catalog, parse_csv
from app.classification import (
    _DEFAULT_BUDGET_COMPLEXITY,
    _DEFAULT_DURATION_COMPLEXITY,
    classify,
    classify_values,
    complexity_for_budget,
    complexity_for_duration,
    expected_field_counts,
    explain,
    project_type_for,
)
from app.schema import COMPLEXITY_LEVELS, ClassificationState


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path):
    """Redirect tool overrides to tmp_path for every test."""
    with patch.object(config_mod, "CONFIG_DIR", tmp_path / "config"):
        yield


# ── Complexity ───────────────────────────────────────────────────────────


class TestClassify:
    def test_longer_duration_wins(self):
        assert classify("$5K-15K", "6-12 months") == "complex"

    def test_larger_budget_wins(self):
        assert classify("$100K-250K", "1-2 weeks") == "complex"

    def test_both_standard(self):
        assert classify("$15K-50K", "1-3 months") == "standard"

    def test_empty_inputs_default_to_simple(self):
        assert classify("", "") == "simple"

    def test_unmapped_values_count_as_simple(self):
        assert complexity_for_budget("a few dollars") == "simple"
        assert complexity_for_duration("forever") == "simple"
        assert classify("a few dollars", "3-6 months") == "standard"

    def test_never_below_either_mapped_level(self):
        rank = COMPLEXITY_LEVELS.index
        for budget in list(_DEFAULT_BUDGET_COMPLEXITY) + [""]:
            for duration in list(_DEFAULT_DURATION_COMPLEXITY) + [""]:
                level = classify(budget, duration)
                assert rank(level) >= rank(complexity_for_budget(budget))
                assert rank(level) >= rank(complexity_for_duration(duration))

    def test_config_override(self):
        config_mod.save_config({"budget_complexity": {"Under $5K": "complex"}})
        assert classify("Under $5K", "1-2 weeks") == "complex"
        # keys missing from an override map fall back to simple
        assert complexity_for_budget("$250K+") == "simple"


# ── Project type ─────────────────────────────────────────────────────────


class TestProjectType:
    def test_lowercased_category(self):
        assert project_type_for("Technical") == "technical"
        assert project_type_for("Operational") == "operational"

    def test_empty_category_is_strategic(self):
        assert project_type_for("") == "strategic"


# ── classify_values / explain ────────────────────────────────────────────


class TestClassifyValues:
    def test_defaults_for_empty_form(self):
        assert classify_values({}) == ClassificationState("simple", "strategic")

    def test_reads_form_values(self):
        state = classify_values({
            "budgetrange": "$50K-100K",
            "projectduration": "1-2 weeks",
            "problemcategory": "Operational",
        })
        assert state == ClassificationState("standard", "operational")

    def test_none_values_treated_as_empty(self):
        state = classify_values({"budgetrange": None, "problemcategory": None})
        assert state == ClassificationState()

    def test_explain(self):
        breakdown = explain({"budgetrange": "$5K-15K", "projectduration": "6-12 months"})
        assert breakdown == {
            "budget_range": "$5K-15K",
            "project_duration": "6-12 months",
            "budget_complexity": "simple",
            "duration_complexity": "complex",
            "complexity": "complex",
            "project_type": "strategic",
        }


# ── expected_field_counts ────────────────────────────────────────────────


def test_expected_field_counts(small_catalog_csv):
    catalog = build_catalog(parse_csv(small_catalog_csv))
    assert expected_field_counts(catalog, "technical") == {
        "simple": 9,
        "standard": 12,
        "complex": 11,
    }
    assert expected_field_counts(catalog, "strategic") == {
        "simple": 9,
        "standard": 9,
        "complex": 9,
    }
