"""Shared fixtures for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

TOOL_DIR = Path(__file__).resolve().parent.parent / "problem-intake"

SMALL_CATALOG_CSV = """\
section_title,form_label,form_instructions,placeholder,form_class,required,is_universal,show_by_default,depends_on_field,depends_on_values,complexity_simple,complexity_standard,complexity_complex,type_strategic,type_technical,type_operational,item_label_1,item_label_2,item_label_3,item_label_4,item_label_5,item_label_6
Basics,Organization Name,,e.g. Acme Corp,text,TRUE,TRUE,TRUE,,,TRUE,TRUE,TRUE,TRUE,TRUE,TRUE
Basics,Problem Category,,,radio-group,TRUE,TRUE,TRUE,,,TRUE,TRUE,TRUE,TRUE,TRUE,TRUE,Strategic,Technical,Operational
Basics,Budget Range,,,select,TRUE,TRUE,TRUE,,,TRUE,TRUE,TRUE,TRUE,TRUE,TRUE,Under $5K,$5K-15K,$15K-50K,$50K-100K,$100K-250K,$250K+
Basics,Project Duration,,,select,TRUE,TRUE,TRUE,,,TRUE,TRUE,TRUE,TRUE,TRUE,TRUE,1-2 weeks,3-4 weeks,1-3 months,3-6 months,6-12 months,12+ months
Basics,Current Systems,,,textarea,FALSE,FALSE,TRUE,problemcategory,Technical|Operational,TRUE,TRUE,TRUE,TRUE,TRUE,TRUE
Basics,Integration Notes,,,text,FALSE,FALSE,TRUE,currentsystems,Legacy ERP,TRUE,TRUE,TRUE,TRUE,TRUE,TRUE
Technical Detail,API Surface,,,textarea,FALSE,FALSE,TRUE,,,FALSE,TRUE,FALSE,FALSE,TRUE,FALSE
Technical Detail,Deployment Targets,,,checkbox-group,FALSE,FALSE,TRUE,,,FALSE,TRUE,TRUE,FALSE,TRUE,FALSE,Cloud,On-premise,Edge
Technical Detail,Rollback Plan,,,text,FALSE,FALSE,TRUE,deploymenttargets,Cloud,FALSE,TRUE,TRUE,FALSE,TRUE,FALSE
Logistics,Work Mode,,,radio-group,TRUE,TRUE,TRUE,,,TRUE,TRUE,TRUE,TRUE,TRUE,TRUE,Remote,On-site,Hybrid
Logistics,Office Location,,,text,FALSE,FALSE,TRUE,workmode,On-site|Hybrid,TRUE,TRUE,TRUE,TRUE,TRUE,TRUE
Logistics,Milestone Schedule,,,textarea,FALSE,FALSE,FALSE,paymentstructure,Milestone-Based,TRUE,TRUE,TRUE,TRUE,TRUE,TRUE
"""


@pytest.fixture()
def small_catalog_csv():
    """A twelve-field catalog covering gating, dependencies and a cascade.

    Milestone Schedule depends on a field that isn't in the catalog.
    """
    return SMALL_CATALOG_CSV


@pytest.fixture()
def form_csv_path():
    """The catalog shipped with the tool."""
    return TOOL_DIR / "data" / "form.csv"


@pytest.fixture()
def sample_answers():
    """A complete simple/strategic submission for the shipped catalog."""
    return {
        "organizationcompanyname": "Acme Corp",
        "industrysector": "Technology",
        "coreproblemstatement": "Customer onboarding takes three weeks and loses a third of sign-ups.",
        "targetaudiencebeneficiaries": "New business customers and the onboarding team",
        "problemcategory": "Strategic",
        "desiredoutputsdeliverables": ["Strategy Document", "Process Redesign"],
        "successmetrics": "Onboarding under one week",
        "projectstartdate": "2026-11-02",
        "projectduration": "1-2 weeks",
        "urgencylevel": "Medium",
        "budgetrange": "Under $5K",
        "paymentstructure": "Fixed Price",
        "workmode": "Remote",
        "communicationfrequency": "Weekly",
        "experiencelevelrequired": "Senior",
    }
