"""Pytest fixtures for Risk Dashboard tests."""

import csv
import json
from datetime import datetime, timezone

import pytest


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings between tests."""
    from risk_dashboard.config import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fixed_now():
    """A fixed timestamp for deterministic risk construction."""
    return datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def later_now():
    """A timestamp after fixed_now, for updates."""
    return datetime(2024, 3, 5, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_risk_data():
    """Raw risk fields as entered in the form."""
    return {
        "description": "Data breach due to weak authentication systems",
        "probability": 6,
        "impact": 8,
        "mitigation_effectiveness": 0.3,
        "owner": "IT Security Team",
        "category": "Cybersecurity",
        "status": "In Progress",
        "notes": "Implementing multi-factor authentication",
    }


@pytest.fixture
def sample_draft(sample_risk_data, fixed_now):
    """A scored draft built from sample_risk_data."""
    from risk_dashboard.scoring import build_risk_item

    return build_risk_item(sample_risk_data, now=fixed_now)


@pytest.fixture
def sample_rows():
    """Spreadsheet-style rows, one of them out of range."""
    return [
        {
            "Description": "Supply chain disruption affecting production",
            "Probability": "4",
            "Impact": "7",
            "Mitigation Effectiveness": "0.5",
            "Owner": "Operations Manager",
            "Category": "Operations",
            "Status": "Open",
            "Notes": "Evaluating alternative suppliers",
        },
        {
            "Description": "Third-party software license compliance issue",
            "Probability": "1",
            "Impact": "3",
            "Mitigation Effectiveness": "90%",
            "Owner": "IT Department",
            "Category": "Legal",
            "Status": "mitigated",
            "Notes": "",
        },
        {
            "Description": "Vendor lock-in on legacy ERP",
            "Probability": "12",
            "Impact": "4",
            "Mitigation Effectiveness": "",
            "Owner": "CIO",
            "Category": "Technology",
            "Status": "Open",
            "Notes": "",
        },
    ]


@pytest.fixture
def sample_csv_file(sample_rows, tmp_path):
    """Create a temporary CSV risk register."""
    file_path = tmp_path / "risks.csv"

    with open(file_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(sample_rows[0]))
        writer.writeheader()
        for row in sample_rows:
            writer.writerow(row)

    return file_path


@pytest.fixture
def sample_jsonl_file(sample_rows, tmp_path):
    """Create a temporary JSONL risk register."""
    file_path = tmp_path / "risks.jsonl"
    with open(file_path, "w") as f:
        for row in sample_rows:
            f.write(json.dumps(row) + "\n")
    return file_path
