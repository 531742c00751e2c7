"""Shared fixtures: isolated config directories and a sample session."""

import json

import pytest
import yaml


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Set up isolated environment with config and data directories."""
    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"

    config_dir.mkdir()
    data_dir.mkdir()

    # Point SDK to isolated directories
    monkeypatch.setenv("SALARY_CALC_CONFIG_PATH", str(config_dir))

    settings = {"data_dir": str(data_dir)}
    (config_dir / "settings.json").write_text(json.dumps(settings))

    return {
        "config_dir": config_dir,
        "data_dir": data_dir,
    }


@pytest.fixture
def session_data():
    """June session: Acme 16h and Beta 4h in the calendar, no ledger entries.

    Calendar mode gives total 1500 + 50 - 20 = 1530, allocated
    Acme 1224 / Beta 306.
    """
    return {
        "worker": {
            "id": "w1",
            "name": "Ana López",
            "baseSalary": 1500,
            "companyContracts": {
                "Acme": [
                    {"id": "k1", "companyId": "c1", "hasContract": True, "hourlyRate": 10},
                    {"id": "k2", "companyId": "c1", "hasContract": True, "hourlyRate": 10},
                ],
                "Beta": [
                    {"id": "k3", "companyId": "c2", "hasContract": True, "hourlyRate": 12},
                ],
            },
        },
        "period": "2025-06",
        "attendance": {
            "hours": [
                {"dateTime": "2025-06-02T06:00:00Z", "value": 8, "companyId": "c1"},
                {"dateTime": "2025-06-03T06:00:00Z", "value": 8, "companyId": "c1"},
                {"dateTime": "2025-06-04T06:00:00Z", "value": 4, "companyId": "c2"},
                {"dateTime": "2025-05-30T06:00:00Z", "value": 8, "companyId": "c1"},
            ],
            "notes": [
                {"dateTime": "2025-06-03T12:00:00Z", "notes": "Left early"},
            ],
            "companies": {"c1": "Acme", "c2": "Beta"},
        },
        "other_payments": {
            "bonuses": [{"label": "Bonus", "amount": 50}],
            "discounts": [{"label": "Advance", "amount": "20", "company": "Acme"}],
        },
        "groups": [
            {"id": "g1", "name": "Cash", "payment_method": "cash", "companies": ["Beta"]},
        ],
        "splits": {
            "Acme": {"rules": [{"target": "Beta", "value": 50}]},
        },
    }


@pytest.fixture
def write_session(tmp_path):
    """Write session data to a YAML (or JSON) file and return its path."""
    def _write(data, name="session.yaml"):
        path = tmp_path / name
        if name.endswith(".json"):
            path.write_text(json.dumps(data))
        else:
            path.write_text(yaml.safe_dump(data, allow_unicode=True))
        return path
    return _write
