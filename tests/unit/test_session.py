"""Tests for session files and the PayrollSession driver."""

import pytest

from salarycalc.sdk.grouping import AssignToGroup
from salarycalc.sdk.schemas import Worker
from salarycalc.sdk.session import (
    PayrollSession,
    SessionFile,
    SessionFileError,
    load_session_file,
    session_from_file,
)


def build_session(data) -> PayrollSession:
    return session_from_file(SessionFile.model_validate(data))


class TestLoadSessionFile:
    def test_yaml_and_json(self, session_data, write_session):
        from_yaml = load_session_file(write_session(session_data))
        from_json = load_session_file(write_session(session_data, name="session.json"))

        assert from_yaml.worker.name == "Ana López"
        assert from_yaml == from_json

    def test_missing_file(self, tmp_path):
        with pytest.raises(SessionFileError, match="not found"):
            load_session_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("worker: [unclosed")
        with pytest.raises(SessionFileError, match="Cannot parse"):
            load_session_file(path)

    def test_schema_errors_are_wrapped(self, session_data, write_session):
        del session_data["worker"]["name"]
        session_data["surprise"] = True
        with pytest.raises(SessionFileError) as exc:
            load_session_file(write_session(session_data))
        assert "worker.name" in str(exc.value)
        assert "surprise" in str(exc.value)


class TestSessionFromFile:
    """Replaying the sample June session in calendar mode."""

    def test_calendar_result(self, session_data):
        outcome = build_session(session_data).calculate()
        result = outcome.result

        assert result.mode == "calendar"
        assert result.total_amount == pytest.approx(1530)
        amounts = {e.name: e.amount for e in result.company_breakdown}
        assert amounts == {"Acme": pytest.approx(1224), "Beta": pytest.approx(306)}
        assert outcome.advisories == []

    def test_attendance_limited_to_period(self, session_data):
        session = build_session(session_data)
        assert list(session.days) == ["2025-06-02", "2025-06-03", "2025-06-04"]
        assert session.days["2025-06-03"].notes == ["Left early"]

    def test_groups_and_splits_resolved_by_name(self, session_data):
        outcome = build_session(session_data).calculate()

        (cash,) = outcome.grouped.groups
        assert cash.group.payment_method == "cash"
        assert cash.amount == pytest.approx(306)
        assert [e.name for e in outcome.grouped.remaining] == ["Acme"]

        split = outcome.splits["id:c1"]
        assert split.legs[0].target_key == "id:c2"
        assert split.legs[0].amount == pytest.approx(612)
        assert split.remaining == pytest.approx(612)

    def test_other_payment_assigned_to_employer(self, session_data):
        session = build_session(session_data)
        assert session.other_payments.totals_by_company() == {None: 50, "id:c1": -20}

    def test_autofill_with_manual_override(self, session_data):
        session_data["autofill"] = {"all": True}
        session_data["contract_inputs"] = {"c1-k1": {"hours": "10"}}

        session = build_session(session_data)
        result = session.calculate().result

        assert session.ledger.hours_for("c1-k1") == "10"
        assert session.ledger.hours_for("c1-k2") == "8"
        assert session.ledger.hours_for("c2-k3") == "4"
        assert result.mode == "manual"
        # base 100 + 80 + 48, plus 50 bonus minus 20 advance
        assert result.total_amount == pytest.approx(258)
        assert result.breakdown_total == pytest.approx(258)

    def test_rejected_group_assignment_becomes_advisory(self, session_data):
        session_data["groups"].append({"id": "g2", "name": "Bank", "companies": ["Beta"]})

        outcome = build_session(session_data).calculate()

        assert any("already belongs" in a for a in outcome.advisories)
        assert outcome.grouped.groups[1].amount == 0

    def test_over_allocated_split_advisory(self, session_data):
        session_data["splits"]["Acme"]["rules"].append(
            {"target": "Beta", "mode": "amount", "value": "1000"}
        )
        outcome = build_session(session_data).calculate()
        assert outcome.splits["id:c1"].over_allocated
        assert any("exceeds" in a for a in outcome.advisories)


class TestPayrollSession:
    def test_calculate_is_idempotent(self, session_data):
        session = build_session(session_data)
        first = session.calculate()
        second = session.calculate()
        assert first.result == second.result
        assert first.splits == second.splits

    def test_select_worker_discards_state(self, session_data):
        session = build_session(session_data)
        session.set_contract_input("c1-k1", "hours", "5")

        session.select_worker(Worker(id="w2", name="Other", base_salary=900))

        assert session.ledger.inputs == {}
        assert session.ledger.manual_overrides == frozenset()
        assert session.grouping.groups == []
        assert session.splits.configs == {}
        assert session.other_payments.totals().net == 0
        assert session.form.base_salary == "900.0"
        assert session.calendar_totals == []

    def test_reset_form_keeps_worker_and_attendance(self, session_data):
        session = build_session(session_data)
        session.reset_form()

        assert session.worker.id == "w1"
        assert session.grouping.groups == []
        assert session.calculate().result.total_amount == pytest.approx(1500)

    def test_split_rules_pruned_when_employer_leaves_breakdown(self, session_data):
        session = build_session(session_data)
        assert session.calculate().splits

        session.set_attendance([
            {"dateTime": "2025-06-02T06:00:00Z", "value": 8, "companyId": "c1", "companyName": "Acme"},
        ])
        outcome = session.calculate()

        assert outcome.splits == {}
        assert session.splits.config_for("id:c1").rules == []

    def test_unknown_contract_and_employer_are_advisories(self, session_data):
        session = build_session(session_data)
        session.set_contract_input("nope", "hours", "3")
        session.set_autofill("id:zzz", True)
        session.apply_grouping(AssignToGroup(group_id="missing", company_key="id:c1"))

        assert len(session.calculate().advisories) == 3
        session.dismiss_advisories()
        assert session.calculate().advisories == []

    def test_export(self, session_data):
        document = build_session(session_data).export()
        assert document.filename == "payroll-ana-lopez-2025-06.pdf"
        assert document.content.startswith(b"%PDF")
        assert "Split payments:" in document.lines

    def test_export_reuses_computed_outcome(self, session_data, monkeypatch):
        session = build_session(session_data)
        outcome = session.calculate()
        monkeypatch.setattr(session, "calculate", lambda: pytest.fail("outcome recomputed"))

        document = session.export(outcome)

        assert "Acme (1,224.00):" in document.lines
