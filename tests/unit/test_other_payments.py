"""Tests for the other-payments ledger."""

import pytest

from salarycalc.sdk.other_payments import OtherPaymentsLedger


@pytest.fixture
def ledger():
    return (
        OtherPaymentsLedger()
        .add_item("supplements", label="Night shift", amount="40,5", item_id="s1")
        .add_item("bonuses", amount=100, item_id="b1")
        .add_item("debts", label="Loan", amount="25", company_key="id:c1", item_id="d1")
        .add_item("deductions", label="Typo", amount="abc", item_id="x1")
    )


class TestLedgerUpdates:
    def test_add_returns_new_ledger(self):
        empty = OtherPaymentsLedger()
        added = empty.add_item("bonuses", label="Bonus", amount="10")

        assert empty.items("bonuses") == []
        assert len(added.items("bonuses")) == 1
        assert added.items("bonuses")[0].id.startswith("op-")

    def test_update_item(self, ledger):
        updated = ledger.update_item("debts", "d1", amount="30", payment_method="cash")

        (debt,) = updated.items("debts")
        assert debt.amount == "30"
        assert debt.payment_method == "cash"
        assert ledger.items("debts")[0].amount == "25"

    def test_update_unknown_id_is_noop(self, ledger):
        assert ledger.update_item("debts", "nope", amount="1") == ledger

    def test_remove_item(self, ledger):
        removed = ledger.remove_item("supplements", "s1")
        assert removed.items("supplements") == []
        assert removed.totals().additions == pytest.approx(100)


class TestTotals:
    def test_credits_and_debits(self, ledger):
        totals = ledger.totals()

        assert totals.additions == pytest.approx(140.5)
        assert totals.subtractions == pytest.approx(25)
        assert totals.net == pytest.approx(115.5)

    def test_details_are_signed_and_skip_unparseable(self, ledger):
        details = ledger.details()

        assert [d.id for d in details] == ["s1", "b1", "d1"]
        assert [d.amount for d in details] == pytest.approx([40.5, 100, -25])
        # blank label falls back to the category name
        assert details[1].label == "Bonuses"
        assert details[2].is_income is False

    def test_totals_by_company(self, ledger):
        assert ledger.totals_by_company() == {
            None: pytest.approx(140.5),
            "id:c1": pytest.approx(-25),
        }
