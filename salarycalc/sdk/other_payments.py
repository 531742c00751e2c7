"""Other-payments ledger.

Free-form adjustment lines grouped by category. Supplements and bonuses add
to gross pay; discounts, debts and deductions subtract from it. Totals feed
the calculator's bonuses/deductions on top of the form fields.
"""

import uuid
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .amounts import parse_amount
from .schemas import OtherPaymentItem, PaymentMethod


OtherPaymentCategory = Literal["supplements", "bonuses", "discounts", "debts", "deductions"]

CATEGORY_ORDER: List[str] = ["supplements", "bonuses", "discounts", "debts", "deductions"]
CREDIT_CATEGORIES = {"supplements", "bonuses"}

CATEGORY_LABELS = {
    "supplements": "Supplements",
    "bonuses": "Bonuses",
    "discounts": "Discounts",
    "debts": "Debts",
    "deductions": "Deductions",
}


@dataclass(frozen=True)
class OtherPaymentsTotals:
    """Summed credits and debits (both non-negative for positive inputs)."""

    additions: float = 0.0
    subtractions: float = 0.0

    @property
    def net(self) -> float:
        return self.additions - self.subtractions


@dataclass(frozen=True)
class OtherPaymentDetail:
    """A resolved ledger line, amount signed by category."""

    id: str
    label: str
    category: str
    amount: float
    company_key: Optional[str]
    payment_method: str

    @property
    def is_income(self) -> bool:
        return self.category in CREDIT_CATEGORIES


def new_item_id() -> str:
    return f"op-{uuid.uuid4().hex[:8]}"


class OtherPaymentsLedger(BaseModel):
    """Per-category lists of adjustment items. Immutable."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    supplements: List[OtherPaymentItem] = Field(default_factory=list)
    bonuses: List[OtherPaymentItem] = Field(default_factory=list)
    discounts: List[OtherPaymentItem] = Field(default_factory=list)
    debts: List[OtherPaymentItem] = Field(default_factory=list)
    deductions: List[OtherPaymentItem] = Field(default_factory=list)

    def items(self, category: OtherPaymentCategory) -> List[OtherPaymentItem]:
        return list(getattr(self, category))

    def add_item(
        self,
        category: OtherPaymentCategory,
        label: str = "",
        amount="",
        company_key: Optional[str] = None,
        payment_method: PaymentMethod = "bank",
        item_id: Optional[str] = None,
    ) -> "OtherPaymentsLedger":
        """Append an item to a category, returning the new ledger."""
        item = OtherPaymentItem(
            id=item_id or new_item_id(),
            label=label,
            amount=amount,
            company_key=company_key,
            payment_method=payment_method,
        )
        return self.model_copy(update={category: self.items(category) + [item]})

    def update_item(
        self,
        category: OtherPaymentCategory,
        item_id: str,
        **changes,
    ) -> "OtherPaymentsLedger":
        """Replace fields of one item. Unknown ids leave the ledger unchanged."""
        updated = []
        for item in self.items(category):
            if item.id == item_id:
                item = OtherPaymentItem(**{**item.model_dump(), **changes})
            updated.append(item)
        return self.model_copy(update={category: updated})

    def remove_item(self, category: OtherPaymentCategory, item_id: str) -> "OtherPaymentsLedger":
        remaining = [item for item in self.items(category) if item.id != item_id]
        return self.model_copy(update={category: remaining})

    def totals(self) -> OtherPaymentsTotals:
        """Sum parseable amounts into additions and subtractions."""
        additions = 0.0
        subtractions = 0.0
        for category in CATEGORY_ORDER:
            for item in self.items(category):
                amount = parse_amount(item.amount)
                if amount == 0:
                    continue
                if category in CREDIT_CATEGORIES:
                    additions += amount
                else:
                    subtractions += amount
        return OtherPaymentsTotals(additions=additions, subtractions=subtractions)

    def details(self) -> List[OtherPaymentDetail]:
        """Non-zero items in category order, amounts signed."""
        rows = []
        for category in CATEGORY_ORDER:
            for item in self.items(category):
                amount = parse_amount(item.amount)
                if amount == 0:
                    continue
                signed = amount if category in CREDIT_CATEGORIES else -amount
                rows.append(OtherPaymentDetail(
                    id=item.id,
                    label=item.label or CATEGORY_LABELS[category],
                    category=category,
                    amount=signed,
                    company_key=item.company_key,
                    payment_method=item.payment_method,
                ))
        return rows

    def totals_by_company(self) -> Dict[Optional[str], float]:
        """Net signed adjustment per assigned employer (None = unassigned)."""
        result: Dict[Optional[str], float] = {}
        for detail in self.details():
            result[detail.company_key] = result.get(detail.company_key, 0.0) + detail.amount
        return result
