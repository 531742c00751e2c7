"""Grouping engine.

Operators bundle several employers into a named group paid with one method
(bank or cash). Groups are for reporting and export only; they never change
the calculated amounts.

Every change is an explicit command applied to an immutable GroupingConfig.
Invalid commands are rejected with an advisory and leave the config as it
was:

    outcome = apply_grouping_command(config, AssignToGroup(group_id="g1", company_key="id:c1"))
    if outcome.advisory:
        ...  # show it, config unchanged
    config = outcome.config
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .amounts import trim_to_none
from .schemas import BreakdownEntry, CalculationResult, CompanyGroup, PaymentMethod

logger = logging.getLogger(__name__)

DEFAULT_GROUP_COLOR = "#3b82f6"


class GroupingConfig(BaseModel):
    """Groups defined for the active worker."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    groups: List[CompanyGroup] = Field(default_factory=list)

    def group(self, group_id: str) -> Optional[CompanyGroup]:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def group_of(self, company_key: str) -> Optional[CompanyGroup]:
        """The group that currently claims an employer, if any."""
        for group in self.groups:
            if company_key in group.companies:
                return group
        return None

    def _replace(self, updated: CompanyGroup) -> "GroupingConfig":
        groups = [updated if g.id == updated.id else g for g in self.groups]
        return self.model_copy(update={"groups": groups})


# =============================================================================
# Commands
# =============================================================================


class _Command(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class CreateGroup(_Command):
    kind: Literal["create"] = "create"
    name: str
    color: str = DEFAULT_GROUP_COLOR
    payment_method: PaymentMethod = "bank"
    group_id: Optional[str] = Field(default=None, description="Generated when omitted")


class DeleteGroup(_Command):
    kind: Literal["delete"] = "delete"
    group_id: str


class RenameGroup(_Command):
    kind: Literal["rename"] = "rename"
    group_id: str
    name: str


class SetGroupPaymentMethod(_Command):
    kind: Literal["payment_method"] = "payment_method"
    group_id: str
    payment_method: PaymentMethod


class AssignToGroup(_Command):
    kind: Literal["assign"] = "assign"
    group_id: str
    company_key: str


class RemoveFromGroup(_Command):
    kind: Literal["remove"] = "remove"
    group_id: str
    company_key: str


GroupingCommand = Union[
    CreateGroup, DeleteGroup, RenameGroup, SetGroupPaymentMethod, AssignToGroup, RemoveFromGroup
]


@dataclass(frozen=True)
class GroupingOutcome:
    """Config after a command, plus the advisory when it was rejected."""

    config: GroupingConfig
    advisory: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.advisory is None


def _reject(config: GroupingConfig, message: str) -> GroupingOutcome:
    logger.warning(message)
    return GroupingOutcome(config=config, advisory=message)


def new_group_id() -> str:
    return f"group-{uuid.uuid4().hex[:8]}"


def apply_grouping_command(config: GroupingConfig, command: GroupingCommand) -> GroupingOutcome:
    """Validate and apply one grouping command.

    Assigning an employer already in the target group removes it (toggle).
    Assigning an employer that belongs to a different group is rejected.
    """
    if isinstance(command, CreateGroup):
        name = trim_to_none(command.name)
        if name is None:
            return _reject(config, "Group name is required")
        group = CompanyGroup(
            id=command.group_id or new_group_id(),
            name=name,
            color=command.color,
            payment_method=command.payment_method,
        )
        if config.group(group.id) is not None:
            return _reject(config, f"Group '{group.id}' already exists")
        return GroupingOutcome(config=config.model_copy(update={"groups": config.groups + [group]}))

    group = config.group(command.group_id)
    if group is None:
        return _reject(config, f"Unknown group '{command.group_id}'")

    if isinstance(command, DeleteGroup):
        groups = [g for g in config.groups if g.id != group.id]
        return GroupingOutcome(config=config.model_copy(update={"groups": groups}))

    if isinstance(command, RenameGroup):
        name = trim_to_none(command.name)
        if name is None:
            return _reject(config, "Group name is required")
        return GroupingOutcome(config=config._replace(group.model_copy(update={"name": name})))

    if isinstance(command, SetGroupPaymentMethod):
        updated = group.model_copy(update={"payment_method": command.payment_method})
        return GroupingOutcome(config=config._replace(updated))

    if isinstance(command, AssignToGroup):
        if command.company_key in group.companies:
            members = [k for k in group.companies if k != command.company_key]
            return GroupingOutcome(config=config._replace(group.model_copy(update={"companies": members})))

        owner = config.group_of(command.company_key)
        if owner is not None:
            return _reject(
                config,
                f"Employer {command.company_key} already belongs to group '{owner.name}'",
            )
        members = group.companies + [command.company_key]
        return GroupingOutcome(config=config._replace(group.model_copy(update={"companies": members})))

    if isinstance(command, RemoveFromGroup):
        if command.company_key not in group.companies:
            return _reject(
                config,
                f"Employer {command.company_key} is not in group '{group.name}'",
            )
        members = [k for k in group.companies if k != command.company_key]
        return GroupingOutcome(config=config._replace(group.model_copy(update={"companies": members})))

    raise TypeError(f"Unsupported grouping command: {type(command).__name__}")


# =============================================================================
# Grouped breakdown
# =============================================================================


@dataclass(frozen=True)
class GroupSummary:
    """A group's totals over the members present in the breakdown."""

    group: CompanyGroup
    hours: float
    amount: float
    members: List[BreakdownEntry] = field(default_factory=list)


@dataclass(frozen=True)
class GroupedBreakdown:
    groups: List[GroupSummary]
    remaining: List[BreakdownEntry]

    @property
    def total_amount(self) -> float:
        return sum(g.amount for g in self.groups) + sum(e.amount for e in self.remaining)


def group_breakdown(result: CalculationResult, config: Optional[GroupingConfig]) -> GroupedBreakdown:
    """Sum breakdown rows per group; unclaimed employers stay individual.

    Members missing from the breakdown (zero hours this period) contribute
    nothing. Remaining rows keep breakdown order.
    """
    groups = config.groups if config is not None else []
    claimed = set()
    summaries = []

    for group in groups:
        members = [
            entry for entry in result.company_breakdown
            if entry.company_key in group.companies
        ]
        claimed.update(entry.company_key for entry in members)
        summaries.append(GroupSummary(
            group=group,
            hours=sum(entry.hours for entry in members),
            amount=sum(entry.amount for entry in members),
            members=members,
        ))

    remaining = [entry for entry in result.company_breakdown if entry.company_key not in claimed]
    return GroupedBreakdown(groups=summaries, remaining=remaining)
