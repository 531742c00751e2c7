"""Split-payment engine.

Redistributes one employer's allocated amount into destination legs. Each
leg is a percentage of the source or a fixed amount, and is paid by bank or
cash. Under-allocation leaves a remainder with the source; over-allocation
is flagged but never raised.

Settings change only through commands validated against the employers
currently present in the breakdown (available_keys).
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .amounts import parse_amount
from .schemas import PaymentMethod, SplitConfig, SplitPaymentRule

logger = logging.getLogger(__name__)

RuleMode = Literal["percentage", "amount"]

# Remainders smaller than this are treated as fully allocated.
ALLOCATION_EPSILON = 1e-9


class SplitSettings(BaseModel):
    """Source employer key -> SplitConfig."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    configs: Dict[str, SplitConfig] = Field(default_factory=dict)

    def config_for(self, source_key: str) -> SplitConfig:
        return self.configs.get(source_key, SplitConfig())

    def with_config(self, source_key: str, config: SplitConfig) -> "SplitSettings":
        return self.model_copy(update={"configs": {**self.configs, source_key: config}})

    def active_sources(self) -> List[str]:
        """Sources in split mode that have at least one rule."""
        return [key for key, cfg in self.configs.items() if cfg.mode == "split" and cfg.rules]


# =============================================================================
# Commands
# =============================================================================


class _Command(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class SetSplitMode(_Command):
    kind: Literal["mode"] = "mode"
    source_key: str
    mode: Literal["keep", "split"]


class AddSplitRule(_Command):
    kind: Literal["add"] = "add"
    source_key: str
    target_key: Optional[str] = Field(
        default=None, description="First untargeted employer when omitted"
    )
    mode: RuleMode = "percentage"
    value: float = 0.0
    method: PaymentMethod = "bank"
    rule_id: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def value_from_text(cls, v):
        return parse_amount(v)


class UpdateSplitRule(_Command):
    kind: Literal["update"] = "update"
    source_key: str
    rule_id: str
    target_key: Optional[str] = None
    mode: Optional[RuleMode] = None
    value: Optional[float] = None
    method: Optional[PaymentMethod] = None

    @field_validator("value", mode="before")
    @classmethod
    def value_from_text(cls, v):
        return None if v is None else parse_amount(v)


class RemoveSplitRule(_Command):
    kind: Literal["remove"] = "remove"
    source_key: str
    rule_id: str


SplitCommand = Union[SetSplitMode, AddSplitRule, UpdateSplitRule, RemoveSplitRule]


@dataclass(frozen=True)
class SplitOutcome:
    """Settings after a command, plus an advisory when something was refused."""

    settings: SplitSettings
    advisory: Optional[str] = None


def new_rule_id() -> str:
    return f"split-{uuid.uuid4().hex[:8]}"


def _reject(settings: SplitSettings, message: str) -> SplitOutcome:
    logger.warning(message)
    return SplitOutcome(settings=settings, advisory=message)


def _first_free_target(
    source_key: str,
    config: SplitConfig,
    available_keys: Sequence[str],
) -> Optional[str]:
    targeted = {rule.target_key for rule in config.rules}
    for key in available_keys:
        if key != source_key and key not in targeted:
            return key
    return None


def _target_problem(source_key: str, target_key: str, available_keys: Sequence[str]) -> Optional[str]:
    if target_key == source_key:
        return f"A split rule cannot target its own source ({source_key})"
    if target_key not in available_keys:
        return f"Unknown split destination {target_key}"
    return None


def apply_split_command(
    settings: SplitSettings,
    command: SplitCommand,
    available_keys: Iterable[str],
) -> SplitOutcome:
    """Validate and apply one split command.

    Args:
        settings: Current split settings.
        command: SetSplitMode, AddSplitRule, UpdateSplitRule or RemoveSplitRule.
        available_keys: Employer keys in the current breakdown, in order.

    Returns:
        SplitOutcome. Rejected commands return the settings unchanged with
        an advisory.
    """
    available = list(available_keys)
    source_key = command.source_key
    if source_key not in available:
        return _reject(settings, f"Unknown split source {source_key}")
    config = settings.config_for(source_key)

    if isinstance(command, SetSplitMode):
        if command.mode == "keep" or config.rules:
            return SplitOutcome(settings=settings.with_config(
                source_key, config.model_copy(update={"mode": command.mode})
            ))
        target = _first_free_target(source_key, config, available)
        if target is None:
            return _reject(settings, f"No destination employer available to split {source_key}")
        rule = SplitPaymentRule(id=new_rule_id(), target_key=target)
        return SplitOutcome(settings=settings.with_config(
            source_key, SplitConfig(mode="split", rules=[rule])
        ))

    if isinstance(command, AddSplitRule):
        target = command.target_key or _first_free_target(source_key, config, available)
        if target is None:
            return _reject(settings, f"No destination employer available to split {source_key}")
        problem = _target_problem(source_key, target, available)
        if problem:
            return _reject(settings, problem)
        rule = SplitPaymentRule(
            id=command.rule_id or new_rule_id(),
            target_key=target,
            mode=command.mode,
            value=command.value,
            method=command.method,
        )
        return SplitOutcome(settings=settings.with_config(
            source_key, config.model_copy(update={"rules": config.rules + [rule]})
        ))

    if isinstance(command, UpdateSplitRule):
        existing = next((r for r in config.rules if r.id == command.rule_id), None)
        if existing is None:
            return _reject(settings, f"Unknown split rule {command.rule_id}")
        changes = {
            name: value
            for name, value in (
                ("target_key", command.target_key),
                ("mode", command.mode),
                ("value", command.value),
                ("method", command.method),
            )
            if value is not None
        }
        if "target_key" in changes:
            problem = _target_problem(source_key, changes["target_key"], available)
            if problem:
                return _reject(settings, problem)
        updated = SplitPaymentRule(**{**existing.model_dump(), **changes})
        rules = [updated if r.id == existing.id else r for r in config.rules]
        return SplitOutcome(settings=settings.with_config(
            source_key, config.model_copy(update={"rules": rules})
        ))

    if isinstance(command, RemoveSplitRule):
        rules = [r for r in config.rules if r.id != command.rule_id]
        if len(rules) == len(config.rules):
            return _reject(settings, f"Unknown split rule {command.rule_id}")
        return SplitOutcome(settings=settings.with_config(
            source_key, config.model_copy(update={"rules": rules})
        ))

    raise TypeError(f"Unsupported split command: {type(command).__name__}")


def prune_split_settings(settings: SplitSettings, valid_keys: Iterable[str]) -> SplitSettings:
    """Drop configs whose source is gone and rules whose target is gone."""
    valid = set(valid_keys)
    configs = {}
    for source_key, config in settings.configs.items():
        if source_key not in valid:
            logger.debug(f"Pruned split config for missing employer {source_key}")
            continue
        rules = [r for r in config.rules if r.target_key in valid and r.target_key != source_key]
        if len(rules) != len(config.rules):
            logger.debug(f"Pruned {len(config.rules) - len(rules)} split rule(s) from {source_key}")
        configs[source_key] = config.model_copy(update={"rules": rules})
    return settings.model_copy(update={"configs": configs})


# =============================================================================
# Computation
# =============================================================================


@dataclass(frozen=True)
class SplitLeg:
    """A computed destination leg."""

    rule_id: str
    target_key: str
    method: str
    mode: str
    value: float
    amount: float


@dataclass(frozen=True)
class SplitSummary:
    source_amount: float
    legs: List[SplitLeg] = field(default_factory=list)
    distributed: float = 0.0
    remaining: float = 0.0
    over_allocated: bool = False


def rule_amount(source_amount: float, rule: SplitPaymentRule) -> float:
    if rule.mode == "percentage":
        return source_amount * rule.value / 100
    return rule.value


def compute_split(source_amount: float, config: Optional[SplitConfig]) -> SplitSummary:
    """Apply a source's split rules to its allocated amount.

    Keep mode (or no config) yields no legs and leaves the whole source
    amount remaining.
    """
    if config is None or config.mode != "split":
        return SplitSummary(source_amount=source_amount, remaining=source_amount)

    legs = [
        SplitLeg(
            rule_id=rule.id,
            target_key=rule.target_key,
            method=rule.method,
            mode=rule.mode,
            value=rule.value,
            amount=rule_amount(source_amount, rule),
        )
        for rule in config.rules
    ]
    distributed = sum(leg.amount for leg in legs)
    remaining = source_amount - distributed
    over_allocated = remaining < -ALLOCATION_EPSILON
    if over_allocated:
        logger.warning(
            f"Split legs distribute {distributed:.2f} of {source_amount:.2f} "
            f"(over by {-remaining:.2f})"
        )
    return SplitSummary(
        source_amount=source_amount,
        legs=legs,
        distributed=distributed,
        remaining=remaining,
        over_allocated=over_allocated,
    )
