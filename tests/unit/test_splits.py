"""Tests for the split-payment engine."""

import pytest

from salarycalc.sdk.schemas import SplitConfig, SplitPaymentRule
from salarycalc.sdk.splits import (
    AddSplitRule,
    RemoveSplitRule,
    SetSplitMode,
    SplitSettings,
    UpdateSplitRule,
    apply_split_command,
    compute_split,
    prune_split_settings,
)

KEYS = ["id:a", "id:b", "id:c"]


def split_config(*rules):
    return SplitConfig(mode="split", rules=list(rules))


class TestComputeSplit:
    def test_percentage_and_fixed_legs(self):
        config = split_config(
            SplitPaymentRule(id="r1", target_key="id:b", mode="percentage", value=60),
            SplitPaymentRule(id="r2", target_key="id:c", mode="amount", value=300, method="cash"),
        )

        summary = compute_split(1000, config)

        assert [leg.amount for leg in summary.legs] == [600, 300]
        assert summary.distributed == 900
        assert summary.remaining == 100
        assert not summary.over_allocated

    def test_over_allocation_is_flagged(self):
        config = split_config(
            SplitPaymentRule(id="r1", target_key="id:b", mode="percentage", value=80),
            SplitPaymentRule(id="r2", target_key="id:c", mode="amount", value=300),
        )
        summary = compute_split(1000, config)
        assert summary.over_allocated
        assert summary.remaining == pytest.approx(-100)

    def test_keep_mode_has_no_legs(self):
        config = SplitConfig(
            mode="keep",
            rules=[SplitPaymentRule(id="r1", target_key="id:b", value=50)],
        )
        summary = compute_split(500, config)
        assert summary.legs == []
        assert summary.remaining == 500

    def test_rule_value_parsed_from_text(self):
        rule = SplitPaymentRule(id="r1", target_key="id:b", value="12,5")
        assert rule.value == 12.5

    def test_command_values_parsed_from_text(self):
        settings = apply_split_command(
            SplitSettings(),
            AddSplitRule(source_key="id:a", target_key="id:b", value="12,5", rule_id="r1"),
            KEYS,
        ).settings
        assert settings.config_for("id:a").rules[0].value == 12.5

        settings = apply_split_command(
            settings, UpdateSplitRule(source_key="id:a", rule_id="r1", value=" 30 "), KEYS
        ).settings
        assert settings.config_for("id:a").rules[0].value == 30

        assert AddSplitRule(source_key="id:a", value="abc").value == 0
        assert UpdateSplitRule(source_key="id:a", rule_id="r1").value is None


class TestSplitCommands:
    def test_switching_to_split_creates_default_rule(self):
        outcome = apply_split_command(SplitSettings(), SetSplitMode(source_key="id:a", mode="split"), KEYS)

        config = outcome.settings.config_for("id:a")
        assert outcome.advisory is None
        assert config.mode == "split"
        assert len(config.rules) == 1
        rule = config.rules[0]
        assert (rule.target_key, rule.mode, rule.method, rule.value) == ("id:b", "percentage", "bank", 0)

    def test_default_target_skips_already_targeted(self):
        settings = apply_split_command(
            SplitSettings(), AddSplitRule(source_key="id:b", target_key="id:a"), KEYS
        ).settings

        settings = apply_split_command(settings, AddSplitRule(source_key="id:b"), KEYS).settings

        assert [r.target_key for r in settings.config_for("id:b").rules] == ["id:a", "id:c"]

    def test_existing_rules_are_kept_when_switching_modes(self):
        settings = apply_split_command(
            SplitSettings(), AddSplitRule(source_key="id:a", target_key="id:c", value=10), KEYS
        ).settings
        settings = apply_split_command(settings, SetSplitMode(source_key="id:a", mode="split"), KEYS).settings
        assert [r.target_key for r in settings.config_for("id:a").rules] == ["id:c"]

        settings = apply_split_command(settings, SetSplitMode(source_key="id:a", mode="keep"), KEYS).settings
        assert settings.config_for("id:a").mode == "keep"
        assert settings.active_sources() == []

    def test_self_target_and_unknown_target_rejected(self):
        settings = SplitSettings()
        outcome = apply_split_command(settings, AddSplitRule(source_key="id:a", target_key="id:a"), KEYS)
        assert outcome.advisory
        assert outcome.settings == settings

        outcome = apply_split_command(settings, AddSplitRule(source_key="id:a", target_key="id:z"), KEYS)
        assert outcome.advisory

    def test_update_and_remove_rule(self):
        settings = apply_split_command(
            SplitSettings(),
            AddSplitRule(source_key="id:a", target_key="id:b", rule_id="r1"),
            KEYS,
        ).settings

        settings = apply_split_command(
            settings,
            UpdateSplitRule(source_key="id:a", rule_id="r1", mode="amount", value=250, method="cash"),
            KEYS,
        ).settings
        rule = settings.config_for("id:a").rules[0]
        assert (rule.mode, rule.value, rule.method) == ("amount", 250, "cash")

        settings = apply_split_command(settings, RemoveSplitRule(source_key="id:a", rule_id="r1"), KEYS).settings
        assert settings.config_for("id:a").rules == []

        outcome = apply_split_command(settings, RemoveSplitRule(source_key="id:a", rule_id="r1"), KEYS)
        assert outcome.advisory

    def test_single_employer_cannot_split(self):
        outcome = apply_split_command(SplitSettings(), SetSplitMode(source_key="id:a", mode="split"), ["id:a"])
        assert outcome.advisory
        assert outcome.settings.configs == {}


class TestPrune:
    def test_prunes_missing_targets_and_sources(self):
        settings = SplitSettings(configs={
            "id:a": split_config(
                SplitPaymentRule(id="r1", target_key="id:b"),
                SplitPaymentRule(id="r2", target_key="id:c"),
            ),
            "id:c": split_config(SplitPaymentRule(id="r3", target_key="id:a")),
        })

        pruned = prune_split_settings(settings, ["id:a", "id:b"])

        assert list(pruned.configs) == ["id:a"]
        assert [r.id for r in pruned.config_for("id:a").rules] == ["r1"]
