"""Tests for operator input parsing and employer name helpers."""

import pytest

from salarycalc.sdk.amounts import (
    company_key_for,
    is_valid_company_name,
    normalize_company_label,
    parse_amount,
    parse_time_to_minutes,
)


class TestParseAmount:
    """parse_amount never raises and shares one locale rule."""

    @pytest.mark.parametrize("text,expected", [
        ("160", 160.0),
        ("12,5", 12.5),
        (" 1 234,5 ", 1234.5),
        ("-20", -20.0),
        (7, 7.0),
        (2.25, 2.25),
    ])
    def test_parses_numbers(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", [
        "", "   ", "abc", "1.2.3", None, True, "inf", "nan",
        # float() would accept these
        "1_5", "\u0661\u0662", "0x10",
    ])
    def test_invalid_input_is_zero(self, text):
        assert parse_amount(text) == 0.0


class TestCompanyNames:
    def test_placeholder_names_are_invalid(self):
        assert not is_valid_company_name("")
        assert not is_valid_company_name(None)
        assert not is_valid_company_name("Sin empresa")
        assert not is_valid_company_name("  EMPRESA SIN NOMBRE ")

    def test_real_name_is_valid(self):
        assert is_valid_company_name("Acme")

    def test_normalize_strips_accents_case_and_spacing(self):
        assert normalize_company_label("  Limpiezas  Álvarez ") == "limpiezas alvarez"

    def test_company_key_prefers_id(self):
        assert company_key_for("c1", "Acme") == "id:c1"
        assert company_key_for(None, " Acme ") == "name:Acme"
        assert company_key_for(None, None) == "unassigned"


class TestParseTime:
    def test_hours_and_minutes(self):
        assert parse_time_to_minutes("08:30") == 510
        assert parse_time_to_minutes("8:30:15") == 510

    def test_rejects_malformed(self):
        assert parse_time_to_minutes("25:00") is None
        assert parse_time_to_minutes("later") is None
        assert parse_time_to_minutes(None) is None
