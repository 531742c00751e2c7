"""Tests for the salary-calc CLI commands."""

import json

from click.testing import CliRunner

from salarycalc.cli.__main__ import cli


class TestCalculateCommand:
    def test_json_output(self, isolated_env, session_data, write_session):
        runner = CliRunner()
        result = runner.invoke(cli, ["calculate", str(write_session(session_data)), "--format", "json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["worker"]["name"] == "Ana López"
        assert payload["result"]["total_amount"] == 1530
        assert payload["groups"][0]["name"] == "Cash"
        assert payload["splits"]["id:c1"]["legs"][0]["amount"] == 612

    def test_text_output(self, isolated_env, session_data, write_session):
        runner = CliRunner()
        result = runner.invoke(cli, ["calculate", str(write_session(session_data))])

        assert result.exit_code == 0, result.output
        assert "NET SALARY" in result.output
        assert "Acme" in result.output
        assert "Split: Acme" in result.output

    def test_default_format_setting(self, isolated_env, session_data, write_session):
        runner = CliRunner()
        runner.invoke(cli, ["settings", "set", "default_output_format", "json"])

        result = runner.invoke(cli, ["calculate", str(write_session(session_data))])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["period"] == "2025-06"

    def test_missing_session_file(self, isolated_env, tmp_path):
        runner = CliRunner()
        result = runner.invoke(cli, ["calculate", str(tmp_path / "nope.yaml")])

        assert result.exit_code != 0
        assert "not found" in result.output

    def test_invalid_rules_file(self, isolated_env, session_data, write_session):
        (isolated_env["config_dir"] / "rules.yaml").write_text("tax_rate: 7\n")
        runner = CliRunner()
        result = runner.invoke(cli, ["calculate", str(write_session(session_data))])

        assert result.exit_code != 0
        assert "tax_rate" in result.output


class TestHoursCommand:
    def test_json_output(self, isolated_env, session_data, write_session):
        runner = CliRunner()
        result = runner.invoke(cli, ["hours", str(write_session(session_data)), "--format", "json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["total_hours"] == 20
        assert list(payload["days"]) == ["2025-06-02", "2025-06-03", "2025-06-04"]
        assert [t["name"] for t in payload["totals"]] == ["Acme", "Beta"]

    def test_text_output(self, isolated_env, session_data, write_session):
        runner = CliRunner()
        result = runner.invoke(cli, ["hours", str(write_session(session_data))])

        assert result.exit_code == 0, result.output
        assert "2025-06-03" in result.output
        assert "Left early" in result.output


class TestExportCommand:
    def test_default_export_dir(self, isolated_env, session_data, write_session):
        runner = CliRunner()
        result = runner.invoke(cli, ["export", str(write_session(session_data))])

        assert result.exit_code == 0, result.output
        pdf = isolated_env["data_dir"] / "exports" / "payroll-ana-lopez-2025-06.pdf"
        assert pdf.read_bytes().startswith(b"%PDF")

    def test_explicit_output_file(self, isolated_env, session_data, write_session, tmp_path):
        target = tmp_path / "out" / "june.pdf"
        runner = CliRunner()
        result = runner.invoke(cli, ["export", str(write_session(session_data)), "-o", str(target)])

        assert result.exit_code == 0, result.output
        assert target.exists()
        assert str(target) in result.output

    def test_advisories_printed_once(self, isolated_env, session_data, write_session):
        session_data["splits"]["Acme"]["rules"].append(
            {"target": "Beta", "mode": "amount", "value": "1000"}
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["export", str(write_session(session_data))])

        assert result.exit_code == 0, result.output
        assert result.output.count("Advisory: Split of Acme exceeds") == 1


class TestSettingsCommands:
    def test_set_show_unset(self, isolated_env):
        runner = CliRunner()

        result = runner.invoke(cli, ["settings", "set", "export_dir", "/tmp/payroll"])
        assert result.exit_code == 0
        assert "Set export_dir = /tmp/payroll" in result.output

        result = runner.invoke(cli, ["settings", "show"])
        assert "export_dir: /tmp/payroll" in result.output

        result = runner.invoke(cli, ["settings", "unset", "export_dir"])
        assert "Cleared export_dir" in result.output

    def test_numeric_looking_path_stays_text(self, isolated_env, tmp_path):
        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ["settings", "set", "data_dir", "2024"])
            assert result.exit_code == 0, result.output

            saved = json.loads((isolated_env["config_dir"] / "settings.json").read_text())
            assert saved["data_dir"] == "2024"

            result = runner.invoke(cli, ["settings", "show"])
            assert result.exit_code == 0, result.output
            assert "data_dir: 2024" in result.output

    def test_unknown_setting_rejected(self, isolated_env):
        runner = CliRunner()
        result = runner.invoke(cli, ["settings", "set", "colour", "blue"])
        assert result.exit_code != 0
        assert "Unknown setting" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert "salary-calc" in result.output
