"""CLI tests for lint, rules and template."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from tests._plans import CLEAN_PLAN, build_plan, event, funnel
from tests.cli.conftest import write_plan
from trackplan.cli import cli

WARNING_ONLY_PLAN = build_plan(funnel=funnel("report_viewed", "report_exported", window=None))
ERROR_PLAN = build_plan(funnel=funnel("report_viewed", "checkout_started"))


class TestLint:
    def test_clean_plan(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        path = write_plan(cwd, CLEAN_PLAN)
        result = runner.invoke(cli, ["lint", str(path)])
        assert result.exit_code == 0
        assert "1 plan checked: no problems found" in result.output

    def test_errors_exit_1(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        path = write_plan(cwd, ERROR_PLAN)
        result = runner.invoke(cli, ["lint", str(path)])
        assert result.exit_code == 1
        assert f"{path}:8 [Funnel definition] E TP401 funnel-unresolved-step" in result.output
        assert "1 error(s)" in result.output

    def test_warnings_pass_unless_strict(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        path = write_plan(cwd, WARNING_ONLY_PLAN)
        assert runner.invoke(cli, ["lint", str(path)]).exit_code == 0
        assert runner.invoke(cli, ["lint", str(path), "--strict"]).exit_code == 1

    def test_min_severity(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        path = write_plan(cwd, WARNING_ONLY_PLAN)
        result = runner.invoke(cli, ["lint", str(path), "--min-severity", "error"])
        assert "TP403" not in result.output
        assert "1 warning(s)" in result.output

    def test_json_output(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        path = write_plan(cwd, ERROR_PLAN)
        result = runner.invoke(cli, ["lint", str(path), "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["counts"]["error"] == 1
        diag = data["plans"][0]["diagnostics"][0]
        assert diag["rule_id"] == "TP401"
        assert diag["location"]["line"] == 8

    def test_several_plans(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        clean = write_plan(cwd, CLEAN_PLAN, "a.txt")
        bad = write_plan(cwd, ERROR_PLAN, "b.txt")
        result = runner.invoke(cli, ["lint", str(clean), str(bad)])
        assert result.exit_code == 1
        assert "2 plans checked" in result.output

    def test_unreadable_plan_exits_2(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        result = runner.invoke(cli, ["lint", str(cwd / "missing.txt")])
        assert result.exit_code == 2
        assert "cannot read" in result.output

    def test_undecodable_prior_file_exits_2(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        path = write_plan(cwd, CLEAN_PLAN)
        prior = cwd / "prior.txt"
        prior.write_bytes(b"\xff\xfe")
        result = runner.invoke(cli, ["lint", str(path), "--prior", str(prior)])
        assert result.exit_code == 2
        assert "Cannot read prior events" in result.output

    def test_json_plan_file(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        path = cwd / "plan.json"
        path.write_text(json.dumps({"feature": "Report export"}))
        result = runner.invoke(cli, ["lint", str(path), "--json"])
        assert result.exit_code == 1
        rule_ids = {d["rule_id"] for d in json.loads(result.output)["plans"][0]["diagnostics"]}
        assert rule_ids == {"TP001"}

    def test_prior_file_enables_merge_suggestion(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        plan = write_plan(
            cwd,
            build_plan(
                funnel=funnel("report_viewed", "report_csv_exported"),
                new_events=event("report_viewed") + event("report_csv_exported"),
            ),
        )
        prior = cwd / "prior.json"
        prior.write_text(json.dumps(["report_pdf_exported"]))
        result = runner.invoke(cli, ["lint", str(plan), "--prior", str(prior)])
        assert result.exit_code == 0
        assert "I TP105 merge-candidate" in result.output
        assert "-> track a single 'report_exported' event with a 'format' property" in result.output

    def test_disable(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        path = write_plan(cwd, ERROR_PLAN)
        result = runner.invoke(cli, ["lint", str(path), "--disable", "tp401"])
        assert result.exit_code == 0
        assert "TP401" not in result.output

    def test_bad_disable_value_exits_2(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        path = write_plan(cwd, CLEAN_PLAN)
        result = runner.invoke(cli, ["lint", str(path), "--disable", "naming"])
        assert result.exit_code == 2
        assert "Invalid rule id" in result.output

    def test_uses_catalog_in_project(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        first = write_plan(root, CLEAN_PLAN, "first.txt")
        assert runner.invoke(cli, ["record", str(first)]).exit_code == 0
        second = write_plan(root, build_plan(funnel=funnel("report_viewed", "report_exported")), "second.txt")
        with_catalog = runner.invoke(cli, ["lint", str(second)])
        assert "TP103" in with_catalog.output
        without = runner.invoke(cli, ["lint", str(second), "--no-catalog"])
        assert "TP103" not in without.output

    def test_config_disables_rules(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        config_path = root / ".trackplan" / "config.json"
        config = json.loads(config_path.read_text())
        config["disabled_rules"] = ["TP403"]
        config_path.write_text(json.dumps(config))
        path = write_plan(root, WARNING_ONLY_PLAN)
        result = runner.invoke(cli, ["lint", str(path)])
        assert "no problems found" in result.output

    def test_lint_is_logged(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        path = write_plan(root, ERROR_PLAN)
        runner.invoke(cli, ["lint", str(path)])
        log_path = root / ".trackplan" / "trackplan.log"
        records = [json.loads(line) for line in log_path.read_text().splitlines()]
        lint_records = [r for r in records if r.get("command") == "lint"]
        assert lint_records[-1]["counts"] == {"error": 1, "warning": 0, "info": 0}
        assert "duration_ms" in lint_records[-1]


class TestRules:
    def test_lists_rules(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["rules"])
        assert result.exit_code == 0
        assert "TP105  merge-candidate" in result.output

    def test_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["rules", "--json"])
        data = json.loads(result.output)
        assert data[0]["rule_id"] == "TP001"
        assert {"rule_id", "name", "description", "sections"} <= set(data[0])


class TestTemplate:
    def test_prints_template(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["template", "--feature", "Report export"])
        assert result.exit_code == 0
        assert "Feature: Report export" in result.output
        assert "New events to add:" in result.output

    def test_writes_file(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        result = runner.invoke(cli, ["template", "-o", "plan.txt"])
        assert result.exit_code == 0
        assert "Next: trackplan lint plan.txt" in result.output
        assert (cwd / "plan.txt").read_text(encoding="utf-8").startswith("# Tracking plan")

    def test_refuses_to_overwrite(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        (cwd / "plan.txt").write_text("keep me")
        result = runner.invoke(cli, ["template", "-o", "plan.txt"])
        assert result.exit_code == 1
        assert (cwd / "plan.txt").read_text() == "keep me"
        assert runner.invoke(cli, ["template", "-o", "plan.txt", "--force"]).exit_code == 0

    def test_blank_template_parses(self, cli_outside_project: tuple[CliRunner, Path]) -> None:
        runner, cwd = cli_outside_project
        runner.invoke(cli, ["template", "-o", "plan.txt"])
        result = runner.invoke(cli, ["lint", "plan.txt", "--json"])
        diagnostics = json.loads(result.output)["plans"][0]["diagnostics"]
        assert all(d["kind"] != "structural" for d in diagnostics)


class TestVersion:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "trackplan" in result.output
