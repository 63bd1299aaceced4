"""Tests for the individual lint rules."""

from __future__ import annotations

import pytest

from tests._plans import CLEAN_PLAN, HEADER, build_plan, event, funnel
from trackplan.diagnostics import Diagnostic
from trackplan.linter import lint, lint_text
from trackplan.parser import parse_plan, plan_from_dict
from trackplan.rules import RULES, LintOptions, iter_rules
from trackplan.types.core import ProjectConfig
from trackplan.validation import decompose_event_name


def _of(diags: list[Diagnostic], rule_id: str) -> list[Diagnostic]:
    return [d for d in diags if d.rule_id == rule_id]


def _single_event_plan(name: str, *props: str) -> str:
    return build_plan(funnel=funnel(name, "report_exported"), new_events=event(name, *props) + event("report_exported"))


class TestCleanPlan:
    def test_no_diagnostics(self) -> None:
        assert lint_text(CLEAN_PLAN) == []


class TestRegistry:
    def test_rule_ids_sorted(self) -> None:
        ids = [r.rule_id for r in iter_rules()]
        assert ids == sorted(ids)
        assert {"TP001", "TP002", "TP101", "TP105", "TP301", "TP401", "TP501", "TP601"} <= set(ids)

    def test_structural_rules_have_no_check(self) -> None:
        assert RULES["TP001"].check is None
        assert RULES["TP002"].check is None

    def test_to_dict_uses_section_titles(self) -> None:
        assert RULES["TP401"].to_dict()["sections"] == ["Funnel definition", "New events to add"]


class TestOptions:
    def test_bad_threshold(self) -> None:
        with pytest.raises(ValueError, match="similarity_threshold"):
            LintOptions(similarity_threshold=1.5)

    def test_bad_rule_id(self) -> None:
        with pytest.raises(ValueError, match="TP101"):
            LintOptions(disabled_rules=frozenset({"naming"}))

    def test_from_config(self) -> None:
        config = ProjectConfig(
            version=1,
            similarity_threshold=0.9,
            disabled_rules=["tp105"],
            extra_pii_names=["Employee_Code"],
        )
        options = LintOptions.from_config(config, prior_events=frozenset({"report_viewed"}))
        assert options.similarity_threshold == 0.9
        assert options.disabled_rules == frozenset({"TP105"})
        assert options.extra_pii_names == frozenset({"employee_code"})
        assert options.prior_events == frozenset({"report_viewed"})


class TestHeaderFields:
    def test_empty_field(self) -> None:
        header = HEADER.replace("Success metric: 30-day retention of exporters vs viewers", "Success metric:")
        diags = _of(lint_text(build_plan(header=header)), "TP003")
        assert len(diags) == 1
        assert "'Success metric' is empty" in diags[0].message
        assert diags[0].severity == "warning"


class TestEventNaming:
    def test_not_snake_case(self) -> None:
        diags = _of(lint_text(_single_event_plan("ReportViewed")), "TP101")
        assert len(diags) == 1
        assert diags[0].severity == "error"
        assert diags[0].suggestion == "rename to 'report_viewed'"
        assert diags[0].location.line == 11

    def test_single_segment(self) -> None:
        diags = _of(lint_text(_single_event_plan("checkout")), "TP102")
        assert [d.severity for d in diags] == ["error"]

    def test_present_tense(self) -> None:
        diags = _of(lint_text(_single_event_plan("checkout_start")), "TP102")
        assert [d.severity for d in diags] == ["warning"]
        assert diags[0].suggestion == "rename to 'checkout_started'"

    def test_action_first(self) -> None:
        diags = _of(lint_text(_single_event_plan("clicked_button")), "TP102")
        assert [d.severity for d in diags] == ["error"]
        assert diags[0].suggestion == "rename to 'button_clicked'"

    def test_unconfirmed_action_is_ambiguous(self) -> None:
        diags = _of(lint_text(_single_event_plan("report_pdf")), "TP102")
        assert [(d.severity, d.kind) for d in diags] == [("warning", "ambiguous")]

    def test_no_object_noun(self) -> None:
        diags = _of(lint_text(_single_event_plan("viewed_clicked")), "TP102")
        assert [(d.severity, d.kind) for d in diags] == [("warning", "ambiguous")]

    @pytest.mark.parametrize(
        "name",
        ["report_exported", "billing_plan_upgraded", "ReportExported", "checkout", "clicked_button", "report_export"],
    )
    def test_accepted_names_are_snake_case_object_action(self, name: str) -> None:
        diags = lint_text(_single_event_plan(name))
        naming = [d for d in diags if d.rule_id in ("TP101", "TP102") and d.location.line == 11]
        if not naming:
            parts = decompose_event_name(name)
            assert parts.object
            assert parts.action.endswith("ed")


class TestDuplicateEvents:
    def test_defined_twice(self) -> None:
        diags = _of(lint_text(build_plan(new_events=event("report_viewed") * 2 + event("report_exported"))), "TP103")
        assert [d.severity for d in diags] == ["error"]
        assert diags[0].location.line == 14

    def test_already_in_prior_plan(self) -> None:
        options = LintOptions(prior_events=frozenset({"report_viewed"}))
        diags = _of(lint_text(CLEAN_PLAN, options), "TP103")
        assert [d.severity for d in diags] == ["warning"]

    def test_archived_name_reused(self) -> None:
        options = LintOptions(archived_events=frozenset({"report_viewed"}))
        diags = _of(lint_text(CLEAN_PLAN, options), "TP103")
        assert [d.severity for d in diags] == ["error"]
        assert "archived" in diags[0].message


class TestSimilarAndMergeable:
    def test_near_duplicate_of_prior(self) -> None:
        options = LintOptions(prior_events=frozenset({"reports_exported"}))
        diags = _of(lint_text(CLEAN_PLAN, options), "TP104")
        assert len(diags) == 1
        assert diags[0].kind == "ambiguous"
        assert "'reports_exported'" in diags[0].message

    def test_repeated_event_reports_pair_once(self) -> None:
        events = event("report_exported") + event("reports_exported") + event("report_exported")
        diags = _of(lint_text(build_plan(new_events=events)), "TP104")
        assert len(diags) == 1

    def test_threshold_is_configurable(self) -> None:
        options = LintOptions(prior_events=frozenset({"reports_exported"}), similarity_threshold=0.99)
        assert _of(lint_text(CLEAN_PLAN, options), "TP104") == []

    def test_merge_with_prior_event(self) -> None:
        text = build_plan(
            funnel=funnel("report_viewed", "report_csv_exported"),
            new_events=event("report_viewed") + event("report_csv_exported"),
        )
        options = LintOptions(prior_events=frozenset({"report_pdf_exported"}))
        diags = lint_text(text, options)
        merges = _of(diags, "TP105")
        assert len(merges) == 1
        assert merges[0].severity == "info"
        assert merges[0].suggestion == "track a single 'report_exported' event with a 'format' property"
        assert "prior plan" in merges[0].message
        # The merge suggestion replaces the generic near-duplicate warning.
        assert _of(diags, "TP104") == []

    def test_merge_within_plan(self) -> None:
        text = build_plan(
            funnel=funnel("report_pdf_exported", "report_csv_exported"),
            new_events=event("report_pdf_exported") + event("report_csv_exported"),
        )
        merges = _of(lint_text(text), "TP105")
        assert len(merges) == 1
        assert "'format'" in (merges[0].suggestion or "")


class TestProperties:
    def test_camel_case_property(self) -> None:
        diags = _of(lint_text(_single_event_plan("report_viewed", "reportId: string  (rpt_1)")), "TP201")
        assert len(diags) == 1
        assert diags[0].suggestion == "rename to 'report_id'"

    def test_duplicate_property(self) -> None:
        text = _single_event_plan("report_viewed", "report_id: string  (a)", "report_id: string  (b)")
        diags = _of(lint_text(text), "TP201")
        assert len(diags) == 1
        assert "declared 2 times" in diags[0].message

    @pytest.mark.parametrize(
        ("name", "flagged"),
        [("is_shared", False), ("has_filters", False), ("shared", True), ("enabled", True)],
    )
    def test_boolean_prefix(self, name: str, flagged: bool) -> None:
        diags = _of(lint_text(_single_event_plan("report_viewed", f"{name}: boolean  (true)")), "TP202")
        assert bool(diags) == flagged
        if flagged:
            assert diags[0].severity == "error"
            assert diags[0].suggestion == f"rename to 'is_{name}'"

    def test_boolean_prefix_on_non_boolean(self) -> None:
        diags = _of(lint_text(_single_event_plan("report_viewed", "is_count: number  (3)")), "TP202")
        assert [d.severity for d in diags] == ["warning"]

    def test_unknown_type(self) -> None:
        diags = _of(lint_text(_single_event_plan("report_viewed", "format: text-ish  (csv)")), "TP203")
        assert [(d.severity, d.kind) for d in diags] == [("warning", "ambiguous")]

    def test_parameterised_types_accepted(self) -> None:
        text = _single_event_plan("report_viewed", "tags: array<string>  (a)", "tier: enum(free|pro)")
        assert _of(lint_text(text), "TP203") == []


class TestPii:
    def test_email_property_name(self) -> None:
        diags = _of(lint_text(_single_event_plan("report_viewed", "email: string  (x)")), "TP301")
        assert [d.severity for d in diags] == ["error"]
        assert "email address" in diags[0].message

    def test_configured_pii_name(self) -> None:
        options = LintOptions(extra_pii_names=frozenset({"employee_code"}))
        text = _single_event_plan("report_viewed", "employee_code: string  (e1)")
        assert len(_of(lint_text(text, options), "TP301")) == 1

    def test_email_example_value(self) -> None:
        diags = _of(lint_text(_single_event_plan("report_viewed", "contact: string  (jane@example.com)")), "TP302")
        assert [(d.severity, d.kind) for d in diags] == [("error", "violation")]

    def test_name_like_example_value(self) -> None:
        diags = _of(lint_text(_single_event_plan("report_viewed", "owner: string  (Jane Doe)")), "TP302")
        assert [(d.severity, d.kind) for d in diags] == [("warning", "ambiguous")]


class TestFunnel:
    def test_unresolved_step(self) -> None:
        diags = _of(lint_text(build_plan(funnel=funnel("report_viewed", "checkout_started"))), "TP401")
        assert len(diags) == 1
        assert diags[0].severity == "error"
        assert diags[0].location.line == 8

    def test_step_resolved_by_prior_event(self) -> None:
        options = LintOptions(prior_events=frozenset({"checkout_started"}))
        text = build_plan(funnel=funnel("report_viewed", "checkout_started"))
        assert _of(lint_text(text, options), "TP401") == []

    def test_typo_gets_closest_match(self) -> None:
        diags = _of(lint_text(build_plan(funnel=funnel("report_viewed", "report_exportd"))), "TP401")
        assert diags[0].suggestion == "did you mean 'report_exported'?"

    def test_single_step(self) -> None:
        diags = _of(lint_text(build_plan(funnel=funnel("report_viewed"))), "TP402")
        assert [d.severity for d in diags] == ["warning"]

    def test_step_numbering(self) -> None:
        text = build_plan(funnel="  Step 1: report_viewed\n  Step 3: report_exported\n  Comparison window: 14 days\n")
        diags = _of(lint_text(text), "TP402")
        assert len(diags) == 1
        assert "numbered 3" in diags[0].message

    def test_step_through_deprecated_event(self) -> None:
        text = build_plan(
            funnel=funnel("legacy_report_opened", "report_exported"),
            deprecated="  Event: legacy_report_opened  (replaced by report_viewed)\n  Deprecation date: 2026-01-31\n",
        )
        options = LintOptions(prior_events=frozenset({"legacy_report_opened"}))
        diags = lint_text(text, options)
        assert [d.message for d in _of(diags, "TP402")] == [
            "Funnel step 1 uses 'legacy_report_opened', which this plan deprecates"
        ]
        assert _of(diags, "TP601") == []

    def test_missing_window(self) -> None:
        diags = _of(lint_text(build_plan(funnel=funnel("report_viewed", "report_exported", window=None))), "TP403")
        assert [(d.severity, d.kind) for d in diags] == [("warning", "ambiguous")]

    def test_unreadable_window(self) -> None:
        diags = _of(lint_text(build_plan(funnel=funnel("report_viewed", "report_exported", window="soon"))), "TP403")
        assert "Cannot read comparison window" in diags[0].message


class TestUserProperties:
    def test_set_once_conflict(self) -> None:
        text = build_plan(user_properties="  On report_exported → set plan_tier: pro\n  set_once plan_tier: free\n")
        diags = _of(lint_text(text), "TP501")
        assert [d.severity for d in diags] == ["error"]
        assert diags[0].location.line == 26

    def test_same_policy_twice_is_fine(self) -> None:
        text = build_plan(user_properties="  On report_viewed → set plan_tier: pro\n  On report_exported → set plan_tier: team\n")
        assert _of(lint_text(text), "TP501") == []

    def test_unknown_trigger_event(self) -> None:
        diags = _of(lint_text(build_plan(user_properties="  On checkout_completed → set plan_tier: pro\n")), "TP502")
        assert [d.severity for d in diags] == ["error"]

    def test_boolean_without_prefix(self) -> None:
        diags = _of(lint_text(build_plan(user_properties="  On report_exported → set exported: true\n")), "TP503")
        assert diags[0].suggestion == "rename to 'is_exported'"

    def test_pii_user_property_is_a_warning(self) -> None:
        diags = _of(lint_text(build_plan(user_properties="  On report_exported → set email: {email}\n")), "TP503")
        assert [d.severity for d in diags] == ["warning"]
        assert "PII" in diags[0].message


class TestDeprecation:
    def test_added_and_deprecated(self) -> None:
        deprecated = "  Event: report_viewed\n  Deprecation date: 2026-01-31\n"
        diags = _of(lint_text(build_plan(deprecated=deprecated)), "TP601")
        assert [d.severity for d in diags] == ["error"]

    def test_unknown_replacement(self) -> None:
        deprecated = "  Event: report_opened  (replaced by report_openned)\n  Deprecation date: 2026-01-31\n"
        diags = _of(lint_text(build_plan(deprecated=deprecated)), "TP601")
        assert [d.message for d in diags] == ["Replacement 'report_openned' for 'report_opened' is not a known event"]

    def test_self_replacement(self) -> None:
        deprecated = "  Event: report_opened  (replaced by report_opened)\n  Deprecation date: 2026-01-31\n"
        diags = _of(lint_text(build_plan(deprecated=deprecated)), "TP601")
        assert [d.message for d in diags] == ["Event 'report_opened' cannot replace itself"]

    def test_missing_date(self) -> None:
        diags = _of(lint_text(build_plan(deprecated="  Event: report_opened  (replaced by report_viewed)\n")), "TP601")
        assert [d.severity for d in diags] == ["warning"]

    def test_bad_date(self) -> None:
        deprecated = "  Event: report_opened  (replaced by report_viewed)\n  Deprecation date: next quarter\n"
        diags = _of(lint_text(build_plan(deprecated=deprecated)), "TP601")
        assert [d.severity for d in diags] == ["error"]

    def test_not_in_prior_events(self) -> None:
        deprecated = "  Event: report_opened  (replaced by report_viewed)\n  Deprecation date: 2026-01-31\n"
        options = LintOptions(prior_events=frozenset({"dashboard_viewed"}))
        diags = _of(lint_text(build_plan(deprecated=deprecated), options), "TP601")
        assert [(d.severity, d.kind) for d in diags] == [("warning", "ambiguous")]


class TestRetiredNewEvents:
    def _flagged(self, index: int, **flags: object) -> list[Diagnostic]:
        data = parse_plan(CLEAN_PLAN).plan.to_dict()
        data["new_events"][index].update(flags)
        return lint(plan_from_dict(data)).diagnostics()

    def test_new_event_marked_deprecated(self) -> None:
        diags = self._flagged(1, deprecated=True)
        assert [d.message for d in _of(diags, "TP601")] == [
            "New event 'report_exported' is marked deprecated by the plan that adds it"
        ]
        assert [d.message for d in _of(diags, "TP402")] == [
            "Funnel step 2 uses 'report_exported', which this plan marks as retired"
        ]

    def test_new_event_marked_archived(self) -> None:
        diags = self._flagged(0, archived_since="2026-03-01")
        errors = _of(diags, "TP601")
        assert [d.severity for d in errors] == ["error"]
        assert "archived since 2026-03-01" in errors[0].message
        assert len(_of(diags, "TP402")) == 1
