"""Lint runs -- apply the rule registry to a parsed plan.

A LintRun is a lazy, finite, restartable sequence of diagnostics: every
iteration re-evaluates the structural diagnostics and each rule from
scratch, so iterating twice over the same plan yields the same result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from trackplan.diagnostics import Diagnostic
from trackplan.parser import ParsedPlan, parse_plan
from trackplan.rules import LintContext, LintOptions, Rule, iter_rules

logger = logging.getLogger(__name__)


class LintRun:
    """Diagnostics for one parsed plan, produced on iteration."""

    def __init__(self, parsed: ParsedPlan, options: LintOptions | None = None, rules: Iterable[Rule] | None = None) -> None:
        self.parsed = parsed
        self.options = options or LintOptions()
        self._rules = tuple(rules) if rules is not None else tuple(iter_rules())

    def __iter__(self) -> Iterator[Diagnostic]:
        disabled = self.options.disabled_rules
        for diag in self.parsed.structural:
            if diag.rule_id not in disabled:
                yield diag

        broken = self.parsed.broken_sections
        ctx = LintContext(plan=self.parsed.plan, options=self.options, broken_sections=broken)
        for r in self._rules:
            if r.check is None or r.rule_id in disabled:
                continue
            blocked = [s for s in r.sections if s in broken]
            if blocked:
                logger.debug("Skipping %s for %s: broken section(s) %s", r.rule_id, self.parsed.source, blocked)
                continue
            ctx.rule_id = r.rule_id
            ctx.rule_name = r.name
            yield from r.check(ctx)

    def diagnostics(self) -> list[Diagnostic]:
        """Materialize one full pass."""
        return list(self)


def lint(parsed: ParsedPlan, options: LintOptions | None = None) -> LintRun:
    """Return a LintRun for *parsed*. Nothing is evaluated until it is iterated."""
    return LintRun(parsed, options)


def lint_text(text: str, options: LintOptions | None = None, *, source: str = "<plan>") -> list[Diagnostic]:
    """Parse and lint plan text in one call."""
    return lint(parse_plan(text, source=source), options).diagnostics()
