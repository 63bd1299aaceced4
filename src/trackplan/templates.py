"""Blank tracking-plan template written by ``trackplan template``."""

from __future__ import annotations

PLAN_TEMPLATE = """\
# Tracking plan. Lines starting with '#' are ignored.
# Analytics design
Feature: {feature}
Change: <what is changing>
Business question: <what decision will this data inform?>
Success metric: <metric and target>
Baseline (pre): unknown
Funnel definition:
  Step 1: <event_name>
  Step 2: <event_name>
  Comparison window: 14 days

# Implementation plan
New events to add:
  Event name: <object_action>
  Fires when: <the moment the event is captured>
  Properties:
    - <prop_name>: <type>  (<example>)
Events to deprecate:
  none
User property updates:
  none
"""


def render_template(feature: str | None = None) -> str:
    """Return the blank plan template, optionally pre-filled with a feature name."""
    return PLAN_TEMPLATE.format(feature=feature.strip() if feature else "<feature name>")
