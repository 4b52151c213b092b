"""Tests for kodu.check -- BrainChecker and RuleIssue."""

from __future__ import annotations

import json

from kodu.check import BrainChecker, RuleIssue
from kodu.kodu_tiles import CATALOG, ActuatorId, FilterId, ModifierId, SensorId
from kodu.rules import BrainDefn, RuleDefn
from kodu.suggest import SuggestionEngine
from kodu.tiles import TileKind


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _sensor(tid: str):  # type: ignore[no-untyped-def]
    return CATALOG.lookup(TileKind.SENSOR, tid)


def _filter(tid: str):  # type: ignore[no-untyped-def]
    return CATALOG.lookup(TileKind.FILTER, tid)


def _actuator(tid: str):  # type: ignore[no-untyped-def]
    return CATALOG.lookup(TileKind.ACTUATOR, tid)


def _modifier(tid: str):  # type: ignore[no-untyped-def]
    return CATALOG.lookup(TileKind.MODIFIER, tid)


def _legal_rule() -> RuleDefn:
    return RuleDefn(
        sensor=_sensor(SensorId.SEE),
        filters=[_filter(FilterId.KODU), _filter(FilterId.EXPRESS_HAPPY)],
        actuator=_actuator(ActuatorId.MOVE),
        modifiers=[_modifier(ModifierId.TOWARD), _modifier(ModifierId.QUICKLY)],
    )


# ---------------------------------------------------------------------------
# RuleIssue
# ---------------------------------------------------------------------------

class TestRuleIssue:
    """Tests for the issue record."""

    def test_defaults(self) -> None:
        issue = RuleIssue(page=0, rule=1, category="illegal", message="m")
        assert issue.severity == "medium"
        assert issue.tid is None

    def test_roundtrip(self) -> None:
        issue = RuleIssue(
            page=2, rule=0, category="terminal", message="after page 2",
            severity="high", tid="M13",
        )
        assert RuleIssue.from_dict(issue.to_dict()) == issue
        assert RuleIssue.from_dict(json.loads(issue.to_json())) == issue

    def test_from_dict_without_tid(self) -> None:
        issue = RuleIssue.from_dict({"page": 1, "rule": 2, "category": "invariant", "message": "x"})
        assert issue.tid is None
        assert issue.severity == "medium"


# ---------------------------------------------------------------------------
# BrainChecker
# ---------------------------------------------------------------------------

class TestBrainChecker:
    """Tests for the authored-brain audit."""

    def test_clean_brain(self) -> None:
        brain = BrainDefn()
        brain.pages[0].rules = [_legal_rule(), RuleDefn()]
        brain.pages[4].rules = [
            RuleDefn(
                sensor=_sensor(SensorId.TIMER),
                filters=[_filter(FilterId.TIMESPAN_SHORT)],
                actuator=_actuator(ActuatorId.SWITCH_PAGE),
                modifiers=[_modifier(ModifierId.PAGE_1)],
            ),
        ]
        assert BrainChecker().check(brain) == []

    def test_empty_brain(self) -> None:
        assert BrainChecker().check(BrainDefn()) == []

    def test_illegal_filter(self) -> None:
        rule = RuleDefn(
            sensor=_sensor(SensorId.SEE),
            filters=[_filter(FilterId.KODU), _filter(FilterId.TREE)],
        )
        issues = BrainChecker().check_rule(rule)
        assert len(issues) == 1
        assert issues[0].category == "illegal"
        assert issues[0].severity == "medium"
        assert issues[0].tid == FilterId.TREE
        assert "position 1" in issues[0].message

    def test_illegal_modifier(self) -> None:
        # Direction modifiers require "target" and no sensor provides it.
        rule = RuleDefn(
            actuator=_actuator(ActuatorId.MOVE),
            modifiers=[_modifier(ModifierId.AWAY)],
        )
        issues = BrainChecker().check_rule(rule)
        assert [(i.category, i.tid) for i in issues] == [("illegal", ModifierId.AWAY)]

    def test_tile_after_terminal(self) -> None:
        rule = RuleDefn(
            actuator=_actuator(ActuatorId.SWITCH_PAGE),
            modifiers=[_modifier(ModifierId.PAGE_2), _modifier(ModifierId.PAGE_3)],
        )
        issues = BrainChecker().check_rule(rule)
        assert len(issues) == 1
        assert issues[0].category == "terminal"
        assert issues[0].severity == "high"
        assert issues[0].tid == ModifierId.PAGE_3

    def test_hidden_tile(self) -> None:
        rule = RuleDefn(sensor=_sensor(SensorId.ALWAYS), actuator=_actuator(ActuatorId.BOOM))
        issues = BrainChecker().check_rule(rule)
        assert [(i.category, i.tid) for i in issues] == [
            ("hidden", SensorId.ALWAYS),
            ("hidden", ActuatorId.BOOM),
        ]
        assert all(i.severity == "low" for i in issues)

    def test_invariant(self) -> None:
        rule = RuleDefn(
            filters=[_filter(FilterId.KODU)],
            modifiers=[_modifier(ModifierId.QUICKLY)],
        )
        issues = BrainChecker().check_rule(rule)
        assert [i.category for i in issues] == ["invariant", "invariant"]
        assert all(i.severity == "high" for i in issues)

    def test_max_count(self) -> None:
        nearby = _filter(FilterId.NEARBY)
        rule = RuleDefn(sensor=_sensor(SensorId.SEE), filters=[nearby] * 4)
        issues = BrainChecker().check_rule(rule)
        assert len(issues) == 1
        assert issues[0].category == "max-count"
        assert issues[0].severity == "low"
        assert "cap is 3" in issues[0].message

    def test_max_count_at_cap(self) -> None:
        nearby = _filter(FilterId.NEARBY)
        rule = RuleDefn(sensor=_sensor(SensorId.SEE), filters=[nearby] * 3)
        assert BrainChecker().check_rule(rule) == []

    def test_issue_location(self) -> None:
        brain = BrainDefn()
        bad = RuleDefn(sensor=_sensor(SensorId.TIMER), filters=[_filter(FilterId.KODU)])
        brain.pages[2].rules = [_legal_rule(), bad]
        issues = BrainChecker().check(brain)
        assert [(i.page, i.rule) for i in issues] == [(2, 1)]

    def test_custom_engine(self) -> None:
        engine = SuggestionEngine(CATALOG)
        assert BrainChecker(engine).engine is engine
        assert BrainChecker().engine.catalog is CATALOG
