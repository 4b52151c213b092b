"""Authoring audit for brains.

The data model does not enforce tile legality; the authoring UI is
expected to place only tiles the suggestion engine offered.  The
:class:`BrainChecker` replays the engine over an authored brain (for
example one loaded from disk, or one built against an older catalog) and
reports every placement it would not have suggested.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable, Self

from kodu.rules import BrainDefn, RuleDefn
from kodu.suggest import SuggestionEngine
from kodu.tiles import MAX_COUNT_KEY, MaxCount, TileDefn

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# RuleIssue
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleIssue:
    """A problem found in one rule of an authored brain.

    Attributes:
        page: Page index of the rule.
        rule: Rule index within the page.
        category: ``"invariant"``, ``"hidden"``, ``"terminal"``,
            ``"illegal"`` or ``"max-count"``.
        message: Human-readable description.
        severity: ``"high"``, ``"medium"`` or ``"low"``.
        tid: Identifier of the offending tile, when there is one.
    """
    page: int
    rule: int
    category: str
    message: str
    severity: str = "medium"
    tid: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dict for JSON storage."""
        return {
            "page": self.page,
            "rule": self.rule,
            "category": self.category,
            "message": self.message,
            "severity": self.severity,
            "tid": self.tid,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Self:
        """Deserialize from a plain dict."""
        raw_tid = data.get("tid")
        return cls(
            page=int(data["page"]),  # type: ignore[arg-type]
            rule=int(data["rule"]),  # type: ignore[arg-type]
            category=str(data["category"]),
            message=str(data["message"]),
            severity=str(data.get("severity", "medium")),
            tid=str(raw_tid) if raw_tid is not None else None,
        )

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# ---------------------------------------------------------------------------
# BrainChecker
# ---------------------------------------------------------------------------

class BrainChecker:
    """Audits authored rules against the suggestion engine.

    Checks:
    - Filters without a sensor, modifiers without an actuator
    - Hidden tiles placed in a rule
    - Tiles placed after a terminal tile
    - Filters/modifiers the engine would not suggest at their position
    - Informational ``max-count`` caps exceeded within a chain
    """

    def __init__(self, engine: SuggestionEngine | None = None) -> None:
        self.engine = engine if engine is not None else SuggestionEngine()

    def check(self, brain: BrainDefn) -> list[RuleIssue]:
        """Audit every rule of every page.

        Returns:
            One issue per problem found.  An empty list means every
            placement is one the engine would have offered.
        """
        issues: list[RuleIssue] = []
        for page_index, page in enumerate(brain.pages):
            for rule_index, rule in enumerate(page.rules):
                issues.extend(self.check_rule(rule, page_index, rule_index))
        if issues:
            logger.info("BrainChecker: %d issue(s) found", len(issues))
        return issues

    def check_rule(self, rule: RuleDefn, page: int = 0, index: int = 0) -> list[RuleIssue]:
        """Audit a single rule; ``page``/``index`` only label the issues."""
        issues: list[RuleIssue] = []
        issues.extend(self._check_invariant(rule, page, index))
        issues.extend(self._check_hidden(rule, page, index))
        if rule.sensor is not None:
            issues.extend(self._check_chain(
                rule.filters, self.engine.suggest_filters, rule, "filter", page, index,
            ))
        if rule.actuator is not None:
            issues.extend(self._check_chain(
                rule.modifiers, self.engine.suggest_modifiers, rule, "modifier", page, index,
            ))
        return issues

    def _check_invariant(self, rule: RuleDefn, page: int, index: int) -> list[RuleIssue]:
        """Filters need a sensor, modifiers need an actuator."""
        issues: list[RuleIssue] = []
        if rule.sensor is None and rule.filters:
            issues.append(RuleIssue(
                page=page,
                rule=index,
                category="invariant",
                message=f"{len(rule.filters)} filter(s) placed without a sensor",
                severity="high",
            ))
        if rule.actuator is None and rule.modifiers:
            issues.append(RuleIssue(
                page=page,
                rule=index,
                category="invariant",
                message=f"{len(rule.modifiers)} modifier(s) placed without an actuator",
                severity="high",
            ))
        return issues

    def _check_hidden(self, rule: RuleDefn, page: int, index: int) -> list[RuleIssue]:
        """Hidden tiles load fine but are never offered by the UI."""
        placed: list[TileDefn] = [
            t for t in (rule.sensor, rule.actuator) if t is not None
        ]
        placed.extend(rule.filters)
        placed.extend(rule.modifiers)
        return [
            RuleIssue(
                page=page,
                rule=index,
                category="hidden",
                message=f"hidden tile {tile.name!r} is placed in the rule",
                severity="low",
                tid=tile.tid,
            )
            for tile in placed
            if tile.hidden
        ]

    def _check_chain(
        self,
        chain: Sequence[TileDefn],
        suggest: Callable[[RuleDefn, int], Sequence[TileDefn]],
        rule: RuleDefn,
        what: str,
        page: int,
        index: int,
    ) -> list[RuleIssue]:
        """Replay ``suggest`` at every position of a filter/modifier chain."""
        issues: list[RuleIssue] = []
        for position, tile in enumerate(chain):
            if position > 0 and chain[position - 1].is_terminal:
                issues.append(RuleIssue(
                    page=page,
                    rule=index,
                    category="terminal",
                    message=(
                        f"{what} {tile.name!r} at position {position} follows "
                        f"terminal tile {chain[position - 1].name!r}"
                    ),
                    severity="high",
                    tid=tile.tid,
                ))
                continue
            if tile.hidden:
                continue
            legal = {t.tid for t in suggest(rule, position)}
            if tile.tid not in legal:
                logger.debug(
                    "BrainChecker: %s %s not suggestable at %d/%d position %d",
                    what, tile.tid, page, index, position,
                )
                issues.append(RuleIssue(
                    page=page,
                    rule=index,
                    category="illegal",
                    message=(
                        f"{what} {tile.name!r} at position {position} is not "
                        f"allowed by the tiles before it"
                    ),
                    tid=tile.tid,
                ))
        issues.extend(self._check_max_count(chain, what, page, index))
        return issues

    def _check_max_count(
        self, chain: Sequence[TileDefn], what: str, page: int, index: int,
    ) -> list[RuleIssue]:
        """Report categories placed more often than a tile's ``max-count``."""
        counts = Counter(t.category for t in chain)
        issues: list[RuleIssue] = []
        reported: set[str | None] = set()
        for tile in chain:
            if tile.constraints is None or tile.category in reported:
                continue
            entry = tile.constraints.handling_for(MAX_COUNT_KEY)
            if not isinstance(entry, MaxCount):
                continue
            if counts[tile.category] > entry.value:
                reported.add(tile.category)
                issues.append(RuleIssue(
                    page=page,
                    rule=index,
                    category="max-count",
                    message=(
                        f"{counts[tile.category]} {what}(s) of category "
                        f"{tile.category!r}, cap is {entry.value}"
                    ),
                    severity="low",
                    tid=tile.tid,
                ))
        return issues
