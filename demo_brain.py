#!/usr/bin/env python3
"""Kodu Brain Demo -- authoring, audit and persistence round trip.

Flow:
  Phase 1: Author   -- build a two-page brain, picking every tile from the
                       suggestion engine the way the tile picker would
  Phase 2: Audit    -- hand-edit a rule past the engine and let the
                       BrainChecker report what the picker would refuse
  Phase 3: Persist  -- save to JSON, load it back, check the round trip

Design notes:
  - Uses print() for structured demo output (not logging) because this
    is a user-facing CLI demo.
"""

from __future__ import annotations

import logging
import sys
import tempfile
from collections.abc import Sequence
from pathlib import Path

from kodu.check import BrainChecker
from kodu.codec import brain_to_json, load_brain, save_brain
from kodu.kodu_tiles import CATALOG, FilterId
from kodu.rules import BrainDefn, RuleDefn
from kodu.suggest import SuggestionEngine
from kodu.tiles import TileDefn, TileKind

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)


def pick(suggestions: Sequence[TileDefn], name: str) -> TileDefn:
    """Select a tile by display name from a suggestion list."""
    for tile in suggestions:
        if tile.name == name:
            return tile
    offered = ", ".join(t.name for t in suggestions) or "nothing"
    msg = f"{name!r} is not offered here (offered: {offered})"
    raise LookupError(msg)


def author_rule(
    engine: SuggestionEngine,
    when: Sequence[str],
    do: Sequence[str],
) -> RuleDefn:
    """Build one rule by picking each tile from the engine's suggestions."""
    rule = RuleDefn()
    if when:
        rule.sensor = pick(engine.suggest_sensors(rule), when[0])  # type: ignore[assignment]
        for name in when[1:]:
            options = engine.suggest_filters(rule, len(rule.filters))
            rule.filters.append(pick(options, name))  # type: ignore[arg-type]
    if do:
        rule.actuator = pick(engine.suggest_actuators(rule), do[0])  # type: ignore[assignment]
        for name in do[1:]:
            options = engine.suggest_modifiers(rule, len(rule.modifiers))
            rule.modifiers.append(pick(options, name))  # type: ignore[arg-type]
    return rule


# ---------------------------------------------------------------------------
# Phase 1: Author
# ---------------------------------------------------------------------------

def run_author(engine: SuggestionEngine) -> BrainDefn:
    """Author a small chase-the-apple brain through the engine."""
    print("\n" + "=" * 70)
    print("PHASE 1: AUTHOR")
    print("=" * 70)

    brain = BrainDefn()
    brain.pages[0].rules = [
        author_rule(engine, ["See", "Apple"], ["Move", "toward", "quickly"]),
        author_rule(engine, ["Bump", "Apple"], ["Switch page", "page 2"]),
        author_rule(engine, [], []),
    ]
    brain.pages[1].rules = [
        author_rule(engine, ["Timer", "long"], ["Switch page", "page 1"]),
        author_rule(engine, ["See", "Kodu", "happy"], ["Express", "heart"]),
    ]
    brain.trim()

    for page_index, page in enumerate(brain.pages):
        for rule_index, rule in enumerate(page.rules):
            print(f"  page {page_index + 1} rule {rule_index + 1}: {rule}")

    rule = brain.pages[0].rules[1]
    after_terminal = engine.suggest_modifiers(rule, len(rule.modifiers))
    print(f"  Suggestions after 'page 2': {len(after_terminal)} (terminal tile)")
    return brain


# ---------------------------------------------------------------------------
# Phase 2: Audit
# ---------------------------------------------------------------------------

def run_audit(brain: BrainDefn) -> int:
    """Append an illegal filter by hand and audit the result."""
    print("\n" + "=" * 70)
    print("PHASE 2: AUDIT")
    print("=" * 70)

    edited = brain.clone()
    rule = edited.pages[1].rules[1]
    rule.filters.append(CATALOG.lookup(TileKind.FILTER, FilterId.TREE))  # type: ignore[arg-type]
    print(f"  Hand-edited: {rule}")

    checker = BrainChecker()
    print(f"  Original brain issues: {len(checker.check(brain))}")
    issues = checker.check(edited)
    for issue in issues:
        print(f"  [{issue.severity.upper()}] page {issue.page + 1} rule "
              f"{issue.rule + 1} ({issue.category}): {issue.message}")
    return len(issues)


# ---------------------------------------------------------------------------
# Phase 3: Persist
# ---------------------------------------------------------------------------

def run_persist(brain: BrainDefn) -> bool:
    """Save, reload and compare."""
    print("\n" + "=" * 70)
    print("PHASE 3: PERSIST")
    print("=" * 70)

    print(f"  Encoded: {brain_to_json(brain)}")
    with tempfile.TemporaryDirectory() as tmp:
        path = save_brain(brain, Path(tmp) / "brain.json")
        print(f"  Saved to {path} ({path.stat().st_size} bytes)")
        restored = load_brain(path)

    ok = restored == brain
    print(f"  Round trip: {'PASS' if ok else 'FAIL'}")
    return ok


def main() -> int:
    """Run the complete authoring demo."""
    print("=" * 70)
    print("  KODU BRAIN -- Authoring Demo")
    print(f"  Catalog: {CATALOG!r}")
    print("=" * 70)

    engine = SuggestionEngine(CATALOG)
    try:
        brain = run_author(engine)
    except LookupError as exc:
        print(f"  ERROR: {exc}")
        return 1
    issue_count = run_audit(brain)
    round_trip_ok = run_persist(brain)

    print("\n" + "=" * 70)
    print("  Demo complete.")
    print("=" * 70)

    if issue_count == 0:
        print("  EXIT: Audit missed the hand-edited rule.")
        return 1
    if not round_trip_ok:
        print("  EXIT: Round trip failed.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
