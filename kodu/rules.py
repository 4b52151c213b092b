"""Authored rule structure: rules, pages and brains.

A :class:`RuleDefn` pairs an optional sensor (refined by filters) with an
optional actuator (refined by modifiers).  Rules are ordered on a
:class:`PageDefn`; a :class:`BrainDefn` always has exactly
:data:`PAGE_COUNT` pages.

These containers are mutable and owned by one authoring session.  They
hold *references* into the frozen tile catalog; cloning copies the
containers but never the tile definitions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from kodu.tiles import ActuatorDefn, FilterDefn, ModifierDefn, SensorDefn

logger = logging.getLogger(__name__)

PAGE_COUNT = 5


# ---------------------------------------------------------------------------
# RuleCondition
# ---------------------------------------------------------------------------

class RuleCondition(Enum):
    """Reordering hint attached to a rule; values are the wire codes."""
    DEFAULT = "RC0"
    HIGH = "RC1"
    LOW = "RC2"
    HIGH_TO_LOW = "RC3"
    LOW_TO_HIGH = "RC4"


# ---------------------------------------------------------------------------
# RuleDefn
# ---------------------------------------------------------------------------

@dataclass
class RuleDefn:
    """One "when SENSOR do ACTUATOR" rule.

    Filters are meaningless without a sensor and modifiers without an
    actuator; :meth:`ensure_valid` restores that after any edit.
    """
    condition: RuleCondition = RuleCondition.DEFAULT
    sensor: SensorDefn | None = None
    filters: list[FilterDefn] = field(default_factory=list)
    actuator: ActuatorDefn | None = None
    modifiers: list[ModifierDefn] = field(default_factory=list)

    def clone(self) -> RuleDefn:
        """Copy the rule; tile definitions are shared, not copied."""
        return RuleDefn(
            condition=self.condition,
            sensor=self.sensor,
            filters=list(self.filters),
            actuator=self.actuator,
            modifiers=list(self.modifiers),
        )

    def is_empty(self) -> bool:
        return self.sensor is None and self.actuator is None

    def ensure_valid(self) -> None:
        """Drop filters without a sensor and modifiers without an actuator."""
        if self.sensor is None and self.filters:
            logger.debug("Clearing %d filter(s) from sensor-less rule", len(self.filters))
            self.filters = []
        if self.actuator is None and self.modifiers:
            logger.debug("Clearing %d modifier(s) from actuator-less rule", len(self.modifiers))
            self.modifiers = []

    def __str__(self) -> str:
        when = " ".join(t.name for t in ([self.sensor] if self.sensor else []) + self.filters)
        do = " ".join(t.name for t in ([self.actuator] if self.actuator else []) + self.modifiers)
        return f"WHEN {when or '-'} DO {do or '-'}"


def ensure_valid(rule: RuleDefn) -> None:
    """Repair the sensor/filter and actuator/modifier dependency of ``rule``."""
    rule.ensure_valid()


# ---------------------------------------------------------------------------
# PageDefn
# ---------------------------------------------------------------------------

@dataclass
class PageDefn:
    """An ordered list of rules."""
    rules: list[RuleDefn] = field(default_factory=list)

    def clone(self) -> PageDefn:
        return PageDefn(rules=[rule.clone() for rule in self.rules])

    def trim(self) -> None:
        """Remove trailing empty rules."""
        while self.rules and self.rules[-1].is_empty():
            self.rules.pop()

    def delete_rule_at(self, index: int) -> None:
        """Remove the rule at ``index``.

        Indices outside ``[0, len(rules))`` are ignored on purpose so that
        UI code can delete from a cursor position without bounds checks.
        Negative indices never count from the end.
        """
        if 0 <= index < len(self.rules):
            del self.rules[index]

    def is_empty(self) -> bool:
        return all(rule.is_empty() for rule in self.rules)


# ---------------------------------------------------------------------------
# BrainDefn
# ---------------------------------------------------------------------------

def _empty_pages() -> list[PageDefn]:
    return [PageDefn() for _ in range(PAGE_COUNT)]


@dataclass
class BrainDefn:
    """A character's complete behavior: always :data:`PAGE_COUNT` pages."""
    pages: list[PageDefn] = field(default_factory=_empty_pages)

    def __post_init__(self) -> None:
        if len(self.pages) != PAGE_COUNT:
            msg = f"a brain has exactly {PAGE_COUNT} pages, got {len(self.pages)}"
            raise ValueError(msg)

    def clone(self) -> BrainDefn:
        return BrainDefn(pages=[page.clone() for page in self.pages])

    def trim(self) -> None:
        """Trim every page independently."""
        for page in self.pages:
            page.trim()

    def ensure_valid(self) -> None:
        """Repair every rule on every page."""
        for page in self.pages:
            for rule in page.rules:
                rule.ensure_valid()

    def is_empty(self) -> bool:
        return all(page.is_empty() for page in self.pages)
