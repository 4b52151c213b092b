"""Suggestion engine: which tiles may legally be placed next in a rule.

Sensors and actuators can always be swapped, so their suggestions are the
whole visible catalog partition ordered by weight.  Filters and modifiers
are narrowed by the constraints accumulated from the tiles placed before
the insertion point:

1. **requires**: a tile with ``requires`` passes only if at least one of
   them is in the accumulated ``provides``.  A tile without ``requires``
   always passes.
2. **allow**: the tile's category or identifier must be allow-listed.
   With nothing allow-listed, nothing passes.
3. **disallow**: neither the tile's category nor its identifier may be
   disallow-listed.

No tile may follow a tile whose handling is ``terminal``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TypeVar

from kodu.catalog import TileCatalog
from kodu.kodu_tiles import CATALOG
from kodu.rules import RuleDefn
from kodu.tiles import (
    ActuatorDefn,
    ConstraintSet,
    FilterDefn,
    ModifierDefn,
    SensorDefn,
    TileDefn,
    TileKind,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=TileDefn)


def is_compatible(tile: TileDefn, constraints: ConstraintSet) -> bool:
    """Check one candidate against accumulated constraints (steps 1-3)."""
    requires = tile.constraints.requires if tile.constraints is not None else ()
    if requires and not any(req in constraints.provides for req in requires):
        return False
    if not (
        tile.category in constraints.allow_categories
        or tile.tid in constraints.allow_tiles
    ):
        return False
    if tile.category in constraints.disallow_categories:
        return False
    return tile.tid not in constraints.disallow_tiles


def compatible_set(candidates: Iterable[T], constraints: ConstraintSet) -> list[T]:
    """Filter ``candidates`` to those compatible with ``constraints``, keeping order."""
    # Handling entries other than terminal do not filter candidates.
    return [tile for tile in candidates if is_compatible(tile, constraints)]


class SuggestionEngine:
    """Computes ordered lists of legal next tiles for a rule.

    Usage::

        engine = SuggestionEngine()
        rule = RuleDefn(sensor=engine.suggest_sensors(rule)[0])
        filters = engine.suggest_filters(rule, len(rule.filters))
    """

    def __init__(self, catalog: TileCatalog | None = None) -> None:
        self.catalog = catalog if catalog is not None else CATALOG

    # -- Ordered candidates --------------------------------------------------

    def candidates(self, kind: TileKind) -> list[TileDefn]:
        """Visible tiles of ``kind`` sorted by weight, ties in declaration order."""
        visible = [t for t in self.catalog.partition(kind).values() if not t.hidden]
        return sorted(visible, key=lambda t: t.sort_weight)

    # -- Sensors / actuators -------------------------------------------------

    def suggest_sensors(self, rule: RuleDefn) -> list[SensorDefn]:
        """Every visible sensor; a rule may always swap its sensor."""
        return self.candidates(TileKind.SENSOR)  # type: ignore[return-value]

    def suggest_actuators(self, rule: RuleDefn) -> list[ActuatorDefn]:
        """Every visible actuator; a rule may always swap its actuator."""
        return self.candidates(TileKind.ACTUATOR)  # type: ignore[return-value]

    # -- Filters / modifiers -------------------------------------------------

    def suggest_filters(self, rule: RuleDefn, index: int) -> list[FilterDefn]:
        """Filters that may be placed at ``index`` in the filter chain.

        ``index == len(rule.filters)`` appends; a smaller index asks what
        could replace the filter currently there.

        Raises:
            IndexError: If ``index`` is outside ``[0, len(rule.filters)]``.
        """
        _check_index(index, rule.filters, "filter")
        if index > 0 and rule.filters[index - 1].is_terminal:
            logger.debug("Filter chain ends at terminal tile %s", rule.filters[index - 1].tid)
            return []
        constraints = self.accumulate_filter_constraints(rule, index)
        result = compatible_set(self.candidates(TileKind.FILTER), constraints)
        logger.debug("Filter suggestions at %d: %d tile(s)", index, len(result))
        return result  # type: ignore[return-value]

    def suggest_modifiers(self, rule: RuleDefn, index: int) -> list[ModifierDefn]:
        """Modifiers that may be placed at ``index`` in the modifier chain.

        Raises:
            IndexError: If ``index`` is outside ``[0, len(rule.modifiers)]``.
        """
        _check_index(index, rule.modifiers, "modifier")
        if index > 0 and rule.modifiers[index - 1].is_terminal:
            logger.debug("Modifier chain ends at terminal tile %s", rule.modifiers[index - 1].tid)
            return []
        constraints = self.accumulate_modifier_constraints(rule, index)
        result = compatible_set(self.candidates(TileKind.MODIFIER), constraints)
        logger.debug("Modifier suggestions at %d: %d tile(s)", index, len(result))
        return result  # type: ignore[return-value]

    # -- Accumulation --------------------------------------------------------

    @staticmethod
    def accumulate_filter_constraints(rule: RuleDefn, index: int) -> ConstraintSet:
        """Sensor, then filters ``[0, index)`` in placement order."""
        constraints = ConstraintSet()
        if rule.sensor is not None:
            constraints.merge(rule.sensor.constraints)
        for tile in rule.filters[:index]:
            constraints.merge(tile.constraints)
        return constraints

    @staticmethod
    def accumulate_modifier_constraints(rule: RuleDefn, index: int) -> ConstraintSet:
        """Actuator, then sensor, then modifiers ``[0, index)`` in placement order.

        The sensor is merged after the actuator, so on a handling key clash
        the sensor's value wins over the actuator's.
        """
        constraints = ConstraintSet()
        if rule.actuator is not None:
            constraints.merge(rule.actuator.constraints)
        if rule.sensor is not None:
            constraints.merge(rule.sensor.constraints)
        for tile in rule.modifiers[:index]:
            constraints.merge(tile.constraints)
        return constraints


def _check_index(index: int, chain: Sequence[TileDefn], name: str) -> None:
    if not 0 <= index <= len(chain):
        msg = f"{name} index {index} out of range for chain of {len(chain)}"
        raise IndexError(msg)


# ---------------------------------------------------------------------------
# Module-level helpers bound to the default catalog
# ---------------------------------------------------------------------------

_default_engine = SuggestionEngine(CATALOG)


def suggest_sensors(rule: RuleDefn) -> list[SensorDefn]:
    return _default_engine.suggest_sensors(rule)


def suggest_filters(rule: RuleDefn, index: int) -> list[FilterDefn]:
    return _default_engine.suggest_filters(rule, index)


def suggest_actuators(rule: RuleDefn) -> list[ActuatorDefn]:
    return _default_engine.suggest_actuators(rule)


def suggest_modifiers(rule: RuleDefn, index: int) -> list[ModifierDefn]:
    return _default_engine.suggest_modifiers(rule, index)
