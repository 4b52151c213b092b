"""Tile definitions and the constraint schema for the Kodu rule language.

A tile is the atomic building block of a rule: a *sensor* optionally
refined by *filters*, paired with an *actuator* optionally refined by
*modifiers*.  Each tile may carry a :class:`Constraints` block describing
how it affects the legality of later tiles in the same rule.

Tile definitions are frozen dataclasses; once a catalog is built from them
they are shared by reference and never mutated.  Constraints accumulate in
a mutable :class:`ConstraintSet` while the suggestion engine walks a rule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Self

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT = 100
DEFAULT_PRIORITY = 10


# ---------------------------------------------------------------------------
# TileKind / SensorPhase
# ---------------------------------------------------------------------------

class TileKind(Enum):
    """The four kinds of tile a rule is assembled from."""
    SENSOR = 1
    FILTER = 2
    ACTUATOR = 3
    MODIFIER = 4


class SensorPhase(Enum):
    """Whether a sensor is evaluated before or after its filters."""
    PRE = "pre"
    POST = "post"


# ---------------------------------------------------------------------------
# Handling variants
# ---------------------------------------------------------------------------

TERMINAL_KEY = "terminal"
MAX_COUNT_KEY = "max-count"


@dataclass(frozen=True)
class Terminal:
    """Once placed, no further tile may follow in the same chain."""
    value: bool = True

    @property
    def key(self) -> str:
        return TERMINAL_KEY


@dataclass(frozen=True)
class MaxCount:
    """Informational cap on tiles of the same category (not enforced)."""
    value: int

    @property
    def key(self) -> str:
        return MAX_COUNT_KEY


@dataclass(frozen=True)
class UnknownHandling:
    """A handling key this version does not interpret, kept verbatim."""
    key: str
    value: str | int | float | bool


Handling = Terminal | MaxCount | UnknownHandling


def parse_handling(key: str, value: object) -> Handling:
    """Build the handling variant for a ``key: value`` pair.

    Keys with a known meaning but a value of the wrong type are kept as
    :class:`UnknownHandling` so the raw value still round-trips.
    """
    if key == TERMINAL_KEY and isinstance(value, bool):
        return Terminal(value)
    if key == MAX_COUNT_KEY and isinstance(value, int) and not isinstance(value, bool):
        return MaxCount(value)
    if not isinstance(value, (str, int, float, bool)):
        msg = f"handling value for {key!r} must be a scalar, got {type(value).__name__}"
        raise ValueError(msg)
    return UnknownHandling(key, value)


# ---------------------------------------------------------------------------
# TileSelector / Constraints
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TileSelector:
    """Selects tiles by identifier or by category (used by allow/disallow)."""
    tiles: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.tiles, tuple):
            object.__setattr__(self, "tiles", tuple(self.tiles))
        if not isinstance(self.categories, tuple):
            object.__setattr__(self, "categories", tuple(self.categories))

    def __bool__(self) -> bool:
        return bool(self.tiles or self.categories)

    def to_dict(self) -> dict[str, object]:
        """Serialize, omitting empty lists."""
        result: dict[str, object] = {}
        if self.tiles:
            result["tiles"] = list(self.tiles)
        if self.categories:
            result["categories"] = list(self.categories)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Self:
        """Deserialize from a plain dict."""
        return cls(
            tiles=_str_tuple(data.get("tiles", ()), "tiles"),
            categories=_str_tuple(data.get("categories", ()), "categories"),
        )


@dataclass(frozen=True)
class Constraints:
    """How a tile affects which tiles may follow it in a rule.

    Attributes:
        provides: Capability tags this tile contributes (e.g. ``"target"``).
        requires: Tags of which at least one must already be provided for
            this tile to be eligible.
        allow: Whitelist; a candidate must match a category or identifier.
        disallow: Blacklist, applied after ``allow``.
        handling: Policy knobs, at most one entry per key.
    """
    provides: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()
    allow: TileSelector = field(default_factory=TileSelector)
    disallow: TileSelector = field(default_factory=TileSelector)
    handling: tuple[Handling, ...] = ()

    def __post_init__(self) -> None:
        for name in ("provides", "requires", "handling"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))
        keys = [h.key for h in self.handling]
        if len(keys) != len(set(keys)):
            msg = f"duplicate handling keys: {keys}"
            raise ValueError(msg)

    def handling_for(self, key: str) -> Handling | None:
        """Return the handling entry stored under ``key``, if any."""
        for entry in self.handling:
            if entry.key == key:
                return entry
        return None

    @property
    def is_terminal(self) -> bool:
        return _is_terminal(self.handling_for(TERMINAL_KEY))

    def to_dict(self) -> dict[str, object]:
        """Serialize to the keyed layout, omitting empty parts."""
        result: dict[str, object] = {}
        if self.provides:
            result["provides"] = list(self.provides)
        if self.requires:
            result["requires"] = list(self.requires)
        if self.allow:
            result["allow"] = self.allow.to_dict()
        if self.disallow:
            result["disallow"] = self.disallow.to_dict()
        if self.handling:
            result["handling"] = {h.key: h.value for h in self.handling}
        return result

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Self:
        """Deserialize from the keyed layout produced by :meth:`to_dict`."""
        raw_allow = data.get("allow", {})
        raw_disallow = data.get("disallow", {})
        raw_handling = data.get("handling", {})
        if not isinstance(raw_allow, dict) or not isinstance(raw_disallow, dict):
            msg = "allow/disallow must be mappings"
            raise ValueError(msg)
        if not isinstance(raw_handling, dict):
            msg = "handling must be a mapping"
            raise ValueError(msg)
        return cls(
            provides=_str_tuple(data.get("provides", ()), "provides"),
            requires=_str_tuple(data.get("requires", ()), "requires"),
            allow=TileSelector.from_dict(raw_allow),
            disallow=TileSelector.from_dict(raw_disallow),
            handling=tuple(parse_handling(str(k), v) for k, v in raw_handling.items()),
        )


# ---------------------------------------------------------------------------
# ConstraintSet (accumulator)
# ---------------------------------------------------------------------------

@dataclass
class ConstraintSet:
    """Constraints accumulated from the tiles already placed in a rule.

    A fresh instance is the identity accumulator.  Lists are appended to,
    never de-duplicated; ``handling`` is last-writer-wins per key.
    """
    provides: list[str] = field(default_factory=list)
    requires: list[str] = field(default_factory=list)
    allow_tiles: list[str] = field(default_factory=list)
    allow_categories: list[str] = field(default_factory=list)
    disallow_tiles: list[str] = field(default_factory=list)
    disallow_categories: list[str] = field(default_factory=list)
    handling: dict[str, Handling] = field(default_factory=dict)

    def merge(self, src: Constraints | None) -> None:
        """Fold ``src`` into this accumulator.  ``None`` is a no-op."""
        if src is None:
            return
        self.provides.extend(src.provides)
        self.requires.extend(src.requires)
        self.allow_tiles.extend(src.allow.tiles)
        self.allow_categories.extend(src.allow.categories)
        self.disallow_tiles.extend(src.disallow.tiles)
        self.disallow_categories.extend(src.disallow.categories)
        for entry in src.handling:
            self.handling[entry.key] = entry

    @property
    def is_terminal(self) -> bool:
        return _is_terminal(self.handling.get(TERMINAL_KEY))


def merge_constraints(dst: ConstraintSet, src: Constraints | None) -> None:
    """Merge ``src`` into ``dst`` in place (see :meth:`ConstraintSet.merge`)."""
    dst.merge(src)


# ---------------------------------------------------------------------------
# TileDefn and variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, kw_only=True)
class TileDefn:
    """Base definition shared by all tile kinds.

    Attributes:
        tid: Permanent identifier.  Once assigned it is never changed or
            reused for another tile.
        name: Display label.
        weight: Sort key for suggestion lists, lower first.  ``None`` sorts
            as :data:`DEFAULT_WEIGHT`.
        hidden: Excluded from suggestions, still resolvable on load.
        category: Classification matched by allow/disallow lists.
        constraints: Effect on the tiles that follow this one.
    """
    kind: ClassVar[TileKind]

    tid: str
    name: str
    weight: int | None = None
    hidden: bool = False
    category: str | None = None
    constraints: Constraints | None = None

    @property
    def sort_weight(self) -> int:
        return DEFAULT_WEIGHT if self.weight is None else self.weight

    @property
    def is_terminal(self) -> bool:
        return self.constraints is not None and self.constraints.is_terminal

    def to_dict(self) -> dict[str, object]:
        """Serialize the full definition (catalog dumps, debugging)."""
        result: dict[str, object] = {
            "kind": self.kind.name.lower(),
            "tid": self.tid,
            "name": self.name,
        }
        if self.weight is not None:
            result["weight"] = self.weight
        if self.hidden:
            result["hidden"] = True
        if self.category is not None:
            result["category"] = self.category
        if self.constraints is not None:
            result["constraints"] = self.constraints.to_dict()
        return result


@dataclass(frozen=True, kw_only=True)
class SensorDefn(TileDefn):
    """A condition to detect; anchors the filter chain."""
    kind: ClassVar[TileKind] = TileKind.SENSOR

    phase: SensorPhase = SensorPhase.PRE

    def to_dict(self) -> dict[str, object]:
        result = super().to_dict()
        result["phase"] = self.phase.value
        return result


@dataclass(frozen=True, kw_only=True)
class FilterDefn(TileDefn):
    """Refines what a sensor detects."""
    kind: ClassVar[TileKind] = TileKind.FILTER

    category: str = field()
    priority: int = DEFAULT_PRIORITY

    def to_dict(self) -> dict[str, object]:
        result = super().to_dict()
        result["priority"] = self.priority
        return result


@dataclass(frozen=True, kw_only=True)
class ActuatorDefn(TileDefn):
    """An action to take; anchors the modifier chain."""
    kind: ClassVar[TileKind] = TileKind.ACTUATOR


@dataclass(frozen=True, kw_only=True)
class ModifierDefn(TileDefn):
    """Refines how an actuator acts."""
    kind: ClassVar[TileKind] = TileKind.MODIFIER

    category: str = field()
    priority: int = DEFAULT_PRIORITY

    def to_dict(self) -> dict[str, object]:
        result = super().to_dict()
        result["priority"] = self.priority
        return result


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _is_terminal(entry: Handling | None) -> bool:
    return isinstance(entry, Terminal) and entry.value


def _str_tuple(raw: object, name: str) -> tuple[str, ...]:
    """Validate a list of strings, returning it as a tuple."""
    if not isinstance(raw, (list, tuple)) or not all(isinstance(s, str) for s in raw):
        msg = f"{name} must be a list of strings"
        raise ValueError(msg)
    return tuple(raw)
