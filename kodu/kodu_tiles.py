"""The built-in Kodu tile set.

Declares the permanent tile identifiers and the default tile table, and
builds the process-wide :data:`CATALOG` from them at import time.

Once an identifier is assigned it can NEVER be changed or repurposed:
saved brains refer to tiles by identifier only.  New tiles get new
identifiers; retired tiles keep theirs (mark them ``hidden``).

Usage::

    from kodu.kodu_tiles import CATALOG, SensorId
    see = CATALOG.lookup(TileKind.SENSOR, SensorId.SEE)
"""

from __future__ import annotations

from typing import Final

from kodu.catalog import TileCatalog, build_catalog
from kodu.tiles import (
    ActuatorDefn,
    Constraints,
    FilterDefn,
    Handling,
    MaxCount,
    ModifierDefn,
    SensorDefn,
    SensorPhase,
    Terminal,
    TileDefn,
    TileSelector,
)


# ---------------------------------------------------------------------------
# Permanent identifiers
# ---------------------------------------------------------------------------

class SensorId:
    ALWAYS: Final = "S1"
    SEE: Final = "S2"
    BUMP: Final = "S3"
    DPAD: Final = "S4"
    BUTTON_A: Final = "S5"
    BUTTON_B: Final = "S6"
    TIMER: Final = "S7"


class FilterId:
    KODU: Final = "F1"
    TREE: Final = "F2"
    APPLE: Final = "F3"
    NEARBY: Final = "F4"
    FARAWAY: Final = "F5"
    # Reserved: referenced by sensor constraints, no definition yet.
    ME: Final = "F6"
    IT: Final = "F7"
    TIMESPAN_SHORT: Final = "F8"
    TIMESPAN_LONG: Final = "F9"
    EXPRESS_NONE: Final = "F10"
    EXPRESS_HAPPY: Final = "F11"
    EXPRESS_ANGRY: Final = "F12"
    EXPRESS_HEART: Final = "F13"
    EXPRESS_SAD: Final = "F14"


class ActuatorId:
    MOVE: Final = "A1"
    SWITCH_PAGE: Final = "A2"
    EXPRESS: Final = "A3"
    BOOM: Final = "A4"
    VANISH: Final = "A5"
    CAMERA_FOLLOW: Final = "A6"


class ModifierId:
    ME: Final = "M1"
    IT: Final = "M2"
    KODU: Final = "M3"
    TREE: Final = "M4"
    APPLE: Final = "M5"
    QUICKLY: Final = "M6"
    SLOWLY: Final = "M7"
    TOWARD: Final = "M8"
    AWAY: Final = "M9"
    AVOID: Final = "M10"
    PAGE_1: Final = "M11"
    PAGE_2: Final = "M12"
    PAGE_3: Final = "M13"
    PAGE_4: Final = "M14"
    PAGE_5: Final = "M15"
    EXPRESS_NONE: Final = "M16"
    EXPRESS_HAPPY: Final = "M17"
    EXPRESS_ANGRY: Final = "M18"
    EXPRESS_HEART: Final = "M19"
    EXPRESS_SAD: Final = "M20"


# ---------------------------------------------------------------------------
# Table helpers
# ---------------------------------------------------------------------------

def _constraints(
    provides: tuple[str, ...] = (),
    requires: tuple[str, ...] = (),
    allow_categories: tuple[str, ...] = (),
    allow_tiles: tuple[str, ...] = (),
    disallow_categories: tuple[str, ...] = (),
    disallow_tiles: tuple[str, ...] = (),
    handling: tuple[Handling, ...] = (),
) -> Constraints:
    return Constraints(
        provides=provides,
        requires=requires,
        allow=TileSelector(tiles=allow_tiles, categories=allow_categories),
        disallow=TileSelector(tiles=disallow_tiles, categories=disallow_categories),
        handling=handling,
    )


_SUBJECTS = ("subject", "direct-subject")
_OBJECTS = ("object", "direct-object")
_EXPRESSION = ("expression",)


def _subject_filter(tid: str, name: str) -> FilterDefn:
    return FilterDefn(
        tid=tid,
        name=name,
        category="subject",
        constraints=_constraints(provides=("target",), disallow_categories=_SUBJECTS),
    )


def _expression_filter(tid: str, name: str) -> FilterDefn:
    return FilterDefn(
        tid=tid,
        name=name,
        category="expression",
        constraints=_constraints(disallow_categories=_EXPRESSION),
    )


def _object_modifier(tid: str, name: str) -> ModifierDefn:
    return ModifierDefn(
        tid=tid,
        name=name,
        category="object",
        constraints=_constraints(disallow_categories=_OBJECTS),
    )


def _direction_modifier(tid: str, name: str, priority: int = 10) -> ModifierDefn:
    return ModifierDefn(
        tid=tid,
        name=name,
        category="direction",
        priority=priority,
        constraints=_constraints(
            requires=("target",),
            disallow_tiles=(ModifierId.ME,),
            disallow_categories=("direction",),
        ),
    )


def _page_modifier(tid: str, page: int) -> ModifierDefn:
    return ModifierDefn(
        tid=tid,
        name=f"page {page}",
        category="page",
        constraints=_constraints(handling=(Terminal(True),)),
    )


def _expression_modifier(tid: str, name: str) -> ModifierDefn:
    return ModifierDefn(
        tid=tid,
        name=name,
        category="expression",
        constraints=_constraints(disallow_categories=_EXPRESSION),
    )


# ---------------------------------------------------------------------------
# Default tile table
# ---------------------------------------------------------------------------

SENSORS: tuple[SensorDefn, ...] = (
    SensorDefn(
        tid=SensorId.ALWAYS,
        name="Always",
        phase=SensorPhase.PRE,
        hidden=True,
    ),
    SensorDefn(
        tid=SensorId.SEE,
        name="See",
        phase=SensorPhase.PRE,
        weight=1,
        constraints=_constraints(
            provides=("target",),
            allow_categories=("subject", "direct-subject", "distance", "expression"),
            disallow_tiles=(FilterId.ME,),
        ),
    ),
    SensorDefn(
        tid=SensorId.BUMP,
        name="Bump",
        phase=SensorPhase.PRE,
        weight=2,
        constraints=_constraints(
            provides=("target",),
            allow_categories=("subject", "direct-subject", "expression"),
            disallow_tiles=(FilterId.ME,),
        ),
    ),
    SensorDefn(
        tid=SensorId.DPAD,
        name="DPad",
        phase=SensorPhase.PRE,
        constraints=_constraints(
            provides=("input", "direction"),
            allow_categories=("dpad-direction", "button-event"),
        ),
    ),
    SensorDefn(
        tid=SensorId.BUTTON_A,
        name="A",
        phase=SensorPhase.PRE,
        constraints=_constraints(provides=("input",), allow_categories=("button-event",)),
    ),
    SensorDefn(
        tid=SensorId.BUTTON_B,
        name="B",
        phase=SensorPhase.PRE,
        constraints=_constraints(provides=("input",), allow_categories=("button-event",)),
    ),
    SensorDefn(
        tid=SensorId.TIMER,
        name="Timer",
        phase=SensorPhase.POST,
        constraints=_constraints(allow_categories=("timespan",)),
    ),
)

FILTERS: tuple[FilterDefn, ...] = (
    _subject_filter(FilterId.KODU, "Kodu"),
    _subject_filter(FilterId.TREE, "Tree"),
    _subject_filter(FilterId.APPLE, "Apple"),
    FilterDefn(
        tid=FilterId.NEARBY,
        name="nearby",
        category="distance",
        constraints=_constraints(
            provides=("target",),
            disallow_tiles=(FilterId.FARAWAY,),
            handling=(MaxCount(3),),
        ),
    ),
    FilterDefn(
        tid=FilterId.FARAWAY,
        name="far away",
        category="distance",
        constraints=_constraints(
            provides=("target",),
            disallow_tiles=(FilterId.NEARBY,),
            handling=(MaxCount(3),),
        ),
    ),
    FilterDefn(
        tid=FilterId.TIMESPAN_SHORT,
        name="short",
        category="timespan",
        constraints=_constraints(),
    ),
    FilterDefn(
        tid=FilterId.TIMESPAN_LONG,
        name="long",
        category="timespan",
        constraints=_constraints(),
    ),
    _expression_filter(FilterId.EXPRESS_NONE, "none"),
    _expression_filter(FilterId.EXPRESS_HAPPY, "happy"),
    _expression_filter(FilterId.EXPRESS_ANGRY, "angry"),
    _expression_filter(FilterId.EXPRESS_HEART, "heart"),
    _expression_filter(FilterId.EXPRESS_SAD, "sad"),
)

ACTUATORS: tuple[ActuatorDefn, ...] = (
    ActuatorDefn(
        tid=ActuatorId.MOVE,
        name="Move",
        category="movement",
        constraints=_constraints(allow_categories=("speed", "direction", "direct-object")),
    ),
    ActuatorDefn(
        tid=ActuatorId.SWITCH_PAGE,
        name="Switch page",
        constraints=_constraints(allow_categories=("page",)),
    ),
    ActuatorDefn(
        tid=ActuatorId.EXPRESS,
        name="Express",
        constraints=_constraints(allow_categories=("expression",)),
    ),
    ActuatorDefn(
        tid=ActuatorId.BOOM,
        name="Boom",
        hidden=True,  # not implemented by the runtime yet
        constraints=_constraints(allow_categories=("direct-object",)),
    ),
    ActuatorDefn(
        tid=ActuatorId.VANISH,
        name="Vanish",
        constraints=_constraints(allow_categories=("direct-object",)),
    ),
    ActuatorDefn(
        tid=ActuatorId.CAMERA_FOLLOW,
        name="Keep in view",
        constraints=_constraints(allow_categories=("direct-object",)),
    ),
)

MODIFIERS: tuple[ModifierDefn, ...] = (
    ModifierDefn(
        tid=ModifierId.ME,
        name="me",
        category="direct-object",
        constraints=_constraints(requires=("target",), disallow_categories=_OBJECTS),
    ),
    ModifierDefn(
        tid=ModifierId.IT,
        name="it",
        category="direct-object",
        constraints=_constraints(requires=("target",), disallow_categories=_OBJECTS),
    ),
    _object_modifier(ModifierId.KODU, "Kodu"),
    _object_modifier(ModifierId.TREE, "Tree"),
    _object_modifier(ModifierId.APPLE, "Apple"),
    ModifierDefn(
        tid=ModifierId.QUICKLY,
        name="quickly",
        category="speed",
        constraints=_constraints(
            disallow_tiles=(ModifierId.SLOWLY,),
            handling=(MaxCount(3),),
        ),
    ),
    ModifierDefn(
        tid=ModifierId.SLOWLY,
        name="slowly",
        category="speed",
        constraints=_constraints(
            disallow_tiles=(ModifierId.QUICKLY,),
            handling=(MaxCount(3),),
        ),
    ),
    _direction_modifier(ModifierId.TOWARD, "toward"),
    _direction_modifier(ModifierId.AWAY, "away"),
    # Higher priority: ordered after other modifiers at runtime.
    _direction_modifier(ModifierId.AVOID, "avoid", priority=20),
    _page_modifier(ModifierId.PAGE_1, 1),
    _page_modifier(ModifierId.PAGE_2, 2),
    _page_modifier(ModifierId.PAGE_3, 3),
    _page_modifier(ModifierId.PAGE_4, 4),
    _page_modifier(ModifierId.PAGE_5, 5),
    _expression_modifier(ModifierId.EXPRESS_NONE, "none"),
    _expression_modifier(ModifierId.EXPRESS_HAPPY, "happy"),
    _expression_modifier(ModifierId.EXPRESS_ANGRY, "angry"),
    _expression_modifier(ModifierId.EXPRESS_HEART, "heart"),
    _expression_modifier(ModifierId.EXPRESS_SAD, "sad"),
)

ALL_TILES: tuple[TileDefn, ...] = (*SENSORS, *FILTERS, *ACTUATORS, *MODIFIERS)

CATALOG: TileCatalog = build_catalog(ALL_TILES)
