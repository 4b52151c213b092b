"""Kodu SDK -- authoring core for tile-based character brains.

Provides the tile catalog and constraint schema, the suggestion engine
that decides which tiles may be placed next in a rule, the rule/page/brain
data model, and the compact serialization format for saved brains.
"""

__version__ = "0.1.0"

# Re-export key types for convenience.
from kodu.catalog import TileCatalog, UnresolvedTileError, build_catalog
from kodu.codec import (
    UnresolvedTilePolicy,
    decode_brain,
    encode_brain,
    load_brain,
    save_brain,
)
from kodu.kodu_tiles import CATALOG
from kodu.records import MalformedRecordError
from kodu.rules import BrainDefn, PageDefn, RuleCondition, RuleDefn, ensure_valid
from kodu.suggest import SuggestionEngine
from kodu.tiles import (
    ActuatorDefn,
    Constraints,
    FilterDefn,
    ModifierDefn,
    SensorDefn,
    TileDefn,
    TileKind,
)

__all__ = [
    "CATALOG",
    "ActuatorDefn",
    "BrainDefn",
    "Constraints",
    "FilterDefn",
    "MalformedRecordError",
    "ModifierDefn",
    "PageDefn",
    "RuleCondition",
    "RuleDefn",
    "SensorDefn",
    "SuggestionEngine",
    "TileCatalog",
    "TileDefn",
    "TileKind",
    "UnresolvedTileError",
    "UnresolvedTilePolicy",
    "build_catalog",
    "decode_brain",
    "encode_brain",
    "ensure_valid",
    "load_brain",
    "save_brain",
]
