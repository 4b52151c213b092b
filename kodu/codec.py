"""Encode and decode authored brains to the compact keyed format.

Encoding keeps only tile identifiers (see :mod:`kodu.records` for the
layout).  Decoding parses the input into typed records, then resolves
every identifier in the matching partition of a :class:`TileCatalog`.

An identifier the catalog does not know is never turned into an empty
slot silently.  The caller picks what happens through
:class:`UnresolvedTilePolicy`; the default raises
:class:`~kodu.catalog.UnresolvedTileError`.

Usage::

    data = encode_brain(brain)
    restored = decode_brain(data)
    assert restored == brain

    save_brain(brain, "saves/kodu.json")
    brain = load_brain("saves/kodu.json", on_unresolved=UnresolvedTilePolicy.DROP_RULE)
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from kodu.catalog import TileCatalog, UnresolvedTileError
from kodu.kodu_tiles import CATALOG
from kodu.records import BrainRecord, PageRecord, RuleRecord, parse_json
from kodu.rules import BrainDefn, PageDefn, RuleDefn
from kodu.tiles import TileDefn, TileKind

logger = logging.getLogger(__name__)


class UnresolvedTilePolicy(Enum):
    """What decoding does with an identifier missing from the catalog."""
    RAISE = "raise"
    DROP_TILE = "drop_tile"
    DROP_RULE = "drop_rule"


class _DroppedRule(Exception):
    """Internal signal: the rule being decoded is discarded."""


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def rule_to_record(rule: RuleDefn) -> RuleRecord:
    return RuleRecord(
        condition=rule.condition,
        sensor=rule.sensor.tid if rule.sensor is not None else None,
        actuator=rule.actuator.tid if rule.actuator is not None else None,
        filters=tuple(t.tid for t in rule.filters),
        modifiers=tuple(t.tid for t in rule.modifiers),
    )


def page_to_record(page: PageDefn) -> PageRecord:
    return PageRecord(rules=tuple(rule_to_record(r) for r in page.rules))


def brain_to_record(brain: BrainDefn) -> BrainRecord:
    return BrainRecord(pages=tuple(page_to_record(p) for p in brain.pages))


def encode_rule(rule: RuleDefn) -> dict[str, object]:
    """Encode a rule to its compact dict."""
    return rule_to_record(rule).to_dict()


def encode_page(page: PageDefn) -> dict[str, object]:
    """Encode a page to its compact dict."""
    return page_to_record(page).to_dict()


def encode_brain(brain: BrainDefn) -> dict[str, object]:
    """Encode a brain to its compact dict (always five page entries)."""
    return brain_to_record(brain).to_dict()


def brain_to_json(brain: BrainDefn, indent: int | None = None) -> str:
    """Encode a brain to a JSON string (compact unless ``indent`` is given)."""
    return brain_to_record(brain).to_json(indent=indent)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

class _Resolver:
    """Resolves record identifiers against a catalog under a policy."""

    def __init__(self, catalog: TileCatalog, policy: UnresolvedTilePolicy) -> None:
        self.catalog = catalog
        self.policy = policy

    def resolve(self, kind: TileKind, tid: str) -> TileDefn | None:
        try:
            return self.catalog.lookup(kind, tid)
        except UnresolvedTileError:
            if self.policy is UnresolvedTilePolicy.RAISE:
                raise
            if self.policy is UnresolvedTilePolicy.DROP_RULE:
                logger.warning("Dropping rule with unknown %s tile %r", kind.name.lower(), tid)
                raise _DroppedRule from None
            logger.warning("Dropping unknown %s tile %r", kind.name.lower(), tid)
            return None

    def rule(self, record: RuleRecord) -> RuleDefn:
        rule = RuleDefn(condition=record.condition)
        if record.sensor is not None:
            rule.sensor = self.resolve(TileKind.SENSOR, record.sensor)  # type: ignore[assignment]
        if record.actuator is not None:
            rule.actuator = self.resolve(TileKind.ACTUATOR, record.actuator)  # type: ignore[assignment]
        rule.filters = self._chain(TileKind.FILTER, record.filters)  # type: ignore[assignment]
        rule.modifiers = self._chain(TileKind.MODIFIER, record.modifiers)  # type: ignore[assignment]
        if self.policy is UnresolvedTilePolicy.DROP_TILE:
            rule.ensure_valid()
        return rule

    def page(self, record: PageRecord) -> PageDefn:
        page = PageDefn()
        for rule_record in record.rules:
            try:
                page.rules.append(self.rule(rule_record))
            except _DroppedRule:
                continue
        return page

    def brain(self, record: BrainRecord) -> BrainDefn:
        return BrainDefn(pages=[self.page(p) for p in record.pages])

    def _chain(self, kind: TileKind, tids: tuple[str, ...]) -> list[TileDefn]:
        chain: list[TileDefn] = []
        for tid in tids:
            tile = self.resolve(kind, tid)
            if tile is not None:
                chain.append(tile)
        return chain


def decode_rule(
    data: object,
    catalog: TileCatalog | None = None,
    strict: bool = True,
    on_unresolved: UnresolvedTilePolicy = UnresolvedTilePolicy.RAISE,
) -> RuleDefn:
    """Decode a rule from a compact dict or JSON string.

    ``DROP_RULE`` has no page to drop the rule from, so it raises here
    just like ``RAISE``.

    Raises:
        MalformedRecordError: If the input has the wrong shape (strict mode).
        UnresolvedTileError: If an identifier is unknown and the policy
            does not drop it.
    """
    record = RuleRecord.from_dict(_load(data), strict)
    resolver = _Resolver(_catalog(catalog), on_unresolved)
    if on_unresolved is UnresolvedTilePolicy.DROP_RULE:
        resolver.policy = UnresolvedTilePolicy.RAISE
    return resolver.rule(record)


def decode_page(
    data: object,
    catalog: TileCatalog | None = None,
    strict: bool = True,
    on_unresolved: UnresolvedTilePolicy = UnresolvedTilePolicy.RAISE,
) -> PageDefn:
    """Decode a page from a compact dict or JSON string."""
    record = PageRecord.from_dict(_load(data), strict)
    return _Resolver(_catalog(catalog), on_unresolved).page(record)


def decode_brain(
    data: object,
    catalog: TileCatalog | None = None,
    strict: bool = True,
    on_unresolved: UnresolvedTilePolicy = UnresolvedTilePolicy.RAISE,
) -> BrainDefn:
    """Decode a brain from a compact dict or JSON string.

    Args:
        data: The ``{"P": [...]}`` dict, or its JSON text.
        catalog: Catalog to resolve identifiers in.  Defaults to the
            built-in :data:`~kodu.kodu_tiles.CATALOG`.
        strict: Reject malformed fields instead of treating them as absent.
        on_unresolved: Policy for identifiers missing from the catalog.

    Raises:
        MalformedRecordError: If the input has the wrong shape (strict mode)
            or is not valid JSON.
        UnresolvedTileError: If an identifier is unknown under ``RAISE``.
    """
    record = BrainRecord.from_dict(_load(data), strict)
    return _Resolver(_catalog(catalog), on_unresolved).brain(record)


def brain_from_json(
    json_str: str,
    catalog: TileCatalog | None = None,
    strict: bool = True,
    on_unresolved: UnresolvedTilePolicy = UnresolvedTilePolicy.RAISE,
) -> BrainDefn:
    """Decode a brain from JSON text."""
    return decode_brain(parse_json(json_str), catalog, strict, on_unresolved)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def save_brain(brain: BrainDefn, path: str | Path, indent: int | None = None) -> Path:
    """Write a brain to a JSON file, creating parent directories.

    Returns:
        The resolved path that was written.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(brain_to_json(brain, indent=indent), encoding="utf-8")
    logger.info("Saved brain to %s", p)
    return p.resolve()


def load_brain(
    path: str | Path,
    catalog: TileCatalog | None = None,
    strict: bool = True,
    on_unresolved: UnresolvedTilePolicy = UnresolvedTilePolicy.RAISE,
) -> BrainDefn:
    """Read a brain from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    p = Path(path)
    if not p.exists():
        msg = f"Brain file not found: {p}"
        raise FileNotFoundError(msg)
    brain = brain_from_json(p.read_text(encoding="utf-8"), catalog, strict, on_unresolved)
    logger.info("Loaded brain from %s", p)
    return brain


def _load(data: object) -> object:
    if isinstance(data, str):
        return parse_json(data)
    return data


def _catalog(catalog: TileCatalog | None) -> TileCatalog:
    return catalog if catalog is not None else CATALOG
