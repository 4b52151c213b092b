"""Typed wire records for the compact brain format.

The persisted layout uses single-letter keys::

    Brain: {"P": [Page, Page, Page, Page, Page]}
    Page:  {"R": [Rule, ...]}                        # "R" omitted when empty
    Rule:  {"C": "RC1", "S": "S2", "A": "A1",
            "F": ["F1"], "M": ["M8"]}                # each key optional

Records carry tile identifiers only.  Parsing a raw dict into a record
validates its shape; resolving identifiers against the catalog happens
later in :mod:`kodu.codec`.

With ``strict=True`` (the default) any field of the wrong shape, including
an explicit ``null`` and any key the layout does not define, raises
:class:`MalformedRecordError`.  With ``strict=False`` wrong-typed fields
and unknown keys are treated as absent, and the brain page list is padded or cut to
:data:`~kodu.rules.PAGE_COUNT`; every such recovery is logged.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Self

from kodu.rules import PAGE_COUNT, RuleCondition

logger = logging.getLogger(__name__)

KEY_CONDITION = "C"
KEY_SENSOR = "S"
KEY_ACTUATOR = "A"
KEY_FILTERS = "F"
KEY_MODIFIERS = "M"
KEY_RULES = "R"
KEY_PAGES = "P"

RULE_KEYS = frozenset({KEY_CONDITION, KEY_SENSOR, KEY_ACTUATOR, KEY_FILTERS, KEY_MODIFIERS})
PAGE_KEYS = frozenset({KEY_RULES})
BRAIN_KEYS = frozenset({KEY_PAGES})

# Marks a key missing from a record; a present JSON null is malformed.
_ABSENT = object()


class MalformedRecordError(ValueError):
    """Input is not a well-formed brain, page or rule record."""


# ---------------------------------------------------------------------------
# RuleRecord
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleRecord:
    """A rule as stored: condition plus tile identifiers."""
    condition: RuleCondition = RuleCondition.DEFAULT
    sensor: str | None = None
    actuator: str | None = None
    filters: tuple[str, ...] = ()
    modifiers: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.filters, tuple):
            object.__setattr__(self, "filters", tuple(self.filters))
        if not isinstance(self.modifiers, tuple):
            object.__setattr__(self, "modifiers", tuple(self.modifiers))

    def to_dict(self) -> dict[str, object]:
        """Serialize, emitting only present fields."""
        result: dict[str, object] = {}
        if self.condition is not RuleCondition.DEFAULT:
            result[KEY_CONDITION] = self.condition.value
        if self.sensor is not None:
            result[KEY_SENSOR] = self.sensor
        if self.actuator is not None:
            result[KEY_ACTUATOR] = self.actuator
        if self.filters:
            result[KEY_FILTERS] = list(self.filters)
        if self.modifiers:
            result[KEY_MODIFIERS] = list(self.modifiers)
        return result

    @classmethod
    def from_dict(cls, data: object, strict: bool = True) -> Self:
        """Parse a raw rule record."""
        data = _require_mapping(data, "rule", strict)
        _check_keys(data, RULE_KEYS, "rule", strict)
        return cls(
            condition=_condition(data.get(KEY_CONDITION, _ABSENT), strict),
            sensor=_opt_id(data.get(KEY_SENSOR, _ABSENT), KEY_SENSOR, strict),
            actuator=_opt_id(data.get(KEY_ACTUATOR, _ABSENT), KEY_ACTUATOR, strict),
            filters=_id_list(data.get(KEY_FILTERS, _ABSENT), KEY_FILTERS, strict),
            modifiers=_id_list(data.get(KEY_MODIFIERS, _ABSENT), KEY_MODIFIERS, strict),
        )


# ---------------------------------------------------------------------------
# PageRecord
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageRecord:
    """A page as stored: its rule records in order."""
    rules: tuple[RuleRecord, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.rules, tuple):
            object.__setattr__(self, "rules", tuple(self.rules))

    def to_dict(self) -> dict[str, object]:
        """Serialize; an empty page is ``{}``."""
        if not self.rules:
            return {}
        return {KEY_RULES: [r.to_dict() for r in self.rules]}

    @classmethod
    def from_dict(cls, data: object, strict: bool = True) -> Self:
        """Parse a raw page record."""
        data = _require_mapping(data, "page", strict)
        _check_keys(data, PAGE_KEYS, "page", strict)
        if KEY_RULES not in data:
            return cls()
        raw_rules = data[KEY_RULES]
        if not isinstance(raw_rules, list):
            _reject(f"{KEY_RULES!r} must be a list, got {type(raw_rules).__name__}", strict)
            return cls()
        return cls(rules=tuple(RuleRecord.from_dict(r, strict) for r in raw_rules))


# ---------------------------------------------------------------------------
# BrainRecord
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BrainRecord:
    """A brain as stored: exactly :data:`PAGE_COUNT` page records."""
    pages: tuple[PageRecord, ...] = tuple(PageRecord() for _ in range(PAGE_COUNT))

    def __post_init__(self) -> None:
        if not isinstance(self.pages, tuple):
            object.__setattr__(self, "pages", tuple(self.pages))
        if len(self.pages) != PAGE_COUNT:
            msg = f"a brain record has exactly {PAGE_COUNT} pages, got {len(self.pages)}"
            raise MalformedRecordError(msg)

    def to_dict(self) -> dict[str, object]:
        """Serialize; the page list is always present."""
        return {KEY_PAGES: [p.to_dict() for p in self.pages]}

    def to_json(self, indent: int | None = None) -> str:
        """Serialize to a JSON string (compact by default)."""
        separators = (",", ":") if indent is None else None
        return json.dumps(self.to_dict(), indent=indent, separators=separators)

    @classmethod
    def from_dict(cls, data: object, strict: bool = True) -> Self:
        """Parse a raw brain record."""
        data = _require_mapping(data, "brain", strict)
        _check_keys(data, BRAIN_KEYS, "brain", strict)
        raw_pages = data.get(KEY_PAGES)
        if not isinstance(raw_pages, list):
            _reject(f"{KEY_PAGES!r} must be a list of {PAGE_COUNT} pages", strict)
            raw_pages = []
        if len(raw_pages) != PAGE_COUNT:
            _reject(
                f"a brain has exactly {PAGE_COUNT} pages, got {len(raw_pages)}",
                strict,
            )
            raw_pages = raw_pages[:PAGE_COUNT] + [{}] * (PAGE_COUNT - len(raw_pages))
        return cls(pages=tuple(PageRecord.from_dict(p, strict) for p in raw_pages))

    @classmethod
    def from_json(cls, json_str: str, strict: bool = True) -> Self:
        """Parse a JSON string.  Invalid JSON always raises."""
        return cls.from_dict(parse_json(json_str), strict)


def parse_json(json_str: str) -> object:
    """Decode JSON text, raising :class:`MalformedRecordError` on bad input."""
    try:
        return json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise MalformedRecordError(f"invalid brain JSON: {exc}") from exc


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _reject(message: str, strict: bool) -> None:
    """Raise in strict mode, otherwise log the recovery."""
    if strict:
        raise MalformedRecordError(message)
    logger.warning("Recovered malformed record: %s", message)


def _require_mapping(data: object, what: str, strict: bool) -> dict[str, object]:
    if isinstance(data, dict):
        return data
    _reject(f"{what} record must be a mapping, got {type(data).__name__}", strict)
    return {}


def _check_keys(
    data: dict[str, object], allowed: frozenset[str], what: str, strict: bool,
) -> None:
    """Reject keys the record layout does not define (ignored when lenient)."""
    unknown = sorted(str(k) for k in data if k not in allowed)
    if unknown:
        _reject(f"unexpected key(s) in {what} record: {', '.join(unknown)}", strict)


def _condition(raw: object, strict: bool) -> RuleCondition:
    if raw is _ABSENT:
        return RuleCondition.DEFAULT
    if isinstance(raw, str):
        try:
            return RuleCondition(raw)
        except ValueError:
            _reject(f"unknown rule condition {raw!r}", strict)
            return RuleCondition.DEFAULT
    _reject(f"{KEY_CONDITION!r} must be a string, got {type(raw).__name__}", strict)
    return RuleCondition.DEFAULT


def _opt_id(raw: object, key: str, strict: bool) -> str | None:
    if raw is _ABSENT:
        return None
    if isinstance(raw, str):
        return raw
    _reject(f"{key!r} must be a tile id string, got {type(raw).__name__}", strict)
    return None


def _id_list(raw: object, key: str, strict: bool) -> tuple[str, ...]:
    if raw is _ABSENT:
        return ()
    if isinstance(raw, list) and all(isinstance(item, str) for item in raw):
        return tuple(raw)
    _reject(f"{key!r} must be a list of tile id strings", strict)
    return ()
