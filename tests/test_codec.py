"""Tests for kodu.codec -- encoding, decoding and brain files."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from kodu.catalog import UnresolvedTileError, build_catalog
from kodu.codec import (
    UnresolvedTilePolicy,
    brain_from_json,
    brain_to_json,
    decode_brain,
    decode_page,
    decode_rule,
    encode_brain,
    encode_page,
    encode_rule,
    load_brain,
    save_brain,
)
from kodu.kodu_tiles import CATALOG, ActuatorId, FilterId, ModifierId, SensorId
from kodu.records import MalformedRecordError
from kodu.rules import BrainDefn, PageDefn, RuleCondition, RuleDefn
from kodu.tiles import ActuatorDefn, SensorDefn, TileKind


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _tile(kind: TileKind, tid: str):  # type: ignore[no-untyped-def]
    return CATALOG.lookup(kind, tid)


def _chase_rule() -> RuleDefn:
    return RuleDefn(
        sensor=_tile(TileKind.SENSOR, SensorId.SEE),
        filters=[_tile(TileKind.FILTER, FilterId.APPLE)],
        actuator=_tile(TileKind.ACTUATOR, ActuatorId.MOVE),
        modifiers=[
            _tile(TileKind.MODIFIER, ModifierId.TOWARD),
            _tile(TileKind.MODIFIER, ModifierId.QUICKLY),
        ],
    )


def _sample_brain() -> BrainDefn:
    brain = BrainDefn()
    brain.pages[0].rules = [
        _chase_rule(),
        RuleDefn(
            condition=RuleCondition.LOW_TO_HIGH,
            actuator=_tile(TileKind.ACTUATOR, ActuatorId.SWITCH_PAGE),
            modifiers=[_tile(TileKind.MODIFIER, ModifierId.PAGE_2)],
        ),
    ]
    brain.pages[1].rules = [
        RuleDefn(sensor=_tile(TileKind.SENSOR, SensorId.TIMER)),
    ]
    return brain


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

class TestEncode:
    """Encoding keeps identifiers only and omits absent fields."""

    def test_encode_rule(self) -> None:
        assert encode_rule(_chase_rule()) == {
            "S": "S2", "A": "A1", "F": ["F3"], "M": ["M8", "M6"],
        }

    def test_encode_empty_rule(self) -> None:
        assert encode_rule(RuleDefn()) == {}

    def test_encode_condition(self) -> None:
        assert encode_rule(RuleDefn(condition=RuleCondition.LOW)) == {"C": "RC2"}

    def test_encode_page(self) -> None:
        assert encode_page(PageDefn()) == {}
        assert encode_page(PageDefn(rules=[RuleDefn()])) == {"R": [{}]}

    def test_encode_brain_always_five_pages(self) -> None:
        assert encode_brain(BrainDefn()) == {"P": [{}, {}, {}, {}, {}]}
        data = encode_brain(_sample_brain())
        assert len(data["P"]) == 5  # type: ignore[arg-type]
        assert data["P"][1] == {"R": [{"S": "S7"}]}  # type: ignore[index]

    def test_brain_to_json_compact(self) -> None:
        text = brain_to_json(BrainDefn())
        assert text == '{"P":[{},{},{},{},{}]}'

    def test_brain_to_json_indent(self) -> None:
        text = brain_to_json(_sample_brain(), indent=2)
        assert json.loads(text) == encode_brain(_sample_brain())


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

class TestDecode:
    """Decoding resolves identifiers in the matching partition."""

    def test_round_trip(self) -> None:
        brain = _sample_brain()
        assert decode_brain(encode_brain(brain)) == brain

    def test_round_trip_through_json_text(self) -> None:
        brain = _sample_brain()
        assert brain_from_json(brain_to_json(brain)) == brain
        assert decode_brain(brain_to_json(brain)) == brain

    def test_decoded_tiles_are_catalog_instances(self) -> None:
        rule = decode_rule({"S": "S2", "F": ["F1"]})
        assert rule.sensor is CATALOG.sensors["S2"]
        assert rule.filters[0] is CATALOG.filters["F1"]

    def test_decode_page(self) -> None:
        page = decode_page({"R": [{"A": "A3", "M": ["M17"]}]})
        assert str(page.rules[0]) == "WHEN - DO Express happy"

    def test_trailing_empty_rules_survive(self) -> None:
        brain = BrainDefn()
        brain.pages[2].rules = [RuleDefn(), RuleDefn()]
        restored = decode_brain(encode_brain(brain))
        assert len(restored.pages[2].rules) == 2

    def test_id_resolved_in_its_own_partition(self) -> None:
        with pytest.raises(UnresolvedTileError) as exc_info:
            decode_rule({"S": "A1"})
        assert exc_info.value.kind is TileKind.SENSOR

    def test_reserved_filter_id_is_unresolved(self) -> None:
        with pytest.raises(UnresolvedTileError):
            decode_rule({"S": "S2", "F": [FilterId.ME]})

    def test_custom_catalog(self) -> None:
        catalog = build_catalog([
            SensorDefn(tid="S1", name="Ping"),
            ActuatorDefn(tid="A1", name="Pong"),
        ])
        rule = decode_rule({"S": "S1", "A": "A1"}, catalog=catalog)
        assert str(rule) == "WHEN Ping DO Pong"

    def test_empty_catalog_is_not_replaced(self) -> None:
        with pytest.raises(UnresolvedTileError):
            decode_rule({"S": "S2"}, catalog=build_catalog([]))

    def test_malformed_strict(self) -> None:
        with pytest.raises(MalformedRecordError):
            decode_brain({"P": [{}, {}]})
        with pytest.raises(MalformedRecordError):
            decode_brain("not json")

    def test_misspelled_key_does_not_drop_tile(self) -> None:
        with pytest.raises(MalformedRecordError, match="unexpected key"):
            decode_rule({"s": "S2", "A": "A1"})

    def test_null_fields_rejected(self) -> None:
        with pytest.raises(MalformedRecordError):
            decode_rule({"S": None})
        with pytest.raises(MalformedRecordError):
            decode_brain({"P": [{"R": None}, {}, {}, {}, {}]})

    def test_malformed_lenient(self) -> None:
        brain = decode_brain({"P": [{"R": [{"S": "S2", "F": "F1"}]}]}, strict=False)
        assert len(brain.pages) == 5
        assert brain.pages[0].rules[0].sensor is CATALOG.sensors["S2"]
        assert brain.pages[0].rules[0].filters == []


# ---------------------------------------------------------------------------
# Unresolved identifiers
# ---------------------------------------------------------------------------

class TestUnresolvedPolicy:
    """Unknown identifiers are never silently turned into empty slots."""

    PAGE = {"R": [{"S": "S99", "F": ["F1"], "A": "A1"}, {"S": "S2", "M": ["M999"]}]}

    def test_raise_is_default(self) -> None:
        with pytest.raises(UnresolvedTileError, match="S99"):
            decode_page(self.PAGE)

    def test_drop_tile_repairs_rule(self) -> None:
        page = decode_page(self.PAGE, on_unresolved=UnresolvedTilePolicy.DROP_TILE)
        first, second = page.rules
        # Sensor dropped, so its filters are cleared.
        assert first.sensor is None
        assert first.filters == []
        assert first.actuator is CATALOG.actuators["A1"]
        assert second.sensor is CATALOG.sensors["S2"]
        assert second.modifiers == []

    def test_drop_rule(self, caplog: pytest.LogCaptureFixture) -> None:
        brain_data = {"P": [self.PAGE, {"R": [{"A": "A2"}]}, {}, {}, {}]}
        with caplog.at_level("WARNING", logger="kodu.codec"):
            brain = decode_brain(brain_data, on_unresolved=UnresolvedTilePolicy.DROP_RULE)
        assert brain.pages[0].rules == []
        assert len(brain.pages[1].rules) == 1
        assert len(caplog.records) == 2

    def test_drop_rule_keeps_rule_order(self) -> None:
        page = decode_page(
            {"R": [{"A": "A1"}, {"A": "A77"}, {"A": "A3"}]},
            on_unresolved=UnresolvedTilePolicy.DROP_RULE,
        )
        assert [r.actuator.tid for r in page.rules] == ["A1", "A3"]  # type: ignore[union-attr]

    def test_drop_rule_on_single_rule_raises(self) -> None:
        with pytest.raises(UnresolvedTileError):
            decode_rule({"S": "S99"}, on_unresolved=UnresolvedTilePolicy.DROP_RULE)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

class TestBrainFiles:
    """save_brain / load_brain."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        brain = _sample_brain()
        path = save_brain(brain, tmp_path / "saves" / "nested" / "brain.json")
        assert path.exists()
        assert path.is_absolute()
        assert load_brain(path) == brain

    def test_saved_text_is_compact_json(self, tmp_path: Path) -> None:
        path = save_brain(BrainDefn(), tmp_path / "empty.json")
        assert path.read_text(encoding="utf-8") == '{"P":[{},{},{},{},{}]}'

    def test_save_with_indent(self, tmp_path: Path) -> None:
        path = save_brain(_sample_brain(), str(tmp_path / "pretty.json"), indent=2)
        assert "\n" in path.read_text(encoding="utf-8")
        assert load_brain(str(path)) == _sample_brain()

    def test_load_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Brain file not found"):
            load_brain(tmp_path / "missing.json")

    def test_load_with_policy(self, tmp_path: Path) -> None:
        path = tmp_path / "old.json"
        path.write_text(
            json.dumps({"P": [{"R": [{"A": "A1", "M": ["M42"]}]}, {}, {}, {}, {}]}),
            encoding="utf-8",
        )
        with pytest.raises(UnresolvedTileError):
            load_brain(path)
        brain = load_brain(path, on_unresolved=UnresolvedTilePolicy.DROP_TILE)
        assert brain.pages[0].rules[0].modifiers == []
