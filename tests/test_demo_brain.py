"""Smoke test for the authoring demo script."""

from __future__ import annotations

import pytest

import demo_brain
from kodu.suggest import SuggestionEngine


class TestDemo:
    """The demo authors, audits and round-trips a brain."""

    def test_main_succeeds(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert demo_brain.main() == 0
        out = capsys.readouterr().out
        assert "Round trip: PASS" in out
        assert "(illegal)" in out

    def test_authored_brain(self) -> None:
        brain = demo_brain.run_author(SuggestionEngine())
        assert [len(page.rules) for page in brain.pages] == [2, 2, 0, 0, 0]
        assert str(brain.pages[0].rules[0]) == "WHEN See Apple DO Move toward quickly"

    def test_pick_unknown_name(self) -> None:
        with pytest.raises(LookupError, match="not offered"):
            demo_brain.pick([], "Tree")
