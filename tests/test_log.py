"""
Tests for CombatLogger.
"""

from palbattle.combat.log import CombatLogger


class TestCombatLogger:

    def test_lines_in_order(self):
        log = CombatLogger()
        log.add("first")
        log.add_multiple(["second", "third"])
        assert log.lines == ("first", "second", "third")
        assert len(log) == 3

    def test_lines_is_a_snapshot(self):
        log = CombatLogger()
        log.add("one")
        lines = log.lines
        log.add("two")
        assert lines == ("one",)

    def test_suppressed_discards(self):
        log = CombatLogger()
        log.add("kept")
        with log.suppressed():
            assert log.is_suppressed
            log.add("dropped")
        log.add("kept again")
        assert log.lines == ("kept", "kept again")
        assert not log.is_suppressed

    def test_nested_suppression(self):
        log = CombatLogger()
        with log.suppressed():
            with log.suppressed():
                log.add("inner")
            log.add("outer")
        log.add("after")
        assert log.lines == ("after",)

    def test_suppression_ends_on_error(self):
        log = CombatLogger()
        try:
            with log.suppressed():
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        log.add("visible")
        assert log.lines == ("visible",)

    def test_clear(self):
        log = CombatLogger()
        log.add("line")
        log.clear()
        assert len(log) == 0
