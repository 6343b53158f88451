"""
Tests for the severity table and debug state.
"""

import pytest

from yate_compat.compat.debug import DebugState
from yate_compat.compat.severity import DEBUG_CONSTANTS, Severity, severity_level, severity_name


class TestSeverity:

    def test_eleven_levels(self):
        assert [s.name for s in Severity] == [
            "FAIL", "TEST", "CRIT", "CONF", "STUB", "WARN", "MILD", "NOTE", "CALL", "INFO", "ALL",
        ]
        assert [int(s) for s in Severity] == list(range(11))

    def test_name_lookup(self):
        assert severity_name(0) == "FAIL"
        assert severity_name(10) == "ALL"
        assert severity_name(11) is None
        assert severity_name(-1) is None

    @pytest.mark.parametrize("level", [2.5, True, False, "3", None, float("nan"), float("inf")])
    def test_name_rejects_non_levels(self, level):
        assert severity_name(level) is None

    def test_name_accepts_integral_floats(self):
        assert severity_name(3.0) == "CONF"

    def test_level_lookup(self):
        assert severity_level("CONF") == 3
        assert severity_level("DebugGoOn") == 2
        with pytest.raises(KeyError):
            severity_level("LOUD")

    def test_legacy_constants(self):
        assert DEBUG_CONSTANTS["DebugFail"] == 0
        assert DEBUG_CONSTANTS["DebugCrit"] == DEBUG_CONSTANTS["DebugGoOn"] == 2
        assert DEBUG_CONSTANTS["DebugAll"] == 10


class TestDebugState:

    def test_defaults(self):
        state = DebugState(name="script")
        assert state.get_name() == "script"
        assert state.get_level() == 8
        assert state.get_enabled() is True

    def test_level_clamped(self):
        state = DebugState()
        state.set_level(42)
        assert state.get_level() == 10
        state.set_level(-3)
        assert state.get_level() == 0

    @pytest.mark.parametrize("value", ["9", None, True, [9]])
    def test_level_ignores_non_numbers(self, value):
        state = DebugState(level=5)
        state.set_level(value)
        assert state.get_level() == 5

    @pytest.mark.parametrize("level", range(11))
    def test_debug_at(self, level):
        state = DebugState(level=5)
        assert state.debug_at(level) is (level <= 5)

    @pytest.mark.parametrize("level", ["x", None, [1]])
    def test_debug_at_non_numeric_is_false(self, level):
        assert DebugState(level=5).debug_at(level) is False

    def test_allows_debug(self):
        state = DebugState(level=5)
        assert state.allows_debug(5)
        assert not state.allows_debug(6)
        assert not state.allows_debug(-1)
        assert not state.allows_debug("5")
        assert not state.allows_debug(False)
        state.set_enabled(False)
        assert not state.allows_debug(0)
