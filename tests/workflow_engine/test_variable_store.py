"""Tests for the variable store and ${name} interpolation."""

import pytest

from taskflow_engine.workflow.variables import MapVariableStore, VariableReplacer, interpolate


class TestMapVariableStore:
    """Test the in-memory variable store."""

    def setup_method(self):
        """Set up an empty store."""
        self.store = MapVariableStore()

    def test_get_unset_returns_none(self):
        """Test that a never-set key reads as absent."""
        assert self.store.get("gold") is None
        assert "gold" not in self.store

    def test_put_and_get(self):
        """Test storing and reading a value."""
        self.store.put("gold", "5")
        assert self.store.get("gold") == "5"
        assert "gold" in self.store

    def test_put_none_stores_empty_string(self):
        """Test that None is stored as empty text, distinct from unset."""
        self.store.put("note", None)
        assert self.store.get("note") == ""
        assert "note" in self.store

    def test_put_overwrites(self):
        """Test that a later put replaces the earlier value."""
        self.store.put("gold", "5")
        self.store.put("gold", "8")
        assert self.store.get("gold") == "8"

    def test_blank_key_rejected(self):
        """Test that blank keys are refused."""
        with pytest.raises(ValueError, match="must not be blank"):
            self.store.put("  ", "x")

    def test_snapshot_is_ordered_copy(self):
        """Test that snapshots keep insertion order and do not alias the store."""
        self.store.put("b", "2")
        self.store.put("a", "1")
        snapshot = self.store.snapshot()

        assert list(snapshot) == ["b", "a"]
        snapshot["c"] = "3"
        assert self.store.get("c") is None

    def test_initial_values(self):
        """Test seeding the store at construction."""
        store = MapVariableStore({"player": "Ada", "gold": "3"})
        assert store.snapshot() == {"player": "Ada", "gold": "3"}
        assert len(store) == 2


class TestInterpolation:
    """Test ${name} substitution."""

    def setup_method(self):
        """Set up a store with a couple of values."""
        self.store = MapVariableStore({"gold": "8", "name": "Ada"})

    def test_replaces_known_variables(self):
        assert interpolate("gold=${gold}", self.store) == "gold=8"

    def test_multiple_occurrences(self):
        assert interpolate("${name} has ${gold}, ${name}!", self.store) == "Ada has 8, Ada!"

    def test_unset_variable_becomes_empty(self):
        assert interpolate("[${missing}]", self.store) == "[]"

    def test_none_text_becomes_empty(self):
        assert interpolate(None, self.store) == ""

    def test_text_without_placeholders_unchanged(self):
        assert interpolate("plain $gold {gold}", self.store) == "plain $gold {gold}"

    def test_unterminated_placeholder_kept(self):
        assert interpolate("cost ${gold", self.store) == "cost ${gold"

    def test_substituted_values_are_not_rescanned(self):
        """Test that a value containing a placeholder is inserted literally."""
        self.store.put("template", "${gold}")
        assert interpolate("t=${template}", self.store) == "t=${gold}"

    def test_replace_uses_one_snapshot(self):
        """Test interpolating a whole attribute mapping."""
        result = VariableReplacer.replace({"amount": "${gold}", "key": "flag_${name}", "value": None}, self.store)
        assert result == {"amount": "8", "key": "flag_Ada", "value": ""}
