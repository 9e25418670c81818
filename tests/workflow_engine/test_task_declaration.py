"""Tests for task declarations built from document mappings."""

import pytest

from taskflow_engine.workflow.models import MalformedCatalogError, TaskDeclaration, as_text


class TestTaskDeclaration:
    """Test TaskDeclaration.from_mapping and attribute access."""

    def test_maps_document_names_to_fields(self):
        """Test that camelCase document attributes land on snake_case fields."""
        task = TaskDeclaration.from_mapping(
            {
                "id": "ask",
                "type": "choice",
                "key": "answer",
                "prompt": "Pick one",
                "optionAText": "Left",
                "optionAValue": "left",
                "optionBText": "Right",
                "optionBValue": "right",
            }
        )

        assert task.option_a_text == "Left"
        assert task.option_b_value == "right"
        assert task.attribute("optionAValue") == "left"

    def test_missing_id_rejected(self):
        """Test that a task without id cannot be declared."""
        with pytest.raises(MalformedCatalogError, match="Task id is required"):
            TaskDeclaration.from_mapping({"type": "log"})

    def test_blank_id_rejected(self):
        """Test that a whitespace id counts as missing."""
        with pytest.raises(MalformedCatalogError, match="Task id is required"):
            TaskDeclaration.from_mapping({"id": "  ", "type": "log"})

    def test_missing_type_rejected(self):
        """Test that a task without type cannot be declared."""
        with pytest.raises(MalformedCatalogError, match="Task type is required, taskId=t1"):
            TaskDeclaration.from_mapping({"id": "t1"})

    def test_required_attributes_not_checked_at_construction(self):
        """Test that a setVar without key is still a valid declaration."""
        task = TaskDeclaration.from_mapping({"id": "s", "type": "setVar"})
        assert task.key is None

    def test_unknown_type_accepted_at_construction(self):
        """Test that instruction types are only checked when executed."""
        task = TaskDeclaration.from_mapping({"id": "x", "type": "teleport"})
        assert task.type == "teleport"

    def test_blank_attribute_treated_as_absent(self):
        """Test that empty attribute values become None."""
        task = TaskDeclaration.from_mapping({"id": "l", "type": "log", "message": ""})
        assert task.message is None

    def test_scalar_values_become_text(self):
        """Test that YAML numbers and booleans are stored as strings."""
        task = TaskDeclaration.from_mapping(
            {"id": "e", "type": "effect", "effect": "setFlag", "amount": 30, "value": True}
        )
        assert task.amount == "30"
        assert task.value == "true"

    def test_params_are_read_only_text(self):
        """Test that params are copied as strings and cannot be mutated."""
        task = TaskDeclaration.from_mapping(
            {"id": "e", "type": "effect", "effect": "addGold", "params": {"amount": 5, "note": None}}
        )
        assert dict(task.params) == {"amount": "5", "note": ""}
        with pytest.raises(TypeError):
            task.params["amount"] = "6"

    def test_params_must_be_mapping(self):
        """Test that a non-mapping params value is rejected."""
        with pytest.raises(MalformedCatalogError, match="params must be a mapping"):
            TaskDeclaration.from_mapping({"id": "e", "type": "effect", "params": ["amount"]})

    def test_declaration_is_immutable(self):
        """Test that declarations cannot be changed after construction."""
        task = TaskDeclaration.from_mapping({"id": "l", "type": "log", "message": "hi"})
        with pytest.raises(AttributeError):
            task.message = "changed"

    def test_declarations_are_hashable(self):
        """Test that declarations, with or without params, can be used in sets."""
        plain = TaskDeclaration(id="a", type="end")
        with_params = TaskDeclaration.from_mapping(
            {"id": "e", "type": "effect", "effect": "addGold", "params": {"reason": "quest"}}
        )

        assert hash(plain) == hash(TaskDeclaration(id="a", type="end"))
        assert len({plain, with_params, TaskDeclaration(id="a", type="end")}) == 2

    def test_params_take_part_in_equality(self):
        first = TaskDeclaration.from_mapping({"id": "e", "type": "effect", "params": {"n": "1"}})
        second = TaskDeclaration.from_mapping({"id": "e", "type": "effect", "params": {"n": "2"}})
        assert first != second

    def test_unknown_attribute_name_raises(self):
        """Test attribute() with a name that no task has."""
        task = TaskDeclaration.from_mapping({"id": "l", "type": "log"})
        with pytest.raises(KeyError):
            task.attribute("colour")


class TestAsText:
    """Test scalar rendering."""

    def test_booleans_lowercase(self):
        assert as_text(True) == "true"
        assert as_text(False) == "false"

    def test_numbers_and_strings(self):
        assert as_text(8) == "8"
        assert as_text("gold") == "gold"
