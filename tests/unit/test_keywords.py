"""
Unit tests for the built-in keyword checkers.
"""
import pytest

from schemakit.config import EngineConfig
from schemakit.engine import ValidationEngine
from schemakit.exceptions import UnsupportedInstanceError
from schemakit.keywords import (
    check_min_items,
    check_type,
    default_keywords,
    json_equal,
)
from schemakit.node_type import NodeType


@pytest.fixture
def engine():
    """Create an engine with the built-in keywords and default formats."""
    return ValidationEngine(EngineConfig())


class TestKeywordDictionary:
    """Test suite for the keyword definitions."""

    def test_names_unique(self):
        """Test that every built-in keyword is defined once."""
        names = [definition.name for definition in default_keywords()]
        assert len(names) == len(set(names))

    def test_kinds(self):
        """Test the value kinds of some built-in keywords."""
        definitions = {definition.name: definition for definition in default_keywords()}

        assert definitions["type"].kinds == frozenset(NodeType)
        assert definitions["minimum"].kinds == frozenset({NodeType.NUMBER, NodeType.INTEGER})
        assert definitions["minItems"].kinds == frozenset({NodeType.ARRAY})
        assert definitions["properties"].keyword_checker is None

    def test_disabled_keywords(self):
        """Test that configured keywords are left out."""
        engine = ValidationEngine(EngineConfig(disabled_keywords=["minItems"]))

        assert "minItems" not in engine.keywords
        assert engine.validate({"minItems": 5}, []).is_success


class TestCheckerContracts:
    """Test suite for checker invocation rules."""

    def test_wrong_kind_is_a_defect(self, engine):
        """Test that a checker called with an unsupported kind raises."""
        context = engine.create_context({"minItems": 1})
        with pytest.raises(UnsupportedInstanceError):
            check_min_items(context, {"minItems": 1}, "not an array")

    def test_type_accepts_integer_as_number(self, engine):
        """Test that integers satisfy type 'number'."""
        context = engine.create_context({"type": "number"})
        assert check_type(context, {"type": "number"}, 3).is_success
        assert not check_type(context, {"type": "integer"}, 3.5).is_success


class TestKeywordSemantics:
    """Test suite for individual keyword semantics."""

    @pytest.mark.parametrize("schema,valid,invalid", [
        ({"type": ["string", "null"]}, None, 1),
        ({"enum": [1, "a", None]}, 1.0, True),
        ({"minimum": 2}, 2, 1.5),
        ({"minimum": 2, "exclusiveMinimum": True}, 2.5, 2),
        ({"maximum": 2}, 2, 3),
        ({"maximum": 2, "exclusiveMaximum": True}, 1, 2),
        ({"multipleOf": 0.1}, 0.3, 0.35),
        ({"minLength": 2}, "ab", "a"),
        ({"maxLength": 2}, "éé", "abc"),
        ({"pattern": "^a+$"}, "aaa", "ab"),
        ({"maxItems": 1}, [1], [1, 2]),
        ({"minProperties": 1}, {"a": 1}, {}),
        ({"maxProperties": 1}, {"a": 1}, {"a": 1, "b": 2}),
        ({"required": ["a"]}, {"a": None}, {"b": 1}),
    ])
    def test_valid_and_invalid(self, engine, schema, valid, invalid):
        """Test one valid and one invalid instance per keyword."""
        assert engine.validate(schema, valid).is_success

        report = engine.validate(schema, invalid)
        assert len(report) == 1

    def test_keyword_ignores_other_kinds(self, engine):
        """Test that string keywords do not apply to numbers."""
        assert engine.validate({"minLength": 10, "pattern": "^x$"}, 42).is_success

    def test_format_keyword(self, engine):
        """Test format checking through the default format registry."""
        assert engine.validate({"format": "ipv4"}, "10.0.0.1").is_success
        assert not engine.validate({"format": "ipv4"}, "10.0.0").is_success
        assert engine.validate({"format": "ipv4"}, 10).is_success

    def test_json_equal(self):
        """Test JSON equality rules."""
        assert json_equal(1, 1.0)
        assert not json_equal(1, True)
        assert json_equal({"a": [1, {"b": None}]}, {"a": [1.0, {"b": None}]})
        assert not json_equal([1, 2], [2, 1])
        assert not json_equal({"a": 1}, {"a": 1, "b": 2})
