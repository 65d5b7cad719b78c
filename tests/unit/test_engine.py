"""
Unit tests for ValidationEngine.
Covers syntax memoization, validator caching, invalidation on keyword
registration changes and validator composition.
"""
import pytest
from unittest.mock import MagicMock, patch

from schemakit.config import EngineConfig
from schemakit.engine import ValidationEngine
from schemakit.exceptions import KeywordAlreadyRegisteredError, KeywordRegistrationError
from schemakit.fragments import fragment_key
from schemakit.node_type import NodeType
from schemakit.report import SUCCESS
from schemakit.validators import (
    AlwaysTrueValidator,
    ArrayValidator,
    KeywordValidator,
    MatchAllValidator,
    ObjectValidator,
)


def failing_checker(keyword):
    """Build a keyword checker that always fails."""
    return MagicMock(side_effect=lambda ctx, schema, instance: ctx.failure(keyword, f"{keyword} failed"))


class TestSyntaxChecking:
    """Test suite for validate_syntax memoization."""

    @pytest.fixture
    def engine(self):
        """Create an engine with no keywords and no formats."""
        return ValidationEngine(EngineConfig(default_formats=False), keywords=[])

    def test_second_call_short_circuits(self, engine):
        """Test that a syntax-valid fragment is not checked twice."""
        syntax = MagicMock(return_value=SUCCESS)
        engine.register_keyword("foo", syntax, None, [NodeType.STRING])

        context = engine.create_context({"foo": 1})
        assert engine.validate_syntax(context) is SUCCESS
        assert engine.validate_syntax(context) is SUCCESS

        assert syntax.call_count == 1
        assert engine.is_syntax_checked({"foo": 1})

    def test_structurally_equal_fragment_short_circuits(self, engine):
        """Test that an equal fragment from another parse is recognized as checked."""
        syntax = MagicMock(return_value=SUCCESS)
        engine.register_keyword("foo", syntax, None, [NodeType.STRING])

        engine.validate_syntax(engine.create_context({"foo": [1, 2], "bar": "x"}))
        engine.validate_syntax(engine.create_context({"bar": "x", "foo": [1, 2]}))

        assert syntax.call_count == 1

    def test_failures_are_not_remembered(self, engine):
        """Test that a failing fragment is checked again on the next call."""
        syntax = MagicMock(side_effect=lambda ctx, schema: ctx.failure("foo", "bad foo"))
        engine.register_keyword("foo", syntax, None, [NodeType.STRING])

        context = engine.create_context({"foo": 1})
        first = engine.validate_syntax(context)
        second = engine.validate_syntax(context)

        assert not first.is_success
        assert not second.is_success
        assert syntax.call_count == 2
        assert not engine.is_syntax_checked({"foo": 1})

    def test_all_syntax_failures_reported(self, engine):
        """Test that every failing syntax checker contributes a message."""
        engine.register_keyword("a", lambda ctx, schema: ctx.failure("a", "bad a"), None, ["string"])
        engine.register_keyword("b", lambda ctx, schema: ctx.failure("b", "bad b"), None, ["string"])

        report = engine.validate_syntax(engine.create_context({"a": 1, "b": 2}))

        assert [message.keyword for message in report] == ["a", "b"]
        assert [str(message.schema_pointer) for message in report] == ["/a", "/b"]

    def test_non_object_schema_fails(self, engine):
        """Test that a schema which is not an object is a syntax error."""
        report = engine.validate_syntax(engine.create_context([1, 2]))

        assert len(report) == 1
        assert report.messages[0].keyword is None
        assert str(report.messages[0].schema_pointer) == "/"

    def test_registration_clears_checked_set(self, engine):
        """Test that any keyword registration forces a new syntax check."""
        syntax = MagicMock(return_value=SUCCESS)
        engine.register_keyword("foo", syntax, None, [NodeType.STRING])
        engine.validate_syntax(engine.create_context({"foo": 1}))

        engine.register_keyword("bar", None, None, [NodeType.NULL])
        assert not engine.is_syntax_checked({"foo": 1})

        engine.validate_syntax(engine.create_context({"foo": 1}))
        assert syntax.call_count == 2

    def test_skip_syntax(self):
        """Test that trusted-schema mode never runs syntax checkers."""
        engine = ValidationEngine(EngineConfig(skip_syntax=True, default_formats=False), keywords=[])
        syntax = MagicMock(return_value=SUCCESS)
        engine.register_keyword("foo", syntax, None, [NodeType.STRING])

        assert engine.validate_syntax(engine.create_context("not even an object")) is SUCCESS
        assert engine.validate_syntax(engine.create_context({"foo": 1})) is SUCCESS
        syntax.assert_not_called()


class TestInstanceValidatorCache:
    """Test suite for get_instance_validator caching and composition."""

    @pytest.fixture
    def engine(self):
        """Create an engine with no keywords and no formats."""
        return ValidationEngine(EngineConfig(default_formats=False), keywords=[])

    def test_cached_validator_reused(self, engine):
        """Test that the registry is queried once per (kind, fragment)."""
        checker = MagicMock(return_value=SUCCESS)
        engine.register_keyword("foo", None, checker, [NodeType.STRING])

        with patch.object(engine._keywords, "lookup", wraps=engine._keywords.lookup) as lookup:
            first = engine.get_instance_validator(engine.create_context({"foo": 1}), "a")
            second = engine.get_instance_validator(engine.create_context({"foo": 1}), "b")

        assert first is second
        assert lookup.call_count == 1
        assert first.validate(engine.create_context({"foo": 1}), "a").is_success

    def test_container_computes_sub_schema_key_once(self, engine):
        """Test that array elements share one key computation for items."""
        engine.register_keyword("foo", None, MagicMock(return_value=SUCCESS), [NodeType.INTEGER])
        schema = {"items": {"foo": 1}}
        context = engine.create_context(schema)
        validator = engine.get_instance_validator(context, [])

        with patch("schemakit.validators.fragment_key", wraps=fragment_key) as key_of, \
                patch("schemakit.engine.fragment_key", wraps=fragment_key) as engine_key_of:
            assert validator.validate(context, [1, 2, 3, 4, 5]).is_success

        assert key_of.call_count == 1
        assert engine_key_of.call_count == 0

    def test_kinds_cached_separately(self, engine):
        """Test that the same fragment gets distinct entries per value kind."""
        engine.register_keyword("foo", None, MagicMock(return_value=SUCCESS), [NodeType.STRING])
        context = engine.create_context({"foo": 1})

        string_validator = engine.get_instance_validator(context, "a")
        number_validator = engine.get_instance_validator(context, 1.5)

        assert isinstance(string_validator, KeywordValidator)
        assert isinstance(number_validator, AlwaysTrueValidator)

    def test_no_checker_collapses_to_always_true(self, engine):
        """Test that zero applicable checkers gives an AlwaysTrueValidator."""
        validator = engine.get_instance_validator(engine.create_context({}), "a")
        assert isinstance(validator, AlwaysTrueValidator)

    def test_one_checker_not_wrapped(self, engine):
        """Test that a single applicable checker is used directly."""
        engine.register_keyword("foo", None, MagicMock(return_value=SUCCESS), [NodeType.STRING])

        validator = engine.get_instance_validator(engine.create_context({"foo": 1}), "a")

        assert isinstance(validator, KeywordValidator)
        assert validator.keyword == "foo"

    def test_many_checkers_report_every_failure(self, engine):
        """Test that a composite runs every checker and keeps every failure."""
        first = failing_checker("first")
        second = failing_checker("second")
        engine.register_keyword("first", None, first, [NodeType.STRING])
        engine.register_keyword("second", None, second, [NodeType.STRING])

        context = engine.create_context({"second": 1, "first": 1})
        validator = engine.get_instance_validator(context, "a")
        report = validator.validate(context, "a")

        assert isinstance(validator, MatchAllValidator)
        assert [message.keyword for message in report] == ["first", "second"]
        first.assert_called_once()
        second.assert_called_once()

    def test_containers_wrapped(self, engine):
        """Test that arrays and objects get container wrappers."""
        engine.register_keyword("foo", None, MagicMock(return_value=SUCCESS), [NodeType.ARRAY])
        context = engine.create_context({"foo": 1})

        array_validator = engine.get_instance_validator(context, [])
        object_validator = engine.get_instance_validator(context, {})

        assert isinstance(array_validator, ArrayValidator)
        assert isinstance(array_validator.validator, KeywordValidator)
        assert isinstance(object_validator, ObjectValidator)
        assert isinstance(object_validator.validator, AlwaysTrueValidator)

    def test_integer_and_number_distinct(self, engine):
        """Test that integral numbers use INTEGER keywords only."""
        engine.register_keyword("foo", None, failing_checker("foo"), [NodeType.NUMBER])
        context = engine.create_context({"foo": 1})

        assert engine.get_instance_validator(context, 2.0).validate(context, 2.0).is_success
        assert not engine.get_instance_validator(context, 2.5).validate(context, 2.5).is_success


class TestRegistration:
    """Test suite for keyword registration and cache invalidation."""

    @pytest.fixture
    def engine(self):
        """Create an engine with one array keyword and one string keyword."""
        engine = ValidationEngine(EngineConfig(default_formats=False), keywords=[])
        engine.register_keyword("a", None, MagicMock(return_value=SUCCESS), [NodeType.ARRAY])
        engine.register_keyword("s", None, MagicMock(return_value=SUCCESS), [NodeType.STRING])
        return engine

    def _warm(self, engine, schema):
        context = engine.create_context(schema)
        for instance in ([], "x", {}):
            engine.get_instance_validator(context, instance)

    def test_invalidation_limited_to_kinds(self, engine):
        """Test that an ARRAY keyword does not evict STRING entries."""
        schema = {"a": 1, "s": 1}
        self._warm(engine, schema)
        key = fragment_key(schema)

        engine.register_keyword("new", None, MagicMock(return_value=SUCCESS), [NodeType.ARRAY])

        assert not engine._cache.contains(NodeType.ARRAY, key)
        assert engine._cache.contains(NodeType.STRING, key)
        assert engine._cache.contains(NodeType.OBJECT, key)

    def test_invalidation_of_several_kinds(self, engine):
        """Test that an ARRAY+OBJECT keyword evicts both and only those."""
        schema = {"a": 1, "s": 1}
        self._warm(engine, schema)

        engine.register_keyword("new", None, MagicMock(return_value=SUCCESS), [NodeType.ARRAY, NodeType.OBJECT])

        stats = engine.get_stats()["cache"]["entries_by_kind"]
        assert stats["array"] == 0
        assert stats["object"] == 0
        assert stats["string"] == 1

    def test_unregister_invalidates_its_kinds(self, engine):
        """Test that unregistering evicts the kinds the keyword applied to."""
        schema = {"a": 1, "s": 1}
        self._warm(engine, schema)

        engine.unregister_keyword("s")

        stats = engine.get_stats()["cache"]["entries_by_kind"]
        assert stats["string"] == 0
        assert stats["array"] == 1
        assert "s" not in engine.keywords

    def test_duplicate_registration_rejected(self, engine):
        """Test that a registered keyword cannot be silently replaced."""
        with pytest.raises(KeywordAlreadyRegisteredError):
            engine.register_keyword("a", None, MagicMock(), [NodeType.ARRAY])

    def test_empty_kinds_rejected(self, engine):
        """Test that a keyword must apply to some value kind."""
        with pytest.raises(KeywordRegistrationError):
            engine.register_keyword("b", None, MagicMock(), [])
        assert "b" not in engine.keywords

    def test_unknown_kind_rejected(self, engine):
        """Test that an unknown value kind name is a registration error."""
        with pytest.raises(KeywordRegistrationError):
            engine.register_keyword("b", None, MagicMock(), ["arrray"])
        assert "b" not in engine.keywords

    def test_unregister_unknown_is_noop(self, engine):
        """Test that unregistering an unknown keyword does nothing."""
        before = engine.keywords
        engine.unregister_keyword("does-not-exist")
        assert engine.keywords == before

    def test_round_trip_uses_newest_checker(self, engine):
        """Test register, unregister, register again with another checker."""
        old = failing_checker("k")
        new = MagicMock(return_value=SUCCESS)
        schema = {"k": True}

        engine.register_keyword("k", None, old, [NodeType.STRING])
        assert not engine.validate(schema, "x").is_success

        engine.unregister_keyword("k")
        engine.register_keyword("k", None, new, [NodeType.STRING])

        assert engine.validate(schema, "x") is SUCCESS
        assert old.call_count == 1
        new.assert_called_once()

    def test_keywords_in_registration_order(self, engine):
        """Test that registered keywords are listed in registration order."""
        engine.register_keyword("z", None, None, [NodeType.NULL])
        assert engine.keywords == ["a", "s", "z"]


class TestFormats:
    """Test suite for format validator lookup."""

    @pytest.fixture
    def engine(self):
        """Create an engine with the built-in keywords and no formats."""
        return ValidationEngine(EngineConfig(default_formats=False))

    def test_unknown_format_is_always_true(self, engine):
        """Test that an unregistered format accepts any string."""
        context = engine.create_context({"format": "no-such-format"})
        validator = engine.get_format_validator(context, "no-such-format", "anything")

        assert isinstance(validator, AlwaysTrueValidator)
        assert engine.validate({"format": "no-such-format"}, "anything") is SUCCESS

    def test_registered_format_used(self, engine):
        """Test that a registered format checker is applied by the format keyword."""
        engine.register_format(
            "even-length",
            lambda ctx, value: ctx.success() if len(value) % 2 == 0 else ctx.failure("format", "odd length"),
        )

        assert engine.validate({"format": "even-length"}, "ab").is_success
        report = engine.validate({"format": "even-length"}, "abc")
        assert report.messages[0].keyword == "format"

    def test_unregistered_format_becomes_permissive(self, engine):
        """Test that removing a format makes it accept everything again."""
        engine.register_format("never", lambda ctx, value: ctx.failure("format", "never valid"))
        assert not engine.validate({"format": "never"}, "x").is_success

        engine.unregister_format("never")
        assert engine.validate({"format": "never"}, "x").is_success
