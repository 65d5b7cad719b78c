"""
Compiled validators.

A validator is what the engine builds (and caches) for one schema fragment and
one value kind. Scalar kinds get a plain keyword validator; arrays and objects
are wrapped so that their children are validated recursively through the engine.
"""
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, List, Sequence, Tuple

from schemakit.context import ValidationContext
from schemakit.fragments import fragment_key
from schemakit.report import SUCCESS, ValidationReport

logger = logging.getLogger(__name__)

KeywordChecker = Callable[[ValidationContext, Any, Any], ValidationReport]
FormatChecker = Callable[[ValidationContext, Any], ValidationReport]

# Stand-in for missing or non-object schemas
EMPTY_SCHEMA: Dict[str, Any] = {}


class Validator(ABC):
    """Base class for compiled validators."""

    @abstractmethod
    def validate(self, context: ValidationContext, instance: Any) -> ValidationReport:
        """
        Validate an instance.

        Args:
            context: Context holding the schema fragment this validator was built for
            instance: Value to validate

        Returns:
            Report with every failure found
        """


class AlwaysTrueValidator(Validator):
    """Validator for fragments with no applicable constraint."""

    def validate(self, context: ValidationContext, instance: Any) -> ValidationReport:
        return SUCCESS

    def __repr__(self) -> str:
        return "AlwaysTrueValidator()"


class KeywordValidator(Validator):
    """Runs the instance checker of one keyword."""

    def __init__(self, keyword: str, checker: KeywordChecker):
        self.keyword = keyword
        self.checker = checker

    def validate(self, context: ValidationContext, instance: Any) -> ValidationReport:
        return self.checker(context, context.schema, instance)

    def __repr__(self) -> str:
        return f"KeywordValidator({self.keyword!r})"


class FormatValidator(Validator):
    """Runs the checker registered for one format name."""

    def __init__(self, format_name: str, checker: FormatChecker):
        self.format_name = format_name
        self.checker = checker

    def validate(self, context: ValidationContext, instance: Any) -> ValidationReport:
        return self.checker(context, instance)

    def __repr__(self) -> str:
        return f"FormatValidator({self.format_name!r})"


class MatchAllValidator(Validator):
    """
    Conjunction of several validators.
    Every member runs, even after a failure, and all reports are kept.
    """

    def __init__(self, validators: Sequence[Validator]):
        if len(validators) < 2:
            raise ValueError("MatchAllValidator needs at least two validators")
        self.validators: Tuple[Validator, ...] = tuple(validators)

    def validate(self, context: ValidationContext, instance: Any) -> ValidationReport:
        return ValidationReport.merge_all(
            validator.validate(context, instance) for validator in self.validators
        )

    def __repr__(self) -> str:
        return f"MatchAllValidator({list(self.validators)!r})"


class ContainerValidator(Validator):
    """
    Base for array and object wrappers.

    Runs the wrapped validator for the container's own keywords, then validates
    each child against every sub-schema that applies to it. Children go through
    the engine: their sub-schema is syntax checked first and, when valid, the
    engine supplies (and caches) the child's validator.
    """

    def __init__(self, schema: Any, validator: Validator):
        self.schema = schema
        self.validator = validator

    @abstractmethod
    def children(self, instance: Any) -> Iterator[Tuple[Any, Any, Any, Tuple[str, ...]]]:
        """
        Yield (token, child, sub-schema, schema path) for every child to validate.
        """

    def validate(self, context: ValidationContext, instance: Any) -> ValidationReport:
        reports: List[ValidationReport] = [self.validator.validate(context, instance)]
        engine = context.engine
        # Sub-schema keys by identity; the sub-schemas live in self.schema
        keys: Dict[int, str] = {}

        for token, child, subschema, schema_path in self.children(instance):
            key = keys.get(id(subschema))
            if key is None:
                key = keys[id(subschema)] = fragment_key(subschema)
            child_context = context.descend(token, subschema, *schema_path)
            syntax_report = engine.validate_syntax(child_context, key)
            if not syntax_report.is_success:
                reports.append(syntax_report)
                continue
            child_validator = engine.get_instance_validator(child_context, child, key)
            reports.append(child_validator.validate(child_context, child))

        return ValidationReport.merge_all(reports)


class ArrayValidator(ContainerValidator):
    """Wrapper for array instances: recurses via items/additionalItems."""

    def children(self, instance: Any) -> Iterator[Tuple[Any, Any, Any, Tuple[str, ...]]]:
        schema = self.schema if isinstance(self.schema, dict) else EMPTY_SCHEMA
        items = schema.get("items")
        additional = schema.get("additionalItems")

        for index, element in enumerate(instance):
            if isinstance(items, dict):
                yield index, element, items, ("items",)
            elif isinstance(items, list):
                if index < len(items):
                    yield index, element, items[index], ("items", str(index))
                elif isinstance(additional, dict):
                    yield index, element, additional, ("additionalItems",)
            # Elements no sub-schema covers are unconstrained; additionalItems: false
            # is reported by its own keyword checker

    def __repr__(self) -> str:
        return f"ArrayValidator({self.validator!r})"


class ObjectValidator(ContainerValidator):
    """Wrapper for object instances: recurses via properties, patternProperties and additionalProperties."""

    def children(self, instance: Any) -> Iterator[Tuple[Any, Any, Any, Tuple[str, ...]]]:
        schema = self.schema if isinstance(self.schema, dict) else EMPTY_SCHEMA
        properties = schema.get("properties", EMPTY_SCHEMA)
        patterns = schema.get("patternProperties", EMPTY_SCHEMA)
        additional = schema.get("additionalProperties")

        for name, member in instance.items():
            matched = False
            if isinstance(properties, dict) and name in properties:
                matched = True
                yield name, member, properties[name], ("properties", name)
            if isinstance(patterns, dict):
                for pattern, subschema in patterns.items():
                    if _matches(pattern, name):
                        matched = True
                        yield name, member, subschema, ("patternProperties", pattern)
            if not matched and isinstance(additional, dict):
                yield name, member, additional, ("additionalProperties",)

    def __repr__(self) -> str:
        return f"ObjectValidator({self.validator!r})"


def _matches(pattern: str, name: str) -> bool:
    try:
        return re.search(pattern, name) is not None
    except (re.error, TypeError):
        # Invalid regexes are rejected by the patternProperties syntax checker
        logger.debug(f"Ignoring invalid patternProperties regex {pattern!r}")
        return False
