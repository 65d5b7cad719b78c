"""
Built-in keyword dictionary.

Each keyword comes as a syntax checker (is the keyword written correctly in the
schema?) and an instance checker (does the value satisfy it?), plus the value
kinds the instance checker applies to. The set covers the common structural
keywords; references and combinators are not included.
"""
import functools
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, FrozenSet, Iterable, List, Optional

from schemakit.context import ValidationContext
from schemakit.exceptions import UnsupportedInstanceError
from schemakit.node_type import NUMERIC_TYPES, NodeType, get_node_type
from schemakit.registry import SyntaxChecker
from schemakit.report import ValidationReport
from schemakit.validators import KeywordChecker


@dataclass(frozen=True)
class KeywordDefinition:
    """Everything needed to register one keyword with an engine."""
    name: str
    syntax_checker: Optional[SyntaxChecker]
    keyword_checker: Optional[KeywordChecker]
    kinds: FrozenSet[NodeType]


def _kind_of(value: Any) -> NodeType:
    return get_node_type(value)


def _is_kind(value: Any, *kinds: NodeType) -> bool:
    kind = _kind_of(value)
    return kind in kinds or (kind == NodeType.INTEGER and NodeType.NUMBER in kinds)


def _applies_to(keyword: str, kinds: Iterable[NodeType]):
    """Guard an instance checker against values of a kind it was not registered for."""
    allowed = frozenset(kinds)

    def decorator(checker: KeywordChecker) -> KeywordChecker:
        @functools.wraps(checker)
        def wrapper(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
            kind = _kind_of(instance)
            if kind not in allowed:
                raise UnsupportedInstanceError(
                    f"Keyword '{keyword}' cannot validate {kind} instances "
                    f"(applies to {sorted(str(k) for k in allowed)})"
                )
            return checker(context, schema, instance)

        wrapper.kinds = allowed
        return wrapper

    return decorator


def json_equal(left: Any, right: Any) -> bool:
    """
    Compare two JSON values the way JSON does.

    Numbers compare by value (1 equals 1.0), booleans never equal numbers and
    objects compare regardless of member order.
    """
    left_kind = _kind_of(left)
    right_kind = _kind_of(right)

    if left_kind in NUMERIC_TYPES and right_kind in NUMERIC_TYPES:
        return left == right
    if left_kind != right_kind:
        return False
    if left_kind == NodeType.ARRAY:
        return len(left) == len(right) and all(json_equal(a, b) for a, b in zip(left, right))
    if left_kind == NodeType.OBJECT:
        return left.keys() == right.keys() and all(json_equal(left[k], right[k]) for k in left)
    return left == right


# ==================== Syntax helpers ====================

def _expect(context: ValidationContext, schema: Any, keyword: str, *kinds: NodeType) -> ValidationReport:
    value = schema[keyword]
    if _is_kind(value, *kinds):
        return context.success()
    names = ", ".join(str(kind) for kind in kinds)
    return context.failure(
        keyword,
        f"Value of '{keyword}' has type {_kind_of(value)}, expected {names}",
        found=str(_kind_of(value)),
    )


def _non_negative_integer(context: ValidationContext, schema: Any, keyword: str) -> ValidationReport:
    report = _expect(context, schema, keyword, NodeType.INTEGER)
    if not report.is_success:
        return report
    if schema[keyword] < 0:
        return context.failure(keyword, f"Value of '{keyword}' must not be negative")
    return report


def _valid_regex(pattern: str) -> bool:
    try:
        re.compile(pattern)
    except re.error:
        return False
    return True


def _sub_schemas(context: ValidationContext, values: Iterable[Any], keyword: str, what: str) -> ValidationReport:
    bad = [str(name) for name, value in values if not isinstance(value, dict)]
    if not bad:
        return context.success()
    return context.failure(keyword, f"{what} must be schemas (objects): {bad}", members=bad)


# ==================== Any kind ====================

def check_type_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    value = schema["type"]
    names = [value] if isinstance(value, str) else value
    if not isinstance(names, list) or not names:
        return context.failure("type", "Value of 'type' must be a string or a non-empty array of strings")

    unknown = [name for name in names if not isinstance(name, str) or NodeType.from_name(name) is None]
    if unknown:
        return context.failure("type", f"Unknown type names: {unknown}", unknown=unknown)
    if len(set(names)) != len(names):
        return context.failure("type", "Type names must be unique")
    return context.success()


@_applies_to("type", NodeType)
def check_type(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    value = schema["type"]
    allowed = [value] if isinstance(value, str) else list(value)
    kind = _kind_of(instance)
    if kind.value in allowed or (kind == NodeType.INTEGER and "number" in allowed):
        return context.success()
    return context.failure(
        "type",
        f"Instance type ({kind}) does not match any allowed type ({', '.join(allowed)})",
        found=str(kind),
        expected=allowed,
    )


def check_enum_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    report = _expect(context, schema, "enum", NodeType.ARRAY)
    if not report.is_success:
        return report
    values = schema["enum"]
    if not values:
        return context.failure("enum", "Value of 'enum' must not be empty")
    for index, value in enumerate(values):
        if any(json_equal(value, other) for other in values[index + 1:]):
            return context.failure("enum", "Elements of 'enum' must be unique")
    return report


@_applies_to("enum", NodeType)
def check_enum(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    if any(json_equal(instance, value) for value in schema["enum"]):
        return context.success()
    return context.failure("enum", f"Instance {instance!r} is not one of {schema['enum']!r}")


# ==================== Numbers ====================

def check_minimum_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _expect(context, schema, "minimum", NodeType.NUMBER)


def check_maximum_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _expect(context, schema, "maximum", NodeType.NUMBER)


def _exclusive_syntax(context: ValidationContext, schema: Any, keyword: str, companion: str) -> ValidationReport:
    report = _expect(context, schema, keyword, NodeType.BOOLEAN)
    if not report.is_success:
        return report
    if companion not in schema:
        return context.failure(keyword, f"'{keyword}' requires '{companion}' to be present")
    return report


def check_exclusive_minimum_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _exclusive_syntax(context, schema, "exclusiveMinimum", "minimum")


def check_exclusive_maximum_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _exclusive_syntax(context, schema, "exclusiveMaximum", "maximum")


@_applies_to("minimum", NUMERIC_TYPES)
def check_minimum(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    limit = schema["minimum"]
    exclusive = schema.get("exclusiveMinimum", False) is True
    if instance > limit or (instance == limit and not exclusive):
        return context.success()
    relation = "less than or equal to" if exclusive else "less than"
    return context.failure("minimum", f"Number {instance} is {relation} the minimum {limit}", minimum=limit)


@_applies_to("maximum", NUMERIC_TYPES)
def check_maximum(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    limit = schema["maximum"]
    exclusive = schema.get("exclusiveMaximum", False) is True
    if instance < limit or (instance == limit and not exclusive):
        return context.success()
    relation = "greater than or equal to" if exclusive else "greater than"
    return context.failure("maximum", f"Number {instance} is {relation} the maximum {limit}", maximum=limit)


def check_multiple_of_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    report = _expect(context, schema, "multipleOf", NodeType.NUMBER)
    if report.is_success and schema["multipleOf"] <= 0:
        return context.failure("multipleOf", "Value of 'multipleOf' must be strictly positive")
    return report


@_applies_to("multipleOf", NUMERIC_TYPES)
def check_multiple_of(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    divisor = schema["multipleOf"]
    try:
        remainder = Decimal(str(instance)) % Decimal(str(divisor))
    except InvalidOperation:
        remainder = Decimal(1)
    if remainder == 0:
        return context.success()
    return context.failure("multipleOf", f"Number {instance} is not a multiple of {divisor}", divisor=divisor)


# ==================== Strings ====================

def check_min_length_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _non_negative_integer(context, schema, "minLength")


def check_max_length_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _non_negative_integer(context, schema, "maxLength")


@_applies_to("minLength", [NodeType.STRING])
def check_min_length(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    limit = schema["minLength"]
    if len(instance) >= limit:
        return context.success()
    return context.failure(
        "minLength",
        f"String is too short ({len(instance)} chars), minimum {limit}",
        found=len(instance),
        minLength=limit,
    )


@_applies_to("maxLength", [NodeType.STRING])
def check_max_length(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    limit = schema["maxLength"]
    if len(instance) <= limit:
        return context.success()
    return context.failure(
        "maxLength",
        f"String is too long ({len(instance)} chars), maximum {limit}",
        found=len(instance),
        maxLength=limit,
    )


def check_pattern_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    report = _expect(context, schema, "pattern", NodeType.STRING)
    if report.is_success and not _valid_regex(schema["pattern"]):
        return context.failure("pattern", f"Invalid regular expression: {schema['pattern']!r}")
    return report


@_applies_to("pattern", [NodeType.STRING])
def check_pattern(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    pattern = schema["pattern"]
    if re.search(pattern, instance) is not None:
        return context.success()
    return context.failure("pattern", f"String {instance!r} does not match pattern {pattern!r}")


def check_format_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _expect(context, schema, "format", NodeType.STRING)


@_applies_to("format", [NodeType.STRING])
def check_format(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    validator = context.engine.get_format_validator(context, schema["format"], instance)
    return validator.validate(context, instance)


# ==================== Arrays ====================

def check_min_items_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _non_negative_integer(context, schema, "minItems")


def check_max_items_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _non_negative_integer(context, schema, "maxItems")


@_applies_to("minItems", [NodeType.ARRAY])
def check_min_items(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    limit = schema["minItems"]
    if len(instance) >= limit:
        return context.success()
    return context.failure(
        "minItems",
        f"Array is too short ({len(instance)} items), minimum {limit}",
        found=len(instance),
        minItems=limit,
    )


@_applies_to("maxItems", [NodeType.ARRAY])
def check_max_items(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    limit = schema["maxItems"]
    if len(instance) <= limit:
        return context.success()
    return context.failure(
        "maxItems",
        f"Array is too long ({len(instance)} items), maximum {limit}",
        found=len(instance),
        maxItems=limit,
    )


def check_unique_items_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _expect(context, schema, "uniqueItems", NodeType.BOOLEAN)


@_applies_to("uniqueItems", [NodeType.ARRAY])
def check_unique_items(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    if schema["uniqueItems"] is not True:
        return context.success()
    for index, element in enumerate(instance):
        for other in range(index + 1, len(instance)):
            if json_equal(element, instance[other]):
                return context.failure(
                    "uniqueItems",
                    f"Array elements {index} and {other} are equal",
                    duplicates=[index, other],
                )
    return context.success()


def check_items_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    report = _expect(context, schema, "items", NodeType.OBJECT, NodeType.ARRAY)
    if report.is_success and isinstance(schema["items"], list):
        return _sub_schemas(context, enumerate(schema["items"]), "items", "Elements of 'items'")
    return report


def check_additional_items_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _expect(context, schema, "additionalItems", NodeType.BOOLEAN, NodeType.OBJECT)


@_applies_to("additionalItems", [NodeType.ARRAY])
def check_additional_items(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    items = schema.get("items")
    if schema["additionalItems"] is not False or not isinstance(items, list):
        return context.success()
    if len(instance) <= len(items):
        return context.success()
    return context.failure(
        "additionalItems",
        f"Array has {len(instance)} items but additional items are not allowed (at most {len(items)})",
        allowed=len(items),
        found=len(instance),
    )


# ==================== Objects ====================

def check_required_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    report = _expect(context, schema, "required", NodeType.ARRAY)
    if not report.is_success:
        return report
    names = schema["required"]
    if not all(isinstance(name, str) for name in names):
        return context.failure("required", "Elements of 'required' must be strings")
    if len(set(names)) != len(names):
        return context.failure("required", "Elements of 'required' must be unique")
    return report


@_applies_to("required", [NodeType.OBJECT])
def check_required(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    missing = [name for name in schema["required"] if name not in instance]
    if not missing:
        return context.success()
    return context.failure("required", f"Missing required properties: {missing}", missing=missing)


def check_min_properties_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _non_negative_integer(context, schema, "minProperties")


def check_max_properties_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _non_negative_integer(context, schema, "maxProperties")


@_applies_to("minProperties", [NodeType.OBJECT])
def check_min_properties(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    limit = schema["minProperties"]
    if len(instance) >= limit:
        return context.success()
    return context.failure("minProperties", f"Object has {len(instance)} properties, minimum {limit}")


@_applies_to("maxProperties", [NodeType.OBJECT])
def check_max_properties(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    limit = schema["maxProperties"]
    if len(instance) <= limit:
        return context.success()
    return context.failure("maxProperties", f"Object has {len(instance)} properties, maximum {limit}")


def check_properties_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    report = _expect(context, schema, "properties", NodeType.OBJECT)
    if not report.is_success:
        return report
    return _sub_schemas(context, schema["properties"].items(), "properties", "Members of 'properties'")


def check_pattern_properties_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    report = _expect(context, schema, "patternProperties", NodeType.OBJECT)
    if not report.is_success:
        return report
    patterns = schema["patternProperties"]
    invalid = [pattern for pattern in patterns if not _valid_regex(pattern)]
    if invalid:
        return context.failure("patternProperties", f"Invalid regular expressions: {invalid}", invalid=invalid)
    return _sub_schemas(context, patterns.items(), "patternProperties", "Members of 'patternProperties'")


def check_additional_properties_syntax(context: ValidationContext, schema: Any) -> ValidationReport:
    return _expect(context, schema, "additionalProperties", NodeType.BOOLEAN, NodeType.OBJECT)


@_applies_to("additionalProperties", [NodeType.OBJECT])
def check_additional_properties(context: ValidationContext, schema: Any, instance: Any) -> ValidationReport:
    if schema["additionalProperties"] is not False:
        return context.success()

    properties = schema.get("properties", {})
    patterns = list(schema.get("patternProperties", {}))
    extra = [
        name for name in instance
        if name not in properties and not any(re.search(pattern, name) for pattern in patterns)
    ]
    if not extra:
        return context.success()
    return context.failure(
        "additionalProperties",
        f"Additional properties are not allowed: {sorted(extra)}",
        unwanted=sorted(extra),
    )


def _definition(
    name: str,
    syntax_checker: Optional[SyntaxChecker],
    keyword_checker: Optional[KeywordChecker],
    kinds: Iterable[NodeType],
) -> KeywordDefinition:
    return KeywordDefinition(name, syntax_checker, keyword_checker, frozenset(kinds))


def default_keywords() -> List[KeywordDefinition]:
    """
    Get the built-in keyword definitions, in registration order.

    Returns:
        List of KeywordDefinition
    """
    any_kind = frozenset(NodeType)
    array = [NodeType.ARRAY]
    obj = [NodeType.OBJECT]
    string = [NodeType.STRING]

    return [
        _definition("type", check_type_syntax, check_type, any_kind),
        _definition("enum", check_enum_syntax, check_enum, any_kind),
        _definition("minimum", check_minimum_syntax, check_minimum, NUMERIC_TYPES),
        _definition("exclusiveMinimum", check_exclusive_minimum_syntax, None, NUMERIC_TYPES),
        _definition("maximum", check_maximum_syntax, check_maximum, NUMERIC_TYPES),
        _definition("exclusiveMaximum", check_exclusive_maximum_syntax, None, NUMERIC_TYPES),
        _definition("multipleOf", check_multiple_of_syntax, check_multiple_of, NUMERIC_TYPES),
        _definition("minLength", check_min_length_syntax, check_min_length, string),
        _definition("maxLength", check_max_length_syntax, check_max_length, string),
        _definition("pattern", check_pattern_syntax, check_pattern, string),
        _definition("format", check_format_syntax, check_format, string),
        _definition("minItems", check_min_items_syntax, check_min_items, array),
        _definition("maxItems", check_max_items_syntax, check_max_items, array),
        _definition("uniqueItems", check_unique_items_syntax, check_unique_items, array),
        _definition("items", check_items_syntax, None, array),
        _definition("additionalItems", check_additional_items_syntax, check_additional_items, array),
        _definition("required", check_required_syntax, check_required, obj),
        _definition("minProperties", check_min_properties_syntax, check_min_properties, obj),
        _definition("maxProperties", check_max_properties_syntax, check_max_properties, obj),
        _definition("properties", check_properties_syntax, None, obj),
        _definition("patternProperties", check_pattern_properties_syntax, None, obj),
        _definition(
            "additionalProperties",
            check_additional_properties_syntax,
            check_additional_properties,
            obj,
        ),
    ]
