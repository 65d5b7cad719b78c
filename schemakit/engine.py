"""
Validation engine.

Checks schema syntax once per fragment, builds and caches the validator for
each (value kind, schema fragment) pair, and owns the keyword registration API.
"""
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Set

from schemakit.cache import ValidatorCache
from schemakit.config import EngineConfig, get_default_config
from schemakit.context import ValidationContext
from schemakit.exceptions import DepthExceededError, KeywordAlreadyRegisteredError
from schemakit.formats import FormatRegistry
from schemakit.fragments import fragment_key
from schemakit.keywords import default_keywords
from schemakit.node_type import NodeType, get_node_type
from schemakit.registry import KeywordRegistry, SyntaxChecker, SyntaxRegistry, kind_set
from schemakit.report import SUCCESS, ValidationReport
from schemakit.validators import (
    AlwaysTrueValidator,
    ArrayValidator,
    FormatChecker,
    FormatValidator,
    KeywordChecker,
    MatchAllValidator,
    ObjectValidator,
    Validator,
)

logger = logging.getLogger(__name__)

_ALWAYS_TRUE = AlwaysTrueValidator()


class ValidationEngine:
    """
    Validation engine orchestrator.

    All engine state (registries, validator cache, set of syntax-checked
    fragments) belongs to the instance, so engines with different keyword sets
    can coexist. Lookups and state updates happen under one lock; checkers run
    outside it. A generation counter, bumped by every keyword registration
    change, keeps results computed against an older keyword set out of the
    cache and the checked set.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        keywords: Optional[Iterable[Any]] = None,
        formats: Optional[FormatRegistry] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (default: get_default_config())
            keywords: KeywordDefinitions to install (default: the built-in dictionary)
            formats: Format registry (default: seeded from jsonschema per config)
        """
        self.config = config or get_default_config()
        self._syntax = SyntaxRegistry()
        self._keywords = KeywordRegistry()
        self._cache = ValidatorCache()
        self._checked: Set[str] = set()
        self._generation = 0
        self._lock = threading.RLock()

        if formats is None:
            formats = FormatRegistry.with_defaults() if self.config.default_formats else FormatRegistry()
        self._formats = formats

        if keywords is None:
            keywords = default_keywords()

        disabled = set(self.config.disabled_keywords)
        for definition in keywords:
            if definition.name in disabled:
                continue
            self.register_keyword(
                definition.name,
                definition.syntax_checker,
                definition.keyword_checker,
                definition.kinds,
            )

        logger.info(
            f"ValidationEngine initialized with {len(self._keywords)} keywords, "
            f"{len(self._formats)} formats (skip_syntax={self.config.skip_syntax})"
        )

    @property
    def max_depth(self) -> Optional[int]:
        return self.config.max_depth

    @property
    def keywords(self) -> List[str]:
        with self._lock:
            return self._keywords.keywords

    def create_context(self, schema: Any, fail_fast: Optional[bool] = None) -> ValidationContext:
        """Build the root context for validating against a schema."""
        if fail_fast is None:
            fail_fast = self.config.fail_fast
        return ValidationContext(self, schema, fail_fast=fail_fast)

    # ==================== Validation ====================

    def validate_syntax(self, context: ValidationContext, key: Optional[str] = None) -> ValidationReport:
        """
        Check the syntax of the context's schema fragment.

        Successful results are remembered per fragment, so a fragment is only
        checked again after a keyword registration change. Failures are not
        remembered.

        Args:
            context: Context holding the schema fragment
            key: Precomputed fragment key of the schema, if the caller has one

        Returns:
            SUCCESS, or a report with every syntax error found
        """
        if self.config.skip_syntax:
            return SUCCESS

        schema = context.schema
        if key is None:
            key = fragment_key(schema)

        with self._lock:
            if key in self._checked:
                logger.debug(f"Schema at {context.schema_pointer} already syntax checked")
                return SUCCESS
            generation = self._generation
            checkers = self._syntax.lookup(schema)

        if not isinstance(schema, dict):
            return context.failure(
                None,
                f"Schema is not an object (found {get_node_type(schema)})",
            )

        report = ValidationReport.merge_all(checker(context, schema) for _, checker in checkers)

        if report.is_success:
            with self._lock:
                if generation == self._generation:
                    self._checked.add(key)

        return report

    def get_instance_validator(
        self, context: ValidationContext, instance: Any, key: Optional[str] = None
    ) -> Validator:
        """
        Get the validator for an instance against the context's schema fragment.

        Args:
            context: Context holding the schema fragment
            instance: Value to be validated
            key: Precomputed fragment key of the schema, if the caller has one

        Returns:
            Cached or freshly built validator for (instance kind, fragment)
        """
        schema = context.schema
        kind = get_node_type(instance)
        if key is None:
            key = fragment_key(schema)

        with self._lock:
            cached = self._cache.get(kind, key)
            if cached is not None:
                return cached

            generation = self._generation
            collection = self._keywords.lookup(schema, kind)

        if not collection:
            validator: Validator = _ALWAYS_TRUE
        elif len(collection) == 1:
            validator = collection[0]
        else:
            validator = MatchAllValidator(collection)

        if kind == NodeType.ARRAY:
            validator = ArrayValidator(schema, validator)
        elif kind == NodeType.OBJECT:
            validator = ObjectValidator(schema, validator)

        with self._lock:
            if generation == self._generation:
                self._cache.put(kind, key, validator)

        return validator

    def get_format_validator(self, context: ValidationContext, format_name: str, instance: Any) -> Validator:
        """
        Get the validator for a format.

        Unknown formats are not an error: they validate everything.

        Args:
            context: Current context
            format_name: Format name from the schema
            instance: Value to be validated

        Returns:
            FormatValidator, or an always-true validator for unknown formats
        """
        with self._lock:
            checker = self._formats.get(format_name)

        if checker is None:
            logger.debug(f"Unknown format '{format_name}' at {context.schema_pointer}, accepting")
            return _ALWAYS_TRUE
        return FormatValidator(format_name, checker)

    def validate(self, schema: Any, instance: Any, fail_fast: Optional[bool] = None) -> ValidationReport:
        """
        Validate an instance against a schema.

        Args:
            schema: Root schema
            instance: Value to validate
            fail_fast: Override the configured failure mode

        Returns:
            Report with every syntax or validation failure

        Raises:
            ValidationFailureError: On the first failure, in fail-fast mode
            InvalidDocumentError: If schema or instance is not JSON-compatible
            DepthExceededError: If nesting goes past max_depth or the interpreter limit
        """
        context = self.create_context(schema, fail_fast=fail_fast)
        key = fragment_key(schema)

        report = self.validate_syntax(context, key)
        if not report.is_success:
            return report

        validator = self.get_instance_validator(context, instance, key)
        try:
            return validator.validate(context, instance)
        except RecursionError as e:
            raise DepthExceededError(self.max_depth, context.instance_pointer) from e

    def is_valid(self, schema: Any, instance: Any) -> bool:
        """Check if instance is valid against schema without raising on failure."""
        return self.validate(schema, instance, fail_fast=False).is_success

    # ==================== Registration ====================

    def register_keyword(
        self,
        name: str,
        syntax_checker: Optional[SyntaxChecker],
        keyword_checker: Optional[KeywordChecker],
        kinds: Iterable[NodeType],
    ):
        """
        Register a keyword.

        To replace an existing keyword, unregister it first.

        Args:
            name: Keyword name
            syntax_checker: Checks how the keyword is written in schemas (None: anything goes)
            keyword_checker: Checks instances (None: no instance check)
            kinds: Value kinds keyword_checker applies to

        Raises:
            KeywordAlreadyRegisteredError: If the keyword is already registered
            KeywordRegistrationError: If kinds is empty or names an unknown kind
        """
        kinds = kind_set(name, kinds)

        with self._lock:
            if name in self._keywords or name in self._syntax:
                raise KeywordAlreadyRegisteredError(name)

            if syntax_checker is not None:
                self._syntax.register(name, syntax_checker)
            self._keywords.register(name, keyword_checker, kinds)
            removed = self._cache.invalidate(kinds)
            self._checked.clear()
            self._generation += 1

        logger.info(
            f"Registered keyword '{name}' for {sorted(str(kind) for kind in kinds)} "
            f"({removed} cached validators dropped)"
        )

    def unregister_keyword(self, name: str):
        """
        Unregister a keyword. Unknown keywords are ignored.

        Args:
            name: Keyword name
        """
        with self._lock:
            self._syntax.unregister(name)
            kinds = self._keywords.unregister(name)
            removed = self._cache.invalidate(kinds)
            self._checked.clear()
            self._generation += 1

        if kinds:
            logger.info(f"Unregistered keyword '{name}' ({removed} cached validators dropped)")
        else:
            logger.debug(f"Keyword '{name}' was not registered")

    def register_format(self, format_name: str, checker: FormatChecker):
        """
        Register a format checker.

        Formats are looked up at validation time, so no cache entry depends on them.

        Raises:
            FormatAlreadyRegisteredError: If the format is already registered
        """
        with self._lock:
            self._formats.register(format_name, checker)
        logger.info(f"Registered format '{format_name}'")

    def unregister_format(self, format_name: str):
        """Unregister a format checker. Unknown formats are ignored."""
        with self._lock:
            removed = self._formats.unregister(format_name)
        if removed:
            logger.info(f"Unregistered format '{format_name}'")

    # ==================== Introspection ====================

    def is_syntax_checked(self, schema: Any) -> bool:
        """Check if a schema fragment is in the syntax-checked set."""
        key = fragment_key(schema)
        with self._lock:
            return key in self._checked

    def get_stats(self) -> Dict[str, Any]:
        """Get cache and registry statistics."""
        with self._lock:
            return {
                "cache": self._cache.get_stats(),
                "syntax_checked": len(self._checked),
                "keywords": self._keywords.keywords,
                "formats": self._formats.formats,
                "generation": self._generation,
            }
