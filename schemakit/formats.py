"""
Format checker registry.

Format names are an open vocabulary, so they live in their own table rather
than in the keyword registries. Default checkers are bridged from the
jsonschema library's FormatChecker.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from jsonschema import FormatChecker as JsonSchemaFormatChecker

from schemakit.context import ValidationContext
from schemakit.exceptions import FormatAlreadyRegisteredError
from schemakit.report import ValidationReport
from schemakit.validators import FormatChecker

logger = logging.getLogger(__name__)


class FormatRegistry:
    """Maps format names to format checkers."""

    def __init__(self, checkers: Optional[Dict[str, FormatChecker]] = None):
        self._checkers: Dict[str, FormatChecker] = dict(checkers or {})

    @classmethod
    def with_defaults(cls, names: Optional[Iterable[str]] = None) -> "FormatRegistry":
        """
        Build a registry seeded with the formats jsonschema can check here.

        Which formats are available depends on the optional packages installed
        alongside jsonschema (e.g. hostname needs fqdn).

        Args:
            names: Restrict seeding to these format names

        Returns:
            New FormatRegistry
        """
        library_checker = JsonSchemaFormatChecker()
        available = list(library_checker.checkers)
        if names is not None:
            wanted = set(names)
            available = [name for name in available if name in wanted]

        registry = cls({name: jsonschema_format(name, library_checker) for name in available})
        logger.debug(f"Format registry seeded with {len(registry)} formats from jsonschema")
        return registry

    def register(self, format_name: str, checker: FormatChecker):
        """
        Register a format checker.

        Raises:
            FormatAlreadyRegisteredError: If the format is already registered
        """
        if format_name in self._checkers:
            raise FormatAlreadyRegisteredError(format_name)
        self._checkers[format_name] = checker

    def unregister(self, format_name: str) -> bool:
        """Remove a format. Returns False if it was not registered."""
        return self._checkers.pop(format_name, None) is not None

    def get(self, format_name: str) -> Optional[FormatChecker]:
        """Get the checker for a format, or None if the format is unknown."""
        return self._checkers.get(format_name)

    @property
    def formats(self) -> List[str]:
        return sorted(self._checkers)

    def __contains__(self, format_name: str) -> bool:
        return format_name in self._checkers

    def __len__(self) -> int:
        return len(self._checkers)


def jsonschema_format(format_name: str, library_checker: Optional[JsonSchemaFormatChecker] = None) -> FormatChecker:
    """
    Wrap one jsonschema format check as a schemakit format checker.

    Args:
        format_name: Format name known to jsonschema
        library_checker: FormatChecker to delegate to (default: all formats)

    Returns:
        Checker reporting a 'format' failure when the string does not conform
    """
    library_checker = library_checker or JsonSchemaFormatChecker()

    def check(context: ValidationContext, instance: Any) -> ValidationReport:
        if library_checker.conforms(instance, format_name):
            return context.success()
        return context.failure(
            "format",
            f"String {instance!r} is not a valid {format_name}",
            format=format_name,
        )

    return check
