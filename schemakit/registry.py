"""
Keyword registries.

Two name-keyed tables back the engine: the syntax registry (how a keyword may
be written in a schema) and the keyword registry (how a keyword constrains an
instance, and for which value kinds). Both keep registration order, which is
the order diagnostics come out in.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from schemakit.context import ValidationContext
from schemakit.exceptions import KeywordAlreadyRegisteredError, KeywordRegistrationError
from schemakit.node_type import NodeType
from schemakit.report import ValidationReport
from schemakit.validators import KeywordChecker, KeywordValidator


SyntaxChecker = Callable[[ValidationContext, Any], ValidationReport]


def kind_set(keyword: str, kinds: Iterable[Any]) -> FrozenSet[NodeType]:
    """
    Normalize the value kinds of a keyword.

    Raises:
        KeywordRegistrationError: If kinds is empty or names an unknown kind
    """
    try:
        result = frozenset(NodeType(kind) for kind in kinds)
    except ValueError as e:
        raise KeywordRegistrationError(f"Keyword '{keyword}' has an unknown value kind: {e}") from e
    if not result:
        raise KeywordRegistrationError(f"Keyword '{keyword}' must apply to at least one value kind")
    return result


@dataclass(frozen=True)
class KeywordEntry:
    """Instance checker of a keyword and the value kinds it applies to."""
    name: str
    checker: Optional[KeywordChecker]  # None: syntax-only keyword
    kinds: FrozenSet[NodeType]


class SyntaxRegistry:
    """Maps keyword names to syntax checkers."""

    def __init__(self):
        self._checkers: Dict[str, SyntaxChecker] = {}

    def register(self, keyword: str, checker: SyntaxChecker):
        """
        Register the syntax checker of a keyword.

        Raises:
            KeywordAlreadyRegisteredError: If the keyword already has a syntax checker
        """
        if keyword in self._checkers:
            raise KeywordAlreadyRegisteredError(keyword)
        self._checkers[keyword] = checker

    def unregister(self, keyword: str) -> bool:
        """Remove a keyword. Returns False if it was not registered."""
        return self._checkers.pop(keyword, None) is not None

    def lookup(self, schema: Any) -> List[Tuple[str, SyntaxChecker]]:
        """
        Get the syntax checkers for every registered keyword present in a schema.

        Args:
            schema: Schema fragment

        Returns:
            (keyword, checker) pairs in registration order; empty for non-object schemas
        """
        if not isinstance(schema, dict):
            return []
        return [(keyword, checker) for keyword, checker in self._checkers.items() if keyword in schema]

    def __contains__(self, keyword: str) -> bool:
        return keyword in self._checkers

    def __len__(self) -> int:
        return len(self._checkers)


class KeywordRegistry:
    """Maps keyword names to instance checkers and their applicable value kinds."""

    def __init__(self):
        self._entries: Dict[str, KeywordEntry] = {}

    def register(
        self,
        keyword: str,
        checker: Optional[KeywordChecker],
        kinds: Iterable[NodeType],
    ) -> KeywordEntry:
        """
        Register the instance checker of a keyword.

        Args:
            keyword: Keyword name
            checker: Instance checker, or None for a keyword with no instance check
            kinds: Value kinds the checker applies to

        Returns:
            The stored entry

        Raises:
            KeywordAlreadyRegisteredError: If the keyword is already registered
            KeywordRegistrationError: If kinds is empty or names an unknown kind
        """
        if keyword in self._entries:
            raise KeywordAlreadyRegisteredError(keyword)

        entry = KeywordEntry(name=keyword, checker=checker, kinds=kind_set(keyword, kinds))
        self._entries[keyword] = entry
        return entry

    def unregister(self, keyword: str) -> FrozenSet[NodeType]:
        """
        Remove a keyword.

        Returns:
            The value kinds the keyword applied to; empty if it was not registered
        """
        entry = self._entries.pop(keyword, None)
        if entry is None:
            return frozenset()
        return entry.kinds

    def get(self, keyword: str) -> Optional[KeywordEntry]:
        return self._entries.get(keyword)

    def lookup(self, schema: Any, kind: NodeType) -> List[KeywordValidator]:
        """
        Get validators for the keywords of a schema that apply to a value kind.

        Args:
            schema: Schema fragment
            kind: Value kind of the instance

        Returns:
            One KeywordValidator per applicable keyword, in registration order
        """
        if not isinstance(schema, dict):
            return []
        return [
            KeywordValidator(entry.name, entry.checker)
            for entry in self._entries.values()
            if entry.checker is not None and kind in entry.kinds and entry.name in schema
        ]

    @property
    def keywords(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, keyword: str) -> bool:
        return keyword in self._entries

    def __len__(self) -> int:
        return len(self._entries)
