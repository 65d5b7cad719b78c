"""
JSON Pointer (RFC 6901) used to locate keywords in schemas and values in instances.
"""
from typing import Tuple, Union

Token = Union[str, int]


class JsonPointer:
    """Immutable JSON Pointer. The root pointer renders as "/"."""

    __slots__ = ("_tokens",)

    def __init__(self, tokens: Tuple[Token, ...] = ()):
        self._tokens = tuple(str(token) for token in tokens)

    @classmethod
    def root(cls) -> "JsonPointer":
        return _ROOT

    @classmethod
    def parse(cls, text: str) -> "JsonPointer":
        """Parse a pointer string such as "/properties/a~1b"."""
        if text in ("", "/"):
            return _ROOT
        if not text.startswith("/"):
            raise ValueError(f"Invalid JSON Pointer (must start with '/'): {text!r}")
        return cls(tuple(_unescape(part) for part in text[1:].split("/")))

    @property
    def tokens(self) -> Tuple[str, ...]:
        return self._tokens

    def append(self, *tokens: Token) -> "JsonPointer":
        return JsonPointer(self._tokens + tuple(str(token) for token in tokens))

    def is_root(self) -> bool:
        return not self._tokens

    def __str__(self) -> str:
        if not self._tokens:
            return "/"
        return "/" + "/".join(_escape(token) for token in self._tokens)

    def __repr__(self) -> str:
        return f"JsonPointer({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, JsonPointer):
            return self._tokens == other._tokens
        if isinstance(other, str):
            return str(self) == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._tokens)


def _escape(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


_ROOT = JsonPointer()
