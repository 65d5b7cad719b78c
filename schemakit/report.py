"""
Validation report structures.
A report is an ordered, immutable collection of failure messages; an empty
report means success.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from schemakit.pointer import JsonPointer


@dataclass(frozen=True)
class ValidationMessage:
    """A single validation failure."""
    keyword: Optional[str]  # None for failures about the schema as a whole
    message: str
    schema_pointer: JsonPointer
    instance_pointer: JsonPointer
    info: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "keyword": self.keyword,
            "message": self.message,
            "schema": str(self.schema_pointer),
            "instance": str(self.instance_pointer),
        }
        if self.info:
            data["info"] = dict(self.info)
        return data

    def __str__(self) -> str:
        if self.keyword is None:
            return f"{self.instance_pointer}: {self.message} (schema at {self.schema_pointer})"
        return (
            f"{self.instance_pointer}: {self.message} "
            f"(keyword '{self.keyword}' at {self.schema_pointer})"
        )


@dataclass(frozen=True)
class ValidationReport:
    """
    Result of a validation step.

    Reports are combined with merge(), which keeps every message from both
    sides in order. Use the module-level SUCCESS constant for the empty report.
    """
    messages: Tuple[ValidationMessage, ...] = ()

    @property
    def is_success(self) -> bool:
        return not self.messages

    def merge(self, other: "ValidationReport") -> "ValidationReport":
        """
        Combine this report with another.

        Args:
            other: Report to append

        Returns:
            A report with this report's messages followed by other's
        """
        if not other.messages:
            return self
        if not self.messages:
            return other
        return ValidationReport(self.messages + other.messages)

    @classmethod
    def merge_all(cls, reports: Iterable["ValidationReport"]) -> "ValidationReport":
        messages = []
        for report in reports:
            messages.extend(report.messages)
        if not messages:
            return SUCCESS
        return cls(tuple(messages))

    @classmethod
    def of(cls, *messages: ValidationMessage) -> "ValidationReport":
        return cls(tuple(messages)) if messages else SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.is_success,
            "errors": [message.to_dict() for message in self.messages],
        }

    def __bool__(self) -> bool:
        return self.is_success

    def __iter__(self) -> Iterator[ValidationMessage]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)


# Canonical success report, shared by every successful validation
SUCCESS = ValidationReport()
