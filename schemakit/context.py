"""
Validation context passed to every validator and checker.
"""
from typing import TYPE_CHECKING, Any, Optional

from schemakit.exceptions import DepthExceededError, ValidationFailureError
from schemakit.pointer import JsonPointer, Token
from schemakit.report import SUCCESS, ValidationMessage, ValidationReport

if TYPE_CHECKING:
    from schemakit.engine import ValidationEngine


class ValidationContext:
    """
    Where a validation step is happening, and how failures are handled.

    Holds the current schema fragment, the pointers to it and to the instance
    being validated, the engine (for recursive sub-validation) and the failure
    mode. Contexts are never mutated: descend() creates a child context.
    """

    __slots__ = ("schema", "engine", "instance_pointer", "schema_pointer", "fail_fast", "depth")

    def __init__(
        self,
        engine: "ValidationEngine",
        schema: Any,
        instance_pointer: Optional[JsonPointer] = None,
        schema_pointer: Optional[JsonPointer] = None,
        fail_fast: bool = False,
        depth: int = 0,
    ):
        self.engine = engine
        self.schema = schema
        self.instance_pointer = instance_pointer or JsonPointer.root()
        self.schema_pointer = schema_pointer or JsonPointer.root()
        self.fail_fast = fail_fast
        self.depth = depth

    def descend(self, instance_token: Token, schema: Any, *schema_tokens: Token) -> "ValidationContext":
        """
        Build the context for a child element validated against a sub-schema.

        Args:
            instance_token: Array index or member name of the child
            schema: Sub-schema the child is validated against
            schema_tokens: Path from the current schema to the sub-schema

        Returns:
            Child context

        Raises:
            DepthExceededError: If the engine's max_depth would be exceeded
        """
        instance_pointer = self.instance_pointer.append(instance_token)
        max_depth = self.engine.max_depth
        if max_depth is not None and self.depth + 1 > max_depth:
            raise DepthExceededError(max_depth, instance_pointer)

        return ValidationContext(
            self.engine,
            schema,
            instance_pointer=instance_pointer,
            schema_pointer=self.schema_pointer.append(*schema_tokens),
            fail_fast=self.fail_fast,
            depth=self.depth + 1,
        )

    def message(self, keyword: Optional[str], message: str, **info: Any) -> ValidationMessage:
        schema_pointer = self.schema_pointer if keyword is None else self.schema_pointer.append(keyword)
        return ValidationMessage(
            keyword=keyword,
            message=message,
            schema_pointer=schema_pointer,
            instance_pointer=self.instance_pointer,
            info=info,
        )

    def failure(self, keyword: Optional[str], message: str, **info: Any) -> ValidationReport:
        """
        Report a failure of the given keyword at the current location.

        Args:
            keyword: Failing keyword, or None for the schema as a whole
            message: Human readable description
            info: Extra details kept on the message

        Returns:
            A report holding one message

        Raises:
            ValidationFailureError: In fail-fast mode, instead of returning
        """
        validation_message = self.message(keyword, message, **info)
        report = ValidationReport.of(validation_message)
        if self.fail_fast:
            raise ValidationFailureError(validation_message, report)
        return report

    def success(self) -> ValidationReport:
        return SUCCESS

    def __repr__(self) -> str:
        return (
            f"ValidationContext(schema_pointer='{self.schema_pointer}', "
            f"instance_pointer='{self.instance_pointer}', fail_fast={self.fail_fast})"
        )
