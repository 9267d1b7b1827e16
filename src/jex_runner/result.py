from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Origin of a reported failure.

    Example:
        ```python
        kind = ErrorKind("CompileError")
        ```
    """

    COMPILE = "CompileError"
    RUNTIME = "RuntimeError"
    ERROR = "Error"


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """One diagnostic attached to a failed run.

    Example:
        ```python
        info = ErrorInfo("Expected ';'", line=1, column=11, kind=ErrorKind.COMPILE)
        ```
    """

    message: str
    line: int = 0
    column: int = 0
    kind: ErrorKind = ErrorKind.ERROR

    def __post_init__(self) -> None:
        """Validate message and source position.

        Example:
            ```python
            ErrorInfo("boom")  # ok
            ```
        """
        if not self.message:
            raise ValueError("ErrorInfo requires a non-empty message")
        if self.line < 0 or self.column < 0:
            raise ValueError("ErrorInfo line and column must be >= 0")

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase mapping used by the detailed output format.

        Example:
            ```python
            payload = ErrorInfo("boom").to_dict()
            ```
        """
        return {
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "type": self.kind.value,
        }


def wrap_output(value: Any) -> dict[str, Any]:
    """Return `value` as an object-shaped document.

    Objects are copied shallowly; anything else (arrays, scalars, null) is
    wrapped as `{"result": value}`.

    Example:
        ```python
        assert wrap_output([1, 2]) == {"result": [1, 2]}
        ```
    """
    if isinstance(value, dict):
        return dict(value)
    return {"result": value}


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Normalized outcome of a single compile+execute run.

    Example:
        ```python
        result = ExecutionResult.succeeded({"x": 1}, execution_time_ms=3, script_path="/tmp/t.jex")
        ```
    """

    success: bool
    output: dict[str, Any] | None = None
    errors: tuple[ErrorInfo, ...] | None = None
    execution_time_ms: int = 0
    script_path: str | None = None
    input_path: str | None = None

    def __post_init__(self) -> None:
        """Enforce that exactly one of output/errors is populated.

        Example:
            ```python
            ExecutionResult(success=False, errors=(ErrorInfo("boom"),))
            ```
        """
        if self.success:
            if self.output is None or self.errors is not None:
                raise ValueError("A successful result carries output and no errors")
        else:
            if self.output is not None:
                raise ValueError("A failed result carries no output")
            if not self.errors:
                raise ValueError("A failed result carries at least one error")
        if self.execution_time_ms < 0:
            raise ValueError("execution_time_ms must be >= 0")

    @classmethod
    def succeeded(
        cls,
        value: Any,
        *,
        execution_time_ms: int,
        script_path: str | None = None,
        input_path: str | None = None,
    ) -> ExecutionResult:
        """Build a successful result, wrapping non-object values.

        Example:
            ```python
            result = ExecutionResult.succeeded(42, execution_time_ms=1)
            assert result.output == {"result": 42}
            ```
        """
        return cls(
            success=True,
            output=wrap_output(value),
            execution_time_ms=execution_time_ms,
            script_path=script_path,
            input_path=input_path,
        )

    @classmethod
    def failed(
        cls,
        error: ErrorInfo,
        *,
        execution_time_ms: int = 0,
        script_path: str | None = None,
        input_path: str | None = None,
    ) -> ExecutionResult:
        """Build a failed result holding a single diagnostic.

        Example:
            ```python
            result = ExecutionResult.failed(ErrorInfo("Script file not found: t.jex"))
            ```
        """
        return cls(
            success=False,
            errors=(error,),
            execution_time_ms=execution_time_ms,
            script_path=script_path,
            input_path=input_path,
        )

    @property
    def first_error_message(self) -> str:
        """Return the first diagnostic message, or a generic fallback.

        Example:
            ```python
            message = result.first_error_message
            ```
        """
        if self.errors:
            return self.errors[0].message
        return "Unknown error"

    def to_dict(self) -> dict[str, Any]:
        """Return the full result using the detailed format's camelCase names.

        Example:
            ```python
            payload = result.to_dict()
            assert set(payload) >= {"success", "executionTimeMs"}
            ```
        """
        return {
            "success": self.success,
            "output": self.output,
            "errors": [error.to_dict() for error in self.errors] if self.errors is not None else None,
            "executionTimeMs": self.execution_time_ms,
            "scriptPath": self.script_path,
            "inputPath": self.input_path,
        }
