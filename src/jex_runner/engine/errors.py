from __future__ import annotations


class ScriptError(Exception):
    """Base class for failures raised by a script engine.

    Example:
        ```python
        err = ScriptError("boom", line=3, column=7)
        ```
    """

    def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
        """Store the message and 1-based source position (0 when unknown).

        Example:
            ```python
            err = ScriptError("unexpected token", line=1, column=5)
            ```
        """
        super().__init__(message)
        self.message = message
        self.line = max(0, int(line))
        self.column = max(0, int(column))


class ScriptCompileError(ScriptError):
    """Raised by `ScriptEngine.compile` when a script cannot be compiled.

    Example:
        ```python
        raise ScriptCompileError("Expected ';'", line=2, column=14)
        ```
    """


class ScriptRuntimeError(ScriptError):
    """Raised by `CompiledScript.execute` when a compiled script fails.

    Example:
        ```python
        raise ScriptRuntimeError("$meta is not available", line=1, column=9)
        ```
    """


class EngineLoadError(Exception):
    """Raised when no usable script engine can be loaded.

    Example:
        ```python
        raise EngineLoadError("No JEX engine is installed")
        ```
    """
