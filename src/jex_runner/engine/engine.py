from __future__ import annotations

from typing import Any, Protocol


class CompiledScript(Protocol):
    def execute(self, input_data: Any, meta: Any | None) -> Any:
        """Run the compiled script against input and optional metadata.

        Example:
            ```python
            value = program.execute({"name": "Ada"}, None)
            ```
        """
        ...


class ScriptEngine(Protocol):
    def compile(self, source: str) -> CompiledScript:
        """Compile script source text into an executable program.

        Example:
            ```python
            program = engine.compile('%let x = 1;')
            ```
        """
        ...
