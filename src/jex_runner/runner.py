from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

from .engine import ScriptCompileError, ScriptEngine, ScriptError, ScriptRuntimeError
from .formatter import serialize_json
from .result import ErrorInfo, ErrorKind, ExecutionResult


def _elapsed_ms(started: float) -> int:
    """Return whole milliseconds elapsed since a `perf_counter` reading.

    Example:
        ```python
        ms = _elapsed_ms(time.perf_counter())
        ```
    """
    return max(0, int((time.perf_counter() - started) * 1000))


def _message_of(exc: BaseException) -> str:
    """Return a non-empty, UTF-8 encodable message for an exception.

    Example:
        ```python
        assert _message_of(KeyError()) == "KeyError"
        ```
    """
    if isinstance(exc, ScriptError) and exc.message:
        message = exc.message
    else:
        message = str(exc) or type(exc).__name__
    return message.encode("utf-8", "backslashreplace").decode("utf-8")


def _read_json(path: Path) -> Any:
    """Read and parse a JSON document from disk.

    Example:
        ```python
        data = _read_json(Path("/tmp/t.input.json"))
        ```
    """
    text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc


def _optional_path(path: str | Path | None) -> Path | None:
    """Return `path` as an absolute Path, or None.

    Example:
        ```python
        assert _optional_path(None) is None
        ```
    """
    if path is None:
        return None
    return Path(path).absolute()


def failure_result(
    message: str,
    script_path: str | Path | None = None,
    input_path: str | Path | None = None,
) -> ExecutionResult:
    """Build an `Error`-kind result for failures found outside the pipeline.

    Example:
        ```python
        result = failure_result("Script file not found: /tmp/t.jex", script_path="/tmp/t.jex")
        ```
    """
    script = _optional_path(script_path)
    input_file = _optional_path(input_path)
    return ExecutionResult.failed(
        ErrorInfo(message or "Unknown error", kind=ErrorKind.ERROR),
        script_path=str(script) if script else None,
        input_path=str(input_file) if input_file else None,
    )


def run_script(
    script_path: str | Path,
    engine: ScriptEngine,
    input_path: str | Path | None = None,
    meta_path: str | Path | None = None,
) -> ExecutionResult:
    """Compile and execute one script and normalize the outcome.

    Input defaults to an empty object when `input_path` is missing; metadata
    is passed as None when `meta_path` is missing. Every failure is reported
    through the returned result; this function does not raise.

    Example:
        ```python
        result = run_script("t.jex", engine, input_path="t.input.json")
        if result.success:
            print(result.output)
        ```
    """
    script = Path(script_path).absolute()
    input_file = _optional_path(input_path)
    meta_file = _optional_path(meta_path)
    paths = {
        "script_path": str(script),
        "input_path": str(input_file) if input_file else None,
    }

    started = time.perf_counter()
    try:
        source = script.read_text(encoding="utf-8")

        input_data: Any = {}
        if input_file is not None and input_file.is_file():
            input_data = _read_json(input_file)

        meta: Any | None = None
        if meta_file is not None and meta_file.is_file():
            meta = _read_json(meta_file)

        program = engine.compile(source)
        produced = program.execute(input_data, meta)
        # Reject values the formatter could not serialize or encode.
        serialize_json(produced).encode("utf-8")
    except ScriptCompileError as exc:
        return ExecutionResult.failed(
            ErrorInfo(_message_of(exc), exc.line, exc.column, ErrorKind.COMPILE),
            execution_time_ms=_elapsed_ms(started),
            **paths,
        )
    except ScriptRuntimeError as exc:
        return ExecutionResult.failed(
            ErrorInfo(_message_of(exc), exc.line, exc.column, ErrorKind.RUNTIME),
            execution_time_ms=_elapsed_ms(started),
            **paths,
        )
    except Exception as exc:
        return ExecutionResult.failed(
            ErrorInfo(_message_of(exc), kind=ErrorKind.ERROR),
            execution_time_ms=_elapsed_ms(started),
            **paths,
        )

    return ExecutionResult.succeeded(
        produced,
        execution_time_ms=_elapsed_ms(started),
        **paths,
    )
