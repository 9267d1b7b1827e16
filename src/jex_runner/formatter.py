from __future__ import annotations

import json
import os
import stat
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from rich.console import Console

from .result import ExecutionResult

_STDOUT = Console(highlight=False)
_STDERR = Console(stderr=True, highlight=False)


class OutputFormat(str, Enum):
    """Encodings a run result can be rendered in.

    Example:
        ```python
        fmt = OutputFormat.parse("pretty")
        ```
    """

    JSON = "Json"
    PRETTY = "Pretty"
    DETAILED = "Detailed"

    @classmethod
    def parse(cls, value: str | OutputFormat) -> OutputFormat:
        """Parse a format name case-insensitively.

        Example:
            ```python
            assert OutputFormat.parse("DETAILED") is OutputFormat.DETAILED
            ```
        """
        if isinstance(value, OutputFormat):
            return value
        wanted = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown output format '{value}' (expected one of: {choices})")


@dataclass(frozen=True, slots=True)
class RenderedResult:
    """Rendered text plus the stream it belongs on.

    Example:
        ```python
        rendered = RenderedResult(text='{"a":1}', to_stderr=False)
        ```
    """

    text: str
    to_stderr: bool = False


def serialize_json(document: Any, *, indented: bool = False) -> str:
    """Serialize a JSON value compactly or with 2-space indentation.

    Example:
        ```python
        assert serialize_json({"a": 1}) == '{"a":1}'
        ```
    """
    if indented:
        return json.dumps(document, indent=2, ensure_ascii=False, allow_nan=False)
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def render(result: ExecutionResult, fmt: OutputFormat) -> RenderedResult:
    """Render a result in the requested format.

    Json and Pretty only serialize successful output; a failure renders as a
    one-line error message meant for stderr. Detailed always serializes the
    whole result.

    Example:
        ```python
        rendered = render(result, OutputFormat.PRETTY)
        print(rendered.text)
        ```
    """
    if fmt is OutputFormat.DETAILED:
        return RenderedResult(serialize_json(result.to_dict(), indented=True))
    if not result.success:
        return RenderedResult(f"Error: {result.first_error_message}", to_stderr=True)
    return RenderedResult(serialize_json(result.output, indented=fmt is OutputFormat.PRETTY))


def exit_code(result: ExecutionResult) -> int:
    """Return the process exit code for a result.

    Example:
        ```python
        code = exit_code(result)  # 0 on success, 1 otherwise
        ```
    """
    return 0 if result.success else 1


def write_atomic(path: str | Path, text: str) -> Path:
    """Replace `path` with `text` via a temporary file in the same directory.

    Example:
        ```python
        write_atomic("/tmp/out.json", '{"a":1}')
        ```
    """
    target = Path(path).absolute()
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        # mkstemp creates 0600 files; keep the mode of the file being replaced.
        mode = stat.S_IMODE(target.stat().st_mode) if target.exists() else 0o644
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return target


def write_result(
    result: ExecutionResult,
    fmt: OutputFormat,
    output_path: str | Path | None = None,
    *,
    console: Console | None = None,
    error_console: Console | None = None,
) -> RenderedResult:
    """Render a result and send it to stdout, stderr or an output file.

    Example:
        ```python
        write_result(result, OutputFormat.JSON, output_path="out.json")
        ```
    """
    out = console or _STDOUT
    err = error_console or _STDERR
    rendered = render(result, fmt)
    if rendered.to_stderr:
        err.print(rendered.text, style="red", markup=False, soft_wrap=True)
        return rendered
    if output_path is not None:
        target = write_atomic(output_path, rendered.text)
        out.print(f"Output written to: {target}", markup=False, soft_wrap=True)
        return rendered
    out.out(rendered.text)
    return rendered
