from __future__ import annotations

import io
import json
import stat
from pathlib import Path

import pytest
from rich.console import Console

from jex_runner import ErrorInfo, ErrorKind, ExecutionResult, OutputFormat, exit_code, render, run_script, write_result
from jex_runner.formatter import write_atomic


def _consoles() -> tuple[Console, io.StringIO, Console, io.StringIO]:
    out_buffer = io.StringIO()
    err_buffer = io.StringIO()
    out = Console(file=out_buffer, highlight=False, width=40)
    err = Console(file=err_buffer, highlight=False, width=40)
    return out, out_buffer, err, err_buffer


SUCCESS = ExecutionResult.succeeded(
    {"name": "Ada", "tags": ["x", "y"], "nested": {"n": 1.5, "ok": True, "none": None}},
    execution_time_ms=4,
    script_path="/data/t.jex",
    input_path="/data/t.input.json",
)
FAILURE = ExecutionResult.failed(
    ErrorInfo("Expected ';'", line=2, column=5, kind=ErrorKind.COMPILE),
    execution_time_ms=1,
    script_path="/data/t.jex",
)


def test_json_format_is_compact_and_round_trips() -> None:
    rendered = render(SUCCESS, OutputFormat.JSON)

    assert rendered.to_stderr is False
    assert " " not in rendered.text.replace('"Ada"', "")
    assert "\n" not in rendered.text
    assert json.loads(rendered.text) == SUCCESS.output


def test_pretty_format_is_indented() -> None:
    rendered = render(SUCCESS, OutputFormat.PRETTY)

    assert rendered.text.startswith('{\n  "name": "Ada"')
    assert json.loads(rendered.text) == SUCCESS.output


def test_detailed_success_uses_camel_case_fields() -> None:
    payload = json.loads(render(SUCCESS, OutputFormat.DETAILED).text)

    assert payload == {
        "success": True,
        "output": SUCCESS.output,
        "errors": None,
        "executionTimeMs": 4,
        "scriptPath": "/data/t.jex",
        "inputPath": "/data/t.input.json",
    }


def test_detailed_failure_includes_errors() -> None:
    rendered = render(FAILURE, OutputFormat.DETAILED)
    payload = json.loads(rendered.text)

    assert rendered.to_stderr is False
    assert payload["success"] is False
    assert payload["output"] is None
    assert payload["errors"] == [{"message": "Expected ';'", "line": 2, "column": 5, "type": "CompileError"}]
    assert payload["inputPath"] is None


@pytest.mark.parametrize("fmt", [OutputFormat.JSON, OutputFormat.PRETTY])
def test_failure_in_document_formats_is_one_error_line(fmt: OutputFormat) -> None:
    rendered = render(FAILURE, fmt)

    assert rendered.to_stderr is True
    assert rendered.text == "Error: Expected ';'"


def test_exit_code_follows_success() -> None:
    assert exit_code(SUCCESS) == 0
    assert exit_code(FAILURE) == 1


def test_output_format_parse_is_case_insensitive() -> None:
    assert OutputFormat.parse("json") is OutputFormat.JSON
    assert OutputFormat.parse("PRETTY") is OutputFormat.PRETTY
    assert OutputFormat.parse("Detailed") is OutputFormat.DETAILED
    with pytest.raises(ValueError, match="Unknown output format"):
        OutputFormat.parse("yaml")


def test_write_result_prints_long_json_unwrapped() -> None:
    out, out_buffer, err, err_buffer = _consoles()
    result = ExecutionResult.succeeded({"key": "v" * 200}, execution_time_ms=0)

    write_result(result, OutputFormat.JSON, console=out, error_console=err)

    assert out_buffer.getvalue() == json.dumps({"key": "v" * 200}, separators=(",", ":")) + "\n"
    assert err_buffer.getvalue() == ""


def test_write_result_routes_failure_to_stderr() -> None:
    out, out_buffer, err, err_buffer = _consoles()

    write_result(FAILURE, OutputFormat.PRETTY, console=out, error_console=err)

    assert out_buffer.getvalue() == ""
    assert err_buffer.getvalue().strip() == "Error: Expected ';'"


def test_write_result_detailed_failure_goes_to_stdout() -> None:
    out, out_buffer, err, err_buffer = _consoles()

    write_result(FAILURE, OutputFormat.DETAILED, console=out, error_console=err)

    assert json.loads(out_buffer.getvalue())["success"] is False
    assert err_buffer.getvalue() == ""


def test_write_result_to_file_overwrites_and_confirms(tmp_path: Path) -> None:
    out, out_buffer, err, _ = _consoles()
    target = tmp_path / "out.json"
    target.write_text("stale content that is longer than the new document", encoding="utf-8")

    write_result(SUCCESS, OutputFormat.JSON, target, console=out, error_console=err)

    assert json.loads(target.read_text(encoding="utf-8")) == SUCCESS.output
    assert f"Output written to: {target}" in out_buffer.getvalue().replace("\n", "")
    assert [p.name for p in tmp_path.iterdir()] == ["out.json"]


def test_write_result_failure_does_not_touch_output_file(tmp_path: Path) -> None:
    out, _, err, err_buffer = _consoles()
    target = tmp_path / "out.json"

    write_result(FAILURE, OutputFormat.JSON, target, console=out, error_console=err)

    assert not target.exists()
    assert "Error: Expected ';'" in err_buffer.getvalue()


def test_write_atomic_keeps_existing_mode(tmp_path: Path) -> None:
    target = tmp_path / "out.json"
    target.write_text("{}", encoding="utf-8")
    target.chmod(0o640)

    write_atomic(target, '{"a":1}')

    assert stat.S_IMODE(target.stat().st_mode) == 0o640
    assert target.read_text(encoding="utf-8") == '{"a":1}'


def test_json_render_of_pipeline_output_round_trips(write_file, engine) -> None:
    script = write_file("t.jex", '%let x = 1;\n%set total = $in.total;\n%set label = "sum";')
    input_file = write_file("t.input.json", '{"total": 42}')

    result = run_script(script, engine, input_path=input_file)

    assert json.loads(render(result, OutputFormat.JSON).text) == result.output
