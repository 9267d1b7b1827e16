from __future__ import annotations

import argparse
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.panel import Panel
from rich_argparse import RawTextRichHelpFormatter

from jex_runner import (
    ExecutionResult,
    OutputFormat,
    RunnerSettings,
    ScriptEngine,
    WatchScheduler,
    exit_code,
    failure_result,
    find_companion_file,
    load_engine,
    load_settings,
    run_script,
    watched_paths,
    write_result,
)
from jex_runner.engine import EngineLoadError

_CONSOLE = Console(no_color=False, highlight=False)
_ERR_CONSOLE = Console(stderr=True, highlight=False)

WATCHING_MESSAGE = "Watching for changes... (Ctrl+C to stop)"


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="jexr")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _ERR_CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_usage(_ERR_CONSOLE.file)
        raise SystemExit(2)

    def print_help(self, file: Any | None = None) -> None:
        """Render help text to the target stream.

        Example:
            ```python
            parser.print_help()
            ```
        """
        super().print_help(file=file)


def _format_arg(value: str) -> OutputFormat:
    """Parse the --format value for argparse.

    Example:
        ```python
        fmt = _format_arg("pretty")
        ```
    """
    try:
        return OutputFormat.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser for running JEX scripts.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="jexr",
        description=(
            "JEX - JSON Expression Transformation CLI\n"
            "Run a JEX script against a JSON input document and optional metadata."
        ),
        epilog=(
            "Quick Examples:\n"
            "  jexr transform.jex\n"
            "  jexr transform.jex -i orders.json -f Pretty\n"
            "  jexr transform.jex -m meta.json -o result.json\n"
            "  jexr transform.jex -f Detailed --watch\n\n"
            "Input Convention:\n"
            "  Without --input, <script>.input.json next to the script is used if it exists."
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument("script", help="Path to the JEX script file (.jex).")
    parser.add_argument(
        "-i",
        "--input",
        help="Path to input JSON file (defaults to <script>.input.json).",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Path to write output to (defaults to stdout).",
    )
    parser.add_argument(
        "-m",
        "--meta",
        help="Path to metadata JSON file (no metadata when omitted).",
    )
    parser.add_argument(
        "-f",
        "--format",
        type=_format_arg,
        metavar="{Json,Pretty,Detailed}",
        help=(
            "Output format (default: Json).\n"
            "Json: compact output document. Pretty: indented output document.\n"
            "Detailed: full result with errors and timing, on success or failure."
        ),
    )
    parser.add_argument(
        "-w",
        "--watch",
        action="store_true",
        help="Watch the script and its input/meta files and re-run on changes.",
    )
    parser.add_argument(
        "--engine",
        help="Name of the installed JEX engine to use (default: the only installed one).",
    )
    parser.add_argument(
        "--config",
        help="Path to a settings TOML file overriding the bundled defaults.",
    )
    return parser


def build_engine(args: argparse.Namespace, settings: RunnerSettings) -> ScriptEngine:
    """Load the JEX engine selected by CLI flags or settings.

    Example:
        ```python
        engine = build_engine(args, settings)
        ```
    """
    return load_engine(args.engine or settings.engine)


def _emit(result: ExecutionResult, fmt: OutputFormat, output_path: str | None) -> bool:
    """Write a result; return False when the output file cannot be written.

    Example:
        ```python
        ok = _emit(result, OutputFormat.JSON, None)
        ```
    """
    try:
        write_result(result, fmt, output_path, console=_CONSOLE, error_console=_ERR_CONSOLE)
    except OSError as exc:
        _ERR_CONSOLE.print(f"Error: failed to write output: {exc}", style="red", markup=False)
        return False
    return True


def _print_watch_header(script: Path, input_path: Path | None) -> None:
    """Print the banner shown when watch mode starts.

    Example:
        ```python
        _print_watch_header(Path("t.jex"), None)
        ```
    """
    _CONSOLE.print(WATCHING_MESSAGE, markup=False)
    _CONSOLE.print(f"  Script: {script.name}", markup=False)
    if input_path is not None:
        _CONSOLE.print(f"  Input:  {input_path.name}", markup=False)
    _CONSOLE.print()


def _watch_iteration(
    trigger: str | None,
    *,
    script: Path,
    input_path: Path | None,
    meta_path: Path | None,
    output_path: str | None,
    fmt: OutputFormat,
    engine: ScriptEngine,
) -> None:
    """Run the script once for watch mode and reprint the status line.

    Example:
        ```python
        _watch_iteration(None, script=script, input_path=None, meta_path=None,
                         output_path=None, fmt=OutputFormat.JSON, engine=engine)
        ```
    """
    if trigger is not None:
        _CONSOLE.clear()
        _CONSOLE.print(f"[{datetime.now():%H:%M:%S}] Running...\n", markup=False)
    result = run_script(script, engine, input_path, meta_path)
    _emit(result, fmt, output_path)
    _CONSOLE.print(f"\n{WATCHING_MESSAGE}", markup=False)


def _watch(
    script: Path,
    input_path: Path | None,
    meta_path: Path | None,
    output_path: str | None,
    fmt: OutputFormat,
    engine: ScriptEngine,
    settings: RunnerSettings,
) -> int:
    """Run the watch loop until interrupted.

    Example:
        ```python
        code = _watch(script, None, None, None, OutputFormat.PRETTY, engine, settings)
        ```
    """
    _print_watch_header(script, input_path)
    scheduler = WatchScheduler(
        watched_paths(script, input_path, meta_path),
        partial(
            _watch_iteration,
            script=script,
            input_path=input_path,
            meta_path=meta_path,
            output_path=output_path,
            fmt=fmt,
            engine=engine,
        ),
        debounce_ms=settings.debounce_ms,
        settle_ms=settings.settle_ms,
    )
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        _CONSOLE.print("Stopped watching.", markup=False)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `jexr` CLI command handler.

    Example:
        ```python
        code = main(["transform.jex", "--format", "Pretty"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = load_settings(args.config)
    except (ValueError, OSError) as exc:
        fmt = args.format or OutputFormat.JSON
        _emit(failure_result(f"Invalid settings: {exc}", script_path=args.script), fmt, args.output)
        return 1
    fmt = args.format or settings.output_format

    script = Path(args.script).absolute()
    if not script.is_file():
        result = failure_result(f"Script file not found: {script}", script_path=script)
        _emit(result, fmt, args.output)
        return exit_code(result)

    if args.input:
        input_path: Path | None = Path(args.input).absolute()
    else:
        input_path = find_companion_file(script, settings.input_suffix)
    meta_path = Path(args.meta).absolute() if args.meta else None

    try:
        engine = build_engine(args, settings)
    except EngineLoadError as exc:
        result = failure_result(str(exc), script_path=script, input_path=input_path)
        _emit(result, fmt, args.output)
        return exit_code(result)

    if args.watch:
        return _watch(script, input_path, meta_path, args.output, fmt, engine, settings)

    result = run_script(script, engine, input_path, meta_path)
    if not _emit(result, fmt, args.output):
        return 1
    return exit_code(result)
