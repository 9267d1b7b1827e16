from .companion import find_companion_file
from .engine import ScriptCompileError, ScriptEngine, ScriptRuntimeError, load_engine
from .formatter import OutputFormat, exit_code, render, write_result
from .result import ErrorInfo, ErrorKind, ExecutionResult
from .runner import failure_result, run_script
from .settings import RunnerSettings, load_settings
from .watch import WatchScheduler, watched_paths

__all__ = [
    "find_companion_file",
    "ScriptCompileError",
    "ScriptEngine",
    "ScriptRuntimeError",
    "load_engine",
    "OutputFormat",
    "exit_code",
    "render",
    "write_result",
    "ErrorInfo",
    "ErrorKind",
    "ExecutionResult",
    "failure_result",
    "run_script",
    "RunnerSettings",
    "load_settings",
    "WatchScheduler",
    "watched_paths",
]
