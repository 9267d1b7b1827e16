from .engine import CompiledScript, ScriptEngine
from .errors import EngineLoadError, ScriptCompileError, ScriptError, ScriptRuntimeError
from .loader import ENGINE_ENTRY_POINT_GROUP, available_engines, load_engine

__all__ = [
    "CompiledScript",
    "ScriptEngine",
    "EngineLoadError",
    "ScriptCompileError",
    "ScriptError",
    "ScriptRuntimeError",
    "ENGINE_ENTRY_POINT_GROUP",
    "available_engines",
    "load_engine",
]
