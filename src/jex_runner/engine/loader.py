from __future__ import annotations

from importlib.metadata import EntryPoint, entry_points

from .engine import ScriptEngine
from .errors import EngineLoadError

ENGINE_ENTRY_POINT_GROUP = "jex_runner.engines"


def available_engines() -> dict[str, EntryPoint]:
    """Return installed engine entry points keyed by name.

    Example:
        ```python
        names = sorted(available_engines())
        ```
    """
    return {ep.name: ep for ep in entry_points(group=ENGINE_ENTRY_POINT_GROUP)}


def _select_entry_point(engines: dict[str, EntryPoint], name: str | None) -> EntryPoint:
    """Pick the entry point for `name`, or the only installed one.

    Example:
        ```python
        ep = _select_entry_point(available_engines(), "jex")
        ```
    """
    if name:
        if name not in engines:
            known = ", ".join(sorted(engines)) or "none"
            raise EngineLoadError(f"Unknown JEX engine '{name}' (installed: {known})")
        return engines[name]
    if not engines:
        raise EngineLoadError(
            "No JEX engine is installed. "
            f"Install a package that registers one under '{ENGINE_ENTRY_POINT_GROUP}'."
        )
    if len(engines) > 1:
        raise EngineLoadError(
            "Several JEX engines are installed; choose one with --engine: "
            + ", ".join(sorted(engines))
        )
    return next(iter(engines.values()))


def load_engine(name: str | None = None) -> ScriptEngine:
    """Instantiate a script engine registered under the engine entry-point group.

    Example:
        ```python
        engine = load_engine()
        program = engine.compile(source)
        ```
    """
    entry_point = _select_entry_point(available_engines(), name)
    try:
        factory = entry_point.load()
        engine = factory()
    except Exception as exc:
        raise EngineLoadError(f"Failed to load JEX engine '{entry_point.name}': {exc}") from exc
    if not callable(getattr(engine, "compile", None)):
        raise EngineLoadError(
            f"JEX engine '{entry_point.name}' does not provide a compile() method"
        )
    return engine
