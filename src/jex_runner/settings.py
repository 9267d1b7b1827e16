from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .formatter import OutputFormat


def _default_settings_path() -> Path:
    """Return bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, dict[str, Any]]:
    """Read a settings TOML file and return its `runner` and `watch` tables.

    Example:
        ```python
        raw = _read_settings_toml(Path("/tmp/jex.toml"))
        ```
    """
    if not path.exists():
        return {
            "runner": {"format": "Json", "input_suffix": ".input.json", "engine": ""},
            "watch": {"debounce_ms": 300, "settle_ms": 100},
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    tables: dict[str, dict[str, Any]] = {}
    for name in ("runner", "watch"):
        table = raw.get(name, {})
        if not isinstance(table, dict):
            raise ValueError(f"Settings section '[{name}]' must be a TOML table")
        tables[name] = table
    return tables


def _non_negative_int(value: Any, field_name: str) -> int:
    """Validate a millisecond setting.

    Example:
        ```python
        debounce = _non_negative_int(300, "debounce_ms")
        ```
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{field_name}' must be an integer")
    if value < 0:
        raise ValueError(f"'{field_name}' must be >= 0")
    return value


def _string(value: Any, field_name: str) -> str:
    """Validate a string setting.

    Example:
        ```python
        suffix = _string(".input.json", "input_suffix")
        ```
    """
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a string")
    return value


@dataclass(frozen=True, slots=True)
class RunnerSettings:
    """CLI and watch-loop settings.

    Example:
        ```python
        settings = RunnerSettings(debounce_ms=500)
        ```
    """

    output_format: OutputFormat = OutputFormat.JSON
    input_suffix: str = ".input.json"
    engine: str | None = None
    debounce_ms: int = 300
    settle_ms: int = 100

    def __post_init__(self) -> None:
        """Validate values after dataclass initialization.

        Example:
            ```python
            RunnerSettings(settle_ms=-1)  # raises ValueError
            ```
        """
        _non_negative_int(self.debounce_ms, "debounce_ms")
        _non_negative_int(self.settle_ms, "settle_ms")
        if not self.input_suffix:
            raise ValueError("'input_suffix' must not be empty")

    def overlay(self, tables: dict[str, dict[str, Any]]) -> RunnerSettings:
        """Return a copy with values from parsed TOML tables applied.

        Example:
            ```python
            settings = RunnerSettings().overlay({"watch": {"debounce_ms": 50}})
            ```
        """
        runner = tables.get("runner", {})
        watch = tables.get("watch", {})
        changes: dict[str, Any] = {}
        if "format" in runner:
            changes["output_format"] = OutputFormat.parse(_string(runner["format"], "format"))
        if "input_suffix" in runner:
            changes["input_suffix"] = _string(runner["input_suffix"], "input_suffix")
        if "engine" in runner:
            changes["engine"] = _string(runner["engine"], "engine") or None
        if "debounce_ms" in watch:
            changes["debounce_ms"] = _non_negative_int(watch["debounce_ms"], "debounce_ms")
        if "settle_ms" in watch:
            changes["settle_ms"] = _non_negative_int(watch["settle_ms"], "settle_ms")
        return replace(self, **changes)

    @classmethod
    def from_file(cls, path: str | Path) -> RunnerSettings:
        """Load settings from a TOML file layered over the bundled defaults.

        Example:
            ```python
            settings = RunnerSettings.from_file("/tmp/jex.toml")
            ```
        """
        config_path = Path(path)
        if not config_path.is_file():
            raise ValueError(f"Settings file not found: {config_path}")
        return load_defaults().overlay(_read_settings_toml(config_path))


def load_defaults() -> RunnerSettings:
    """Return settings from the bundled default TOML.

    Example:
        ```python
        settings = load_defaults()
        ```
    """
    return RunnerSettings().overlay(_read_settings_toml(_default_settings_path()))


def load_settings(config_path: str | Path | None = None) -> RunnerSettings:
    """Return bundled defaults, or defaults overlaid with `config_path`.

    Example:
        ```python
        settings = load_settings(None)
        ```
    """
    if config_path is None:
        return load_defaults()
    return RunnerSettings.from_file(config_path)
