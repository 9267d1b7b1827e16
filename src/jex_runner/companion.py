from __future__ import annotations

from pathlib import Path

INPUT_SUFFIX = ".input.json"


def companion_path(script_path: str | Path, suffix: str) -> Path:
    """Return the conventional sibling path for a script, existing or not.

    The script's last extension is replaced by `suffix`.

    Example:
        ```python
        assert companion_path("/data/t.jex", ".input.json") == Path("/data/t.input.json")
        ```
    """
    script = Path(script_path).absolute()
    return script.parent / f"{script.stem}{suffix}"


def find_companion_file(script_path: str | Path, suffix: str = INPUT_SUFFIX) -> Path | None:
    """Return the companion file for `script_path` if it exists.

    Example:
        ```python
        input_file = find_companion_file("transform.jex")  # transform.input.json or None
        ```
    """
    candidate = companion_path(script_path, suffix)
    if candidate.is_file():
        return candidate
    return None
