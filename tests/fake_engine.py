"""A tiny stand-in for a JEX engine used by the test-suite.

Supported statements, each terminated by ';':

    %let name = <expr>;     bind a variable
    %set key = <expr>;      set a field on the output document
    %return <expr>;         produce <expr> as the whole result
    %crash;                 raise a non-engine exception while executing

Expressions are JSON literals, `$in`, `$meta`, `$name`, or `$in.key` /
`$meta.key`.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

from jex_runner.engine import ScriptCompileError, ScriptRuntimeError

_STATEMENT = re.compile(r"^%(let|set)\s+([A-Za-z_]\w*)\s*=\s*(.+)$|^%return\s+(.+)$|^%crash$", re.S)


def _position(source: str, offset: int) -> tuple[int, int]:
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1) + 1
    return line, column


@dataclass
class _Statement:
    op: str
    name: str | None
    expr: str | None
    line: int
    column: int


class FakeProgram:
    def __init__(self, statements: list[_Statement]) -> None:
        self.statements = statements
        self.calls: list[tuple[Any, Any]] = []

    def _eval(self, expr: str, stmt: _Statement, input_data: Any, meta: Any, variables: dict[str, Any]) -> Any:
        if not expr.startswith("$"):
            return json.loads(expr)
        root, _, key = expr[1:].partition(".")
        if root == "in":
            value = input_data
        elif root == "meta":
            if meta is None:
                raise ScriptRuntimeError("$meta is not available", stmt.line, stmt.column)
            value = meta
        elif root in variables:
            value = variables[root]
        else:
            raise ScriptRuntimeError(f"Unknown variable ${root}", stmt.line, stmt.column)
        if key:
            if not isinstance(value, dict) or key not in value:
                raise ScriptRuntimeError(f"Property '{key}' not found", stmt.line, stmt.column)
            value = value[key]
        return value

    def execute(self, input_data: Any, meta: Any | None) -> Any:
        self.calls.append((input_data, meta))
        variables: dict[str, Any] = {}
        document: dict[str, Any] = {}
        for stmt in self.statements:
            if stmt.op == "crash":
                raise KeyError("crash")
            value = self._eval(stmt.expr or "", stmt, input_data, meta, variables)
            if stmt.op == "let":
                variables[stmt.name or ""] = value
            elif stmt.op == "set":
                document[stmt.name or ""] = value
            else:
                return value
        return document


class FakeEngine:
    def __init__(self) -> None:
        self.compiled: list[str] = []

    def compile(self, source: str) -> FakeProgram:
        self.compiled.append(source)
        statements: list[_Statement] = []
        offset = 0
        while offset < len(source):
            while offset < len(source) and source[offset].isspace():
                offset += 1
            if offset >= len(source):
                break
            end = source.find(";", offset)
            line, column = _position(source, offset)
            if end == -1:
                raise ScriptCompileError("Unterminated statement, expected ';'", line, column)
            text = source[offset:end].strip()
            match = _STATEMENT.match(text)
            if match is None:
                raise ScriptCompileError(f"Unexpected statement '{text}'", line, column)
            if match.group(1):
                statements.append(_Statement(match.group(1), match.group(2), match.group(3).strip(), line, column))
            elif match.group(4):
                statements.append(_Statement("return", None, match.group(4).strip(), line, column))
            else:
                statements.append(_Statement("crash", None, None, line, column))
            offset = end + 1
        return FakeProgram(statements)
