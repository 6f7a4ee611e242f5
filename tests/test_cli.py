"""CLI tests for the sprig entry point.

Cases live in cli/*.tests files:

    === test name
    args: pair.sp --stop-at parse
    file: pair.sp
    fn pair() -> int, int { return 1, 2 }
    ---
    exit: 0
    json: name = pair
    stderr-empty: true
    ---

Input section, in order:
    args:           CLI arguments (first line, required)
    file:           write the source to this file in the working directory
                    instead of piping it on stdin
    stdin-bytes:    hex-encoded raw stdin (e.g. "ff fe")

Expected section:
    exit:             exact exit code
    stderr:           exact stderr line
    stderr-contains:  stderr must contain substring
    stderr-empty:     stderr must be empty
    stdout-contains:  stdout must contain substring
    stdout-empty:     stdout must be empty
    json:             PATH = VALUE against the JSON printed on stdout
    file-json:        NAME PATH = VALUE against the JSON written to file NAME
"""

import json
import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path

import pytest

CLI_DIR = Path(__file__).parent / "cli"
SRC_DIR = Path(__file__).parent.parent / "src"


@dataclass
class CliCase:
    args: list[str] = field(default_factory=list)
    source: str = ""
    source_file: str | None = None
    stdin_bytes: bytes | None = None
    assertions: list[tuple[str, object]] = field(default_factory=list)


def parse_cli_test_file(path: Path) -> list[tuple[str, CliCase]]:
    lines = path.read_text(encoding="utf-8").split("\n")
    result: list[tuple[str, CliCase]] = []
    i = 0
    while i < len(lines):
        if not lines[i].startswith("=== "):
            i += 1
            continue
        test_name = lines[i][4:].strip()
        i += 1
        input_lines: list[str] = []
        while i < len(lines) and not lines[i].startswith("---"):
            input_lines.append(lines[i])
            i += 1
        i += 1
        expected_lines: list[str] = []
        while i < len(lines) and not lines[i].startswith("---"):
            expected_lines.append(lines[i])
            i += 1
        i += 1
        result.append((test_name, _parse_case(input_lines, expected_lines)))
    return result


def _split_assertion(text: str) -> tuple[str, str]:
    path, value = text.split("=", 1)
    return (path.strip(), value.strip())


def _parse_case(input_lines: list[str], expected_lines: list[str]) -> CliCase:
    case = CliCase()
    remaining = list(input_lines)
    if remaining and remaining[0].startswith("args:"):
        case.args = remaining.pop(0)[5:].split()
    if remaining and remaining[0].startswith("file:"):
        case.source_file = remaining.pop(0)[5:].strip()
    if remaining and remaining[0].startswith("stdin-bytes:"):
        case.stdin_bytes = bytes.fromhex(remaining.pop(0)[len("stdin-bytes:") :].strip())
    case.source = "\n".join(remaining)

    for line in expected_lines:
        line = line.strip()
        if not line:
            continue
        key, _, rest = line.partition(":")
        rest = rest.strip()
        if key == "exit":
            case.assertions.append(("exit", int(rest)))
        elif key in ("stderr", "stderr-contains", "stdout-contains"):
            case.assertions.append((key, rest))
        elif key in ("stderr-empty", "stdout-empty"):
            case.assertions.append((key, None))
        elif key == "json":
            case.assertions.append(("json", (None, *_split_assertion(rest))))
        elif key == "file-json":
            name, _, assertion = rest.partition(" ")
            case.assertions.append(("json", (name, *_split_assertion(assertion))))
        else:
            raise ValueError("unknown directive: " + line)
    return case


def discover_cli_tests() -> list[tuple[str, CliCase]]:
    results = []
    for test_file in sorted(CLI_DIR.glob("*.tests")):
        for name, case in parse_cli_test_file(test_file):
            results.append((f"{test_file.stem}/{name}", case))
    return results


def run_cli(case: CliCase, cwd: Path) -> subprocess.CompletedProcess[bytes]:
    """Run `python -m sprig` in cwd with the case's arguments and input."""
    if case.source_file is not None:
        (cwd / case.source_file).write_text(case.source, encoding="utf-8")
        stdin_data = b""
    elif case.stdin_bytes is not None:
        stdin_data = case.stdin_bytes
    else:
        stdin_data = case.source.encode()
    env = dict(os.environ)
    env["PYTHONPATH"] = str(SRC_DIR) + os.pathsep + env.get("PYTHONPATH", "")
    return subprocess.run(
        [sys.executable, "-m", "sprig", *case.args],
        input=stdin_data,
        capture_output=True,
        cwd=cwd,
        env=env,
    )


def resolve_json(data: object, path: str) -> str:
    """Walk a dotted path through decoded JSON and render the leaf."""
    current = data
    for part in path.split("."):
        if part == "length":
            return str(len(current))
        if isinstance(current, list):
            current = current[int(part)]
        else:
            current = current[part]
    if current is None:
        return "null"
    if isinstance(current, bool):
        return "true" if current else "false"
    return str(current)


def check_assertions(
    result: subprocess.CompletedProcess[bytes], case: CliCase, cwd: Path
) -> None:
    stdout = result.stdout.decode(errors="replace")
    stderr = result.stderr.decode(errors="replace")
    for kind, value in case.assertions:
        if kind == "exit":
            assert result.returncode == value, (
                f"expected exit {value}, got {result.returncode}\nstderr: {stderr}"
            )
        elif kind == "stderr":
            assert stderr.rstrip("\n") == value, (
                f"expected stderr {value!r}, got {stderr!r}"
            )
        elif kind == "stderr-contains":
            assert value in stderr, f"expected stderr to contain {value!r}, got {stderr!r}"
        elif kind == "stderr-empty":
            assert stderr == "", f"expected empty stderr, got {stderr!r}"
        elif kind == "stdout-contains":
            assert value in stdout, f"expected stdout to contain {value!r}, got {stdout!r}"
        elif kind == "stdout-empty":
            assert stdout == "", f"expected empty stdout, got {stdout[:200]!r}"
        elif kind == "json":
            name, path, expected = value
            text = stdout if name is None else (cwd / name).read_text(encoding="utf-8")
            actual = resolve_json(json.loads(text), path)
            assert actual == expected, (
                f"{name or 'stdout'}: {path}\n  expected: {expected!r}\n  actual:   {actual!r}"
            )


def pytest_generate_tests(metafunc):
    if "cli_case" in metafunc.fixturenames:
        params = [pytest.param(case, id=tid) for tid, case in discover_cli_tests()]
        metafunc.parametrize("cli_case", params)


def test_cli(cli_case: CliCase, tmp_path: Path) -> None:
    result = run_cli(cli_case, tmp_path)
    check_assertions(result, cli_case, tmp_path)
