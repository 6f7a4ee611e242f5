"""Sprig CLI — parse and type-check a single-function source file."""

from __future__ import annotations

import json
import sys

from . import check, parse
from .check import CheckError
from .parse import ParseError
from .serialize import function_to_dict, result_to_dict

PHASES: set[str] = {"parse", "check"}

USAGE: str = """\
sprig [OPTIONS] [FILE]

Parse and type-check a Sprig function. Reads FILE, or stdin if omitted,
and prints the result as JSON.

Options:
  --stop-at PHASE     Stop after phase: parse, check (default: check)
  --allow-unresolved  Accept bindings whose type is never inferred
  -o, --output FILE   Write output to FILE instead of stdout
  --help              Show this help message
"""


class _Options:
    def __init__(self) -> None:
        self.stop_at: str = "check"
        self.allow_unresolved: bool = False
        self.input_file: str | None = None
        self.output_file: str | None = None


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            print("error: " + input_file + ": No such file or directory", file=sys.stderr)
            return ("", 1)
        except OSError as e:
            print("error: " + input_file + ": " + str(e), file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)
    return (source, 0)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w") as f:
                f.write(output + "\n")
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    print(output)
    return 0


def _print_error(err: ParseError | CheckError) -> None:
    print(
        "error:"
        + str(err.line)
        + ":"
        + str(err.col)
        + ": "
        + type(err).__name__
        + ": "
        + err.msg,
        file=sys.stderr,
    )


def run_pipeline(source: str, opts: _Options) -> tuple[int, str]:
    """Run parse and check. Returns (exit_code, output)."""
    try:
        if opts.stop_at == "parse":
            return (0, json.dumps(function_to_dict(parse(source)), indent=2))
        result = check(source, allow_unresolved=opts.allow_unresolved)
    except (ParseError, CheckError) as e:
        _print_error(e)
        return (1, "")
    out = {
        "ast": function_to_dict(result.function),
        "types": result_to_dict(result),
    }
    return (0, json.dumps(out, indent=2))


def parse_args(args: list[str]) -> _Options | int:
    """Parse command-line arguments. Returns options, or an exit code to stop with."""
    opts = _Options()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--stop-at":
            if i + 1 >= len(args):
                print("error: --stop-at requires an argument", file=sys.stderr)
                return 2
            opts.stop_at = args[i + 1]
            i += 2
        elif arg == "-o" or arg == "--output":
            if i + 1 >= len(args):
                print("error: " + arg + " requires an argument", file=sys.stderr)
                return 2
            opts.output_file = args[i + 1]
            i += 2
        elif arg == "--allow-unresolved":
            opts.allow_unresolved = True
            i += 1
        elif arg.startswith("-"):
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif opts.input_file is None:
            opts.input_file = arg
            i += 1
        else:
            print("error: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2
    if opts.stop_at not in PHASES:
        print("error: unknown phase '" + opts.stop_at + "'", file=sys.stderr)
        return 2
    return opts


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    opts = parse_args(args)
    if isinstance(opts, int):
        return opts
    source, err = read_source(opts.input_file)
    if err != 0:
        return err
    exit_code, output = run_pipeline(source, opts)
    if exit_code != 0:
        return exit_code
    return write_output(output, opts.output_file)


if __name__ == "__main__":
    sys.exit(main())
