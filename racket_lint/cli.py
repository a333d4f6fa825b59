"""
racket-lint CLI
===============
Command-line front end for the design recipe linter.

Usage:
    # Check one file
    racket-lint check homework.rkt

    # Require three tests per function, print JSON
    racket-lint check homework.rkt --min-tests 3 --json

    # Keep prompting for files to check
    racket-lint check -i

    # Serve the linter over HTTP
    racket-lint serve --port 8000
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .config import LintConfig, parse_test_threshold
from .report import (
    RacketSyntaxError, count_warnings, format_report, is_gracket_format,
    lint_source, report_to_json,
)

logger = logging.getLogger(__name__)

EXIT_CLEAN = 0
EXIT_WARNINGS = 1
EXIT_ERROR = 2


# ─────────────────────────────────────────────────────────────
#  Helpers
# ─────────────────────────────────────────────────────────────

def read_source(path: str) -> str:
    """Read a file as UTF-8."""
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def lint_file(path: str, config: LintConfig, as_json: bool = False) -> tuple[bool, int]:
    """Lint one file and print the outcome.

    Returns whether the file was read and checked, plus an exit code. A
    syntax error still counts as checked.
    """
    try:
        source = read_source(path)
    except FileNotFoundError:
        print("File not found")
        return False, EXIT_ERROR
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("could not read %s: %s", path, e)
        print(f"Could not read {path}: {e}")
        return False, EXIT_ERROR

    if is_gracket_format(source):
        print("The GRacket editor format is not supported.")
        return False, EXIT_ERROR

    try:
        groups = lint_source(source, config)
    except RacketSyntaxError as e:
        print(e)
        return True, EXIT_ERROR

    print(report_to_json(groups) if as_json else format_report(groups))
    logger.debug("%s: %d warning(s)", path, count_warnings(groups))
    return True, EXIT_WARNINGS if groups else EXIT_CLEAN


def prompt_for_path(last_path: str | None) -> str | None:
    prompt = "Input path of file to check"
    if last_path:
        prompt += f" [{last_path}]"
    answer = input(prompt + ": ").strip()
    return answer or last_path


def run_interactive(config: LintConfig, last_path: str | None = None,
                    as_json: bool = False) -> int:
    """Prompt for paths until EOF or Ctrl+C; an empty answer re-checks the last file."""
    exit_code = EXIT_CLEAN
    while True:
        try:
            path = prompt_for_path(last_path)
        except (EOFError, KeyboardInterrupt):
            print()
            return exit_code

        if not path:
            continue

        checked, exit_code = lint_file(path, config, as_json=as_json)
        if checked:
            last_path = path
        print("\n")


# ─────────────────────────────────────────────────────────────
#  Commands
# ─────────────────────────────────────────────────────────────

def cmd_check(args) -> int:
    """Lint a file, then optionally keep prompting for more."""
    config = LintConfig.from_env().with_overrides(args.min_tests)

    exit_code = EXIT_CLEAN
    last_path = None
    if args.file:
        checked, exit_code = lint_file(args.file, config, as_json=args.json)
        if checked:
            last_path = args.file

    if args.interactive or not args.file:
        return run_interactive(config, last_path, as_json=args.json)
    return exit_code


def cmd_serve(args) -> int:
    """Run the HTTP service."""
    from .server import run_server
    run_server(host=args.host, port=args.port)
    return EXIT_CLEAN


def _threshold_arg(value: str) -> int:
    try:
        return parse_test_threshold(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


# ─────────────────────────────────────────────────────────────
#  Main
# ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="racket-lint",
        description="Check Racket student programs against the design recipe",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  racket-lint check homework.rkt\n"
            "  racket-lint check homework.rkt --min-tests 3\n"
            "  racket-lint check -i\n"
            "  racket-lint serve --port 8000\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # check
    p_check = subparsers.add_parser("check", help="Lint a Racket source file")
    p_check.add_argument("file", nargs="?", help="File to check (prompts when omitted)")
    p_check.add_argument("-i", "--interactive", action="store_true",
                         help="Keep prompting for files after the first one")
    p_check.add_argument("--min-tests", type=_threshold_arg, default=None,
                         help="Tests required per function (default: 2, or $RACKET_LINT_MIN_TESTS)")
    p_check.add_argument("--json", action="store_true", help="Print the report as JSON")

    # serve
    p_serve = subparsers.add_parser("serve", help="Serve the linter over HTTP")
    p_serve.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    p_serve.add_argument("--port", default=8000, type=int, help="Port number (default: 8000)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "check": cmd_check,
        "serve": cmd_serve,
    }

    if args.command not in commands:
        parser.print_help()
        return EXIT_ERROR

    try:
        return commands[args.command](args)
    except ValueError as e:
        # bad RACKET_LINT_MIN_TESTS
        print(f"✘ {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
