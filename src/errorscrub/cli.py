"""errorscrub CLI.

Subcommands:
  check     -> exit 1 if the text is sensitive, 0 otherwise
  sanitize  -> print the text with every sensitive match redacted

TEXT may be ``-`` (or omitted for ``sanitize``) to read standard input.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

from errorscrub.detectors import DEFAULT_DETECTORS
from errorscrub.logging import configure_logging

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="errorscrub", description="Detect and redact secrets in error text"
    )
    p.add_argument("--json-logs", action="store_true", help="Emit JSON structured logs")
    p.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )
    pc = sub.add_parser("check", help="Exit 1 when TEXT contains sensitive content")
    pc.add_argument("text", help="Text to check, or - for stdin")
    ps = sub.add_parser("sanitize", help="Print TEXT with sensitive content redacted")
    ps.add_argument("text", nargs="?", default="-", help="Text to sanitize (default: stdin)")
    return p


def _read_text(value: str) -> str:
    if value == "-":
        return sys.stdin.read().rstrip("\r\n")
    return value


def _cmd_check(args: argparse.Namespace) -> int:
    sensitive = DEFAULT_DETECTORS.is_sensitive(_read_text(args.text))
    print("sensitive" if sensitive else "clean")
    return 1 if sensitive else 0


def _cmd_sanitize(args: argparse.Namespace) -> int:
    # line by line so a secret on one line never swallows the next
    for line in _read_text(args.text).splitlines():
        print(DEFAULT_DETECTORS.sanitize(line))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logger = configure_logging(json_logging=args.json_logs, level=args.log_level)
    logger.debug("cli command", operation=f"cli_{args.cmd}")
    handlers = {"check": _cmd_check, "sanitize": _cmd_sanitize}
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    return handler(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
