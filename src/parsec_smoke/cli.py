from __future__ import annotations

import argparse
import re
import sys
from dataclasses import dataclass
from typing import List, Optional

from .config import load_config
from .driver import PreflightError, run_harness
from .utils.logging import get_logger, set_debug

log = get_logger()

_PROVIDER_FLAG = re.compile(r"-(\d+)")


class UsageError(Exception):
    """Arguments that do not form a valid invocation."""


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


@dataclass
class Options:
    provider: Optional[int] = None
    debug: bool = False


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(
        "parsec-smoke",
        add_help=False,
        allow_abbrev=False,
        description="Run end-to-end tests against a Parsec service using parsec-tool and openssl",
    )
    p.add_argument("-h", "--help", action="store_true", help="Print help")
    p.add_argument("-d", "--debug", action="store_true", help="Debug output")
    p.add_argument("--provider", type=int, metavar="N", help="Test only the provider with N ID (short form: -N)")
    return p


def parse_args(argv: List[str]) -> Optional[Options]:
    """Return the options, or None when the usage should be printed instead."""
    translated: List[str] = []
    for arg in argv:
        m = _PROVIDER_FLAG.fullmatch(arg)
        translated += ["--provider", m.group(1)] if m else [arg]
    try:
        args, extra = build_parser().parse_known_args(translated)
    except UsageError:
        return None
    if args.help or extra:
        return None
    return Options(provider=args.provider, debug=args.debug)


def main(argv: Optional[List[str]] = None) -> int:
    opts = parse_args(sys.argv[1:] if argv is None else argv)
    if opts is None:
        build_parser().print_help(sys.stdout)
        return 0
    set_debug(opts.debug)
    try:
        config = load_config()
        report = run_harness(config, provider=opts.provider, debug=opts.debug)
    except PreflightError as e:
        log.error("ERROR: %s", e)
        return 1
    except ValueError as e:
        log.error("ERROR: invalid configuration: %s", e)
        return 1
    return report.exit_status


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
