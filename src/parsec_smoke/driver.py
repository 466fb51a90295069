"""Harness driver: preflight, provider enumeration and the per-provider loop.

States, in order: prerequisites -> ping -> enumerate -> test each provider.
Preflight problems raise PreflightError; nothing after that point raises for
a failed step, failures only accumulate in the returned Tally.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from .config import HarnessConfig
from .results import Tally
from .runner import CommandRunner
from .suites import SuiteContext, resolve_suites
from .tools.openssl import OpenSSL
from .tools.parsec import ParsecTool, Provider, enumerate_providers
from .utils.logging import get_logger
from .workspace import scratch_workspace

log = get_logger()

# Largest value a POSIX exit status can carry without wrapping
MAX_EXIT_STATUS = 255


class PreflightError(Exception):
    """Raised when the harness cannot start testing at all."""


@dataclass
class HarnessReport:
    tally: Tally = field(default_factory=Tally)
    discovered: List[Provider] = field(default_factory=list)
    tested: List[Provider] = field(default_factory=list)
    workspace: Optional[str] = None

    @property
    def exit_status(self) -> int:
        return exit_status(self.tally.failures)


def exit_status(failures: int) -> int:
    # 256 failures would otherwise wrap to 0 and report success
    return min(failures, MAX_EXIT_STATUS)


def check_prerequisites(config: HarnessConfig) -> None:
    missing = config.missing_tools()
    if missing:
        raise PreflightError(
            f"Cannot find {' and '.join(missing)}. "
            "Install the tools in PATH or define PARSEC_TOOL and OPENSSL variables"
        )


def ping(tool: ParsecTool) -> None:
    log.info("Checking Parsec service... ")
    res = tool.ping()
    if not res.ok:
        raise PreflightError(f"Parsec service did not answer ping (exit status {res.returncode})")


def new_run_id(config: HarnessConfig) -> Optional[str]:
    return uuid.uuid4().hex[:8] if config.unique_keys else None


def selected(providers: List[Provider], only: Optional[int]) -> List[Provider]:
    if only is None:
        return list(providers)
    return [p for p in providers if p.id == only]


def run_harness(
    config: HarnessConfig,
    provider: Optional[int] = None,
    debug: bool = False,
    runner: Optional[CommandRunner] = None,
) -> HarnessReport:
    suites = resolve_suites(config.suites)
    check_prerequisites(config)
    runner = runner or CommandRunner(env=config.child_env(debug), trace=debug)
    tool = ParsecTool(config.parsec_tool, runner)
    openssl = OpenSSL(config.openssl, runner)
    ping(tool)

    report = HarnessReport()
    run_id = new_run_id(config)
    with scratch_workspace() as ws:
        report.workspace = ws.root
        listing, report.discovered = enumerate_providers(tool)
        report.tally.command("list providers", listing)
        if not report.discovered:
            log.info("No providers to test")
        for prv in selected(report.discovered, provider):
            log.info("")
            log.info("Testing %s", prv.name)
            ctx = SuiteContext(
                tool=tool.for_provider(prv.id),
                openssl=openssl,
                workspace=ws,
                config=config,
                run_id=run_id,
            )
            for _name, suite in suites:
                report.tally.merge(suite(ctx))
            report.tested.append(prv)
    if provider is not None and not report.tested:
        log.info("No provider with ID %d was found", provider)
    log.info("")
    summary = report.tally.summary()
    log.info(
        "Tested %d provider(s): %d step(s), %d failure(s)",
        len(report.tested),
        summary["steps"],
        summary["failures"],
    )
    return report


__all__ = [
    "HarnessReport",
    "PreflightError",
    "MAX_EXIT_STATUS",
    "check_prerequisites",
    "exit_status",
    "ping",
    "run_harness",
    "selected",
]
