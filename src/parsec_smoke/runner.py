"""Blocking subprocess runner.

Child output is streamed inline with the narrative log unless the caller asks
for it to be captured or redirected. The runner never raises on a failing
child; callers decide what a non-zero exit status means.
"""
from __future__ import annotations

import shlex
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .utils.logging import get_logger

log = get_logger()

# Exit status a shell reports for a command it cannot execute
EXEC_FAILED = 127


@dataclass
class CommandResult:
    argv: List[str]
    returncode: int
    stdout: bytes = field(default=b"", repr=False)

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")


class CommandRunner:
    def __init__(self, env: Optional[Dict[str, str]] = None, trace: bool = False):
        self.env = env
        self.trace = trace

    def run(
        self,
        argv: Sequence[str],
        *,
        capture: bool = False,
        stdout_path: Optional[str] = None,
        quiet_stderr: bool = False,
    ) -> CommandResult:
        argv = [str(a) for a in argv]
        if self.trace:
            log.debug("+ %s", shlex.join(argv))
        # Keep our own buffered output ahead of the child's
        sys.stdout.flush()
        stderr = subprocess.DEVNULL if quiet_stderr else None
        try:
            if stdout_path is not None:
                with open(stdout_path, "wb") as out:
                    proc = subprocess.run(argv, stdout=out, stderr=stderr, env=self.env)
                return CommandResult(argv, proc.returncode)
            if capture:
                proc = subprocess.run(argv, stdout=subprocess.PIPE, stderr=stderr, env=self.env)
                return CommandResult(argv, proc.returncode, proc.stdout or b"")
            proc = subprocess.run(argv, stderr=stderr, env=self.env)
            return CommandResult(argv, proc.returncode)
        except OSError as e:
            log.error("cannot execute %s: %s", argv[0], e)
            return CommandResult(argv, EXEC_FAILED)


__all__ = ["CommandResult", "CommandRunner", "EXEC_FAILED"]
