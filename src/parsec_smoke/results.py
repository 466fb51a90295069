"""Step outcomes and the failure tally threaded through every suite.

Each suite returns its own Tally; the driver merges them. A failed step
counts exactly one towards the exit status, whatever the child's exit code.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .runner import CommandResult
from .utils.logging import get_logger

log = get_logger()


@dataclass
class StepResult:
    name: str
    ok: bool
    detail: str = ""


@dataclass
class Tally:
    steps: List[StepResult] = field(default_factory=list)

    def record(self, name: str, ok: bool, detail: str = "") -> bool:
        self.steps.append(StepResult(name, ok, detail))
        if not ok:
            log.error("Error: %s%s", name, f" ({detail})" if detail else "")
        return ok

    def command(self, name: str, result: CommandResult) -> CommandResult:
        detail = "" if result.ok else f"exit status {result.returncode}"
        self.record(name, result.ok, detail)
        return result

    def merge(self, other: "Tally") -> "Tally":
        self.steps.extend(other.steps)
        return self

    @property
    def failures(self) -> int:
        return sum(1 for s in self.steps if not s.ok)

    @property
    def failed_steps(self) -> List[StepResult]:
        return [s for s in self.steps if not s.ok]

    def summary(self) -> Dict[str, int]:
        return {"steps": len(self.steps), "failures": self.failures}


__all__ = ["StepResult", "Tally"]
