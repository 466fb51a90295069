from __future__ import annotations

from ..results import Tally
from ..tools.parsec import RANDOM_OPCODE, supports
from ..utils.logging import get_logger
from .base import SuiteContext

log = get_logger()


def run_random(ctx: SuiteContext) -> Tally:
    tally = Tally()
    log.info("")
    log.info("- Test random number generation")
    listing, available = supports(ctx.tool, RANDOM_OPCODE)
    if not tally.command("list opcodes", listing).ok:
        return tally
    if not available:
        log.info("This provider doesn't support random number generation")
        return tally
    tally.command("generate random", ctx.tool.generate_random(ctx.config.random_nbytes))
    return tally


__all__ = ["run_random"]
