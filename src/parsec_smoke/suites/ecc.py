from __future__ import annotations

from ..keys import KeyKind
from ..results import Tally
from .base import SuiteContext
from .signing import sign_and_verify


def run_ecc_sign(ctx: SuiteContext) -> Tally:
    return sign_and_verify(ctx, ctx.handle(KeyKind.ECC))


__all__ = ["run_ecc_sign"]
