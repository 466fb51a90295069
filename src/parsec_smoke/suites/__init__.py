"""Per-provider checks.

Every suite is a callable ``(SuiteContext) -> Tally``. The default order
matches what operators expect to read in the log: random numbers first,
then the RSA and ECC round trips.
"""
from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Tuple

from ..results import Tally
from .base import SuiteContext, stamped
from .ecc import run_ecc_sign
from .rng import run_random
from .rsa import run_rsa_decrypt, run_rsa_oaep_decrypt, run_rsa_sign

Suite = Callable[[SuiteContext], Tally]

SUITES: Dict[str, Suite] = {
    "random": run_random,
    "rsa": run_rsa_decrypt,
    "ecc": run_ecc_sign,
    "rsa-oaep": run_rsa_oaep_decrypt,
    "rsa-sign": run_rsa_sign,
}

DEFAULT_SUITES = ("random", "rsa", "ecc")


def resolve_suites(names: Iterable[str]) -> List[Tuple[str, Suite]]:
    out = []
    for name in names:
        key = name.strip().lower()
        if key not in SUITES:
            raise ValueError(f"unknown suite {name!r}; available: {', '.join(SUITES)}")
        out.append((key, SUITES[key]))
    return out


__all__ = ["SUITES", "DEFAULT_SUITES", "Suite", "SuiteContext", "resolve_suites", "stamped"]
