from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from ..config import HarnessConfig
from ..keys import KeyHandle, KeyKind, key_name
from ..tools.openssl import OpenSSL
from ..tools.parsec import ParsecTool
from ..workspace import Workspace


@dataclass
class SuiteContext:
    """Everything a suite needs for one provider; ``tool`` is already bound to it."""

    tool: ParsecTool
    openssl: OpenSSL
    workspace: Workspace
    config: HarnessConfig
    run_id: Optional[str] = None

    def handle(self, kind: KeyKind, base: Optional[str] = None) -> KeyHandle:
        if base is None:
            base = self.config.rsa_key if kind is KeyKind.RSA else self.config.ecc_key
        return KeyHandle(kind, key_name(base, self.run_id))


def stamped(label: str) -> str:
    """Test string prefixed with the current date, as `date` prints it."""
    return f"{time.strftime('%a %b %d %H:%M:%S %Z %Y')} {label}"


__all__ = ["SuiteContext", "stamped"]
