"""Scratch directory for intermediate key material and ciphertexts.

The directory is removed on every way out of the process: normal context
exit, interpreter exit (atexit) and SIGTERM/SIGHUP, which are turned into
SystemExit so pending finally blocks run. SIGINT already raises
KeyboardInterrupt.
"""
from __future__ import annotations

import atexit
import os
import shutil
import signal
import tempfile
from contextlib import contextmanager
from typing import Dict, Iterator

from .utils.logging import get_logger

log = get_logger()

_EXIT_SIGNALS = tuple(getattr(signal, n) for n in ("SIGTERM", "SIGHUP") if hasattr(signal, n))


class Workspace:
    def __init__(self, root: str):
        self.root = root

    def path(self, name: str) -> str:
        return os.path.join(self.root, name)

    def write_text(self, name: str, text: str) -> str:
        p = self.path(name)
        with open(p, "wb") as f:
            f.write(text.encode())
        return p

    def read_bytes(self, name: str) -> bytes:
        with open(self.path(name), "rb") as f:
            return f.read()

    def size(self, name: str) -> int:
        p = self.path(name)
        return os.path.getsize(p) if os.path.isfile(p) else 0

    def remove_prefix(self, prefix: str) -> int:
        if not os.path.isdir(self.root):
            return 0
        removed = 0
        for entry in os.listdir(self.root):
            if entry.startswith(prefix):
                p = self.path(entry)
                if os.path.isfile(p):
                    os.remove(p)
                    removed += 1
        return removed

    @property
    def exists(self) -> bool:
        return os.path.isdir(self.root)

    def cleanup(self):
        if self.exists:
            shutil.rmtree(self.root, ignore_errors=True)
            log.debug("removed workspace %s", self.root)


def _raise_exit(signum, frame):
    raise SystemExit(128 + signum)


@contextmanager
def scratch_workspace(prefix: str = "parsec-smoke-") -> Iterator[Workspace]:
    ws = Workspace(tempfile.mkdtemp(prefix=prefix))
    atexit.register(ws.cleanup)
    previous: Dict[int, object] = {}
    for sig in _EXIT_SIGNALS:
        try:
            previous[sig] = signal.signal(sig, _raise_exit)
        except ValueError:
            # not the main thread; atexit and finally still apply
            break
    try:
        yield ws
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        ws.cleanup()
        atexit.unregister(ws.cleanup)


__all__ = ["Workspace", "scratch_workspace"]
