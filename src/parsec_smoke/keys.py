"""Key lifecycle on the service: create, confirm listing, export, delete.

Every artifact a key produces in the workspace is named ``<key name>.<ext>``
so teardown can sweep them by prefix.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from .results import Tally
from .tools.parsec import ParsecTool
from .utils.logging import get_logger
from .workspace import Workspace

log = get_logger()


class KeyKind(str, Enum):
    RSA = "RSA"
    ECC = "ECC"

    @property
    def subcommand(self) -> str:
        return f"create-{self.value.lower()}-key"


_PUBLIC_TYPES = {
    KeyKind.RSA: rsa.RSAPublicKey,
    KeyKind.ECC: ec.EllipticCurvePublicKey,
}


@dataclass(frozen=True)
class KeyHandle:
    kind: KeyKind
    name: str

    def artifact(self, ext: str) -> str:
        return f"{self.name}.{ext}"

    @property
    def pem_file(self) -> str:
        return self.artifact("pem")


def key_name(base: str, run_id: Optional[str]) -> str:
    return f"{base}-{run_id}" if run_id else base


def create(tool: ParsecTool, ws: Workspace, handle: KeyHandle, extra_args: Sequence[str] = ()) -> Tally:
    tally = Tally()
    log.info("")
    log.info("- Creating an %s key and exporting its public part", handle.kind.value)
    tally.command(f"create {handle.kind.value} key {handle.name}", tool.create_key(handle.kind.subcommand, handle.name, extra_args))

    listing = tool.list_keys()
    if listing.stdout:
        log.info("%s", listing.text.rstrip("\n"))
    tally.record(f"{handle.name} is listed", listing.ok and handle.name in listing.text)

    tally.command(f"export public key {handle.name}", tool.export_public_key(handle.name, ws.path(handle.pem_file)))
    return tally


def exported_key(ws: Workspace, handle: KeyHandle, tally: Tally) -> Optional[bytes]:
    """Return the exported PEM if the round trip can go ahead.

    An empty or missing export means create/export already failed and was
    counted; the caller just skips. A non-empty file that is not a public
    key of the expected kind is a failure of its own.
    """
    if ws.size(handle.pem_file) == 0:
        log.info("No public key was exported for %s; skipping", handle.name)
        return None
    pem = ws.read_bytes(handle.pem_file)
    log.debug("%s", pem.decode(errors="replace").rstrip("\n"))
    try:
        pub = serialization.load_pem_public_key(pem)
    except ValueError as e:
        tally.record(f"exported key {handle.name} is a PEM public key", False, str(e))
        return None
    expected = _PUBLIC_TYPES[handle.kind]
    if not tally.record(
        f"exported key {handle.name} is an {handle.kind.value} public key",
        isinstance(pub, expected),
        type(pub).__name__,
    ):
        return None
    return pem


def delete(tool: ParsecTool, ws: Workspace, handle: KeyHandle) -> Tally:
    tally = Tally()
    log.info("")
    log.info("- Deleting the %s key", handle.kind.value)
    tally.command(f"delete {handle.kind.value} key {handle.name}", tool.delete_key(handle.name))
    ws.remove_prefix(f"{handle.name}.")
    return tally


__all__ = ["KeyKind", "KeyHandle", "key_name", "create", "exported_key", "delete"]
