from __future__ import annotations

from typing import Sequence

from .. import keys
from ..keys import KeyHandle
from ..results import Tally
from ..utils.logging import get_logger
from .base import SuiteContext, stamped

log = get_logger()


def sign_and_verify(ctx: SuiteContext, handle: KeyHandle, create_args: Sequence[str] = ()) -> Tally:
    """Sign with the service, verify with openssl and the exported public key.

    The verdict is openssl's exit status alone. The key is deleted whatever
    happened before.
    """
    ws = ctx.workspace
    message = stamped("Parsec signature test")
    tally = Tally()
    tally.merge(keys.create(ctx.tool, ws, handle, create_args))
    try:
        if keys.exported_key(ws, handle, tally) is None:
            return tally

        log.info("")
        log.info('- Signing "%s" string using the created %s key', message, handle.kind.value)
        signed = tally.command(f"sign with {handle.name}", ctx.tool.sign(message, handle.name))
        if not signed.ok:
            return tally
        sig_b64 = "".join(signed.text.split())
        ws.write_text(handle.artifact("sign"), sig_b64)
        log.debug("%s", sig_b64)

        log.info("")
        log.info("- Using openssl and the exported public %s key to verify the signature", handle.kind.value)
        # parsec-tool prints base64; openssl wants the raw DER signature
        sig_bin = ws.path(handle.artifact("bin"))
        if not tally.command("openssl base64 decode", ctx.openssl.base64_decode(ws.path(handle.artifact("sign")), sig_bin)).ok:
            return tally
        data = ws.write_text(handle.artifact("test_str"), message)
        tally.command(
            f"openssl verify {handle.kind.value} signature",
            ctx.openssl.verify(ws.path(handle.pem_file), sig_bin, data, digest="sha256"),
        )
        return tally
    finally:
        tally.merge(keys.delete(ctx.tool, ws, handle))


__all__ = ["sign_and_verify"]
