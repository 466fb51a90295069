"""RSA checks against the service.

  - rsa:      PKCS#1 v1.5 encryption by openssl, decryption by the service
  - rsa-oaep: same round trip with an OAEP (SHA-256) key
  - rsa-sign: PKCS#1 v1.5 SHA-256 signature by the service, verified by openssl
"""
from __future__ import annotations

from typing import Sequence

from .. import keys
from ..keys import KeyHandle, KeyKind
from ..results import Tally
from ..utils.ct import output_matches
from ..utils.logging import get_logger
from .base import SuiteContext, stamped
from .signing import sign_and_verify

log = get_logger()


def decrypt_roundtrip(ctx: SuiteContext, handle: KeyHandle, create_args: Sequence[str] = (), oaep: bool = False) -> Tally:
    ws = ctx.workspace
    message = stamped("Parsec decryption test")
    tally = Tally()
    tally.merge(keys.create(ctx.tool, ws, handle, create_args))
    try:
        if keys.exported_key(ws, handle, tally) is None:
            return tally

        log.info("")
        log.info('- Encrypting "%s" string using openssl and the exported public key', message)
        plain = ws.write_text(handle.artifact("test_str"), message)
        ct_bin = ws.path(handle.artifact("bin"))
        ct_b64 = ws.path(handle.artifact("enc"))
        if not tally.command("openssl encrypt", ctx.openssl.encrypt(ws.path(handle.pem_file), plain, ct_bin, oaep=oaep)).ok:
            return tally
        if not tally.command("openssl base64 encode", ctx.openssl.base64_encode(ct_bin, ct_b64)).ok:
            return tally
        ciphertext = ws.read_bytes(handle.artifact("enc")).decode().strip()
        log.debug("%s", ciphertext)

        log.info("")
        log.info("- Using Parsec to decrypt the result:")
        res = tally.command(f"decrypt with {handle.name}", ctx.tool.decrypt(ciphertext, handle.name))
        if not res.ok:
            return tally
        with open(ws.path(handle.artifact("enc_str")), "wb") as f:
            f.write(res.stdout)
        log.info("%s", res.text.rstrip("\r\n"))
        tally.record(
            "decrypted text matches the initial string",
            output_matches(res.stdout, message),
            "The result is different from the initial string",
        )
        return tally
    finally:
        tally.merge(keys.delete(ctx.tool, ws, handle))


def run_rsa_decrypt(ctx: SuiteContext) -> Tally:
    return decrypt_roundtrip(ctx, ctx.handle(KeyKind.RSA))


def run_rsa_oaep_decrypt(ctx: SuiteContext) -> Tally:
    handle = ctx.handle(KeyKind.RSA, f"{ctx.config.rsa_key}-oaep")
    return decrypt_roundtrip(ctx, handle, create_args=("--oaep",), oaep=True)


def run_rsa_sign(ctx: SuiteContext) -> Tally:
    handle = ctx.handle(KeyKind.RSA, f"{ctx.config.rsa_key}-sign")
    return sign_and_verify(ctx, handle, create_args=("--for-signing",))


__all__ = ["decrypt_roundtrip", "run_rsa_decrypt", "run_rsa_oaep_decrypt", "run_rsa_sign"]
