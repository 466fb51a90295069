from __future__ import annotations

from typing import List, Sequence

from ..runner import CommandResult, CommandRunner


class OpenSSL:
    """The openssl side of each round trip: encrypt, base64 and verify."""

    def __init__(self, command: Sequence[str], runner: CommandRunner):
        self.command = list(command)
        self.runner = runner

    def _argv(self, *args) -> List[str]:
        return list(self.command) + [str(a) for a in args]

    def encrypt(self, pubkey_pem: str, infile: str, outfile: str, oaep: bool = False) -> CommandResult:
        args = ["pkeyutl", "-encrypt", "-pubin", "-inkey", pubkey_pem, "-in", infile, "-out", outfile]
        if oaep:
            args += ["-pkeyopt", "rsa_padding_mode:oaep", "-pkeyopt", "rsa_oaep_md:sha256", "-pkeyopt", "rsa_mgf1_md:sha256"]
        return self.runner.run(self._argv(*args))

    def base64_encode(self, infile: str, outfile: str) -> CommandResult:
        return self.runner.run(self._argv("base64", "-A", "-in", infile, "-out", outfile))

    def base64_decode(self, infile: str, outfile: str) -> CommandResult:
        return self.runner.run(self._argv("base64", "-d", "-a", "-A", "-in", infile, "-out", outfile))

    def verify(self, pubkey_pem: str, signature: str, datafile: str, digest: str = "sha256") -> CommandResult:
        return self.runner.run(
            self._argv("dgst", f"-{digest}", "-verify", pubkey_pem, "-signature", signature, datafile)
        )


__all__ = ["OpenSSL"]
