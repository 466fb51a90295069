import base64
import os
from typing import Dict, List, Optional, Set

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from parsec_smoke.config import HarnessConfig
from parsec_smoke.runner import CommandResult

PARSEC = "parsec-tool"
OPENSSL = "openssl"

ALL_OPCODES = ["PsaGenerateKey", "PsaDestroyKey", "PsaAsymmetricDecrypt", "PsaSignHash", "PsaGenerateRandom"]


def _pub_pem(key) -> bytes:
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture(scope="session")
def rsa_pub_pem() -> bytes:
    return _pub_pem(rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture(scope="session")
def ec_pub_pem() -> bytes:
    return _pub_pem(ec.generate_private_key(ec.SECP256R1()))


def _opt(argv: List[str], flag: str) -> Optional[str]:
    return argv[argv.index(flag) + 1] if flag in argv else None


class FakeService:
    """In-process stand-in for both parsec-tool and openssl.

    "Ciphertext" is the plaintext with a marker prefix and a "signature" is
    the message with another prefix, so round trips hold without real keys.
    """

    def __init__(self, rsa_pem: bytes, ec_pem: bytes):
        self.pems = {"RSA": rsa_pem, "ECC": ec_pem}
        self.providers = {0: "Core provider", 1: "Mbed Crypto provider", 3: "TPM provider"}
        self.opcodes: Dict[int, List[str]] = {1: list(ALL_OPCODES), 3: list(ALL_OPCODES)}
        self.keys: Dict[str, str] = {}
        self.calls: List[List[str]] = []
        # subcommands that exit non-zero
        self.failing: Set[str] = set()
        self.ping_ok = True
        self.hide_from_listing = False
        self.export_garbage = False
        self.decrypt_suffix = b""
        self.tamper_signature = False

    # runner interface
    def run(self, argv, *, capture=False, stdout_path=None, quiet_stderr=False):
        argv = [str(a) for a in argv]
        self.calls.append(argv)
        if argv[0] == PARSEC:
            rc, out = self._parsec(argv[1:])
        else:
            rc, out = self._openssl(argv[1:])
        if stdout_path is not None:
            with open(stdout_path, "wb") as f:
                f.write(out)
            return CommandResult(argv, rc)
        return CommandResult(argv, rc, out if capture else b"")

    def subcommands(self) -> List[str]:
        out = []
        for argv in self.calls:
            if argv[0] != PARSEC:
                continue
            rest = argv[1:]
            if rest[:1] == ["-p"]:
                rest = rest[2:]
            out.append(rest[0])
        return out

    def _parsec(self, args: List[str]):
        provider = None
        if args[:1] == ["-p"]:
            provider = int(args[1])
            args = args[2:]
        cmd = args[0]
        if cmd in self.failing:
            return 1, b""
        name = _opt(args, "--key-name")
        if cmd == "ping":
            return (0 if self.ping_ok else 1), b""
        if cmd == "list-providers":
            lines = []
            for pid, pname in self.providers.items():
                lines.append(f"ID: 0x{pid:02x} ({pname})")
                lines.append(f"Description: {pname} for tests")
            return 0, ("\n".join(lines) + "\n").encode()
        if cmd == "list-opcodes":
            return 0, "".join(f"  {op}\n" for op in self.opcodes.get(provider, [])).encode()
        if cmd in ("create-rsa-key", "create-ecc-key"):
            self.keys[name] = "RSA" if cmd == "create-rsa-key" else "ECC"
            return 0, b""
        if cmd == "list-keys":
            if self.hide_from_listing:
                return 0, b""
            return 0, "".join(f"* {k} ({v})\n" for k, v in self.keys.items()).encode()
        if cmd == "export-public-key":
            if name not in self.keys:
                return 1, b""
            if self.export_garbage:
                return 0, b"not a key\n"
            return 0, self.pems[self.keys[name]]
        if cmd == "generate-random":
            n = int(_opt(args, "--nbytes"))
            return 0, (str(list(range(n))) + "\n").encode()
        if cmd == "decrypt":
            ct = base64.b64decode(args[1])
            assert ct.startswith(b"CT:")
            return 0, ct[3:] + self.decrypt_suffix + b"\n"
        if cmd == "sign":
            sig = b"SIG:" + args[1].encode()
            if self.tamper_signature:
                sig += b"!"
            return 0, base64.b64encode(sig) + b"\n"
        if cmd == "delete-key":
            return (0, b"") if self.keys.pop(name, None) else (1, b"")
        raise AssertionError(f"unexpected parsec-tool call {args}")

    def _openssl(self, args: List[str]):
        cmd = args[0]
        if cmd in self.failing:
            return 1, b""
        src, dst = _opt(args, "-in"), _opt(args, "-out")
        if cmd == "pkeyutl":
            with open(src, "rb") as f, open(dst, "wb") as g:
                g.write(b"CT:" + f.read())
            return 0, b""
        if cmd == "base64":
            with open(src, "rb") as f:
                data = f.read()
            out = base64.b64decode(data) if "-d" in args else base64.b64encode(data)
            with open(dst, "wb") as g:
                g.write(out)
            return 0, b""
        if cmd == "dgst":
            with open(_opt(args, "-signature"), "rb") as f:
                sig = f.read()
            with open(args[-1], "rb") as f:
                data = f.read()
            return (0 if sig == b"SIG:" + data else 1), b""
        raise AssertionError(f"unexpected openssl call {args}")


@pytest.fixture
def service(rsa_pub_pem, ec_pub_pem) -> FakeService:
    return FakeService(rsa_pub_pem, ec_pub_pem)


@pytest.fixture
def config() -> HarnessConfig:
    return HarnessConfig(parsec_tool=[PARSEC], openssl=[OPENSSL], unique_keys=False)


@pytest.fixture
def fake_tool_script() -> str:
    return os.path.join(os.path.dirname(__file__), "fake_parsec_tool.py")
