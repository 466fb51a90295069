"""parsec-tool client and provider enumeration.

list-providers output looks like:

    ID: 0x01 (Mbed Crypto provider)
    Description: User space software provider, based on Mbed Crypto
    ...
    ID: 0x03 (TPM provider)

Only the ``ID:`` lines matter. The core provider (id 0) offers no key
operations and is never tested.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from ..runner import CommandResult, CommandRunner

CORE_PROVIDER_ID = 0
RANDOM_OPCODE = "PsaGenerateRandom"

_ID_LINE = re.compile(r"^ID:\s*(?P<id>(?:0[xX])?[0-9a-fA-F]+)\s*(?P<rest>.*)$")
_WORD = re.compile(r"[A-Za-z][A-Za-z0-9_]*")


@dataclass(frozen=True)
class Provider:
    id: int
    name: str


def _parse_provider_line(line: str) -> Optional[Provider]:
    m = _ID_LINE.match(line.strip())
    if not m:
        return None
    pid = int(m.group("id"), 16)
    rest = m.group("rest")
    start, end = rest.find("("), rest.rfind(")")
    name = rest[start + 1:end] if 0 <= start < end else rest.strip()
    return Provider(pid, name)


def parse_providers(text: str) -> List[Provider]:
    out = []
    for line in text.splitlines():
        p = _parse_provider_line(line)
        if p is not None and p.id != CORE_PROVIDER_ID:
            out.append(p)
    return out


def parse_opcodes(text: str) -> Set[str]:
    # Layout differs between tool versions (bullets, indentation); any word may be an opcode
    return set(_WORD.findall(text))


class ParsecTool:
    def __init__(self, command: Sequence[str], runner: CommandRunner, provider: Optional[int] = None):
        self.command = list(command)
        self.runner = runner
        self.provider = provider

    def for_provider(self, provider_id: int) -> "ParsecTool":
        return ParsecTool(self.command, self.runner, provider_id)

    def _argv(self, *args) -> List[str]:
        argv = list(self.command)
        if self.provider is not None:
            argv += ["-p", str(self.provider)]
        argv += [str(a) for a in args]
        return argv

    def ping(self) -> CommandResult:
        return self.runner.run(self._argv("ping"))

    def list_providers(self) -> CommandResult:
        return self.runner.run(self._argv("list-providers"), capture=True, quiet_stderr=True)

    def list_opcodes(self) -> CommandResult:
        return self.runner.run(self._argv("list-opcodes"), capture=True, quiet_stderr=True)

    def list_keys(self) -> CommandResult:
        return self.runner.run(self._argv("list-keys"), capture=True)

    def create_key(self, subcommand: str, name: str, extra_args: Sequence[str] = ()) -> CommandResult:
        return self.runner.run(self._argv(subcommand, "--key-name", name, *extra_args))

    def export_public_key(self, name: str, stdout_path: str) -> CommandResult:
        return self.runner.run(self._argv("export-public-key", "--key-name", name), stdout_path=stdout_path)

    def generate_random(self, nbytes: int) -> CommandResult:
        return self.runner.run(self._argv("generate-random", "--nbytes", nbytes))

    def decrypt(self, ciphertext_b64: str, name: str) -> CommandResult:
        return self.runner.run(self._argv("decrypt", ciphertext_b64, "--key-name", name), capture=True)

    def sign(self, message: str, name: str) -> CommandResult:
        return self.runner.run(self._argv("sign", message, "--key-name", name), capture=True)

    def delete_key(self, name: str) -> CommandResult:
        return self.runner.run(self._argv("delete-key", "--key-name", name))


def enumerate_providers(tool: ParsecTool) -> Tuple[CommandResult, List[Provider]]:
    res = tool.list_providers()
    return res, parse_providers(res.text)


def supports(tool: ParsecTool, opcode: str) -> Tuple[CommandResult, bool]:
    res = tool.list_opcodes()
    return res, res.ok and opcode in parse_opcodes(res.text)


__all__ = [
    "CORE_PROVIDER_ID",
    "RANDOM_OPCODE",
    "Provider",
    "ParsecTool",
    "parse_providers",
    "parse_opcodes",
    "enumerate_providers",
    "supports",
]
