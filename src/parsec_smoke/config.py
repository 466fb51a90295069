"""Harness configuration loader.

Loads from environment first (a local .env is honoured), then an optional
config/parsec-smoke.yml. Environment values always win over the file.
"""
from __future__ import annotations

import os
import shlex
import shutil
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

_DEFAULT: Dict[str, Any] = {
    "service_endpoint": "unix:/run/parsec/parsec.sock",
    "rust_log": "info",
    "debug_rust_log": "trace",
    "suites": ["random", "rsa", "ecc"],
    "random_nbytes": 10,
    "rsa_key": "anta-key-rsa",
    "ecc_key": "anta-key-ecc",
    "unique_keys": True,
}

_DEF_PATH = os.path.join("config", "parsec-smoke.yml")

_ENV_MAP = {
    "service_endpoint": ("PARSEC_SERVICE_ENDPOINT", str),
    "random_nbytes": ("PARSEC_SMOKE_RANDOM_NBYTES", int),
    "rsa_key": ("PARSEC_SMOKE_RSA_KEY", str),
    "ecc_key": ("PARSEC_SMOKE_ECC_KEY", str),
}


def _as_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _as_list(val: Any) -> List[str]:
    if isinstance(val, (list, tuple)):
        return [str(v).strip() for v in val if str(v).strip()]
    return [p.strip() for p in str(val).split(",") if p.strip()]


def _resolve_command(value: Optional[str], default_name: str, search_path: Optional[str]) -> Optional[List[str]]:
    # An explicit value is word-split so wrappers like "sudo parsec-tool" keep working
    if value:
        return shlex.split(value)
    found = shutil.which(default_name, path=search_path)
    return [found] if found else None


@dataclass
class HarnessConfig:
    parsec_tool: Optional[List[str]] = None
    openssl: Optional[List[str]] = None
    service_endpoint: str = _DEFAULT["service_endpoint"]
    rust_log: Optional[str] = None
    suites: List[str] = field(default_factory=lambda: list(_DEFAULT["suites"]))
    random_nbytes: int = _DEFAULT["random_nbytes"]
    rsa_key: str = _DEFAULT["rsa_key"]
    ecc_key: str = _DEFAULT["ecc_key"]
    unique_keys: bool = _DEFAULT["unique_keys"]
    base_env: Dict[str, str] = field(default_factory=dict)

    def effective_rust_log(self, debug: bool) -> str:
        if self.rust_log:
            return self.rust_log
        return _DEFAULT["debug_rust_log"] if debug else _DEFAULT["rust_log"]

    def child_env(self, debug: bool = False) -> Dict[str, str]:
        env = dict(self.base_env)
        env["PARSEC_SERVICE_ENDPOINT"] = self.service_endpoint
        env["RUST_LOG"] = self.effective_rust_log(debug)
        return env

    def missing_tools(self) -> List[str]:
        missing = []
        if not self.parsec_tool:
            missing.append("parsec-tool")
        if not self.openssl:
            missing.append("openssl")
        return missing


def _read_file(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return data


def load_config(environ: Optional[Mapping[str, str]] = None) -> HarnessConfig:
    env = dict(os.environ if environ is None else environ)
    data: Dict[str, Any] = _read_file(env.get("PARSEC_SMOKE_CONFIG", _DEF_PATH))
    for k, (name, cast) in _ENV_MAP.items():
        # Empty counts as unset, like ${VAR:-default}
        if env.get(name):
            try:
                data[k] = cast(env[name])
            except ValueError as e:
                raise ValueError(f"invalid {name}={env[name]!r}") from e
    if env.get("PARSEC_SMOKE_SUITES"):
        data["suites"] = env["PARSEC_SMOKE_SUITES"]
    if "PARSEC_SMOKE_UNIQUE_KEYS" in env:
        data["unique_keys"] = env["PARSEC_SMOKE_UNIQUE_KEYS"]

    nbytes = int(data.get("random_nbytes", _DEFAULT["random_nbytes"]))
    if nbytes <= 0:
        raise ValueError(f"random_nbytes must be positive, got {nbytes}")

    return HarnessConfig(
        parsec_tool=_resolve_command(env.get("PARSEC_TOOL") or data.get("parsec_tool"), "parsec-tool", env.get("PATH")),
        openssl=_resolve_command(env.get("OPENSSL") or data.get("openssl"), "openssl", env.get("PATH")),
        service_endpoint=str(data.get("service_endpoint", _DEFAULT["service_endpoint"])),
        rust_log=env.get("RUST_LOG") or data.get("rust_log"),
        suites=_as_list(data.get("suites", _DEFAULT["suites"])),
        random_nbytes=nbytes,
        rsa_key=str(data.get("rsa_key", _DEFAULT["rsa_key"])),
        ecc_key=str(data.get("ecc_key", _DEFAULT["ecc_key"])),
        unique_keys=_as_bool(data.get("unique_keys", _DEFAULT["unique_keys"])),
        base_env=env,
    )


__all__ = ["HarnessConfig", "load_config"]
