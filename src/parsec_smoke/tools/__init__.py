from .openssl import OpenSSL
from .parsec import ParsecTool, Provider, enumerate_providers, supports

__all__ = ["OpenSSL", "ParsecTool", "Provider", "enumerate_providers", "supports"]
