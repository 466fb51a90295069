import hmac


def ct_eq(a: bytes, b: bytes) -> bool:
    """Constant-time equality for two byte strings (length must match)."""
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a, b)


def output_matches(output: bytes, expected: str) -> bool:
    """Compare captured command output with the text that was fed in.

    A trailing line break printed by the tool is not part of the payload.
    """
    return ct_eq(output.rstrip(b"\r\n"), expected.encode())
