#!/usr/bin/env python3
"""HKDF-SHA256 expansion with an empty salt, the building block of every FxA key."""
from .common import run_cli, require, hexd, hexe, DerivationError
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes

MAX_LENGTH = 255 * 32

def expand(secret: bytes, label: str, length: int) -> bytes:
    """Derive exactly ``length`` bytes from ``secret`` using ``label`` as HKDF info.

    A missing salt is a string of zero bytes in HKDF, which keys HMAC
    identically to the empty salt FxA specifies.
    """
    if not 0 < length <= MAX_LENGTH:
        raise DerivationError(f"hkdf: cannot derive {length} bytes (max {MAX_LENGTH})")
    hk = HKDF(algorithm=hashes.SHA256(), length=length, salt=None, info=label.encode("utf-8"))
    okm = hk.derive(secret)
    if len(okm) != length:
        raise DerivationError(f"hkdf: short output ({len(okm)} < {length})")
    return okm

def derive(d: dict) -> dict:
    require(d, ["secret_hex", "label"])
    okm = expand(hexd(d["secret_hex"], what="secret"), d["label"], int(d.get("length", 32)))
    return {"okm_hex": hexe(okm)}

if __name__ == "__main__":
    run_cli(derive)
