#!/usr/bin/env python3
"""Derives unwrapBKey, the client-only key that unwraps kB. Never transmitted."""
from .common import run_cli, require, require_len, hexd, hexe, UNWRAP_BKEY_LABEL, KEY_LEN
from .hkdf_sha256 import expand

def derive_unwrap_bkey(stretched: bytes) -> bytes:
    require_len(stretched, KEY_LEN, "stretched password")
    return expand(stretched, UNWRAP_BKEY_LABEL, KEY_LEN)

def derive(d: dict) -> dict:
    require(d, ["stretched_hex"])
    return {"unwrap_bkey_hex": hexe(derive_unwrap_bkey(hexd(d["stretched_hex"], KEY_LEN, "stretched")))}

if __name__ == "__main__":
    run_cli(derive)
