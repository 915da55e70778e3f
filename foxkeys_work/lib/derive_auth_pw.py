#!/usr/bin/env python3
"""Derives authPW, the password proof sent to the FxA login endpoint."""
from .common import run_cli, require, require_len, hexd, hexe, AUTH_PW_LABEL, KEY_LEN
from .hkdf_sha256 import expand

def derive_auth_pw(stretched: bytes) -> bytes:
    require_len(stretched, KEY_LEN, "stretched password")
    return expand(stretched, AUTH_PW_LABEL, KEY_LEN)

def derive(d: dict) -> dict:
    require(d, ["stretched_hex"])
    return {"auth_pw_hex": hexe(derive_auth_pw(hexd(d["stretched_hex"], KEY_LEN, "stretched")))}

if __name__ == "__main__":
    run_cli(derive)
