#!/usr/bin/env python3
"""Stretches an email/password pair with PBKDF2-HMAC-SHA256 (quickStretch)."""
from .common import (run_cli, require, hexe,
                     QUICK_STRETCH_PREFIX, KEY_LEN)
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives import hashes

ITERATIONS = 1000

def stretch(email: str, password: str) -> bytes:
    salt = (QUICK_STRETCH_PREFIX + email).encode("utf-8")
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_LEN, salt=salt, iterations=ITERATIONS)
    return kdf.derive(password.encode("utf-8"))

def derive(d: dict) -> dict:
    require(d, ["email", "password"])
    return {"stretched_hex": hexe(stretch(d["email"], d["password"]))}

if __name__ == "__main__":
    run_cli(derive)
