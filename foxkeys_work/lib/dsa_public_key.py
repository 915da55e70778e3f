#!/usr/bin/env python3
"""Generates a DSA keypair and formats its public half for /certificate/sign."""
from __future__ import annotations
from cryptography.hazmat.primitives.asymmetric import dsa
from .common import FormatError

KEY_SIZES = (1024, 2048)

def generate(key_size: int = 1024) -> dsa.DSAPrivateKey:
    if key_size not in KEY_SIZES:
        raise FormatError(f"dsa: unsupported key size {key_size}")
    return dsa.generate_private_key(key_size=key_size)

def public_key_json(key: dsa.DSAPrivateKey | dsa.DSAPublicKey) -> dict:
    pub = key.public_key() if isinstance(key, dsa.DSAPrivateKey) else key
    numbers = pub.public_numbers()
    params = numbers.parameter_numbers
    return {
        "algorithm": "DS",
        "y": format(numbers.y, "x"),
        "p": format(params.p, "x"),
        "q": format(params.q, "x"),
        "g": format(params.g, "x"),
    }

def sign_request_body(key, duration_ms: int) -> dict:
    return {"publicKey": public_key_json(key), "duration": int(duration_ms)}
