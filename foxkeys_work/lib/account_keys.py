#!/usr/bin/env python3
"""Derives the bundle hmacKey and xorKey from a keyFetchToken requestKey."""
from __future__ import annotations
from dataclasses import dataclass
from .common import run_cli, require, require_len, hexd, hexe, ACCOUNT_KEYS_LABEL, KEY_LEN
from .hkdf_sha256 import expand

@dataclass(frozen=True)
class AccountKeys:
    hmac_key: bytes
    xor_key: bytes

    def __repr__(self) -> str:
        return "AccountKeys(<redacted>)"

def derive_account_keys(request_key: bytes) -> AccountKeys:
    require_len(request_key, KEY_LEN, "requestKey")
    secret = expand(request_key, ACCOUNT_KEYS_LABEL, 3 * KEY_LEN)
    return AccountKeys(hmac_key=secret[0:32], xor_key=secret[32:96])

def derive(d: dict) -> dict:
    require(d, ["request_key_hex"])
    ak = derive_account_keys(hexd(d["request_key_hex"], KEY_LEN, "requestKey"))
    return {"hmac_key_hex": hexe(ak.hmac_key), "xor_key_hex": hexe(ak.xor_key)}

if __name__ == "__main__":
    run_cli(derive)
