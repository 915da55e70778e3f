#!/usr/bin/env python3
"""
unwrap_bundle.py — Recovers kA and kB from the /account/keys bundle.

Bundle layout (96 bytes, hex on the wire):

    ct  = bundle[0:64]   kA ‖ wrapKB, XOR-masked with xorKey
    tag = bundle[64:96]  HMAC-SHA256(hmacKey, ct)

The tag is verified in constant time before any byte of ct is unmasked.
"""
from __future__ import annotations
import hmac
import hashlib
from .common import (run_cli, require, require_len, hexd, hexe, xor_bytes, ct_eq,
                     IntegrityError, KEY_LEN)
from .account_keys import AccountKeys, derive_account_keys

BUNDLE_LEN = 96
CT_LEN = 64

def unwrap(bundle_hex: str, account_keys: AccountKeys, unwrap_bkey: bytes) -> tuple[bytes, bytes]:
    bundle = hexd(bundle_hex, BUNDLE_LEN, "bundle")
    require_len(unwrap_bkey, KEY_LEN, "unwrapBKey")

    ct, tag = bundle[:CT_LEN], bundle[CT_LEN:]
    expected = hmac.new(account_keys.hmac_key, ct, hashlib.sha256).digest()
    if not ct_eq(tag, expected):
        raise IntegrityError("bundle MAC verification failed")

    t1 = xor_bytes(ct, account_keys.xor_key)
    key_a = t1[0:32]
    wrap_kb = t1[32:64]
    key_b = xor_bytes(wrap_kb, unwrap_bkey)
    return key_a, key_b

def open_bundle(d: dict) -> dict:
    require(d, ["bundle_hex", "request_key_hex", "unwrap_bkey_hex"])
    ak = derive_account_keys(hexd(d["request_key_hex"], KEY_LEN, "requestKey"))
    key_a, key_b = unwrap(d["bundle_hex"], ak, hexd(d["unwrap_bkey_hex"], KEY_LEN, "unwrapBKey"))
    return {"key_a_hex": hexe(key_a), "key_b_hex": hexe(key_b)}

if __name__ == "__main__":
    run_cli(open_bundle)
