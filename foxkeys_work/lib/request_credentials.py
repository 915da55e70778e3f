#!/usr/bin/env python3
"""
request_credentials.py — Per-token request credentials (tokenId, requestHMACKey, requestKey).

A server-issued token is expanded with HKDF into 96 bytes using the label
``identity.mozilla.com/picl/v1/<token_name>`` and split at fixed offsets:

    [0:32)   tokenId         hex-encoded, becomes the Hawk id
    [32:64)  requestHMACKey  the Hawk signing key
    [64:96)  requestKey      input to account key derivation

CALLER OBLIGATION: ``token_name`` must be exactly the name the server used
when it issued the token ("sessionToken", "keyFetchToken", ...). A wrong name
does NOT fail here; it produces a different set of well-formed keys that the
server will reject as an invalid signature (or, for keyFetchToken, that will
fail bundle MAC verification). Only names that would reuse another
derivation's label are refused.
"""
from __future__ import annotations
from dataclasses import dataclass
from .common import (run_cli, require, hexd, hexe, FormatError,
                     LABEL_PREFIX, AUTH_PW_LABEL, UNWRAP_BKEY_LABEL, ACCOUNT_KEYS_LABEL, KEY_LEN)
from .hkdf_sha256 import expand

SESSION_TOKEN = "sessionToken"
KEY_FETCH_TOKEN = "keyFetchToken"

TOKEN_LEN = 32

_RESERVED_LABELS = {LABEL_PREFIX, AUTH_PW_LABEL, UNWRAP_BKEY_LABEL, ACCOUNT_KEYS_LABEL}

@dataclass(frozen=True)
class RequestCredentials:
    token_id: bytes
    request_hmac_key: bytes
    request_key: bytes

    @property
    def token_id_hex(self) -> str:
        return self.token_id.hex()

    def __repr__(self) -> str:
        return f"RequestCredentials(token_id={self.token_id_hex})"

def token_label(token_name: str) -> str:
    label = LABEL_PREFIX + token_name
    if not token_name or label in _RESERVED_LABELS or token_name.startswith("quickStretch"):
        raise FormatError(f"token name {token_name!r} collides with a reserved derivation label")
    return label

def derive_request_credentials(token: bytes, token_name: str) -> RequestCredentials:
    if len(token) != TOKEN_LEN:
        raise FormatError(f"{token_name}: expected {TOKEN_LEN} bytes, got {len(token)}")
    secret = expand(token, token_label(token_name), 3 * KEY_LEN)
    # bytes slices are copies, so each key owns its buffer
    return RequestCredentials(
        token_id=secret[0:32],
        request_hmac_key=secret[32:64],
        request_key=secret[64:96],
    )

def derive(d: dict) -> dict:
    require(d, ["token_hex", "token_name"])
    rc = derive_request_credentials(hexd(d["token_hex"], what=d["token_name"]), d["token_name"])
    return {
        "token_id_hex": hexe(rc.token_id),
        "request_hmac_key_hex": hexe(rc.request_hmac_key),
        "request_key_hex": hexe(rc.request_key),
    }

if __name__ == "__main__":
    run_cli(derive)
