#!/usr/bin/env python3
"""
common.py — Shared helpers for foxkeys library CLIs.

All CLIs follow the same contract:
- Read a single JSON object from STDIN.
- Write a single JSON object to STDOUT.
- Fail with a non‑zero exit on any error, printing a short message to STDERR.

FxA alignment:
- Keys, tokens and bundles travel as lowercase hex (the FxA wire encoding).
- Hawk MACs and payload hashes are standard (padded) base64.
- Helpers here provide strict hex decoding, constant‑time equality and the
  error taxonomy shared by every module.
"""
from __future__ import annotations
import sys, json, base64, hmac, re

# ---------- Derivation labels ----------
LABEL_PREFIX = "identity.mozilla.com/picl/v1/"
QUICK_STRETCH_PREFIX = LABEL_PREFIX + "quickStretch:"
AUTH_PW_LABEL = LABEL_PREFIX + "authPW"
UNWRAP_BKEY_LABEL = LABEL_PREFIX + "unwrapBkey"
ACCOUNT_KEYS_LABEL = LABEL_PREFIX + "account/keys"

KEY_LEN = 32

# ---------- Errors ----------
class FoxkeysError(Exception):
    """Base class for every failure raised by foxkeys."""

class FormatError(FoxkeysError, ValueError):
    """Malformed hex, wrong-length input or malformed request field."""

class IntegrityError(FoxkeysError):
    """MAC verification failed; the material must not be used."""

class DerivationError(FoxkeysError):
    """The underlying KDF cannot produce the requested output."""

# ---------- Hex / base64 ----------
_HEX = re.compile(r"[0-9a-fA-F]*")

def hexd(s: str, length: int | None = None, what: str = "value") -> bytes:
    """Decode hex, optionally enforcing an exact decoded length."""
    if not isinstance(s, str):
        raise FormatError(f"{what}: expected hex string")
    # bytes.fromhex tolerates embedded whitespace; the wire format does not
    if not _HEX.fullmatch(s) or len(s) % 2:
        raise FormatError(f"{what}: invalid hex")
    b = bytes.fromhex(s)
    if length is not None and len(b) != length:
        raise FormatError(f"{what}: expected {length} bytes, got {len(b)}")
    return b

def hexe(b: bytes) -> str:
    return b.hex()

def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def require_len(b: bytes, length: int, what: str) -> bytes:
    if len(b) != length:
        raise FormatError(f"{what}: expected {length} bytes, got {len(b)}")
    return b

def xor_bytes(a: bytes, b: bytes) -> bytes:
    if len(a) != len(b):
        raise FormatError(f"xor: length mismatch ({len(a)} != {len(b)})")
    return bytes(x ^ y for x, y in zip(a, b))

def ct_eq(a: bytes, b: bytes) -> bool:
    # constant‑time compare for tags
    return hmac.compare_digest(a, b)

# ---------- JSON IO ----------
def read_json_stdin() -> dict:
    try:
        return json.load(sys.stdin)
    except Exception as e:
        print(f"error: invalid JSON on stdin: {e}", file=sys.stderr)
        sys.exit(2)

def write_json(obj: dict) -> None:
    json.dump(obj, sys.stdout, separators=(",",":"))
    sys.stdout.write("\n")

def require_fields(obj: dict, keys: list[str]) -> list[str]:
    missing = [k for k in keys if k not in obj]
    return missing

def require(obj: dict, keys: list[str]) -> None:
    missing = require_fields(obj, keys)
    if missing:
        raise FormatError(f"missing field(s): {', '.join(missing)}")

def run_cli(fn) -> None:
    """Standard __main__ body: JSON in, JSON out, exit 1 on any failure."""
    try:
        write_json(fn(read_json_stdin()))
    except (FoxkeysError, ValueError, TypeError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
