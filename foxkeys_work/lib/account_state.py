#!/usr/bin/env python3
"""
account_state.py — Login / key-fetch sequencing as immutable states.

    Unauthenticated ──logged_in()──▶ LoggedIn ──keys_recovered()──▶ KeysRecovered

Each transition is a pure function from one state (plus the server's
decoded JSON response) to the next. Network calls stay with the caller.
"""
from __future__ import annotations
from dataclasses import dataclass
from .common import hexd, hexe, FormatError
from .quick_stretch import stretch
from .derive_auth_pw import derive_auth_pw
from .derive_unwrap_bkey import derive_unwrap_bkey
from .request_credentials import (RequestCredentials, derive_request_credentials,
                                  SESSION_TOKEN, KEY_FETCH_TOKEN, TOKEN_LEN)
from .account_keys import derive_account_keys
from .unwrap_bundle import unwrap
from .hawk import HawkCredential

@dataclass(frozen=True)
class Unauthenticated:
    email: str
    auth_pw: bytes
    unwrap_bkey: bytes

    def __repr__(self) -> str:
        return f"Unauthenticated(email={self.email!r})"

@dataclass(frozen=True)
class LoggedIn:
    email: str
    uid: str
    session_token: bytes
    key_fetch_token: bytes
    unwrap_bkey: bytes

    def __repr__(self) -> str:
        return f"LoggedIn(email={self.email!r}, uid={self.uid!r})"

@dataclass(frozen=True)
class KeysRecovered:
    email: str
    uid: str
    session_token: bytes
    key_a: bytes
    key_b: bytes

    def __repr__(self) -> str:
        return f"KeysRecovered(email={self.email!r}, uid={self.uid!r})"

def begin(email: str, password: str) -> Unauthenticated:
    stretched = stretch(email, password)
    return Unauthenticated(
        email=email,
        auth_pw=derive_auth_pw(stretched),
        unwrap_bkey=derive_unwrap_bkey(stretched),
    )

def login_payload(state: Unauthenticated) -> dict:
    return {"email": state.email, "authPW": hexe(state.auth_pw), "reason": "login"}

def _field(response: dict, name: str) -> str:
    value = response.get(name)
    if not isinstance(value, str) or not value:
        raise FormatError(f"login response: missing {name}")
    return value

def logged_in(state: Unauthenticated, response: dict) -> LoggedIn:
    return LoggedIn(
        email=state.email,
        uid=_field(response, "uid"),
        session_token=hexd(_field(response, SESSION_TOKEN), TOKEN_LEN, SESSION_TOKEN),
        key_fetch_token=hexd(_field(response, KEY_FETCH_TOKEN), TOKEN_LEN, KEY_FETCH_TOKEN),
        unwrap_bkey=state.unwrap_bkey,
    )

def key_fetch_credentials(state: LoggedIn) -> RequestCredentials:
    return derive_request_credentials(state.key_fetch_token, KEY_FETCH_TOKEN)

def session_credentials(state: LoggedIn | KeysRecovered) -> RequestCredentials:
    return derive_request_credentials(state.session_token, SESSION_TOKEN)

def hawk_credential(rc: RequestCredentials) -> HawkCredential:
    return HawkCredential(id=rc.token_id_hex, key=rc.request_hmac_key)

def keys_recovered(state: LoggedIn, response: dict) -> KeysRecovered:
    bundle_hex = response.get("bundle")
    if not isinstance(bundle_hex, str):
        raise FormatError("keys response: missing bundle")
    account_keys = derive_account_keys(key_fetch_credentials(state).request_key)
    key_a, key_b = unwrap(bundle_hex, account_keys, state.unwrap_bkey)
    return KeysRecovered(
        email=state.email,
        uid=state.uid,
        session_token=state.session_token,
        key_a=key_a,
        key_b=key_b,
    )
