#!/usr/bin/env python3
"""
cli.py - foxkeys - Firefox Accounts login and key recovery client
============================================================================
Copyright 2025 Nathanael Ritz

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

     http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.

============================================================================

This toolchain drives the FxA onepw login protocol: the password never
leaves the client, only a stretched and HKDF-derived proof (authPW) does.

Protocol Flow (maps to account_state transitions):
  Step 1: stretch password, derive authPW/unwrapBKey    → Unauthenticated
  Step 2: POST /account/login?keys=true                 → LoggedIn
  Step 3: Hawk-signed GET /account/keys, unwrap bundle  → KeysRecovered
  Step 4: Hawk-signed POST /certificate/sign (optional)

Security Gates:
  Gate 1: Bundle length check (96 bytes, before any key material is read)
  Gate 2: Bundle MAC verification (constant time, before unmasking)
  Gate 3: Fresh random nonce per signed request
"""

import argparse
import os
import sys
import json
import time
import hashlib
import requests

from foxkeys_work.lib import (
    account_state,       # Immutable login/key-fetch states
    dsa_public_key,      # DSA keypair for certificate signing
    hawk,                # Hawk request signing
    manifest_validate,   # Run manifest loading and checks
)
from foxkeys_work.lib.common import FoxkeysError, FormatError, hexd, hexe

# Global timer for performance metrics
SCRIPT_START_TIME = time.time()

def log(role, msg):
    """Structured logging with timing information."""
    elapsed = time.time() - SCRIPT_START_TIME
    print(f"[{role}] {elapsed:.2f}s - {msg}", flush=True)

def log_err(role, msg):
    """Error logging to stderr."""
    elapsed = time.time() - SCRIPT_START_TIME
    print(f"[{role}] {elapsed:.2f}s - {msg}", file=sys.stderr, flush=True)

class ServerError(FoxkeysError):
    """Error response returned by the FxA auth server."""

    def __init__(self, code, errno=None, error="", message="", info=""):
        super().__init__(f"{code} {error}: {message}".strip())
        self.code = code
        self.errno = errno
        self.error = error
        self.message = message
        self.info = info

# === HTTP helpers ===
def encode_json(obj) -> bytes:
    """Exact bytes sent on the wire; the Hawk payload hash covers these."""
    return json.dumps(obj, separators=(",", ":")).encode("utf-8")

def read_response(res):
    """Return the decoded JSON body, or raise ServerError for non-200 replies."""
    try:
        body = res.json()
    except ValueError:
        body = None
    if res.status_code != 200:
        if not isinstance(body, dict):
            raise ServerError(res.status_code, error="unexpected response")
        raise ServerError(
            body.get("code", res.status_code),
            errno=body.get("errno"),
            error=body.get("error", ""),
            message=body.get("message", ""),
            info=body.get("info", ""),
        )
    if not isinstance(body, dict):
        raise FormatError("server response is not a JSON object")
    return body

def fingerprint(key: bytes) -> str:
    return hashlib.sha256(key).hexdigest()[:16]

# ============================================================================
# PROTOCOL STEPS
# Each step performs one HTTP exchange and returns the next state
# ============================================================================

def login(cfg, email, password):
    """Step 1+2: derive authPW locally, then log in."""
    role = "AUTH"
    state = account_state.begin(email, password)
    log(role, f"Derived authPW for {email}")

    url = f"{cfg['server']['base_url']}/account/login?keys=true"
    res = requests.post(url, data=encode_json(account_state.login_payload(state)),
                        headers={"Content-Type": "application/json"},
                        timeout=cfg["http"]["timeout_sec"])
    logged_in = account_state.logged_in(state, read_response(res))
    log(role, f"Logged in as uid={logged_in.uid}")
    return logged_in

def fetch_keys(cfg, state, clock=hawk.current_timestamp, nonce_source=hawk.generate_nonce):
    """Step 3: Hawk-signed key fetch and bundle unwrap."""
    role = "KEYS"
    url = f"{cfg['server']['base_url']}/account/keys"
    credential = account_state.hawk_credential(account_state.key_fetch_credentials(state))
    request = hawk.HawkRequest.from_url("GET", url)
    authorization = hawk.authorize_request(credential, request, None, cfg["hawk"]["ext"],
                                           clock(), nonce_source())

    res = requests.get(url, headers={"Authorization": authorization},
                       timeout=cfg["http"]["timeout_sec"])
    recovered = account_state.keys_recovered(state, read_response(res))
    log(role, "Bundle MAC VERIFIED, kA/kB recovered")
    return recovered

def sign_certificate(cfg, state, key, clock=hawk.current_timestamp, nonce_source=hawk.generate_nonce):
    """Step 4: ask the server to certify a DSA public key."""
    role = "CERT"
    url = f"{cfg['server']['base_url']}/certificate/sign"
    content_type = "application/json"
    body = encode_json(dsa_public_key.sign_request_body(key, cfg["certificate"]["duration_ms"]))

    credential = account_state.hawk_credential(account_state.session_credentials(state))
    request = hawk.HawkRequest.from_url("POST", url, content_type)
    authorization = hawk.authorize_request(credential, request, body, cfg["hawk"]["ext"],
                                           clock(), nonce_source())

    res = requests.post(url, data=body,
                        headers={"Content-Type": content_type, "Authorization": authorization},
                        timeout=cfg["http"]["timeout_sec"])
    cert = read_response(res).get("cert")
    if not isinstance(cert, str) or not cert:
        raise FormatError("certificate response: missing cert")
    log(role, "Certificate signed")
    return cert

# ============================================================================
# COMMANDS
# ============================================================================

def _credentials(args, role):
    email = args.email or os.environ.get("FXA_EMAIL")
    # Password is only accepted out-of-band, never as a flag
    password = os.environ.get("FXA_PASSWORD")
    if not email or not password:
        log_err(role, "FATAL: set --email (or FXA_EMAIL) and FXA_PASSWORD")
        return None
    return email, password

def cmd_login(args):
    role = "CLI"
    creds = _credentials(args, role)
    if creds is None:
        return 2
    try:
        cfg = manifest_validate.load_manifest(args.manifest)
        recovered = fetch_keys(cfg, login(cfg, *creds))
    except ServerError as e:
        log_err(role, f"FATAL: server rejected request: {e} (errno={e.errno})")
        return 1
    except (FoxkeysError, requests.exceptions.RequestException) as e:
        log_err(role, f"FATAL: {e}")
        return 1

    show = hexe if args.show_keys else fingerprint
    print(json.dumps({"uid": recovered.uid, "kA": show(recovered.key_a), "kB": show(recovered.key_b)},
                     sort_keys=True), flush=True)
    return 0

def cmd_sign_certificate(args):
    role = "CLI"
    creds = _credentials(args, role)
    if creds is None:
        return 2
    try:
        cfg = manifest_validate.load_manifest(args.manifest)
        state = login(cfg, *creds)
        key = dsa_public_key.generate(cfg["certificate"]["dsa_key_size"])
        cert = sign_certificate(cfg, state, key)
    except ServerError as e:
        log_err(role, f"FATAL: server rejected request: {e} (errno={e.errno})")
        return 1
    except (FoxkeysError, requests.exceptions.RequestException) as e:
        log_err(role, f"FATAL: {e}")
        return 1

    print(json.dumps({"uid": state.uid, "cert": cert}, sort_keys=True), flush=True)
    return 0

def cmd_hawk_header(args):
    role = "HAWK"
    try:
        if args.key_hex:
            key = hexd(args.key_hex, what="key")
        else:
            key = args.key.encode("utf-8")
        body = None
        if args.body_file:
            with open(args.body_file, "rb") as f:
                body = f.read()
        credential = hawk.HawkCredential(id=args.id, key=key)
        request = hawk.HawkRequest.from_url(args.method, args.url, args.content_type)
        header = hawk.authorize_request(
            credential, request, body, args.ext,
            args.timestamp if args.timestamp is not None else hawk.current_timestamp(),
            args.nonce or hawk.generate_nonce(),
        )
    except (FoxkeysError, OSError) as e:
        log_err(role, f"FATAL: {e}")
        return 1
    print(header, flush=True)
    return 0

def build_parser():
    ap = argparse.ArgumentParser(
        prog="foxkeys",
        description="Firefox Accounts login, key recovery and Hawk signing."
    )

    sub = ap.add_subparsers(dest="cmd", required=True)

    p_login = sub.add_parser("login", help="Log in and recover kA/kB.")
    p_login.add_argument("--manifest", help="Path to manifest YAML file")
    p_login.add_argument("--email", help="Account email (default: $FXA_EMAIL)")
    p_login.add_argument("--show-keys", action="store_true",
                         help="Print kA/kB as hex instead of fingerprints")
    p_login.set_defaults(func=cmd_login)

    p_cert = sub.add_parser("sign-certificate",
                            help="Log in and have a fresh DSA key certified.")
    p_cert.add_argument("--manifest", help="Path to manifest YAML file")
    p_cert.add_argument("--email", help="Account email (default: $FXA_EMAIL)")
    p_cert.set_defaults(func=cmd_sign_certificate)

    p_hawk = sub.add_parser("hawk-header",
                            help="Compute a Hawk Authorization header offline.")
    p_hawk.add_argument("--id", required=True, help="Hawk credential id")
    key = p_hawk.add_mutually_exclusive_group(required=True)
    key.add_argument("--key-hex", help="Signing key as hex")
    key.add_argument("--key", help="Signing key as UTF-8 text")
    p_hawk.add_argument("--method", default="GET")
    p_hawk.add_argument("--url", required=True)
    p_hawk.add_argument("--content-type", default="")
    p_hawk.add_argument("--body-file", help="File holding the exact request body")
    p_hawk.add_argument("--ext", default="")
    p_hawk.add_argument("--timestamp", type=int, help="Unix seconds (default: now)")
    p_hawk.add_argument("--nonce", help="Nonce (default: fresh random)")
    p_hawk.set_defaults(func=cmd_hawk_header)
    return ap

def main(argv=None):
    """
    Main entry point for the foxkeys CLI.
    Supports three commands: login, sign-certificate, hawk-header
    """
    args = build_parser().parse_args(argv)
    sys.exit(args.func(args) or 0)

if __name__ == "__main__":
    main()
