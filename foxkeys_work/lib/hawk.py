#!/usr/bin/env python3
"""
hawk.py — Hawk request signing (header scheme, version 1).

Canonical string, one value per line, every line newline-terminated:

    hawk.1.header
    <timestamp>        unix seconds, decimal
    <nonce>
    <METHOD>
    <request target>   path plus ?query, no fragment
    <host>
    <port>             decimal
    <payload hash>     empty when the request carries no body
    <ext>              may be empty

mac = base64(HMAC-SHA256(key, canonical string)).

Every function here is a pure transformation of its arguments. Timestamp and
nonce are always supplied by the caller; ``current_timestamp`` and
``generate_nonce`` are the production sources for them.
"""
from __future__ import annotations
import hmac
import hashlib
import secrets
import time
from dataclasses import dataclass
from urllib.parse import quote, urlsplit
from .common import run_cli, require, hexd, b64e, FormatError

HEADER_VERSION = "hawk.1.header"
PAYLOAD_VERSION = "hawk.1.payload"

_PATH_SAFE = "/%!$&'()*+,;=:@~"

@dataclass(frozen=True)
class HawkCredential:
    id: str
    key: bytes

    def __repr__(self) -> str:
        return f"HawkCredential(id={self.id!r})"

@dataclass(frozen=True)
class HawkRequest:
    """What the signer needs to know about an outbound request."""
    method: str
    scheme: str
    authority: str
    target: str
    content_type: str = ""

    @classmethod
    def from_url(cls, method: str, url: str, content_type: str = "") -> "HawkRequest":
        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise FormatError(f"malformed URL {url!r}: {e}") from e
        if not parts.scheme or not parts.netloc:
            raise FormatError(f"not an absolute URL: {url!r}")
        # escape the path the way it goes out on the wire
        target = quote(parts.path, safe=_PATH_SAFE) or "/"
        if parts.query:
            target += "?" + parts.query
        return cls(method=method.upper(), scheme=parts.scheme.lower(),
                   authority=parts.netloc, target=target, content_type=content_type)

    @property
    def host(self) -> str:
        return host_for_authority(self.authority)

    @property
    def port(self) -> int:
        return port_for_host(self.scheme, self.authority)

# === Production sources for the injected values ===
def current_timestamp() -> int:
    return int(time.time())

def generate_nonce(nbytes: int = 8) -> str:
    """Fresh, unpredictable nonce for every request."""
    return secrets.token_urlsafe(nbytes)

# === Authority parsing ===
def _split_authority(authority: str) -> tuple[str, str | None]:
    # userinfo never takes part in the host line
    hostport = authority.rpartition("@")[2]
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1:
            raise FormatError(f"malformed authority: {authority!r}")
        host, rest = hostport[1:end], hostport[end + 1:]
        if not rest:
            return host, None
        if not rest.startswith(":"):
            raise FormatError(f"malformed authority: {authority!r}")
        return host, rest[1:]
    if hostport.count(":") > 1:
        raise FormatError(f"malformed authority (too many colons): {authority!r}")
    if ":" in hostport:
        host, _, port = hostport.partition(":")
        return host, port
    return hostport, None

def host_for_authority(authority: str) -> str:
    host, _ = _split_authority(authority)
    if not host:
        raise FormatError(f"malformed authority (empty host): {authority!r}")
    return host

def port_for_host(scheme: str, authority: str) -> int:
    host, port = _split_authority(authority)
    if not host:
        raise FormatError(f"malformed authority (empty host): {authority!r}")
    if port is None:
        return 80 if scheme == "http" else 443
    if not (port.isascii() and port.isdigit()) or not 0 < int(port) <= 65535:
        raise FormatError(f"malformed authority (bad port {port!r}): {authority!r}")
    return int(port)

# === Signing ===
def payload_hash(content_type: str, body: bytes | str | None) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        body = body.encode("utf-8")
    h = hashlib.sha256()
    h.update(f"{PAYLOAD_VERSION}\n".encode("ascii"))
    h.update(content_type.encode("utf-8"))
    h.update(b"\n")
    h.update(body)
    h.update(b"\n")
    return b64e(h.digest())

def canonical_string(timestamp: int, nonce: str, method: str, request_target: str,
                     host: str, port: int, payload_hash: str, ext: str) -> bytes:
    lines = [
        HEADER_VERSION,
        str(int(timestamp)),
        nonce,
        method,
        request_target,
        host,
        str(int(port)),
        payload_hash,
        ext,
    ]
    return "".join(line + "\n" for line in lines).encode("utf-8")

def sign(key: bytes, canonical: bytes) -> str:
    return b64e(hmac.new(key, canonical, hashlib.sha256).digest())

def _check_attr(name: str, value: str) -> str:
    if '"' in value or "\\" in value or "\n" in value or "\r" in value:
        raise FormatError(f"hawk: {name} cannot be carried in a quoted header value")
    return value

def build_authorization_header(id: str, timestamp: int, nonce: str, ext: str,
                               mac: str, payload_hash: str) -> str:
    parts = [
        f'id="{_check_attr("id", id)}"',
        f'ts="{int(timestamp)}"',
        f'nonce="{_check_attr("nonce", nonce)}"',
    ]
    if ext:
        parts.append(f'ext="{_check_attr("ext", ext)}"')
    parts.append(f'mac="{mac}"')
    if payload_hash:
        parts.append(f'hash="{payload_hash}"')
    return "Hawk " + ", ".join(parts)

def authorize_request(credential: HawkCredential, request: HawkRequest,
                      body: bytes | str | None, ext: str, timestamp: int, nonce: str) -> str:
    """Return the Authorization header value for ``request``."""
    if not nonce:
        raise FormatError("hawk: nonce must not be empty")
    phash = payload_hash(request.content_type, body)
    canonical = canonical_string(timestamp, nonce, request.method, request.target,
                                 request.host, request.port, phash, ext)
    mac = sign(credential.key, canonical)
    return build_authorization_header(credential.id, timestamp, nonce, ext, mac, phash)

def authorize(d: dict) -> dict:
    require(d, ["id", "method", "url"])
    if "key_hex" in d:
        key = hexd(d["key_hex"], what="key")
    elif "key" in d:
        if not isinstance(d["key"], str):
            raise FormatError("key: expected a string")
        key = d["key"].encode("utf-8")
    else:
        raise FormatError("missing field(s): key_hex or key")
    credential = HawkCredential(id=d["id"], key=key)
    request = HawkRequest.from_url(d["method"], d["url"], d.get("content_type", ""))
    header = authorize_request(
        credential, request, d.get("body"), d.get("ext", ""),
        int(d["timestamp"]) if d.get("timestamp") is not None else current_timestamp(),
        d.get("nonce") or generate_nonce(),
    )
    return {"authorization": header}

if __name__ == "__main__":
    run_cli(authorize)
