#!/usr/bin/env python3
"""
manifest_validate.py — sanity checks for the run manifest.

Checks:
- required top-level keys
- server.base_url is an absolute http(s) URL
- http.timeout_sec > 0
- certificate.duration_ms > 0, certificate.dsa_key_size in the supported set
- hawk.ext can be carried in a quoted header value
"""
from __future__ import annotations
import sys, json, copy
from urllib.parse import urlsplit
import yaml
from .common import write_json, FormatError
from .dsa_public_key import KEY_SIZES

REQUIRED = ["server"]

DEFAULTS = {
    "server": {"base_url": "https://api.accounts.firefox.com/v1"},
    "http": {"timeout_sec": 10},
    "certificate": {"duration_ms": 86400000, "dsa_key_size": 1024},
    "hawk": {"ext": ""},
}

def _section(m: dict, name: str) -> dict:
    s = m.get(name)
    return s if isinstance(s, dict) else {}

def _positive(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and v > 0

def validate(m: dict) -> list[str]:
    if not isinstance(m, dict):
        return ["manifest:not_object"]
    errors = []
    for k in REQUIRED:
        if k not in m:
            errors.append(f"missing:{k}")

    base_url = _section(m, "server").get("base_url", "")
    parts = urlsplit(base_url) if isinstance(base_url, str) else None
    if parts is None or parts.scheme not in ("http", "https") or not parts.netloc:
        errors.append("server.base_url:scheme")

    if not _positive(_section(m, "http").get("timeout_sec")):
        errors.append("http.timeout_sec:value")

    cert = _section(m, "certificate")
    if not _positive(cert.get("duration_ms")):
        errors.append("certificate.duration_ms:value")
    if cert.get("dsa_key_size") not in KEY_SIZES:
        errors.append("certificate.dsa_key_size:value")

    ext = _section(m, "hawk").get("ext", "")
    if not isinstance(ext, str) or any(c in ext for c in '"\\\r\n'):
        errors.append("hawk.ext:value")
    return errors

def with_defaults(m: dict | None) -> dict:
    merged = copy.deepcopy(DEFAULTS)
    for section, values in (m or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged

def load_manifest(path: str | None) -> dict:
    """Read a manifest (or use defaults when ``path`` is None) and validate it."""
    raw = {}
    if path:
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise FormatError(f"manifest {path}: top level must be a mapping")
    m = with_defaults(raw)
    errors = validate(m)
    if errors:
        raise FormatError(f"manifest invalid: {', '.join(errors)}")
    return m

def main():
    data = json.load(sys.stdin)
    path = data.get("manifest_path")
    if not path:
        print("error: manifest_path required", file=sys.stderr); sys.exit(2)

    with open(path, "r") as f:
        m = yaml.safe_load(f)

    errors = validate(with_defaults(m) if isinstance(m, dict) else m)
    ok = len(errors) == 0
    write_json({"ok": ok, "errors": errors})
    sys.exit(0 if ok else 1)

if __name__ == "__main__":
    main()
