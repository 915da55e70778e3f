"""Known-answer vectors and fakes shared by the foxkeys tests."""

from __future__ import annotations

import hashlib
import hmac
import json
import re
from dataclasses import dataclass, field
from typing import Any

from foxkeys_work.lib.account_keys import AccountKeys


EMAIL = "text@example.com"
PASSWORD = "secret1234"

STRETCHED_HEX = "df1d31121ec7b4b2befc8b53affb1cdf6ad7ccb2a98b7b779c256c7ae2bc9532"
AUTH_PW_HEX = "5fcdd0381095be230dd2c83bf59d103384f560c6b83658f6b4595135867d3f6e"
UNWRAP_BKEY_HEX = "96c690a650ee0aa81629780b1a0b9e258fc2544cdc99c510573ece276bc4a7d1"

SESSION_TOKEN_HEX = "e67e3dd15492698310b5c1d5d3259c93b44acfce1d4d944cdd304e2c54bb43b8"
TOKEN_ID_HEX = "1705c24d9816cbd65068a1dcd75eedee06cdafd97d4dfaaf81647b22f60a885e"
REQUEST_HMAC_KEY_HEX = "faf2d74a00058c9d7f3d9eb58322a363cd964eeff16b00ba86f508dbdaa68d84"
REQUEST_KEY_HEX = "44e2d0f07c8a253c7993e8299f1909a266bdbf2bb659db9dd8e170df06ebc2f0"

HMAC_KEY_HEX = "eebafc48771e383737bd6d7fd8e2e09a0463859d96ab6863f757dccb5e30d201"
XOR_KEY_HEX = (
    "e00ef3d3e3aaea0f6e22af8b80a1ed2d8fdc7318b2276954ba36a061978017e0"
    "c4f3d7c1c17d5491096d3c3fa046ddf456477c47f2d9ce8fab8279032837e5e8"
)

HAWK_KEY = b"werxhqb98rpaxn39848xrunpaw3489ruxnpa98w4rxn"
HAWK_TS = 1353832234
HAWK_NONCE = "j4h3g2"
HAWK_EXT = "some-app-ext-data"
HAWK_URL = "http://example.com:8000/resource/1?b=1&a=2"
HAWK_BODY = "Thank you for flying Hawk"
HAWK_GET_MAC = "6R4rV5iE+NPoym+WwjeHzjAGXUtLNIxmo1vpMofpLAE="
HAWK_POST_HASH = "Yi9LfIIFRtBEPt74PVmbTF/xVAwPn7ub15ePICfgnuY="
HAWK_POST_MAC = "aSe1DERmZuRl3pI36/9BdZmnErTw3sNzOOAUlfeKjVw="


def make_bundle(account_keys: AccountKeys, key_a: bytes, key_b: bytes, unwrap_bkey: bytes) -> str:
    """Build a bundle the way the auth server does."""
    wrap_kb = bytes(x ^ y for x, y in zip(key_b, unwrap_bkey))
    ct = bytes(x ^ y for x, y in zip(key_a + wrap_kb, account_keys.xor_key))
    tag = hmac.new(account_keys.hmac_key, ct, hashlib.sha256).digest()
    return (ct + tag).hex()


def parse_hawk_header(header: str) -> dict[str, str]:
    scheme, _, rest = header.partition(" ")
    assert scheme == "Hawk"
    return dict(re.findall(r'(\w+)="([^"]*)"', rest))


@dataclass
class FakeResponse:
    status_code: int
    body: Any = None

    def json(self) -> Any:
        if self.body is None:
            raise ValueError("no JSON body")
        return self.body


@dataclass
class RecordedCall:
    method: str
    url: str
    headers: dict[str, str]
    data: bytes | None


@dataclass
class FakeAuthServer:
    """Routes requests.get/post calls to canned FxA responses."""

    routes: dict[tuple[str, str], FakeResponse] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)

    def add(self, method: str, url: str, status: int, body: Any) -> None:
        self.routes[(method, url)] = FakeResponse(status, body)

    def _handle(self, method: str, url: str, headers=None, data=None, timeout=None) -> FakeResponse:
        self.calls.append(RecordedCall(method, url, dict(headers or {}), data))
        return self.routes[(method, url)]

    def get(self, url, headers=None, timeout=None):
        return self._handle("GET", url, headers=headers, timeout=timeout)

    def post(self, url, data=None, headers=None, timeout=None):
        return self._handle("POST", url, headers=headers, data=data, timeout=timeout)

    def last(self, method: str) -> RecordedCall:
        return [c for c in self.calls if c.method == method][-1]

    def json_body(self, call: RecordedCall) -> Any:
        return json.loads(call.data)
