from __future__ import annotations

import dataclasses

import pytest

from foxkeys_work.lib import account_state
from foxkeys_work.lib.account_keys import derive_account_keys
from foxkeys_work.lib.common import FormatError, IntegrityError
from foxkeys_work.lib.request_credentials import derive_request_credentials
from tests.support import (
    AUTH_PW_HEX,
    EMAIL,
    PASSWORD,
    SESSION_TOKEN_HEX,
    TOKEN_ID_HEX,
    UNWRAP_BKEY_HEX,
    make_bundle,
)

KEY_FETCH_TOKEN = bytes(range(32))
KEY_A = b"\xaa" * 32
KEY_B = b"\xbb" * 32

LOGIN_RESPONSE = {
    "uid": "4c352927cd4f4a4aa03d7d1893d950b8",
    "sessionToken": SESSION_TOKEN_HEX,
    "keyFetchToken": KEY_FETCH_TOKEN.hex(),
}


def _bundle() -> str:
    rc = derive_request_credentials(KEY_FETCH_TOKEN, "keyFetchToken")
    return make_bundle(derive_account_keys(rc.request_key), KEY_A, KEY_B, bytes.fromhex(UNWRAP_BKEY_HEX))


def test_begin_derives_password_keys() -> None:
    state = account_state.begin(EMAIL, PASSWORD)
    assert state.auth_pw.hex() == AUTH_PW_HEX
    assert state.unwrap_bkey.hex() == UNWRAP_BKEY_HEX


def test_login_payload() -> None:
    state = account_state.begin(EMAIL, PASSWORD)
    assert account_state.login_payload(state) == {"email": EMAIL, "authPW": AUTH_PW_HEX, "reason": "login"}


def test_logged_in_decodes_tokens() -> None:
    state = account_state.logged_in(account_state.begin(EMAIL, PASSWORD), LOGIN_RESPONSE)
    assert state.uid == LOGIN_RESPONSE["uid"]
    assert state.session_token.hex() == SESSION_TOKEN_HEX
    assert state.key_fetch_token == KEY_FETCH_TOKEN
    assert account_state.session_credentials(state).token_id.hex() == TOKEN_ID_HEX


@pytest.mark.parametrize(
    "override",
    [{"uid": ""}, {"sessionToken": "not-hex"}, {"keyFetchToken": "abcd"}, {"keyFetchToken": None}],
)
def test_logged_in_rejects_bad_response(override: dict) -> None:
    response = {**LOGIN_RESPONSE, **override}
    with pytest.raises(FormatError):
        account_state.logged_in(account_state.begin(EMAIL, PASSWORD), response)


def test_hawk_credential_uses_token_id_and_hmac_key() -> None:
    state = account_state.logged_in(account_state.begin(EMAIL, PASSWORD), LOGIN_RESPONSE)
    rc = account_state.key_fetch_credentials(state)
    credential = account_state.hawk_credential(rc)
    assert credential.id == rc.token_id.hex()
    assert credential.key == rc.request_hmac_key


def test_keys_recovered() -> None:
    state = account_state.logged_in(account_state.begin(EMAIL, PASSWORD), LOGIN_RESPONSE)
    recovered = account_state.keys_recovered(state, {"bundle": _bundle()})
    assert (recovered.key_a, recovered.key_b) == (KEY_A, KEY_B)
    assert recovered.uid == state.uid
    assert recovered.session_token == state.session_token


def test_keys_recovered_rejects_tampered_bundle() -> None:
    state = account_state.logged_in(account_state.begin(EMAIL, PASSWORD), LOGIN_RESPONSE)
    bundle = bytearray.fromhex(_bundle())
    bundle[-1] ^= 0x01
    with pytest.raises(IntegrityError):
        account_state.keys_recovered(state, {"bundle": bundle.hex()})


def test_keys_recovered_requires_bundle() -> None:
    state = account_state.logged_in(account_state.begin(EMAIL, PASSWORD), LOGIN_RESPONSE)
    with pytest.raises(FormatError):
        account_state.keys_recovered(state, {})


def test_wrong_password_fails_on_kb_only() -> None:
    # the bundle MAC is keyed by the token, so a wrong password still verifies
    state = account_state.logged_in(account_state.begin(EMAIL, "wrong"), LOGIN_RESPONSE)
    recovered = account_state.keys_recovered(state, {"bundle": _bundle()})
    assert recovered.key_a == KEY_A
    assert recovered.key_b != KEY_B


def test_states_are_immutable() -> None:
    state = account_state.begin(EMAIL, PASSWORD)
    with pytest.raises(dataclasses.FrozenInstanceError):
        state.email = "other@example.com"


def test_state_repr_hides_secrets() -> None:
    state = account_state.logged_in(account_state.begin(EMAIL, PASSWORD), LOGIN_RESPONSE)
    text = repr(state) + repr(account_state.begin(EMAIL, PASSWORD))
    assert SESSION_TOKEN_HEX not in text
    assert "session_token" not in text
    assert "auth_pw" not in text
