from datetime import timedelta

import pytest

from jobboard.core.security import (
    PASSWORD_POLICY_MESSAGE,
    create_access_token,
    decode_access_token,
    generate_token,
    get_password_hash,
    hash_token,
    password_policy_error,
    verify_password,
)


def test_password_hash_is_salted_and_verifies():
    first = get_password_hash("Passw0rd!")
    second = get_password_hash("Passw0rd!")

    assert first != second
    assert "Passw0rd!" not in first
    assert verify_password("Passw0rd!", first)
    assert not verify_password("passw0rd!", first)


def test_verify_password_rejects_malformed_hash():
    assert verify_password("Passw0rd!", "not-a-hash") is False


@pytest.mark.parametrize(
    "password",
    ["Sh0rt!", "alllower0!", "ALLUPPER0!", "NoDigits!!", "NoSymbol00"],
)
def test_password_policy_rejects_weak_passwords(password):
    assert password_policy_error(password) == PASSWORD_POLICY_MESSAGE


def test_password_policy_accepts_strong_password():
    assert password_policy_error("Passw0rd!") is None


def test_generated_tokens_are_long_and_unique():
    tokens = {generate_token() for _ in range(50)}

    assert len(tokens) == 50
    assert all(len(token) == 64 for token in tokens)


def test_hash_token_is_stable_and_hides_token():
    token = generate_token()

    assert hash_token(token) == hash_token(token)
    assert hash_token(token) != token


def test_access_token_carries_subject_role_and_id():
    claims = decode_access_token(create_access_token(7, "employer"))

    assert claims["sub"] == "7"
    assert claims["role"] == "employer"
    assert claims["jti"]


def test_expired_access_token_is_rejected():
    token = create_access_token(7, "employer", expires_delta=timedelta(seconds=-1))

    assert decode_access_token(token) is None


def test_tampered_access_token_is_rejected():
    token = create_access_token(7, "employer")
    head, payload, signature = token.split(".")

    assert decode_access_token(f"{head}.{payload}.{signature[::-1]}") is None
    assert decode_access_token("garbage") is None
