import asyncio

import pytest
from cryptography.fernet import Fernet

from auth.auth_service import (
    AuthService,
    InvalidLoginError,
    InvalidTokenError,
    RegistrationError,
)
from storage.user_store import CredentialCipher, InMemoryUserStore, UsernameTakenError


@pytest.fixture
def users():
    return InMemoryUserStore(cipher=CredentialCipher(Fernet.generate_key().decode()))


def test_register_login_verify(users):
    auth = AuthService(users)

    async def _run():
        user_id = await auth.register("ada", "secret123", "AIza-test-key-0001")
        token, user = await auth.login("ada", "secret123")
        return user_id, token, user

    user_id, token, user = asyncio.run(_run())
    assert user.user_id == user_id
    verified = auth.verify(token)
    assert verified.user_id == user_id
    assert verified.username == "ada"


def test_api_key_is_encrypted_at_rest(users):
    auth = AuthService(users)
    user_id = asyncio.run(auth.register("ada", "secret123", "AIza-test-key-0001"))

    assert users._keys[user_id] != "AIza-test-key-0001"
    assert asyncio.run(users.get_credential(user_id)) == "AIza-test-key-0001"


def test_credential_update(users):
    auth = AuthService(users)
    user_id = asyncio.run(auth.register("ada", "secret123", "AIza-test-key-0001"))

    assert asyncio.run(users.set_credential(user_id, "AIza-new-key-0002"))
    assert asyncio.run(users.get_credential(user_id)) == "AIza-new-key-0002"
    assert not asyncio.run(users.set_credential(999, "AIza-new-key-0002"))


def test_unknown_user_has_no_credential(users):
    assert asyncio.run(users.get_credential(42)) is None


@pytest.mark.parametrize(
    "username, password, api_key",
    [
        ("", "secret123", "AIza-test-key-0001"),
        ("ada", "short", "AIza-test-key-0001"),
        ("ada", "secret123", "tiny"),
    ],
)
def test_register_validation(users, username, password, api_key):
    with pytest.raises(RegistrationError):
        asyncio.run(AuthService(users).register(username, password, api_key))


def test_duplicate_username(users):
    auth = AuthService(users)
    asyncio.run(auth.register("ada", "secret123", "AIza-test-key-0001"))
    with pytest.raises(UsernameTakenError):
        asyncio.run(auth.register("ada", "other-pass", "AIza-test-key-0001"))


def test_wrong_password(users):
    auth = AuthService(users)
    asyncio.run(auth.register("ada", "secret123", "AIza-test-key-0001"))
    with pytest.raises(InvalidLoginError):
        asyncio.run(auth.login("ada", "wrong-pass"))
    with pytest.raises(InvalidLoginError):
        asyncio.run(auth.login("nobody", "secret123"))


def test_tampered_or_foreign_token(users):
    auth = AuthService(users)
    other = AuthService(users)
    asyncio.run(auth.register("ada", "secret123", "AIza-test-key-0001"))
    token, _ = asyncio.run(other.login("ada", "secret123"))

    with pytest.raises(InvalidTokenError):
        auth.verify(token)
    with pytest.raises(InvalidTokenError):
        auth.verify("not-a-token")
