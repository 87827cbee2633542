import jwt
import pytest

from taskapi.auth import jwt_handler
from taskapi.core import config
from taskapi.core.exceptions import TokenExpired, TokenInvalid, TokenVerificationFailed


def test_issue_token_pair_carries_identity_and_lifetime() -> None:
    pair = jwt_handler.issue_token_pair('user-1', 'a@x.com', 'user')

    access = jwt_handler.verify_token(pair.access_token)
    refresh = jwt_handler.verify_token(pair.refresh_token)

    assert access['userId'] == 'user-1'
    assert access['email'] == 'a@x.com'
    assert access['role'] == 'user'
    assert access['type'] == 'access'
    assert access['exp'] > access['iat']
    assert refresh['userId'] == 'user-1'
    assert refresh['type'] == 'refresh'
    assert 'email' not in refresh
    assert pair.expires_in == '7d'


def test_verify_token_rejects_expired_token() -> None:
    token = jwt_handler.create_access_token('user-1', 'a@x.com', 'user', expires_minutes=-1)

    with pytest.raises(TokenExpired):
        jwt_handler.verify_token(token)


def test_verify_token_rejects_tampered_payload() -> None:
    token = jwt_handler.create_access_token('user-1', 'a@x.com', 'user')
    forged = jwt.encode(
        {**jwt_handler.decode_token_unverified(token), 'role': 'admin'},
        'not-the-secret',
        algorithm=config.JWT_ALGORITHM,
    )
    header, _, signature = token.split('.')
    _, forged_payload, _ = forged.split('.')

    with pytest.raises(TokenInvalid):
        jwt_handler.verify_token(f'{header}.{forged_payload}.{signature}')

    with pytest.raises(TokenInvalid):
        jwt_handler.verify_token(forged)


def test_verify_token_rejects_garbage() -> None:
    with pytest.raises(TokenInvalid):
        jwt_handler.verify_token('not-a-token')


def test_verify_token_wraps_unexpected_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_decode(*_args, **_kwargs):
        raise RuntimeError('boom')

    monkeypatch.setattr(jwt_handler.jwt, 'decode', broken_decode)

    with pytest.raises(TokenVerificationFailed):
        jwt_handler.verify_token('whatever')


@pytest.mark.parametrize(
    ('header', 'expected'),
    [
        ('Bearer abc.def.ghi', 'abc.def.ghi'),
        (None, None),
        ('', None),
        ('bearer abc', None),
        ('Token abc', None),
        ('Bearer', None),
        ('Bearer abc extra', None),
        ('Bearer ', None),
    ],
)
def test_extract_token_from_header(header, expected) -> None:
    assert jwt_handler.extract_token_from_header(header) == expected


def test_is_token_expired() -> None:
    fresh = jwt_handler.create_access_token('user-1', 'a@x.com', 'user')
    stale = jwt_handler.create_access_token('user-1', 'a@x.com', 'user', expires_minutes=-5)

    assert jwt_handler.is_token_expired(fresh) is False
    assert jwt_handler.is_token_expired(stale) is True
    assert jwt_handler.is_token_expired('garbage') is True


def test_lifetime_is_formatted_for_clients(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'JWT_ACCESS_EXPIRES_MINUTES', 90)

    assert jwt_handler.issue_token_pair('user-1', 'a@x.com', 'user').expires_in == '90m'
