from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import ValidationError

from edunotes.auth import dependencies, jwt_handler
from edunotes.auth.passwords import hash_password, verify_password
from edunotes.core import config
from edunotes.routes.auth_routes import RegisterRequest


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_register_request_normalizes_fields() -> None:
    request = RegisterRequest(username='  alice ', password='pw', name=' Alice ', role=' STUDENT ')

    assert request.username == 'alice'
    assert request.name == 'Alice'
    assert request.role == 'student'


def test_register_request_rejects_unknown_role() -> None:
    with pytest.raises(ValidationError):
        RegisterRequest(username='alice', password='pw', name='Alice', role='teacher')


def test_password_hash_round_trip() -> None:
    hashed = hash_password('password')

    assert hashed != 'password'
    assert verify_password('password', hashed) is True
    assert verify_password('wrong', hashed) is False
    assert verify_password('password', '') is False


def test_access_token_carries_only_subject_and_times() -> None:
    token = jwt_handler.create_access_token(subject='7')

    payload = jwt_handler.decode_access_token(token)

    assert set(payload) == {'sub', 'exp', 'iat'}
    assert payload['sub'] == '7'
    assert payload['exp'] > payload['iat']


def test_get_current_user_requires_credentials(storage) -> None:
    with pytest.raises(HTTPException) as exception_info:
        dependencies.get_current_user(credentials=None, storage=storage)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Unauthorized'


def test_get_current_user_rejects_expired_token(storage, student) -> None:
    expired = jwt.encode(
        {'sub': str(student.id), 'exp': datetime.now(timezone.utc) - timedelta(minutes=1)},
        config.JWT_SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
    )

    with pytest.raises(HTTPException) as exception_info:
        dependencies.get_current_user(credentials=_credentials(expired), storage=storage)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_non_numeric_subject(storage) -> None:
    token = jwt_handler.create_access_token(subject='alice@example.edu')

    with pytest.raises(HTTPException) as exception_info:
        dependencies.get_current_user(credentials=_credentials(token), storage=storage)

    assert exception_info.value.detail == 'Invalid token subject'


def test_get_current_user_rejects_unknown_user(storage) -> None:
    token = jwt_handler.create_access_token(subject='42')

    with pytest.raises(HTTPException) as exception_info:
        dependencies.get_current_user(credentials=_credentials(token), storage=storage)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'User not found'


def test_get_current_user_returns_user(storage, student) -> None:
    token = jwt_handler.create_access_token(subject=str(student.id))

    user = dependencies.get_current_user(credentials=_credentials(token), storage=storage)

    assert user is student


def test_role_gates(admin, student) -> None:
    assert dependencies.require_admin(current_user=admin) is admin
    assert dependencies.require_student(current_user=student) is student

    with pytest.raises(HTTPException) as admin_gate:
        dependencies.require_admin(current_user=student)
    with pytest.raises(HTTPException) as student_gate:
        dependencies.require_student(current_user=admin)

    assert admin_gate.value.status_code == 403
    assert admin_gate.value.detail == 'Forbidden: Admin access required'
    assert student_gate.value.status_code == 403
    assert student_gate.value.detail == 'Forbidden: Student access required'


def test_register_then_login(client, storage) -> None:
    register = client.post(
        '/api/register',
        json={'username': 'alice', 'password': 'wonderland', 'name': 'Alice'},
    )

    assert register.status_code == 201
    body = register.json()
    assert body['token_type'] == 'bearer'
    assert body['user'] == {'id': 1, 'username': 'alice', 'name': 'Alice', 'role': 'student'}
    assert storage.get_user_by_username('alice').password != 'wonderland'

    login = client.post('/api/login', json={'username': 'alice', 'password': 'wonderland'})

    assert login.status_code == 200
    me = client.get('/api/user', headers={'Authorization': f"Bearer {login.json()['access_token']}"})
    assert me.status_code == 200
    assert me.json()['username'] == 'alice'
    assert 'password' not in me.json()


def test_register_rejects_duplicate_username(client, student) -> None:
    response = client.post(
        '/api/register',
        json={'username': 'student', 'password': 'pw123456', 'name': 'Someone Else'},
    )

    assert response.status_code == 400
    assert response.json() == {'detail': 'Username already exists'}


def test_register_admin_blocked_when_admin_signup_disabled(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'ALLOW_ADMIN_SIGNUP', False)

    response = client.post(
        '/api/register',
        json={'username': 'mallory', 'password': 'pw123456', 'name': 'Mallory', 'role': 'admin'},
    )

    assert response.status_code == 403


def test_register_with_missing_fields_returns_400(client) -> None:
    response = client.post('/api/register', json={'username': 'alice'})

    assert response.status_code == 400
    assert 'errors' in response.json()


def test_login_rejects_bad_password(client, student) -> None:
    response = client.post('/api/login', json={'username': 'student', 'password': 'nope'})

    assert response.status_code == 401
    assert response.json() == {'detail': 'Invalid username or password'}


def test_logout_is_stateless(client) -> None:
    response = client.post('/api/logout')

    assert response.status_code == 200
    assert response.json() == {'message': 'Logged out'}


def test_current_user_requires_token(client) -> None:
    response = client.get('/api/user')

    assert response.status_code == 401
