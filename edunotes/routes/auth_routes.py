import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator

from edunotes.auth import jwt_handler
from edunotes.auth.dependencies import get_current_user
from edunotes.auth.passwords import hash_password, verify_password
from edunotes.core import config
from edunotes.models.user import ROLE_ADMIN, ROLE_STUDENT, USER_ROLES, User
from edunotes.schemas import MessageResponse, TokenResponse, UserResponse
from edunotes.storage import Storage, get_storage

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


class RegisterRequest(BaseModel):
    username: str
    password: str
    name: str
    role: str = ROLE_STUDENT

    @field_validator('username', 'name')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Value is required.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required.')
        return value

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in USER_ROLES:
            raise ValueError('Role must be admin or student.')
        return normalized


class LoginRequest(BaseModel):
    username: str
    password: str


def issue_token(user: User) -> TokenResponse:
    token = jwt_handler.create_access_token(subject=str(user.id))
    return TokenResponse(access_token=token, token_type='bearer', user=UserResponse.model_validate(user))


@router.post('/register', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, storage: Storage = Depends(get_storage)):
    if data.role == ROLE_ADMIN and not config.ALLOW_ADMIN_SIGNUP:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Admin accounts cannot be created through signup.',
        )

    if storage.get_user_by_username(data.username):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Username already exists',
        )

    user = storage.create_user(
        username=data.username,
        password=hash_password(data.password),
        name=data.name,
        role=data.role,
    )
    logger.info('Registered user id=%s role=%s', user.id, user.role)
    return issue_token(user)


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, storage: Storage = Depends(get_storage)):
    user = storage.get_user_by_username(data.username.strip())
    if user is None or not verify_password(data.password, user.password):
        logger.warning('Rejected login for username=%r', data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid username or password',
        )
    return issue_token(user)


@router.post('/logout', response_model=MessageResponse)
def logout():
    # Tokens are stateless; the client drops its copy.
    return MessageResponse(message='Logged out')


@router.get('/user', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
