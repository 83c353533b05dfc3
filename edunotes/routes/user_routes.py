import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator

from edunotes.auth.dependencies import get_current_user, require_admin
from edunotes.auth.passwords import hash_password, verify_password
from edunotes.models.user import ROLE_ADMIN, User
from edunotes.schemas import MessageResponse, UserResponse
from edunotes.storage import Storage, get_storage

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    username: str | None = None

    @field_validator('name', 'username')
    @classmethod
    def validate_text(cls, value: str | None) -> str:
        if value is None:
            raise ValueError('Field cannot be null.')
        normalized = value.strip()
        if not normalized:
            raise ValueError('Value is required.')
        return normalized


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


@router.get('', response_model=list[UserResponse], dependencies=[Depends(require_admin)])
def list_users(storage: Storage = Depends(get_storage)):
    return storage.get_all_users()


@router.put('/{user_id}', response_model=UserResponse)
def update_profile(
    user_id: int,
    data: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    if current_user.role != ROLE_ADMIN and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Forbidden: You can only update your own profile',
        )

    if storage.get_user(user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

    changes = data.model_dump(exclude_unset=True)
    if 'username' in changes:
        existing = storage.get_user_by_username(changes['username'])
        if existing is not None and existing.id != user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Username already exists',
            )

    user = storage.update_user(user_id, changes)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

    logger.info('Profile of user id=%s updated by user id=%s', user_id, current_user.id)
    return user


@router.put('/{user_id}/change-password', response_model=MessageResponse)
def change_password(
    user_id: int,
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    if current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Forbidden: You can only change your own password',
        )

    if not verify_password(data.current_password, current_user.password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Current password is incorrect',
        )

    if len(data.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Password must be at least {MIN_PASSWORD_LENGTH} characters',
        )

    storage.update_user(user_id, {'password': hash_password(data.new_password)})
    logger.info('Password changed for user id=%s', user_id)
    return MessageResponse(message='Password changed')
