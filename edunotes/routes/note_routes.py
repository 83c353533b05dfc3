from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, field_validator

from edunotes.auth.dependencies import get_current_user, require_student
from edunotes.models.note import NOTE_COLORS, Note
from edunotes.models.user import ROLE_STUDENT, User
from edunotes.schemas import NoteResponse
from edunotes.storage import Storage, get_storage

router = APIRouter(tags=['notes'])


def _normalize_color(value: str | None) -> str | None:
    if value is None:
        return value
    normalized = value.strip().lower()
    if normalized not in NOTE_COLORS:
        raise ValueError(f"Color must be one of: {', '.join(NOTE_COLORS)}.")
    return normalized


class NoteCreateRequest(BaseModel):
    course_id: int
    title: str
    content: str
    color: str
    user_id: int | None = None

    @field_validator('color')
    @classmethod
    def validate_color(cls, value: str) -> str:
        return _normalize_color(value)


class NoteUpdateRequest(BaseModel):
    course_id: int | None = None
    title: str | None = None
    content: str | None = None
    color: str | None = None
    user_id: int | None = None

    class Config:
        extra = 'forbid'

    @field_validator('*')
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError('Field cannot be null.')
        return value

    @field_validator('color')
    @classmethod
    def validate_color(cls, value: str) -> str:
        return _normalize_color(value)


def get_owned_note(note_id: str, current_user: User, storage: Storage, action: str) -> Note:
    note = storage.get_note_by_id(note_id)
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Note not found')

    if note.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f'Forbidden: You can only {action} your own notes',
        )
    return note


@router.post('', response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
def create_note(
    data: NoteCreateRequest,
    current_user: User = Depends(require_student),
    storage: Storage = Depends(get_storage),
):
    user_id = current_user.id if data.user_id is None else data.user_id
    if user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Forbidden: You can only create notes for yourself',
        )

    if storage.get_course(data.course_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Course not found')

    if not storage.is_enrolled(current_user.id, data.course_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Forbidden: You must be enrolled in the course to create notes',
        )

    return storage.create_note(
        user_id=current_user.id,
        course_id=data.course_id,
        title=data.title,
        content=data.content,
        color=data.color,
    )


@router.get('/my-notes', response_model=list[NoteResponse])
def list_my_notes(
    current_user: User = Depends(require_student),
    storage: Storage = Depends(get_storage),
):
    return storage.get_notes_by_user(current_user.id)


@router.get('/course/{course_id}', response_model=list[NoteResponse])
def list_my_notes_for_course(
    course_id: int,
    current_user: User = Depends(require_student),
    storage: Storage = Depends(get_storage),
):
    return storage.get_notes_by_user_and_course(current_user.id, course_id)


@router.get('/{note_id}', response_model=NoteResponse)
def get_note(
    note_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    note = storage.get_note_by_id(note_id)
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Note not found')

    # Admins may read any note.
    if current_user.role == ROLE_STUDENT and note.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Forbidden: You can only view your own notes',
        )
    return note


@router.put('/{note_id}', response_model=NoteResponse)
def update_note(
    note_id: str,
    data: NoteUpdateRequest,
    current_user: User = Depends(require_student),
    storage: Storage = Depends(get_storage),
):
    note = get_owned_note(note_id, current_user, storage, action='update')

    changes = data.model_dump(exclude_unset=True)
    if 'user_id' in changes and changes['user_id'] != note.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Cannot change note ownership',
        )

    updated_note = storage.update_note(note_id, changes)
    if updated_note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Note not found')
    return updated_note


@router.delete('/{note_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_note(
    note_id: str,
    current_user: User = Depends(require_student),
    storage: Storage = Depends(get_storage),
):
    get_owned_note(note_id, current_user, storage, action='delete')

    if not storage.delete_note(note_id):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to delete note',
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
