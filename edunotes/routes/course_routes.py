import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, field_validator

from edunotes.auth.dependencies import get_current_user, require_admin
from edunotes.models.course import Course
from edunotes.models.user import ROLE_STUDENT, User
from edunotes.schemas import CourseResponse
from edunotes.storage import Storage, get_storage

router = APIRouter(tags=['courses'])

logger = logging.getLogger(__name__)


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return value
    normalized = value.strip()
    if not normalized:
        raise ValueError('Value is required.')
    return normalized


def _validate_positive(value: int | None) -> int | None:
    if value is None:
        return value
    if value < 1:
        raise ValueError('Must be at least 1.')
    return value


class CourseCreateRequest(BaseModel):
    name: str
    description: str
    instructor: str
    duration: int
    lessons: int
    active: bool = True

    @field_validator('name', 'description', 'instructor')
    @classmethod
    def validate_text(cls, value: str) -> str:
        return _normalize_text(value)

    @field_validator('duration', 'lessons')
    @classmethod
    def validate_counts(cls, value: int) -> int:
        return _validate_positive(value)


class CourseUpdateRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    instructor: str | None = None
    duration: int | None = None
    lessons: int | None = None
    active: bool | None = None

    class Config:
        extra = 'forbid'

    @field_validator('*')
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError('Field cannot be null.')
        return value

    @field_validator('name', 'description', 'instructor')
    @classmethod
    def validate_text(cls, value: str) -> str:
        return _normalize_text(value)

    @field_validator('duration', 'lessons')
    @classmethod
    def validate_counts(cls, value: int) -> int:
        return _validate_positive(value)


def get_course_or_404(course_id: int, storage: Storage) -> Course:
    course = storage.get_course(course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Course not found')
    return course


@router.get('', response_model=list[CourseResponse], dependencies=[Depends(get_current_user)])
def list_courses(storage: Storage = Depends(get_storage)):
    return storage.get_all_courses()


@router.get('/active', response_model=list[CourseResponse])
def list_active_courses(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    courses = storage.get_active_courses()

    if current_user.role == ROLE_STUDENT:
        enrolled_course_ids = {course.id for course in storage.get_enrolled_courses(current_user.id)}
        return [course for course in courses if course.id not in enrolled_course_ids]

    return courses


@router.get('/{course_id}', response_model=CourseResponse, dependencies=[Depends(get_current_user)])
def get_course(course_id: int, storage: Storage = Depends(get_storage)):
    return get_course_or_404(course_id, storage)


@router.post('', response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CourseCreateRequest,
    current_user: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    course = storage.create_course(
        name=data.name,
        description=data.description,
        instructor=data.instructor,
        duration=data.duration,
        lessons=data.lessons,
        active=data.active,
        created_by=current_user.id,
    )
    logger.info('Course id=%s created by user id=%s', course.id, current_user.id)
    return course


@router.put('/{course_id}', response_model=CourseResponse)
def update_course(
    course_id: int,
    data: CourseUpdateRequest,
    current_user: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    get_course_or_404(course_id, storage)

    changes = data.model_dump(exclude_unset=True)
    course = storage.update_course(course_id, changes)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Course not found')

    logger.info('Course id=%s updated by user id=%s fields=%s', course_id, current_user.id, sorted(changes))
    return course


@router.delete('/{course_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    current_user: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    get_course_or_404(course_id, storage)

    if not storage.delete_course(course_id):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to delete course',
        )

    logger.info('Course id=%s deleted by user id=%s', course_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
