import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from edunotes.auth.dependencies import get_current_user, require_admin
from edunotes.models.user import ROLE_ADMIN, User
from edunotes.schemas import CourseResponse, EnrollmentResponse, UserResponse
from edunotes.storage import Storage, get_storage

router = APIRouter(tags=['enrollments'])

logger = logging.getLogger(__name__)


class EnrollmentCreateRequest(BaseModel):
    course_id: int
    user_id: int | None = None


@router.post('', response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
def enroll(
    data: EnrollmentCreateRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    user_id = current_user.id if data.user_id is None else data.user_id

    if storage.get_course(data.course_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Course not found')

    if storage.get_user(user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

    if current_user.role != ROLE_ADMIN and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Forbidden: You can only enroll yourself',
        )

    if storage.is_enrolled(user_id, data.course_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='User already enrolled in this course',
        )

    enrollment = storage.enroll_student(user_id=user_id, course_id=data.course_id)
    logger.info('User id=%s enrolled in course id=%s', user_id, data.course_id)
    return enrollment


@router.get('/my-courses', response_model=list[CourseResponse])
def list_my_courses(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return storage.get_enrolled_courses(current_user.id)


@router.get('/course/{course_id}', response_model=list[UserResponse], dependencies=[Depends(require_admin)])
def list_enrolled_students(course_id: int, storage: Storage = Depends(get_storage)):
    return storage.get_enrolled_students(course_id)
