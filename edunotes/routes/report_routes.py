from fastapi import APIRouter, Depends

from edunotes.auth.dependencies import require_admin
from edunotes.schemas import CourseReportResponse, UserReportResponse
from edunotes.storage import Storage, get_storage

router = APIRouter(tags=['reports'], dependencies=[Depends(require_admin)])


@router.get('/courses', response_model=list[CourseReportResponse])
def course_report(storage: Storage = Depends(get_storage)):
    """Note and enrollment totals for every course, inactive ones included."""
    return storage.get_courses_with_notes_count()


@router.get('/users', response_model=list[UserReportResponse])
def user_report(storage: Storage = Depends(get_storage)):
    """Note totals per student."""
    return storage.get_users_with_notes_count()
