"""Response models shared across routers."""

from datetime import datetime

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: int
    username: str
    name: str
    role: str

    class Config:
        from_attributes = True


class CourseResponse(BaseModel):
    id: int
    name: str
    description: str
    instructor: str
    duration: int
    lessons: int
    created_by: int
    active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class EnrollmentResponse(BaseModel):
    id: int
    user_id: int
    course_id: int
    enrolled_at: datetime

    class Config:
        from_attributes = True


class NoteResponse(BaseModel):
    id: str
    user_id: int
    course_id: int
    title: str
    content: str
    color: str
    created_at: str

    class Config:
        from_attributes = True


class CourseReportResponse(BaseModel):
    course: CourseResponse
    note_count: int
    student_count: int

    class Config:
        from_attributes = True


class UserReportResponse(BaseModel):
    user: UserResponse
    note_count: int

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
