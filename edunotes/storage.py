"""Repository layer for users, courses, enrollments and notes.

Two backends share the ``Storage`` interface: ``MemStorage`` keeps everything
in process-local maps, ``DatabaseStorage`` keeps it in SQLAlchemy tables.
Route handlers only talk to the interface through ``get_storage``.
"""

import itertools
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Iterator, NamedTuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from edunotes.core import config
from edunotes.database import Base, SessionLocal, build_session_factory, engine
from edunotes.models.course import Course
from edunotes.models.enrollment import Enrollment
from edunotes.models.note import Note
from edunotes.models.user import ROLE_STUDENT, User

logger = logging.getLogger(__name__)

USER_UPDATE_FIELDS = frozenset({'username', 'password', 'name'})
COURSE_UPDATE_FIELDS = frozenset(
    {'name', 'description', 'instructor', 'duration', 'lessons', 'created_by', 'active'}
)
NOTE_UPDATE_FIELDS = frozenset({'user_id', 'course_id', 'title', 'content', 'color'})


class StorageError(Exception):
    """Raised when the backing store cannot complete an operation."""


class CourseReport(NamedTuple):
    course: Course
    note_count: int
    student_count: int


class UserReport(NamedTuple):
    user: User
    note_count: int


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def apply_changes(row: Any, changes: dict[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown field(s): {', '.join(sorted(unknown))}")
    for field, value in changes.items():
        setattr(row, field, value)


class Storage(ABC):
    """Operations every backend provides.

    Joins and reports are written against the primitive lookups so a backend
    only has to override them when it can do better.
    """

    def initialize(self) -> None:
        """Prepare the backend before the first request."""

    # Users

    @abstractmethod
    def get_user(self, user_id: int) -> User | None: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    def create_user(self, username: str, password: str, name: str, role: str | None = ROLE_STUDENT) -> User: ...

    @abstractmethod
    def get_all_users(self) -> list[User]: ...

    @abstractmethod
    def update_user(self, user_id: int, changes: dict[str, Any]) -> User | None: ...

    # Courses

    @abstractmethod
    def get_course(self, course_id: int) -> Course | None: ...

    @abstractmethod
    def get_courses_by_instructor(self, instructor: str) -> list[Course]: ...

    @abstractmethod
    def get_all_courses(self) -> list[Course]: ...

    @abstractmethod
    def get_active_courses(self) -> list[Course]: ...

    @abstractmethod
    def create_course(
        self,
        name: str,
        description: str,
        instructor: str,
        duration: int,
        lessons: int,
        created_by: int,
        active: bool | None = True,
    ) -> Course: ...

    @abstractmethod
    def update_course(self, course_id: int, changes: dict[str, Any]) -> Course | None: ...

    @abstractmethod
    def delete_course(self, course_id: int) -> bool: ...

    # Enrollments

    @abstractmethod
    def enroll_student(self, user_id: int, course_id: int) -> Enrollment: ...

    @abstractmethod
    def get_enrollments_for_user(self, user_id: int) -> list[Enrollment]: ...

    @abstractmethod
    def get_enrollments_for_course(self, course_id: int) -> list[Enrollment]: ...

    def is_enrolled(self, user_id: int, course_id: int) -> bool:
        return any(
            enrollment.course_id == course_id
            for enrollment in self.get_enrollments_for_user(user_id)
        )

    def get_enrolled_courses(self, user_id: int) -> list[Course]:
        courses = []
        for enrollment in self.get_enrollments_for_user(user_id):
            course = self.get_course(enrollment.course_id)
            if course is not None:
                courses.append(course)
        return courses

    def get_enrolled_students(self, course_id: int) -> list[User]:
        users = []
        for enrollment in self.get_enrollments_for_course(course_id):
            user = self.get_user(enrollment.user_id)
            if user is not None:
                users.append(user)
        return users

    # Notes

    @abstractmethod
    def create_note(self, user_id: int, course_id: int, title: str, content: str, color: str) -> Note: ...

    @abstractmethod
    def get_notes_by_user(self, user_id: int) -> list[Note]: ...

    @abstractmethod
    def get_notes_by_course(self, course_id: int) -> list[Note]: ...

    @abstractmethod
    def get_notes_by_user_and_course(self, user_id: int, course_id: int) -> list[Note]: ...

    @abstractmethod
    def get_note_by_id(self, note_id: str) -> Note | None: ...

    @abstractmethod
    def update_note(self, note_id: str, changes: dict[str, Any]) -> Note | None: ...

    @abstractmethod
    def delete_note(self, note_id: str) -> bool: ...

    # Reports

    def get_courses_with_notes_count(self) -> list[CourseReport]:
        return [
            CourseReport(
                course=course,
                note_count=len(self.get_notes_by_course(course.id)),
                student_count=len(self.get_enrollments_for_course(course.id)),
            )
            for course in self.get_all_courses()
        ]

    def get_users_with_notes_count(self) -> list[UserReport]:
        return [
            UserReport(user=user, note_count=len(self.get_notes_by_user(user.id)))
            for user in self.get_all_users()
            if user.role == ROLE_STUDENT
        ]


class MemStorage(Storage):
    """Process-local storage backed by dictionaries.

    Users, courses and enrollments get auto-incrementing integer keys; notes
    get uuid4 strings. Every query other than a key lookup is a linear scan.
    """

    def __init__(self) -> None:
        self._users: dict[int, User] = {}
        self._courses: dict[int, Course] = {}
        self._enrollments: dict[int, Enrollment] = {}
        self._notes: dict[str, Note] = {}
        self._user_ids = itertools.count(1)
        self._course_ids = itertools.count(1)
        self._enrollment_ids = itertools.count(1)

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return next((user for user in self._users.values() if user.username == username), None)

    def create_user(self, username: str, password: str, name: str, role: str | None = ROLE_STUDENT) -> User:
        user = User(
            id=next(self._user_ids),
            username=username,
            password=password,
            name=name,
            role=role or ROLE_STUDENT,
        )
        self._users[user.id] = user
        return user

    def get_all_users(self) -> list[User]:
        return list(self._users.values())

    def update_user(self, user_id: int, changes: dict[str, Any]) -> User | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        apply_changes(user, changes, USER_UPDATE_FIELDS)
        return user

    def get_course(self, course_id: int) -> Course | None:
        return self._courses.get(course_id)

    def get_courses_by_instructor(self, instructor: str) -> list[Course]:
        return [course for course in self._courses.values() if course.instructor == instructor]

    def get_all_courses(self) -> list[Course]:
        return list(self._courses.values())

    def get_active_courses(self) -> list[Course]:
        return [course for course in self._courses.values() if course.active]

    def create_course(
        self,
        name: str,
        description: str,
        instructor: str,
        duration: int,
        lessons: int,
        created_by: int,
        active: bool | None = True,
    ) -> Course:
        course = Course(
            id=next(self._course_ids),
            name=name,
            description=description,
            instructor=instructor,
            duration=duration,
            lessons=lessons,
            created_by=created_by,
            active=True if active is None else active,
            created_at=utcnow(),
        )
        self._courses[course.id] = course
        return course

    def update_course(self, course_id: int, changes: dict[str, Any]) -> Course | None:
        course = self._courses.get(course_id)
        if course is None:
            return None
        apply_changes(course, changes, COURSE_UPDATE_FIELDS)
        return course

    def delete_course(self, course_id: int) -> bool:
        return self._courses.pop(course_id, None) is not None

    def enroll_student(self, user_id: int, course_id: int) -> Enrollment:
        enrollment = Enrollment(
            id=next(self._enrollment_ids),
            user_id=user_id,
            course_id=course_id,
            enrolled_at=utcnow(),
        )
        self._enrollments[enrollment.id] = enrollment
        return enrollment

    def get_enrollments_for_user(self, user_id: int) -> list[Enrollment]:
        return [enrollment for enrollment in self._enrollments.values() if enrollment.user_id == user_id]

    def get_enrollments_for_course(self, course_id: int) -> list[Enrollment]:
        return [enrollment for enrollment in self._enrollments.values() if enrollment.course_id == course_id]

    def create_note(self, user_id: int, course_id: int, title: str, content: str, color: str) -> Note:
        note = Note(
            id=str(uuid.uuid4()),
            user_id=user_id,
            course_id=course_id,
            title=title,
            content=content,
            color=color,
            created_at=utcnow().isoformat(),
        )
        self._notes[note.id] = note
        return note

    def get_notes_by_user(self, user_id: int) -> list[Note]:
        return [note for note in self._notes.values() if note.user_id == user_id]

    def get_notes_by_course(self, course_id: int) -> list[Note]:
        return [note for note in self._notes.values() if note.course_id == course_id]

    def get_notes_by_user_and_course(self, user_id: int, course_id: int) -> list[Note]:
        return [
            note for note in self._notes.values()
            if note.user_id == user_id and note.course_id == course_id
        ]

    def get_note_by_id(self, note_id: str) -> Note | None:
        return self._notes.get(note_id)

    def update_note(self, note_id: str, changes: dict[str, Any]) -> Note | None:
        note = self._notes.get(note_id)
        if note is None:
            return None
        apply_changes(note, changes, NOTE_UPDATE_FIELDS)
        return note

    def delete_note(self, note_id: str) -> bool:
        return self._notes.pop(note_id, None) is not None


class DatabaseStorage(Storage):
    """Storage on top of the SQLAlchemy tables in ``edunotes.models``."""

    def __init__(self, bind=None) -> None:
        if bind is None:
            self._engine = engine
            self._session_factory = SessionLocal
        else:
            self._engine = bind
            self._session_factory = build_session_factory(bind)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageError('Storage unavailable.') from exc
        finally:
            db.close()

    def initialize(self) -> None:
        try:
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as exc:
            raise StorageError('Storage unavailable.') from exc

    def _add(self, row):
        with self._session() as db:
            db.add(row)
            db.commit()
            db.refresh(row)
            return row

    def _update(self, model, key, changes: dict[str, Any], allowed: frozenset[str]):
        with self._session() as db:
            row = db.get(model, key)
            if row is None:
                return None
            apply_changes(row, changes, allowed)
            db.commit()
            db.refresh(row)
            return row

    def _delete(self, model, key) -> bool:
        with self._session() as db:
            row = db.get(model, key)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True

    def get_user(self, user_id: int) -> User | None:
        with self._session() as db:
            return db.get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with self._session() as db:
            return db.query(User).filter(User.username == username).first()

    def create_user(self, username: str, password: str, name: str, role: str | None = ROLE_STUDENT) -> User:
        return self._add(User(username=username, password=password, name=name, role=role or ROLE_STUDENT))

    def get_all_users(self) -> list[User]:
        with self._session() as db:
            return db.query(User).order_by(User.id.asc()).all()

    def update_user(self, user_id: int, changes: dict[str, Any]) -> User | None:
        return self._update(User, user_id, changes, USER_UPDATE_FIELDS)

    def get_course(self, course_id: int) -> Course | None:
        with self._session() as db:
            return db.get(Course, course_id)

    def get_courses_by_instructor(self, instructor: str) -> list[Course]:
        with self._session() as db:
            return db.query(Course).filter(Course.instructor == instructor).order_by(Course.id.asc()).all()

    def get_all_courses(self) -> list[Course]:
        with self._session() as db:
            return db.query(Course).order_by(Course.id.asc()).all()

    def get_active_courses(self) -> list[Course]:
        with self._session() as db:
            return db.query(Course).filter(Course.active.is_(True)).order_by(Course.id.asc()).all()

    def create_course(
        self,
        name: str,
        description: str,
        instructor: str,
        duration: int,
        lessons: int,
        created_by: int,
        active: bool | None = True,
    ) -> Course:
        return self._add(
            Course(
                name=name,
                description=description,
                instructor=instructor,
                duration=duration,
                lessons=lessons,
                created_by=created_by,
                active=True if active is None else active,
                created_at=utcnow(),
            )
        )

    def update_course(self, course_id: int, changes: dict[str, Any]) -> Course | None:
        return self._update(Course, course_id, changes, COURSE_UPDATE_FIELDS)

    def delete_course(self, course_id: int) -> bool:
        return self._delete(Course, course_id)

    def enroll_student(self, user_id: int, course_id: int) -> Enrollment:
        return self._add(Enrollment(user_id=user_id, course_id=course_id, enrolled_at=utcnow()))

    def get_enrollments_for_user(self, user_id: int) -> list[Enrollment]:
        with self._session() as db:
            return db.query(Enrollment).filter(Enrollment.user_id == user_id).order_by(Enrollment.id.asc()).all()

    def get_enrollments_for_course(self, course_id: int) -> list[Enrollment]:
        with self._session() as db:
            return db.query(Enrollment).filter(Enrollment.course_id == course_id).order_by(Enrollment.id.asc()).all()

    def is_enrolled(self, user_id: int, course_id: int) -> bool:
        with self._session() as db:
            return db.query(Enrollment.id).filter(
                Enrollment.user_id == user_id,
                Enrollment.course_id == course_id,
            ).first() is not None

    def get_enrolled_courses(self, user_id: int) -> list[Course]:
        with self._session() as db:
            return (
                db.query(Course)
                .join(Enrollment, Enrollment.course_id == Course.id)
                .filter(Enrollment.user_id == user_id)
                .order_by(Enrollment.id.asc())
                .all()
            )

    def get_enrolled_students(self, course_id: int) -> list[User]:
        with self._session() as db:
            return (
                db.query(User)
                .join(Enrollment, Enrollment.user_id == User.id)
                .filter(Enrollment.course_id == course_id)
                .order_by(Enrollment.id.asc())
                .all()
            )

    def create_note(self, user_id: int, course_id: int, title: str, content: str, color: str) -> Note:
        return self._add(
            Note(
                id=str(uuid.uuid4()),
                user_id=user_id,
                course_id=course_id,
                title=title,
                content=content,
                color=color,
                created_at=utcnow().isoformat(),
            )
        )

    def get_notes_by_user(self, user_id: int) -> list[Note]:
        with self._session() as db:
            return db.query(Note).filter(Note.user_id == user_id).order_by(Note.created_at.asc()).all()

    def get_notes_by_course(self, course_id: int) -> list[Note]:
        with self._session() as db:
            return db.query(Note).filter(Note.course_id == course_id).order_by(Note.created_at.asc()).all()

    def get_notes_by_user_and_course(self, user_id: int, course_id: int) -> list[Note]:
        with self._session() as db:
            return db.query(Note).filter(
                Note.user_id == user_id,
                Note.course_id == course_id,
            ).order_by(Note.created_at.asc()).all()

    def get_note_by_id(self, note_id: str) -> Note | None:
        with self._session() as db:
            return db.get(Note, note_id)

    def update_note(self, note_id: str, changes: dict[str, Any]) -> Note | None:
        return self._update(Note, note_id, changes, NOTE_UPDATE_FIELDS)

    def delete_note(self, note_id: str) -> bool:
        return self._delete(Note, note_id)

    def get_courses_with_notes_count(self) -> list[CourseReport]:
        with self._session() as db:
            courses = db.query(Course).order_by(Course.id.asc()).all()
            note_counts = dict(
                db.query(Note.course_id, func.count(Note.id)).group_by(Note.course_id).all()
            )
            student_counts = dict(
                db.query(Enrollment.course_id, func.count(Enrollment.id)).group_by(Enrollment.course_id).all()
            )

        return [
            CourseReport(
                course=course,
                note_count=note_counts.get(course.id, 0),
                student_count=student_counts.get(course.id, 0),
            )
            for course in courses
        ]

    def get_users_with_notes_count(self) -> list[UserReport]:
        with self._session() as db:
            students = db.query(User).filter(User.role == ROLE_STUDENT).order_by(User.id.asc()).all()
            note_counts = dict(
                db.query(Note.user_id, func.count(Note.id)).group_by(Note.user_id).all()
            )

        return [UserReport(user=user, note_count=note_counts.get(user.id, 0)) for user in students]


def build_storage(backend: str | None = None) -> Storage:
    backend = (backend or config.STORAGE_BACKEND).strip().lower()
    if backend == 'memory':
        return MemStorage()
    if backend == 'database':
        return DatabaseStorage()
    raise ValueError(f"Unknown storage backend '{backend}'.")


_storage: Storage | None = None
_storage_lock = Lock()


def get_storage() -> Storage:
    global _storage

    if _storage is not None:
        return _storage

    with _storage_lock:
        if _storage is None:
            _storage = build_storage()
            logger.info('Using %s storage backend', type(_storage).__name__)

    return _storage
