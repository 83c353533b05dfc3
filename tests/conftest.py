import os

os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')
os.environ.setdefault('SEED_SAMPLE_DATA', 'false')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from edunotes.auth.jwt_handler import create_access_token  # noqa: E402
from edunotes.auth.passwords import hash_password  # noqa: E402
from edunotes.main import app  # noqa: E402
from edunotes.models.user import ROLE_ADMIN, ROLE_STUDENT  # noqa: E402
from edunotes.storage import DatabaseStorage, MemStorage, get_storage  # noqa: E402

TEST_PASSWORD = 'secret123'


def build_sqlite_storage() -> DatabaseStorage:
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    storage = DatabaseStorage(bind=engine)
    storage.initialize()
    return storage


@pytest.fixture(params=['memory', 'database'])
def any_storage(request):
    if request.param == 'memory':
        return MemStorage()
    return build_sqlite_storage()


@pytest.fixture
def storage():
    return MemStorage()


@pytest.fixture
def client(storage):
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(storage, username: str, role: str = ROLE_STUDENT, name: str | None = None):
    return storage.create_user(
        username=username,
        password=hash_password(TEST_PASSWORD),
        name=name or username.title(),
        role=role,
    )


def auth_headers(user) -> dict:
    return {'Authorization': f'Bearer {create_access_token(subject=str(user.id))}'}


def make_course(storage, created_by: int, name: str = 'Algorithms', **overrides):
    values = {
        'name': name,
        'description': 'Sorting, searching and graph algorithms.',
        'instructor': 'Ada Lovelace',
        'duration': 6,
        'lessons': 18,
        'created_by': created_by,
        'active': True,
    }
    values.update(overrides)
    return storage.create_course(**values)


@pytest.fixture
def admin(storage):
    return make_user(storage, 'admin', role=ROLE_ADMIN)


@pytest.fixture
def student(storage):
    return make_user(storage, 'student', role=ROLE_STUDENT)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def student_headers(student):
    return auth_headers(student)


@pytest.fixture
def course(storage, admin):
    return make_course(storage, created_by=admin.id)


@pytest.fixture
def user_factory(storage):
    return lambda username, role=ROLE_STUDENT: make_user(storage, username, role=role)


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def user_password():
    return TEST_PASSWORD
