import pytest
from fastapi import HTTPException

from edunotes.routes.enrollment_routes import EnrollmentCreateRequest, enroll


def test_student_enrolls_self(client, storage, student, course, student_headers) -> None:
    response = client.post(
        '/api/enrollments',
        json={'user_id': student.id, 'course_id': course.id},
        headers=student_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body['user_id'] == student.id
    assert body['course_id'] == course.id
    assert body['enrolled_at']
    assert storage.is_enrolled(student.id, course.id)


def test_enroll_defaults_to_current_user(client, storage, student, course, student_headers) -> None:
    response = client.post('/api/enrollments', json={'course_id': course.id}, headers=student_headers)

    assert response.status_code == 201
    assert response.json()['user_id'] == student.id


def test_admin_enrolls_another_user(client, storage, student, course, admin_headers) -> None:
    response = client.post(
        '/api/enrollments',
        json={'user_id': student.id, 'course_id': course.id},
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert storage.is_enrolled(student.id, course.id)


def test_student_cannot_enroll_someone_else(client, user_factory, course, student_headers) -> None:
    other = user_factory('other')

    response = client.post(
        '/api/enrollments',
        json={'user_id': other.id, 'course_id': course.id},
        headers=student_headers,
    )

    assert response.status_code == 403
    assert response.json() == {'detail': 'Forbidden: You can only enroll yourself'}


def test_enroll_unknown_course(client, student, student_headers) -> None:
    response = client.post('/api/enrollments', json={'course_id': 42}, headers=student_headers)

    assert response.status_code == 404
    assert response.json() == {'detail': 'Course not found'}


def test_enroll_unknown_user(client, course, admin_headers) -> None:
    response = client.post(
        '/api/enrollments',
        json={'user_id': 42, 'course_id': course.id},
        headers=admin_headers,
    )

    assert response.status_code == 404
    assert response.json() == {'detail': 'User not found'}


def test_duplicate_enrollment_is_rejected(storage, student, course) -> None:
    storage.enroll_student(user_id=student.id, course_id=course.id)

    with pytest.raises(HTTPException) as exception_info:
        enroll(
            data=EnrollmentCreateRequest(course_id=course.id),
            current_user=student,
            storage=storage,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'User already enrolled in this course'
    assert len(storage.get_enrollments_for_user(student.id)) == 1


def test_enroll_requires_authentication(client, course) -> None:
    response = client.post('/api/enrollments', json={'course_id': course.id})

    assert response.status_code == 401


def test_my_courses(client, storage, admin, student, course, student_headers) -> None:
    other = storage.create_course(
        name='Compilers',
        description='Parsing and code generation.',
        instructor='Grace Hopper',
        duration=8,
        lessons=16,
        created_by=admin.id,
    )
    storage.create_course(
        name='Networks',
        description='Packets all the way down.',
        instructor='Vint Cerf',
        duration=8,
        lessons=16,
        created_by=admin.id,
    )
    storage.enroll_student(user_id=student.id, course_id=course.id)
    storage.enroll_student(user_id=student.id, course_id=other.id)

    response = client.get('/api/enrollments/my-courses', headers=student_headers)

    assert response.status_code == 200
    assert [c['name'] for c in response.json()] == ['Algorithms', 'Compilers']


def test_enrolled_students_omit_passwords(client, storage, user_factory, student, course, admin_headers) -> None:
    other = user_factory('other')
    storage.enroll_student(user_id=student.id, course_id=course.id)
    storage.enroll_student(user_id=other.id, course_id=course.id)

    response = client.get(f'/api/enrollments/course/{course.id}', headers=admin_headers)

    assert response.status_code == 200
    assert [u['username'] for u in response.json()] == ['student', 'other']
    assert all('password' not in u for u in response.json())


def test_enrolled_students_admin_only(client, course, student_headers) -> None:
    response = client.get(f'/api/enrollments/course/{course.id}', headers=student_headers)

    assert response.status_code == 403
