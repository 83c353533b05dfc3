"""Sample users and courses for a fresh install."""

import logging

from edunotes.auth.passwords import hash_password
from edunotes.models.user import ROLE_ADMIN, ROLE_STUDENT
from edunotes.storage import Storage

logger = logging.getLogger(__name__)

SAMPLE_PASSWORD = 'password'

SAMPLE_USERS = [
    {'username': 'admin', 'name': 'Admin User', 'role': ROLE_ADMIN},
    {'username': 'student', 'name': 'Student User', 'role': ROLE_STUDENT},
]

SAMPLE_COURSES = [
    {
        'name': 'Web Development Fundamentals',
        'description': (
            'Learn the basics of web development including HTML, CSS, and JavaScript. '
            'This course is perfect for beginners who want to start their journey in web development.'
        ),
        'instructor': 'John Smith',
        'duration': 8,
        'lessons': 24,
    },
    {
        'name': 'Data Science Essentials',
        'description': (
            'Introduction to data science concepts, tools, and methodologies. '
            'Learn how to analyze data and extract meaningful insights.'
        ),
        'instructor': 'Sarah Johnson',
        'duration': 10,
        'lessons': 30,
    },
    {
        'name': 'Mobile App Development',
        'description': (
            'Learn how to build native mobile applications for iOS and Android using React Native. '
            'This course covers UI/UX principles and state management.'
        ),
        'instructor': 'Michael Chen',
        'duration': 12,
        'lessons': 36,
    },
]


def seed_sample_data(storage: Storage) -> bool:
    """Populate an empty store. Returns False when users already exist."""
    if storage.get_all_users():
        return False

    users = [
        storage.create_user(password=hash_password(SAMPLE_PASSWORD), **user_data)
        for user_data in SAMPLE_USERS
    ]
    admin = next(user for user in users if user.role == ROLE_ADMIN)

    if not storage.get_all_courses():
        for course_data in SAMPLE_COURSES:
            storage.create_course(created_by=admin.id, active=True, **course_data)

    logger.info('Seeded %d users and %d courses', len(SAMPLE_USERS), len(SAMPLE_COURSES))
    return True
