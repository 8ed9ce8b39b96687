from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from classroom.models import Assignment, Course, Enrollment, Lesson, Module, User

PASSWORD = 'secret123'


@pytest.fixture(autouse=True)
def lms_settings(settings, tmp_path):
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    settings.EMAIL_HOST_USER = 'noreply@classroom.test'
    settings.EMAIL_HOST_PASSWORD = 'app-password'
    settings.MEDIA_ROOT = tmp_path
    settings.LMS = {**settings.LMS, 'PAYMENT_KEY_SECRET': 'test_secret', 'MEETING_URL_PREFIX': 'classroom'}
    cache.clear()
    return settings


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make(role='student', email=None, onboarded=True, **extra):
        counter['n'] += 1
        extra.setdefault('name', f'{role.capitalize()} {counter["n"]}')
        extra.setdefault('onboarding_status', 'completed' if onboarded else 'pending')
        return User.objects.create_user(
            email=email or f'{role}{counter["n"]}@example.com',
            password=PASSWORD,
            role=role,
            **extra,
        )

    return _make


@pytest.fixture
def student(make_user):
    return make_user('student')


@pytest.fixture
def teacher(make_user):
    return make_user('teacher')


@pytest.fixture
def admin_user(make_user):
    return make_user('admin')


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


@pytest.fixture
def make_course(teacher):
    def _make(owner=None, **extra):
        data = {
            'title': 'Algebra Basics',
            'description': 'Linear equations and inequalities',
            'board': 'CBSE',
            'standard': '10',
            'subject': 'Mathematics',
            'price': Decimal('1000.00'),
            'duration': 40,
            'status': 'published',
            'published_at': timezone.now(),
        }
        data.update(extra)
        return Course.objects.create(teacher=owner or teacher, **data)

    return _make


@pytest.fixture
def course(make_course):
    course = make_course()
    module = Module.objects.create(course=course, title='Linear equations', order=0)
    Lesson.objects.create(module=module, title='One variable', type='video', order=0)
    Lesson.objects.create(module=module, title='Two variables', type='video', order=1)
    course.recalculate_total_lectures()
    return course


@pytest.fixture
def enrollment(student, course):
    return Enrollment.objects.create(student=student, course=course, amount=course.effective_price)


@pytest.fixture
def assignment(course, teacher):
    return Assignment.objects.create(
        course=course,
        created_by=teacher,
        title='Worksheet 1',
        description='Solve the equations',
        instructions='Show your working',
        due_date=timezone.now() + timedelta(days=7),
        is_published=True,
    )
