from datetime import timedelta

import pytest
from django.contrib.auth.tokens import default_token_generator
from django.core import mail
from django.utils import timezone
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from rest_framework.authtoken.models import Token

from classroom.models import User

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db


def test_register_creates_user_token_and_group(api_client):
    response = api_client.post('/api/auth/register/', {
        'email': 'New.Student@Example.com',
        'name': 'New Student',
        'password': 'secret123',
        'board': 'CBSE',
        'standard': '10th',
    }, format='json')

    assert response.status_code == 201
    user = User.objects.get(email='new.student@example.com')
    assert user.role == 'student'
    assert user.onboarding_status == 'pending'
    assert user.groups.filter(name='Student').exists()
    assert response.data['token'] == Token.objects.get(user=user).key
    assert 'password' not in response.data['user']
    assert len(mail.outbox) == 1


def test_register_duplicate_email(api_client, student):
    response = api_client.post('/api/auth/register/', {
        'email': student.email.upper(),
        'name': 'Copy',
        'password': 'secret123',
    }, format='json')
    assert response.status_code == 400
    assert 'email' in response.data


def test_register_rejects_admin_role(api_client):
    response = api_client.post('/api/auth/register/', {
        'email': 'sneaky@example.com',
        'name': 'Sneaky',
        'password': 'secret123',
        'role': 'admin',
    }, format='json')
    assert response.status_code == 400


def test_register_short_password(api_client):
    response = api_client.post('/api/auth/register/', {
        'email': 'short@example.com', 'name': 'Short', 'password': '123',
    }, format='json')
    assert response.status_code == 400


def test_login_success(api_client, student):
    response = api_client.post('/api/auth/login/', {'email': student.email, 'password': PASSWORD}, format='json')
    assert response.status_code == 200
    assert response.data['role'] == 'student'
    assert response.data['token']
    student.refresh_from_db()
    assert student.last_login is not None


def test_login_missing_fields(api_client):
    response = api_client.post('/api/auth/login/', {'email': 'a@example.com'}, format='json')
    assert response.status_code == 400


def test_login_unknown_email(api_client):
    response = api_client.post('/api/auth/login/', {'email': 'ghost@example.com', 'password': 'x'}, format='json')
    assert response.status_code == 401


def test_login_locks_after_five_failures(api_client, student):
    for _ in range(5):
        response = api_client.post('/api/auth/login/', {'email': student.email, 'password': 'wrong'}, format='json')
        assert response.status_code == 401

    student.refresh_from_db()
    assert student.login_attempts == 5
    assert student.is_locked

    response = api_client.post('/api/auth/login/', {'email': student.email, 'password': PASSWORD}, format='json')
    assert response.status_code == 423


def test_expired_lock_restarts_count(api_client, student):
    student.login_attempts = 5
    student.lock_until = timezone.now() - timedelta(minutes=1)
    student.save()

    response = api_client.post('/api/auth/login/', {'email': student.email, 'password': 'wrong'}, format='json')
    assert response.status_code == 401
    student.refresh_from_db()
    assert student.login_attempts == 1
    assert student.lock_until is None


def test_successful_login_resets_attempts(api_client, student):
    student.login_attempts = 3
    student.save()
    api_client.post('/api/auth/login/', {'email': student.email, 'password': PASSWORD}, format='json')
    student.refresh_from_db()
    assert student.login_attempts == 0


def test_inactive_user_cannot_login(api_client, make_user):
    user = make_user('student', is_active=False)
    response = api_client.post('/api/auth/login/', {'email': user.email, 'password': PASSWORD}, format='json')
    assert response.status_code == 401


def test_logout_deletes_token(client_for, student):
    Token.objects.create(user=student)
    response = client_for(student).post('/api/auth/logout/')
    assert response.status_code == 200
    assert not Token.objects.filter(user=student).exists()


def test_me_requires_auth(api_client):
    assert api_client.get('/api/auth/me/').status_code == 401


def test_me_returns_profile(client_for, student):
    response = client_for(student).get('/api/auth/me/')
    assert response.status_code == 200
    assert response.data['email'] == student.email


def test_profile_update(client_for, student):
    response = client_for(student).patch('/api/auth/profile/', {'city': 'Pune', 'phone': '9876543210'}, format='json')
    assert response.status_code == 200
    student.refresh_from_db()
    assert student.city == 'Pune'


def test_profile_update_rejects_bad_phone(client_for, student):
    response = client_for(student).patch('/api/auth/profile/', {'phone': '12ab'}, format='json')
    assert response.status_code == 400


def test_password_update_rotates_token(client_for, student):
    old = Token.objects.create(user=student)
    response = client_for(student).put('/api/auth/password/', {
        'current_password': PASSWORD, 'new_password': 'newsecret1',
    }, format='json')
    assert response.status_code == 200
    assert response.data['token'] != old.key
    student.refresh_from_db()
    assert student.check_password('newsecret1')


def test_password_update_wrong_current(client_for, student):
    response = client_for(student).put('/api/auth/password/', {
        'current_password': 'nope', 'new_password': 'newsecret1',
    }, format='json')
    assert response.status_code == 400


def test_forgot_password_same_answer_for_unknown_email(api_client, student):
    known = api_client.post('/api/auth/forgot-password/', {'email': student.email}, format='json')
    unknown = api_client.post('/api/auth/forgot-password/', {'email': 'ghost@example.com'}, format='json')
    assert known.status_code == unknown.status_code == 200
    assert known.data == unknown.data
    assert len(mail.outbox) == 1
    assert '/reset-password/' in mail.outbox[0].body


def test_reset_password(api_client, student):
    student.login_attempts = 5
    student.lock_until = timezone.now() + timedelta(hours=1)
    student.save()

    response = api_client.post('/api/auth/reset-password/', {
        'uid': urlsafe_base64_encode(force_bytes(student.pk)),
        'token': default_token_generator.make_token(student),
        'password': 'brandnew1',
    }, format='json')
    assert response.status_code == 200
    student.refresh_from_db()
    assert student.check_password('brandnew1')
    assert not student.is_locked


def test_reset_password_bad_token(api_client, student):
    response = api_client.post('/api/auth/reset-password/', {
        'uid': urlsafe_base64_encode(force_bytes(student.pk)),
        'token': 'not-a-token',
        'password': 'brandnew1',
    }, format='json')
    assert response.status_code == 400


def test_user_search(client_for, student, make_user):
    make_user('teacher', name='Ravi Kumar')
    response = client_for(student).get('/api/users/?q=ravi')
    assert response.status_code == 200
    assert [row['name'] for row in response.data['data']] == ['Ravi Kumar']
