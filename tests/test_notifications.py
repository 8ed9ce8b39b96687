import logging
from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.db import DatabaseError
from django.utils import timezone

from classroom import notifications
from classroom.models import Notification, Payment

pytestmark = pytest.mark.django_db


@pytest.fixture
def make_notification(student):
    def _make(recipient=None, **extra):
        data = {'type': 'general', 'title': 'Hello', 'message': 'Welcome to the class'}
        data.update(extra)
        return Notification.objects.create(recipient=recipient or student, **data)

    return _make


def test_create_notification(student, teacher):
    notification = notifications.create_notification(
        student, sender=teacher, type='general', title='Hi', message='There',
    )
    assert notification.recipient == student
    assert notification.priority == 'medium'


def test_database_errors_are_logged_not_raised(student, monkeypatch, caplog):
    def broken(**kwargs):
        raise DatabaseError('disk full')

    monkeypatch.setattr(Notification.objects, 'create', broken)
    with caplog.at_level(logging.ERROR, logger='classroom.notifications'):
        result = notifications.create_notification(student, type='general', title='Hi', message='There')
    assert result is None
    assert 'Error creating notification' in caplog.text


def test_bulk_notifications(make_user):
    recipients = [make_user('student') for _ in range(3)]
    created = notifications.send_general_notification(recipients, 'Holiday', 'School closed on Friday')
    assert len(created) == 3
    assert Notification.objects.filter(type='general', title='Holiday').count() == 3


def test_bulk_with_no_recipients():
    assert notifications.create_bulk_notifications([], type='general', title='x', message='y') == []


def test_general_notification_to_single_user(student):
    notification = notifications.send_general_notification(student, 'Reminder', 'Fees due')
    assert notification.recipient == student


def test_payment_notification_goes_to_teacher(student, teacher, course):
    payment = Payment.objects.create(student=student, course=course, amount=course.effective_price)
    notification = notifications.notify_payment_received(payment)
    assert notification.recipient == teacher
    assert notification.payment == payment


def test_cleanup_removes_only_old_read(make_notification):
    old_read = make_notification(is_read=True)
    old_unread = make_notification()
    recent_read = make_notification(is_read=True)
    Notification.objects.filter(pk__in=[old_read.pk, old_unread.pk]).update(
        created_at=timezone.now() - timedelta(days=45),
    )

    assert notifications.cleanup_old_notifications(days=30) == 1
    remaining = set(Notification.objects.values_list('pk', flat=True))
    assert remaining == {old_unread.pk, recent_read.pk}


def test_cleanup_command(make_notification):
    stale = make_notification(is_read=True)
    Notification.objects.filter(pk=stale.pk).update(created_at=timezone.now() - timedelta(days=400))
    out = StringIO()
    call_command('cleanup_notifications', stdout=out)
    assert 'Deleted 1 notifications' in out.getvalue()
    assert not Notification.objects.filter(pk=stale.pk).exists()


def test_list_and_filters(client_for, student, make_notification, make_user):
    make_notification(type='class_enrolled')
    make_notification(is_read=True)
    make_notification(recipient=make_user('student'))
    client = client_for(student)

    assert client.get('/api/notifications/').data['pagination']['total'] == 2
    assert client.get('/api/notifications/?is_read=false').data['pagination']['total'] == 1
    assert client.get('/api/notifications/?type=class_enrolled').data['pagination']['total'] == 1
    assert client.get('/api/notifications/unread-count/').data == {'count': 1}


def test_mark_read_and_delete(client_for, student, make_notification):
    notification = make_notification()
    client = client_for(student)

    response = client.put(f'/api/notifications/{notification.pk}/')
    assert response.status_code == 200
    assert response.data['is_read'] is True

    assert client.delete(f'/api/notifications/{notification.pk}/').status_code == 200
    assert not Notification.objects.filter(pk=notification.pk).exists()


def test_other_users_notification_is_404(client_for, make_notification, make_user):
    notification = make_notification()
    assert client_for(make_user('student')).put(f'/api/notifications/{notification.pk}/').status_code == 404


def test_read_all(client_for, student, make_notification):
    make_notification()
    make_notification()
    response = client_for(student).put('/api/notifications/read-all/')
    assert response.data['updated'] == 2
    assert not Notification.objects.filter(recipient=student, is_read=False).exists()
