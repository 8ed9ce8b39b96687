from smtplib import SMTPException

import pytest
from django.core import mail

from classroom import emails


def test_send_email_goes_to_outbox():
    result = emails.send_email('someone@example.com', 'Hello', 'Plain body', '<p>Html body</p>')
    assert result['message_id'] == 'sent'
    assert len(mail.outbox) == 1
    message = mail.outbox[0]
    assert message.to == ['someone@example.com']
    assert message.subject == 'Hello'
    assert message.from_email == 'Classroom LMS <noreply@classroom.test>'


@pytest.mark.parametrize('user,password', [
    ('', 'app-password'),
    ('your_email@gmail.com', 'app-password'),
    ('noreply@classroom.test', 'your_email_password'),
])
def test_unconfigured_mailer_is_skipped(settings, user, password):
    settings.EMAIL_HOST_USER = user
    settings.EMAIL_HOST_PASSWORD = password

    result = emails.send_email('someone@example.com', 'Hello', 'Body')
    assert result == {'message_id': 'email-disabled'}
    assert mail.outbox == []


def test_smtp_failure_is_reported_not_raised(monkeypatch):
    def broken(**kwargs):
        raise SMTPException('connection refused')

    monkeypatch.setattr(emails, 'send_mail', broken)
    result = emails.send_email('someone@example.com', 'Hello', 'Body')
    assert result['message_id'] == 'email-failed'
    assert 'connection refused' in result['error']


@pytest.mark.django_db
def test_password_reset_email_contains_link(student):
    emails.send_password_reset_email(student, 'http://localhost:3000/reset-password/abc/def')
    assert 'http://localhost:3000/reset-password/abc/def' in mail.outbox[0].body
    assert mail.outbox[0].to == [student.email]


def test_multiline_subject_is_reported_not_raised():
    result = emails.send_email('someone@example.com', 'Graded: Essay\nPart 2', 'Body')
    assert result['message_id'] == 'email-failed'
    assert mail.outbox == []
