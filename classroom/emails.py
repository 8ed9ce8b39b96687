import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

PLACEHOLDER_USER = 'your_email@gmail.com'
PLACEHOLDER_PASSWORD = 'your_email_password'


def email_configured():
    user = settings.EMAIL_HOST_USER
    password = settings.EMAIL_HOST_PASSWORD
    if not user or user == PLACEHOLDER_USER:
        return False
    if not password or password == PLACEHOLDER_PASSWORD:
        return False
    return True


def from_address():
    return f"{settings.EMAIL_FROM_NAME} <{settings.DEFAULT_FROM_EMAIL or settings.EMAIL_HOST_USER}>"


def send_email(email, subject, message, html=None):
    """
    Send one transactional email.

    Never raises: an unconfigured mailer is skipped and a failing one is
    logged, so callers can fire and forget.
    """
    if not email_configured():
        logger.info('Email not configured - skipping email send to: %s', email)
        return {'message_id': 'email-disabled'}

    try:
        sent = send_mail(
            subject=subject,
            message=message,
            from_email=from_address(),
            recipient_list=[email],
            html_message=html or message,
            fail_silently=False,
        )
    except Exception as exc:
        # bad headers surface as ValueError, transport problems as SMTPException or OSError
        logger.exception('Email send error to %s: %s', email, exc)
        return {'message_id': 'email-failed', 'error': str(exc)}

    logger.info('Email sent to %s: %s', email, subject)
    return {'message_id': 'sent', 'sent': sent}


def send_welcome_email(user):
    return send_email(
        user.email,
        'Welcome to Classroom LMS',
        f"Hi {user.name},\n\nYour {user.role} account has been created. "
        f"An administrator will review your profile shortly.\n",
    )


def send_password_reset_email(user, reset_url):
    message = (
        f"Hi {user.name},\n\n"
        f"You are receiving this email because you (or someone else) requested a password reset.\n"
        f"Open the following link to choose a new password:\n\n{reset_url}\n\n"
        f"If you did not request this, please ignore this email.\n"
    )
    html = f'<p>Hi {user.name},</p><p>Reset your password here: <a href="{reset_url}">{reset_url}</a></p>'
    return send_email(user.email, 'Password Reset Request', message, html)


def send_onboarding_approved_email(user):
    frontend = settings.LMS['FRONTEND_URL']
    return send_email(
        user.email,
        'Your account has been approved',
        f"Hi {user.name},\n\nYour onboarding is complete. You can now log in at {frontend}/login.\n",
    )


def send_onboarding_rejected_email(user, reason):
    return send_email(
        user.email,
        'Onboarding update',
        f"Hi {user.name},\n\nUnfortunately your onboarding request was not approved.\n"
        f"Reason: {reason or 'Not specified'}\n",
    )


def send_assignment_graded_email(submission):
    assignment = submission.assignment
    return send_email(
        submission.student.email,
        f"Assignment Graded: {assignment.title}",
        f"Hi {submission.student.name},\n\n"
        f"Your submission for \"{assignment.title}\" has been graded.\n"
        f"Score: {submission.score}/{assignment.max_score}\n"
        f"Feedback: {submission.feedback or '-'}\n",
    )
