"""
In-app notification helpers.

Every helper swallows database errors after logging them: a notification
that can't be written must never fail the request that triggered it.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from .models import Notification, User

logger = logging.getLogger(__name__)


def create_notification(recipient, **data):
    try:
        with transaction.atomic():
            return Notification.objects.create(recipient=recipient, **data)
    except DatabaseError:
        logger.exception('Error creating notification for %s', recipient)
        return None


def create_bulk_notifications(recipients, **data):
    recipients = list(recipients)
    if not recipients:
        return []
    try:
        with transaction.atomic():
            return Notification.objects.bulk_create(
                [Notification(recipient=recipient, **data) for recipient in recipients]
            )
    except DatabaseError:
        logger.exception('Error creating %d bulk notifications', len(recipients))
        return []


def enrolled_students(course):
    return list(course.enrolled_students)


def notify_assignment_created(assignment):
    return create_bulk_notifications(
        enrolled_students(assignment.course),
        sender=assignment.created_by,
        type='assignment_created',
        title='New Assignment Available',
        message=f'A new assignment "{assignment.title}" has been posted for your class.',
        course=assignment.course,
        assignment=assignment,
        priority='medium',
    )


def notify_assignment_submitted(submission):
    assignment = submission.assignment
    return create_notification(
        assignment.created_by,
        sender=submission.student,
        type='assignment_submitted',
        title='Assignment Submitted',
        message=f'{submission.student.name} has submitted the assignment "{assignment.title}".',
        assignment=assignment,
        priority='medium',
    )


def notify_assignment_graded(submission):
    assignment = submission.assignment
    return create_notification(
        submission.student,
        sender=submission.graded_by,
        type='assignment_graded',
        title='Assignment Graded',
        message=f'Your assignment "{assignment.title}" has been graded. Score: {submission.score}',
        assignment=assignment,
        priority='high',
    )


def notify_class_enrollment(enrollment):
    course = enrollment.course
    return create_notification(
        course.teacher,
        sender=enrollment.student,
        type='class_enrolled',
        title='New Student Enrollment',
        message=f'{enrollment.student.name} has enrolled in your class "{course.title}".',
        course=course,
        priority='low',
    )


def notify_material_uploaded(material):
    return create_bulk_notifications(
        enrolled_students(material.course),
        sender=material.uploaded_by,
        type='material_uploaded',
        title='New Study Material',
        message=f'New study material "{material.title}" has been uploaded to your class.',
        course=material.course,
        material=material,
        priority='low',
    )


def notify_class_starting(live_class):
    start = timezone.localtime(live_class.scheduled_at)
    return create_bulk_notifications(
        enrolled_students(live_class.course),
        sender=live_class.teacher,
        type='class_starting',
        title='Class Starting Soon',
        message=f'Your class "{live_class.title}" is starting at {start:%H:%M}.',
        course=live_class.course,
        priority='high',
    )


def notify_payment_received(payment):
    course = payment.course
    return create_notification(
        course.teacher,
        sender=payment.student,
        type='payment_received',
        title='Payment Received',
        message=f'Payment of {payment.amount} received for class "{course.title}".',
        course=course,
        payment=payment,
        priority='medium',
    )


def send_general_notification(recipients, title, message, sender=None, course=None):
    data = {
        'sender': sender,
        'type': 'general',
        'title': title,
        'message': message,
        'course': course,
        'priority': 'medium',
    }
    if isinstance(recipients, User):
        return create_notification(recipients, **data)
    return create_bulk_notifications(recipients, **data)


def mark_all_as_read(user):
    return Notification.objects.filter(recipient=user, is_read=False).update(is_read=True)


def cleanup_old_notifications(days=None):
    days = days or settings.LMS['NOTIFICATION_RETENTION_DAYS']
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = Notification.objects.filter(created_at__lt=cutoff, is_read=True).delete()
    logger.info('Removed %d read notifications older than %d days', deleted, days)
    return deleted
