import logging

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from .constants import current_academic_year, default_subjects_for_grade
from .emails import send_onboarding_approved_email, send_onboarding_rejected_email
from .exceptions import WorkflowError
from .models import Grade, Subject, SubjectTeacher, User

logger = logging.getLogger(__name__)

DEFAULT_BOARD = 'CBSE'
DEFAULT_STANDARD = '10th'
DEFAULT_MEDIUM = 'English'
DEFAULT_TEACHER_STANDARDS = ['9th', '10th']
DEFAULT_TEACHER_SUBJECTS = [
    {'subject': 'Mathematics', 'is_primary': True, 'specialization': ''},
    {'subject': 'Science', 'is_primary': False, 'specialization': ''},
]
AUTO_GRADE_CAPACITY = 1000


def subject_code(name, standard, board):
    digits = ''.join(ch for ch in standard if ch.isdigit())
    base = f"{board.replace(' ', '')[:4].upper()}{digits}{name.replace(' ', '')[:3].upper()}"
    code = base
    suffix = 1
    while Subject.objects.filter(code=code).exists():
        suffix += 1
        code = f"{base}{suffix}"
    return code


def _mark_completed(user, approved_by):
    now = timezone.now()
    user.onboarding_status = 'completed'
    user.onboarding_completed_at = now
    user.approved_by = approved_by
    user.approved_at = now
    user.rejection_reason = ''
    user.save()


def _pending_user(user_id, role):
    user = User.objects.filter(pk=user_id, role=role).first()
    if user is None:
        raise WorkflowError(f'{role.capitalize()} not found', status_code=404)
    if user.onboarding_status == 'completed':
        raise WorkflowError(f'{role.capitalize()} already onboarded')
    return user


@transaction.atomic
def onboard_student(user_id, approved_by):
    """Place a student in the grade matching their profile, creating it when missing."""
    user = _pending_user(user_id, 'student')

    if not user.board or not user.standard:
        user.board = user.board or DEFAULT_BOARD
        user.standard = user.standard or DEFAULT_STANDARD
        user.medium = user.medium or DEFAULT_MEDIUM

    grade, created = Grade.objects.get_or_create(
        name=user.standard,
        board=user.board,
        academic_year=current_academic_year(),
        defaults={
            'medium': user.medium or DEFAULT_MEDIUM,
            'description': f'Auto-created grade for {user.standard} {user.board} students',
            'enrollment_price': 0,
            'max_students': AUTO_GRADE_CAPACITY,
            'created_by': approved_by,
        },
    )
    if created:
        for name in default_subjects_for_grade(grade.name):
            Subject.objects.create(
                name=name,
                code=subject_code(name, grade.name, grade.board),
                grade=grade,
                created_by=approved_by,
            )
        logger.info('Auto-created grade %s with default subjects', grade)

    grade.enrolled_students.add(user)
    _mark_completed(user, approved_by)
    send_onboarding_approved_email(user)
    logger.info('Student %s onboarded into %s by %s', user.email, grade, approved_by.email)
    return {'user': user, 'grade': grade}


@transaction.atomic
def onboard_teacher(user_id, approved_by):
    """Assign a teacher to the subjects they can teach in matching active grades."""
    user = _pending_user(user_id, 'teacher')

    if not user.can_teach_boards:
        user.can_teach_boards = [DEFAULT_BOARD]
        user.can_teach_standards = user.can_teach_standards or list(DEFAULT_TEACHER_STANDARDS)
        user.can_teach_subjects = user.can_teach_subjects or [dict(s) for s in DEFAULT_TEACHER_SUBJECTS]
    boards = user.can_teach_boards
    standards = user.can_teach_standards or list(DEFAULT_TEACHER_STANDARDS)
    teachable = {}
    for entry in user.can_teach_subjects or DEFAULT_TEACHER_SUBJECTS:
        # profiles edited through the admin may hold bare subject names
        if isinstance(entry, str):
            entry = {'subject': entry}
        teachable[entry['subject']] = entry

    assigned = []
    grades = Grade.objects.filter(name__in=standards, board__in=boards, is_active=True)
    for grade in grades:
        for subject in grade.subjects.filter(name__in=list(teachable)):
            prefs = teachable[subject.name]
            _, created = SubjectTeacher.objects.get_or_create(
                subject=subject,
                teacher=user,
                defaults={
                    'is_primary': prefs.get('is_primary', False),
                    'specialization': prefs.get('specialization', ''),
                },
            )
            if created:
                assigned.append(subject)

    if not grades.exists():
        for board in boards:
            for standard in standards:
                grade, _ = Grade.objects.get_or_create(
                    name=standard,
                    board=board,
                    academic_year=current_academic_year(),
                    defaults={
                        'description': 'Auto-created for teacher onboarding',
                        'enrollment_price': 0,
                        'max_students': AUTO_GRADE_CAPACITY,
                        'created_by': approved_by,
                    },
                )
                for name, prefs in teachable.items():
                    if grade.subjects.filter(name=name).exists():
                        continue
                    subject = Subject.objects.create(
                        name=name,
                        code=subject_code(name, standard, board),
                        grade=grade,
                        created_by=approved_by,
                    )
                    SubjectTeacher.objects.create(
                        subject=subject,
                        teacher=user,
                        is_primary=prefs.get('is_primary', True),
                        specialization=prefs.get('specialization', ''),
                    )
                    assigned.append(subject)

    _mark_completed(user, approved_by)
    send_onboarding_approved_email(user)
    logger.info('Teacher %s onboarded with %d subjects', user.email, len(assigned))
    return {'user': user, 'assigned_subjects': assigned}


def reject_user(user, rejected_by, reason=''):
    user.onboarding_status = 'rejected'
    user.approved_by = rejected_by
    user.approved_at = timezone.now()
    user.rejection_reason = reason or ''
    user.save()
    send_onboarding_rejected_email(user, reason)
    return user


def bulk_onboard(user_ids, action, acting_user):
    results = {'success': [], 'failed': []}
    users = User.objects.filter(pk__in=user_ids, onboarding_status='pending')
    for user in users:
        try:
            if action == 'approve':
                if user.role == 'student':
                    onboard_student(user.pk, acting_user)
                elif user.role == 'teacher':
                    onboard_teacher(user.pk, acting_user)
                else:
                    raise WorkflowError('Only students and teachers go through onboarding')
            else:
                reject_user(user, acting_user)
        except WorkflowError as exc:
            results['failed'].append({'user_id': user.pk, 'name': user.name, 'error': exc.message})
            continue
        results['success'].append({'user_id': user.pk, 'name': user.name})
    return results


def onboarding_stats():
    stats = {
        'students': {'pending': 0, 'in_progress': 0, 'completed': 0, 'rejected': 0, 'total': 0},
        'teachers': {'pending': 0, 'in_progress': 0, 'completed': 0, 'rejected': 0, 'total': 0},
        'total_pending': 0,
    }
    rows = (
        User.objects.filter(role__in=['student', 'teacher'])
        .values('role', 'onboarding_status')
        .order_by()
        .annotate(count=Count('id'))
    )
    for row in rows:
        bucket = stats[row['role'] + 's']
        bucket[row['onboarding_status']] = row['count']
        bucket['total'] += row['count']
        if row['onboarding_status'] == 'pending':
            stats['total_pending'] += row['count']
    return stats