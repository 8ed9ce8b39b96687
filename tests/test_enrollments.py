from datetime import timedelta

import pytest
from django.utils import timezone

from classroom.exceptions import WorkflowError
from classroom.models import Enrollment, Lesson, Notification

pytestmark = pytest.mark.django_db


def test_student_enrolls(client_for, student, course):
    response = client_for(student).post('/api/enrollments/', {'course': course.pk}, format='json')
    assert response.status_code == 201
    enrollment = Enrollment.objects.get(student=student, course=course)
    assert enrollment.status == 'active'
    assert enrollment.payment_status == 'pending'
    assert float(enrollment.amount) == 1000.0
    assert Notification.objects.filter(recipient=course.teacher, type='class_enrolled').exists()


def test_free_course_enrollment_is_waived(client_for, student, make_course):
    free = make_course(price=0)
    client_for(student).post('/api/enrollments/', {'course': free.pk}, format='json')
    assert Enrollment.objects.get(student=student, course=free).payment_status == 'waived'


def test_duplicate_enrollment_refused(client_for, student, course, enrollment):
    response = client_for(student).post('/api/enrollments/', {'course': course.pk}, format='json')
    assert response.status_code == 400
    assert 'already enrolled' in response.data['detail']


def test_dropped_enrollment_is_reactivated(client_for, student, course, enrollment):
    enrollment.status = 'dropped'
    enrollment.save()
    response = client_for(student).post('/api/enrollments/', {'course': course.pk}, format='json')
    assert response.status_code == 201
    assert Enrollment.objects.filter(student=student, course=course).count() == 1
    enrollment.refresh_from_db()
    assert enrollment.status == 'active'


@pytest.mark.parametrize('changes,message', [
    ({'status': 'draft'}, 'not yet published'),
    ({'is_active': False}, 'not currently active'),
    ({'enrollment_deadline': timezone.now() - timedelta(days=1)}, 'deadline has passed'),
])
def test_enrollment_refusals(client_for, student, make_course, changes, message):
    closed = make_course(**changes)
    response = client_for(student).post('/api/enrollments/', {'course': closed.pk}, format='json')
    assert response.status_code == 400
    assert message in response.data['detail']


def test_full_course_refused(client_for, make_user, make_course):
    full = make_course(max_students=1)
    Enrollment.objects.create(student=make_user('student'), course=full)
    response = client_for(make_user('student')).post('/api/enrollments/', {'course': full.pk}, format='json')
    assert response.status_code == 400
    assert 'full' in response.data['detail']


def test_pending_student_cannot_enroll(client_for, make_user, course):
    pending = make_user('student', onboarded=False)
    response = client_for(pending).post('/api/enrollments/', {'course': course.pk}, format='json')
    assert response.status_code == 403


def test_teacher_cannot_enroll(client_for, teacher, course):
    response = client_for(teacher).post('/api/enrollments/', {'course': course.pk}, format='json')
    assert response.status_code == 403


def test_unknown_course(client_for, student):
    response = client_for(student).post('/api/enrollments/', {'course': 9999}, format='json')
    assert response.status_code == 404


def test_my_enrollments(client_for, student, enrollment):
    response = client_for(student).get('/api/enrollments/')
    assert response.status_code == 200
    assert response.data['data'][0]['id'] == enrollment.pk


def test_enrollment_detail_visibility(client_for, student, teacher, enrollment, make_user):
    assert client_for(student).get(f'/api/enrollments/{enrollment.pk}/').status_code == 200
    assert client_for(teacher).get(f'/api/enrollments/{enrollment.pk}/').status_code == 200
    assert client_for(make_user('student')).get(f'/api/enrollments/{enrollment.pk}/').status_code == 403


def test_lesson_progress(client_for, student, course, enrollment):
    lessons = list(Lesson.objects.filter(module__course=course))
    client = client_for(student)

    response = client.post(f'/api/enrollments/{enrollment.pk}/progress/', {'lesson': lessons[0].pk, 'time_spent': 120}, format='json')
    assert response.status_code == 200
    assert response.data['percentage_complete'] == 50

    # completing the same lesson again only adds time
    client.post(f'/api/enrollments/{enrollment.pk}/progress/', {'lesson': lessons[0].pk, 'time_spent': 30}, format='json')
    completion = enrollment.completed_lessons.get(lesson=lessons[0])
    assert completion.time_spent == 150

    response = client.post(f'/api/enrollments/{enrollment.pk}/progress/', {'lesson': lessons[1].pk}, format='json')
    assert response.data['percentage_complete'] == 100


def test_progress_rejects_foreign_lesson(client_for, student, enrollment, make_course):
    other = make_course()
    module = other.modules.create(title='Elsewhere')
    lesson = Lesson.objects.create(module=module, title='Nope', type='video')
    response = client_for(student).post(f'/api/enrollments/{enrollment.pk}/progress/', {'lesson': lesson.pk}, format='json')
    assert response.status_code == 404


def test_attendance_by_teacher_and_self_check_in(client_for, student, teacher, enrollment):
    response = client_for(teacher).post(f'/api/enrollments/{enrollment.pk}/attendance/', {'status': 'absent'}, format='json')
    assert response.status_code == 201

    response = client_for(student).post(f'/api/enrollments/{enrollment.pk}/attendance/', {}, format='json')
    assert response.status_code == 201
    assert response.data['attendance_percentage'] == 50

    response = client_for(student).post(f'/api/enrollments/{enrollment.pk}/attendance/', {'status': 'excused'}, format='json')
    assert response.status_code == 400

    response = client_for(student).get(f'/api/enrollments/{enrollment.pk}/attendance/')
    assert response.data['total_sessions'] == 2


def test_roster_only_for_owner(client_for, teacher, student, course, enrollment):
    response = client_for(teacher).get(f'/api/courses/{course.pk}/students/')
    assert response.status_code == 200
    assert response.data['pagination']['total'] == 1
    assert client_for(student).get(f'/api/courses/{course.pk}/students/').status_code == 403


def test_drop(client_for, student, enrollment):
    response = client_for(student).post(f'/api/enrollments/{enrollment.pk}/drop/')
    assert response.status_code == 200
    enrollment.refresh_from_db()
    assert enrollment.status == 'dropped'
    assert client_for(student).post(f'/api/enrollments/{enrollment.pk}/drop/').status_code == 400


def test_status_change_by_teacher(client_for, teacher, student, enrollment):
    assert client_for(student).put(f'/api/enrollments/{enrollment.pk}/status/', {'status': 'completed'}, format='json').status_code == 403

    response = client_for(teacher).put(f'/api/enrollments/{enrollment.pk}/status/', {'status': 'completed'}, format='json')
    assert response.status_code == 200
    enrollment.refresh_from_db()
    assert enrollment.completion_date is not None

    response = client_for(teacher).put(f'/api/enrollments/{enrollment.pk}/status/', {'status': 'graduated'}, format='json')
    assert response.status_code == 400


@pytest.mark.parametrize('percentage,letter', [
    (95, 'A+'), (85, 'A'), (75, 'B+'), (65, 'B'), (55, 'C+'), (45, 'C'), (35, 'D'), (10, 'F'),
])
def test_final_grade_bands(enrollment, assignment, teacher, percentage, letter):
    enrollment.record_assignment_grade(assignment, percentage, teacher)
    assert enrollment.final_grade == letter
    assert enrollment.grade_percentage == percentage


def test_certificate_requires_eligibility(enrollment):
    with pytest.raises(WorkflowError):
        enrollment.issue_certificate()


def test_certificate_endpoint(client_for, student, enrollment, assignment, teacher):
    response = client_for(student).post(f'/api/enrollments/{enrollment.pk}/certificate/')
    assert response.status_code == 400
    assert response.data['detail'] == 'Not eligible for certificate yet'

    enrollment.record_assignment_grade(assignment, 80, teacher)
    enrollment.percentage_complete = 100
    enrollment.status = 'completed'
    enrollment.save()

    response = client_for(student).post(f'/api/enrollments/{enrollment.pk}/certificate/')
    assert response.status_code == 200
    first_id = response.data['certificate_id']
    assert first_id.startswith('CERT-')

    response = client_for(student).post(f'/api/enrollments/{enrollment.pk}/certificate/')
    assert response.data['certificate_id'] == first_id
