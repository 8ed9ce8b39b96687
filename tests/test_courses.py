from decimal import Decimal

import pytest

from classroom.models import Course, CourseRating, Enrollment, Module

pytestmark = pytest.mark.django_db

COURSE_PAYLOAD = {
    'title': 'Physics for Class 10',
    'description': 'Light, electricity and magnetism',
    'board': 'CBSE',
    'standard': '10',
    'subject': 'Physics',
    'price': '1500.00',
    'discount_price': '1200.00',
    'duration': 60,
    'tags': ['science', 'boards'],
}


def test_teacher_creates_course(client_for, teacher):
    response = client_for(teacher).post('/api/courses/', COURSE_PAYLOAD, format='json')
    assert response.status_code == 201
    assert response.data['teacher']['id'] == teacher.pk
    assert response.data['status'] == 'draft'
    assert float(response.data['effective_price']) == 1200.0


def test_course_status_cannot_be_forced(client_for, teacher):
    response = client_for(teacher).post('/api/courses/', {**COURSE_PAYLOAD, 'status': 'published'}, format='json')
    assert response.status_code == 201
    assert response.data['status'] == 'draft'


def test_pending_teacher_cannot_create(client_for, make_user):
    pending = make_user('teacher', onboarded=False)
    response = client_for(pending).post('/api/courses/', COURSE_PAYLOAD, format='json')
    assert response.status_code == 403
    assert 'onboarding' in response.data['detail']


def test_student_cannot_create(client_for, student):
    response = client_for(student).post('/api/courses/', COURSE_PAYLOAD, format='json')
    assert response.status_code == 403


def test_admin_creates_for_teacher(client_for, admin_user, teacher):
    response = client_for(admin_user).post('/api/courses/', {**COURSE_PAYLOAD, 'teacher': teacher.pk}, format='json')
    assert response.status_code == 201
    assert Course.objects.get(pk=response.data['id']).teacher == teacher


def test_discount_above_price_rejected(client_for, teacher):
    response = client_for(teacher).post('/api/courses/', {**COURSE_PAYLOAD, 'discount_price': '2000'}, format='json')
    assert response.status_code == 400
    assert 'discount_price' in response.data


def test_end_before_start_rejected(client_for, teacher):
    payload = {**COURSE_PAYLOAD, 'start_date': '2026-06-01', 'end_date': '2026-05-01'}
    response = client_for(teacher).post('/api/courses/', payload, format='json')
    assert response.status_code == 400


def test_public_list_shows_only_published(api_client, make_course):
    make_course(title='Visible')
    make_course(title='Hidden', status='draft')
    response = api_client.get('/api/courses/')
    assert response.status_code == 200
    assert [row['title'] for row in response.data['data']] == ['Visible']


def test_list_filters_and_search(api_client, make_course):
    make_course(title='Cheap', price=Decimal('100'), level='Beginner')
    make_course(title='Pricey', price=Decimal('5000'), level='Advanced')

    response = api_client.get('/api/courses/?max_price=1000')
    assert [row['title'] for row in response.data['data']] == ['Cheap']

    response = api_client.get('/api/courses/?level=Advanced')
    assert [row['title'] for row in response.data['data']] == ['Pricey']

    response = api_client.get('/api/courses/?search=pric')
    assert [row['title'] for row in response.data['data']] == ['Pricey']

    response = api_client.get('/api/courses/?sort=price')
    assert [row['title'] for row in response.data['data']] == ['Cheap', 'Pricey']


def test_teacher_courses_lists_drafts(client_for, teacher, make_course):
    make_course(title='Draft', status='draft')
    response = client_for(teacher).get('/api/courses/mine/')
    assert response.status_code == 200
    assert response.data['pagination']['total'] == 1


def test_detail_hides_draft_from_strangers(api_client, client_for, teacher, make_course):
    draft = make_course(status='draft')
    assert api_client.get(f'/api/courses/{draft.pk}/').status_code == 404
    assert client_for(teacher).get(f'/api/courses/{draft.pk}/').status_code == 200


def test_detail_includes_modules_and_enrollment(client_for, student, course, enrollment):
    response = client_for(student).get(f'/api/courses/{course.pk}/')
    assert response.status_code == 200
    assert len(response.data['modules']) == 1
    assert len(response.data['modules'][0]['lessons']) == 2
    assert response.data['enrollment'] is not None


def test_only_owner_updates(client_for, course, make_user):
    other = make_user('teacher')
    response = client_for(other).patch(f'/api/courses/{course.pk}/', {'title': 'Mine now'}, format='json')
    assert response.status_code == 403


def test_owner_updates(client_for, teacher, course):
    response = client_for(teacher).patch(f'/api/courses/{course.pk}/', {'title': 'Algebra II'}, format='json')
    assert response.status_code == 200
    course.refresh_from_db()
    assert course.title == 'Algebra II'


def test_delete_refused_with_students(client_for, teacher, course, enrollment):
    response = client_for(teacher).delete(f'/api/courses/{course.pk}/')
    assert response.status_code == 400
    assert Course.objects.filter(pk=course.pk).exists()


def test_delete_allowed_when_only_dropped(client_for, teacher, course, enrollment):
    enrollment.status = 'dropped'
    enrollment.save()
    response = client_for(teacher).delete(f'/api/courses/{course.pk}/')
    assert response.status_code == 200
    assert not Course.objects.filter(pk=course.pk).exists()


def test_publish_requires_module(client_for, teacher, make_course):
    draft = make_course(status='draft')
    response = client_for(teacher).post(f'/api/courses/{draft.pk}/publish/')
    assert response.status_code == 400

    Module.objects.create(course=draft, title='Intro')
    response = client_for(teacher).post(f'/api/courses/{draft.pk}/publish/')
    assert response.status_code == 200
    draft.refresh_from_db()
    assert draft.status == 'published'
    assert draft.published_at is not None


def test_module_and_lesson_creation_updates_lecture_count(client_for, teacher, course):
    client = client_for(teacher)
    response = client.post(f'/api/courses/{course.pk}/modules/', {'title': 'Quadratics'}, format='json')
    assert response.status_code == 201
    module_pk = response.data['id']
    assert response.data['order'] == 1

    response = client.post(
        f'/api/courses/{course.pk}/modules/{module_pk}/lessons/',
        {'title': 'Factorising', 'type': 'video'},
        format='json',
    )
    assert response.status_code == 201
    course.refresh_from_db()
    assert course.total_lectures == 3

    response = client.delete(f'/api/courses/{course.pk}/modules/{module_pk}/')
    assert response.status_code == 200
    course.refresh_from_db()
    assert course.total_lectures == 2


def test_rating_requires_enrollment(client_for, student, course):
    response = client_for(student).post(f'/api/courses/{course.pk}/ratings/', {'rating': 5}, format='json')
    assert response.status_code == 403


def test_rating_create_then_update(client_for, student, course, enrollment, make_user):
    client = client_for(student)
    response = client.post(f'/api/courses/{course.pk}/ratings/', {'rating': 4, 'review': 'Good'}, format='json')
    assert response.status_code == 201

    other = make_user('student')
    Enrollment.objects.create(student=other, course=course)
    client_for(other).post(f'/api/courses/{course.pk}/ratings/', {'rating': 5}, format='json')

    response = client.post(f'/api/courses/{course.pk}/ratings/', {'rating': 2}, format='json')
    assert response.status_code == 200
    assert CourseRating.objects.filter(course=course).count() == 2
    course.refresh_from_db()
    assert course.average_rating == 3.5
    assert course.total_reviews == 2


def test_rating_out_of_range(client_for, student, course, enrollment):
    response = client_for(student).post(f'/api/courses/{course.pk}/ratings/', {'rating': 6}, format='json')
    assert response.status_code == 400
