import pytest

from classroom.models import Enrollment, StudentGroup, Submission

pytestmark = pytest.mark.django_db


@pytest.fixture
def classmates(make_user, course):
    students = [make_user('student') for _ in range(3)]
    for student in students:
        Enrollment.objects.create(student=student, course=course)
    return students


@pytest.fixture
def group(course, teacher, classmates):
    group = StudentGroup.objects.create(name='Revision squad', course=course, teacher=teacher, type='study')
    group.add_students(classmates[:2])
    return group


def test_teacher_creates_group_with_enrolled_students(client_for, teacher, course, classmates):
    response = client_for(teacher).post(
        '/api/groups/',
        {'name': 'Toppers', 'course': course.pk, 'type': 'performance', 'students': [classmates[0].pk]},
        format='json',
    )
    assert response.status_code == 201
    assert response.data['teacher']['id'] == teacher.pk
    assert [s['id'] for s in response.data['students']] == [classmates[0].pk]
    assert response.data['course_title'] == course.title


def test_group_refuses_unenrolled_students(client_for, teacher, course, make_user):
    outsider = make_user('student')
    response = client_for(teacher).post(
        '/api/groups/', {'name': 'Toppers', 'course': course.pk, 'students': [outsider.pk]}, format='json',
    )
    assert response.status_code == 400
    assert response.data['detail'] == 'Some students are not enrolled in this class'
    assert not StudentGroup.objects.exists()


def test_other_teacher_cannot_create_group(client_for, make_user, course):
    other = make_user('teacher')
    response = client_for(other).post('/api/groups/', {'name': 'Toppers', 'course': course.pk}, format='json')
    assert response.status_code == 403


def test_student_cannot_list_groups(client_for, student):
    assert client_for(student).get('/api/groups/').status_code == 403


def test_list_only_own_groups(client_for, teacher, admin_user, make_user, make_course, group):
    other = make_user('teacher')
    StudentGroup.objects.create(name='Elsewhere', course=make_course(owner=other), teacher=other)

    response = client_for(teacher).get('/api/groups/')
    assert [row['name'] for row in response.data['data']] == ['Revision squad']

    response = client_for(admin_user).get('/api/groups/')
    assert response.data['pagination']['total'] == 2


def test_group_detail_reports_performance(client_for, teacher, assignment, classmates, group):
    Submission.objects.create(assignment=assignment, student=classmates[0], score=80, status='graded')
    Submission.objects.create(assignment=assignment, student=classmates[1], score=60, status='graded')
    Submission.objects.create(assignment=assignment, student=classmates[2], score=10, status='graded')

    response = client_for(teacher).get(f'/api/groups/{group.pk}/')
    assert response.status_code == 200
    assert response.data['performance'] == {'assignments_count': 1, 'average_performance': 70.0}


def test_foreign_group_is_not_found(client_for, make_user, group):
    other = make_user('teacher')
    response = client_for(other).get(f'/api/groups/{group.pk}/')
    assert response.status_code == 404
    assert response.data['detail'] == 'Group not found'


def test_update_group_ignores_course(client_for, teacher, course, make_course, group):
    response = client_for(teacher).patch(
        f'/api/groups/{group.pk}/', {'name': 'Weekend squad', 'course': make_course().pk}, format='json',
    )
    assert response.status_code == 200
    group.refresh_from_db()
    assert group.name == 'Weekend squad'
    assert group.course_id == course.pk


def test_update_group_rejects_bad_color(client_for, teacher, group):
    response = client_for(teacher).patch(f'/api/groups/{group.pk}/', {'color': 'blue'}, format='json')
    assert response.status_code == 400


def test_add_and_remove_students(client_for, teacher, classmates, group):
    client = client_for(teacher)
    response = client.post(f'/api/groups/{group.pk}/students/add/', {'students': [classmates[2].pk]}, format='json')
    assert response.status_code == 200
    assert group.students.count() == 3

    response = client.post(
        f'/api/groups/{group.pk}/students/remove/', {'students': [classmates[0].pk]}, format='json',
    )
    assert response.status_code == 200
    assert set(group.students.values_list('pk', flat=True)) == {classmates[1].pk, classmates[2].pk}


def test_add_students_requires_selection(client_for, teacher, group):
    response = client_for(teacher).post(f'/api/groups/{group.pk}/students/add/', {'students': []}, format='json')
    assert response.status_code == 400
    assert response.data['detail'] == 'Please select students'


def test_delete_group(client_for, teacher, group):
    assert client_for(teacher).delete(f'/api/groups/{group.pk}/').status_code == 200
    assert not StudentGroup.objects.filter(pk=group.pk).exists()


def test_available_students_excludes_active_groups(client_for, teacher, course, classmates, group):
    response = client_for(teacher).get(f'/api/courses/{course.pk}/available-students/')
    assert response.status_code == 200
    assert [s['id'] for s in response.data['available']] == [classmates[2].pk]
    assert response.data['grouped'] == 2
    assert response.data['total'] == 3

    group.is_active = False
    group.save()
    response = client_for(teacher).get(f'/api/courses/{course.pk}/available-students/')
    assert len(response.data['available']) == 3
