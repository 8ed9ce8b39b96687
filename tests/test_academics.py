import pytest

from classroom.constants import current_academic_year, default_subjects_for_grade
from classroom.models import Grade, Subject, SubjectTeacher

pytestmark = pytest.mark.django_db


@pytest.fixture
def grade(admin_user):
    return Grade.objects.create(name='10th', board='CBSE', max_students=2, created_by=admin_user)


@pytest.mark.parametrize('standard,expected', [
    ('3rd', 'Environmental Studies'),
    ('7th', 'Computer Science'),
    ('10th', 'Physics'),
    ('12th', 'Economics'),
])
def test_default_subjects_by_standard(standard, expected):
    assert expected in default_subjects_for_grade(standard)


def test_admin_creates_grade(client_for, admin_user):
    response = client_for(admin_user).post('/api/grades/', {'name': '9th', 'board': 'ICSE'}, format='json')
    assert response.status_code == 201
    assert response.data['academic_year'] == current_academic_year()
    assert response.data['display_name'] == f'9th - ICSE ({current_academic_year()})'


def test_duplicate_grade_rejected(client_for, admin_user, grade):
    response = client_for(admin_user).post('/api/grades/', {'name': '10th', 'board': 'CBSE'}, format='json')
    assert response.status_code == 400
    assert response.data['detail'] == 'Grade already exists for this board and academic year'


def test_teacher_cannot_create_grade(client_for, teacher):
    response = client_for(teacher).post('/api/grades/', {'name': '9th', 'board': 'ICSE'}, format='json')
    assert response.status_code == 403


def test_grade_list_filters(client_for, student, grade):
    Grade.objects.create(name='9th', board='ICSE')
    response = client_for(student).get('/api/grades/?board=ICSE')
    assert [row['name'] for row in response.data['data']] == ['9th']

    response = client_for(student).get('/api/grades/board/CBSE/')
    assert [row['id'] for row in response.data] == [grade.pk]


def test_grade_update_ignores_identity_fields(client_for, admin_user, grade):
    response = client_for(admin_user).patch(
        f'/api/grades/{grade.pk}/', {'description': 'Board exam batch', 'name': '12th'}, format='json',
    )
    assert response.status_code == 200
    grade.refresh_from_db()
    assert grade.description == 'Board exam batch'
    assert grade.name == '10th'


def test_grade_delete_refused_with_students(client_for, admin_user, student, grade):
    grade.enrolled_students.add(student)
    assert client_for(admin_user).delete(f'/api/grades/{grade.pk}/').status_code == 400

    grade.enrolled_students.clear()
    assert client_for(admin_user).delete(f'/api/grades/{grade.pk}/').status_code == 200
    assert not Grade.objects.filter(pk=grade.pk).exists()


def test_student_self_enrolls_in_grade(client_for, student, grade):
    client = client_for(student)
    response = client.post(f'/api/grades/{grade.pk}/enroll/')
    assert response.status_code == 200
    assert response.data['enrolled_count'] == 1

    response = client.post(f'/api/grades/{grade.pk}/enroll/')
    assert response.status_code == 400
    assert response.data['detail'] == 'Student is already enrolled in this grade'


def test_admin_enrolls_student_until_full(client_for, admin_user, grade, make_user):
    client = client_for(admin_user)
    for _ in range(2):
        response = client.post(f'/api/grades/{grade.pk}/enroll/', {'student': make_user('student').pk}, format='json')
        assert response.status_code == 200

    response = client.post(f'/api/grades/{grade.pk}/enroll/', {'student': make_user('student').pk}, format='json')
    assert response.status_code == 400
    assert response.data['detail'] == 'This grade is full'


def test_inactive_grade_refuses_enrollment(client_for, student, grade):
    grade.is_active = False
    grade.save()
    assert client_for(student).post(f'/api/grades/{grade.pk}/enroll/').status_code == 400


def test_teacher_cannot_enroll_in_grade(client_for, teacher, grade):
    assert client_for(teacher).post(f'/api/grades/{grade.pk}/enroll/').status_code == 403


def test_subject_create_uppercases_code(client_for, admin_user, grade):
    response = client_for(admin_user).post(
        '/api/subjects/', {'name': 'Physics', 'code': 'cbse10phy', 'grade': grade.pk}, format='json',
    )
    assert response.status_code == 201
    assert response.data['code'] == 'CBSE10PHY'

    response = client_for(admin_user).post(
        '/api/subjects/', {'name': 'Physics', 'code': 'CBSE10PHY', 'grade': grade.pk}, format='json',
    )
    assert response.status_code == 400


def test_assign_teacher_to_subject(client_for, admin_user, teacher, grade):
    subject = Subject.objects.create(name='Chemistry', code='CBSE10CHE', grade=grade)
    client = client_for(admin_user)
    response = client.post(
        f'/api/subjects/{subject.pk}/teachers/',
        {'teacher': teacher.pk, 'is_primary': True, 'specialization': 'Organic'},
        format='json',
    )
    assert response.status_code == 201
    assignment = SubjectTeacher.objects.get(subject=subject, teacher=teacher)
    assert assignment.is_primary
    assert assignment.specialization == 'Organic'

    response = client.post(f'/api/subjects/{subject.pk}/teachers/', {'teacher': teacher.pk}, format='json')
    assert response.status_code == 400


def test_assign_non_teacher_is_404(client_for, admin_user, student, grade):
    subject = Subject.objects.create(name='Chemistry', code='CBSE10CHE', grade=grade)
    response = client_for(admin_user).post(f'/api/subjects/{subject.pk}/teachers/', {'teacher': student.pk}, format='json')
    assert response.status_code == 404


def test_subject_name_unique_within_grade(client_for, admin_user, grade):
    Subject.objects.create(name='Physics', code='CBSE10PHY', grade=grade)
    response = client_for(admin_user).post(
        '/api/subjects/', {'name': 'Physics', 'code': 'CBSE10PHY2', 'grade': grade.pk}, format='json',
    )
    assert response.status_code == 400
    assert 'name' in response.data


def test_assigned_teacher_updates_subject_details(client_for, teacher, grade):
    subject = Subject.objects.create(name='Biology', code='CBSE10BIO', grade=grade)
    SubjectTeacher.objects.create(subject=subject, teacher=teacher)
    response = client_for(teacher).patch(
        f'/api/subjects/{subject.pk}/',
        {'total_classes': 40, 'syllabus': [{'topic': 'Cells', 'order': 1}], 'code': 'HACKED'},
        format='json',
    )
    assert response.status_code == 200
    subject.refresh_from_db()
    assert subject.total_classes == 40
    assert subject.syllabus == [{'topic': 'Cells', 'order': 1}]
    assert subject.code == 'CBSE10BIO'


def test_unassigned_teacher_cannot_update_subject(client_for, make_user, grade):
    other = make_user('teacher', email='other.teacher@example.com')
    subject = Subject.objects.create(name='Biology', code='CBSE10BIO', grade=grade)
    response = client_for(other).patch(f'/api/subjects/{subject.pk}/', {'total_classes': 5}, format='json')
    assert response.status_code == 403


def test_only_admin_deletes_subject(client_for, admin_user, teacher, grade):
    subject = Subject.objects.create(name='Biology', code='CBSE10BIO', grade=grade, created_by=teacher)
    response = client_for(teacher).delete(f'/api/subjects/{subject.pk}/')
    assert response.status_code == 403
    assert response.data['detail'] == 'Only admins can delete subjects'

    assert client_for(admin_user).delete(f'/api/subjects/{subject.pk}/').status_code == 200
    assert not Subject.objects.filter(pk=subject.pk).exists()


def test_remove_teacher_from_subject(client_for, admin_user, teacher, grade):
    subject = Subject.objects.create(name='Chemistry', code='CBSE10CHE', grade=grade)
    SubjectTeacher.objects.create(subject=subject, teacher=teacher)
    client = client_for(admin_user)

    response = client.delete(f'/api/subjects/{subject.pk}/teachers/{teacher.pk}/')
    assert response.status_code == 200
    assert response.data['subject']['teachers'] == []

    response = client.delete(f'/api/subjects/{subject.pk}/teachers/{teacher.pk}/')
    assert response.status_code == 404
    assert response.data['detail'] == 'Teacher is not assigned to this subject'


def test_teacher_cannot_remove_teacher(client_for, teacher, grade):
    subject = Subject.objects.create(name='Chemistry', code='CBSE10CHE', grade=grade)
    SubjectTeacher.objects.create(subject=subject, teacher=teacher)
    assert client_for(teacher).delete(f'/api/subjects/{subject.pk}/teachers/{teacher.pk}/').status_code == 403


def test_subjects_by_teacher_lists_active_assignments(client_for, admin_user, teacher, grade):
    ninth = Grade.objects.create(name='9th', board='CBSE')
    physics = Subject.objects.create(name='Physics', code='CBSE10PHY', grade=grade)
    maths = Subject.objects.create(name='Mathematics', code='CBSE9MAT', grade=ninth)
    retired = Subject.objects.create(name='Biology', code='CBSE10BIO', grade=grade, is_active=False)
    Subject.objects.create(name='English', code='CBSE10ENG', grade=grade)
    for subject in (physics, maths, retired):
        SubjectTeacher.objects.create(subject=subject, teacher=teacher)

    response = client_for(teacher).get('/api/subjects/teacher/')
    assert response.status_code == 200
    assert [row['code'] for row in response.data] == ['CBSE10PHY', 'CBSE9MAT']

    response = client_for(admin_user).get(f'/api/subjects/teacher/{teacher.pk}/')
    assert [row['code'] for row in response.data] == ['CBSE10PHY', 'CBSE9MAT']


def test_subjects_by_grade_skips_inactive(client_for, student, grade):
    Subject.objects.create(name='Physics', code='CBSE10PHY', grade=grade)
    Subject.objects.create(name='Biology', code='CBSE10BIO', grade=grade, is_active=False)
    response = client_for(student).get(f'/api/grades/{grade.pk}/subjects/')
    assert response.status_code == 200
    assert [row['name'] for row in response.data] == ['Physics']
