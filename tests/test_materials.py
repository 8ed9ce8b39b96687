import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from classroom.constants import FILE_TYPES
from classroom.models import Notification, StudyMaterial

pytestmark = pytest.mark.django_db

PDF_BYTES = b'%PDF-1.4 lesson notes'


def pdf_upload(name='notes.pdf', content=PDF_BYTES, content_type='application/pdf'):
    return SimpleUploadedFile(name, content, content_type=content_type)


@pytest.fixture
def make_material(course, teacher):
    def _make(**extra):
        data = {
            'title': 'Formula sheet',
            'description': 'All formulas from chapter 1',
            'type': 'link',
            'file_url': 'https://example.com/formulas',
            'course': course,
            'uploaded_by': teacher,
        }
        data.update(extra)
        return StudyMaterial.objects.create(**data)

    return _make


def upload(client, course, **extra):
    payload = {
        'title': 'Chapter 1 notes',
        'description': 'Typed notes',
        'type': 'pdf',
        'course': course.pk,
        'file': pdf_upload(),
    }
    payload.update(extra)
    return client.post('/api/materials/', payload, format='multipart')


def test_upload_pdf(client_for, teacher, student, course, enrollment):
    response = upload(client_for(teacher), course)
    assert response.status_code == 201
    assert response.data['file_name'] == 'notes.pdf'
    assert response.data['file_size'] == len(PDF_BYTES)
    assert response.data['mime_type'] == 'application/pdf'
    assert response.data['visibility'] == 'enrolled'
    assert Notification.objects.filter(recipient=student, type='material_uploaded').exists()


def test_upload_rejects_disallowed_mime(client_for, teacher, course):
    response = upload(client_for(teacher), course, file=pdf_upload('run.exe', b'MZ', 'application/x-msdownload'))
    assert response.status_code == 400
    assert 'file' in response.data


def test_upload_rejects_type_mismatch(client_for, teacher, course):
    response = upload(client_for(teacher), course, type='video')
    assert response.status_code == 400


def test_upload_rejects_oversized_file(client_for, teacher, course, monkeypatch):
    monkeypatch.setitem(FILE_TYPES['pdf'], 'max_size', 4)
    response = upload(client_for(teacher), course)
    assert response.status_code == 400
    assert 'too large' in str(response.data['file'][0])


def test_upload_requires_file(client_for, teacher, course):
    response = client_for(teacher).post('/api/materials/', {
        'title': 'Nothing', 'description': 'x', 'type': 'pdf', 'course': course.pk,
    }, format='multipart')
    assert response.status_code == 400


def test_upload_link(client_for, teacher, course):
    response = client_for(teacher).post('/api/materials/', {
        'title': 'Khan Academy', 'description': 'Extra practice', 'type': 'link',
        'file_url': 'https://www.khanacademy.org/math', 'course': course.pk, 'visibility': 'public',
    }, format='json')
    assert response.status_code == 201


def test_link_requires_url(client_for, teacher, course):
    response = client_for(teacher).post('/api/materials/', {
        'title': 'Broken', 'description': 'x', 'type': 'link', 'course': course.pk,
    }, format='json')
    assert response.status_code == 400
    assert 'file_url' in response.data


def test_upload_other_teachers_course(client_for, course, make_user):
    response = upload(client_for(make_user('teacher')), course)
    assert response.status_code == 403


def test_upload_unknown_course(client_for, teacher):
    response = client_for(teacher).post('/api/materials/', {'course': 9999}, format='json')
    assert response.status_code == 404


def test_student_cannot_upload(client_for, student, course, enrollment):
    assert upload(client_for(student), course).status_code == 403


def test_course_materials_visibility(client_for, student, teacher, course, enrollment, make_material, make_user):
    make_material(title='Open', visibility='public')
    make_material(title='Members', visibility='enrolled')
    make_material(title='Drafts', visibility='private')

    def titles(user):
        response = client_for(user).get(f'/api/courses/{course.pk}/materials/')
        return sorted(row['title'] for row in response.data['data'])

    assert titles(teacher) == ['Drafts', 'Members', 'Open']
    assert titles(student) == ['Members', 'Open']
    assert titles(make_user('student')) == ['Open']


def test_private_material_detail(client_for, student, teacher, enrollment, make_material):
    private = make_material(visibility='private')
    assert client_for(student).get(f'/api/materials/{private.pk}/').status_code == 403
    assert client_for(teacher).get(f'/api/materials/{private.pk}/').status_code == 200


def test_views_count_every_visit_but_history_once_a_day(client_for, student, enrollment, make_material):
    material = make_material()
    client = client_for(student)
    client.get(f'/api/materials/{material.pk}/')
    client.get(f'/api/materials/{material.pk}/')
    material.refresh_from_db()
    assert material.views == 2
    assert material.view_history.count() == 1


def test_history_is_trimmed(student, make_material, monkeypatch):
    material = make_material()
    monkeypatch.setattr(StudyMaterial, 'HISTORY_LIMIT', 3)
    for _ in range(5):
        material.increment_downloads(student)
    assert material.downloads == 5
    assert material.download_history.count() == 3


def test_download_link_redirects(client_for, student, enrollment, make_material):
    material = make_material()
    response = client_for(student).get(f'/api/materials/{material.pk}/download/')
    assert response.status_code == 302
    assert response['Location'] == 'https://example.com/formulas'
    material.refresh_from_db()
    assert material.downloads == 1


def test_download_file_is_attachment(client_for, teacher, student, course, enrollment):
    material_id = upload(client_for(teacher), course).data['id']
    response = client_for(student).get(f'/api/materials/{material_id}/download/')
    assert response.status_code == 200
    assert 'attachment' in response['Content-Disposition']
    assert 'notes.pdf' in response['Content-Disposition']
    assert b''.join(response.streaming_content) == PDF_BYTES
    response.close()


def test_download_missing_file(client_for, teacher, make_material):
    material = make_material(type='pdf', file='study-materials/gone.pdf', file_url='')
    response = client_for(teacher).get(f'/api/materials/{material.pk}/download/')
    assert response.status_code == 404


def test_update_and_soft_delete(client_for, teacher, student, enrollment, make_material):
    material = make_material()
    assert client_for(student).patch(f'/api/materials/{material.pk}/', {'title': 'x'}, format='json').status_code == 403

    response = client_for(teacher).patch(f'/api/materials/{material.pk}/', {'category': 'notes'}, format='json')
    assert response.status_code == 200
    assert response.data['category'] == 'notes'

    assert client_for(teacher).delete(f'/api/materials/{material.pk}/').status_code == 200
    material.refresh_from_db()
    assert material.is_active is False
    assert client_for(teacher).get(f'/api/materials/{material.pk}/').status_code == 404


def test_teacher_materials_and_stats(client_for, teacher, make_material):
    make_material(downloads=3, views=10)
    make_material(type='pdf', file='study-materials/a.pdf', file_url='', file_size=2048, downloads=1)
    client = client_for(teacher)

    response = client.get('/api/materials/mine/')
    assert response.data['pagination']['total'] == 2

    response = client.get('/api/materials/stats/')
    assert response.data['total_materials'] == 2
    assert response.data['total_downloads'] == 4
    assert response.data['total_views'] == 10
    assert response.data['total_size'] == 2048
    assert {row['type']: row['count'] for row in response.data['by_type']} == {'link': 1, 'pdf': 1}


def test_formatted_file_size(make_material):
    assert make_material(file_size=None).formatted_file_size == 'N/A'
    assert make_material(file_size=1536).formatted_file_size == '1.5 KB'


def test_categories(client_for, student):
    response = client_for(student).get('/api/materials/categories/')
    assert {'value': 'notes', 'label': 'Study Notes'} in response.data['categories']
    assert 'pdf' in response.data['file_types']
