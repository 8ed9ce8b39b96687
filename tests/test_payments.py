from decimal import Decimal

import pytest

from classroom import payments
from classroom.exceptions import WorkflowError
from classroom.models import Enrollment, Notification, Payment

pytestmark = pytest.mark.django_db


@pytest.fixture
def order(student, course):
    return payments.create_order(student, course)


def verify(client, payment, payment_id='pay_001', signature=None):
    return client.post('/api/payments/verify/', {
        'order_id': payment.order_id,
        'payment_id': payment_id,
        'signature': signature or payments.sign(payment.order_id, payment_id),
    }, format='json')


def test_apply_discount_rounds_to_cents():
    assert payments.apply_discount(Decimal('999.99'), 10) == Decimal('899.99')
    assert payments.apply_discount(Decimal('500'), 0) == Decimal('500')


def test_signature_uses_configured_secret():
    signature = payments.sign('order_1', 'pay_1')
    assert payments.verify_signature('order_1', 'pay_1', signature)
    assert payments.sign('order_1', 'pay_1', secret='other') != signature
    assert not payments.verify_signature('order_1', 'pay_1', None)


def test_validate_coupon(client_for, student, course):
    response = client_for(student).post('/api/payments/coupon/', {'code': 'learn10', 'course': course.pk}, format='json')
    assert response.status_code == 200
    assert response.data['code'] == 'LEARN10'
    assert response.data['discount_percent'] == 10
    assert response.data['final_amount'] == Decimal('900.00')


def test_invalid_coupon(client_for, student):
    response = client_for(student).post('/api/payments/coupon/', {'code': 'FREE100'}, format='json')
    assert response.status_code == 400
    assert response.data['detail'] == 'Invalid coupon code'


def test_create_order(client_for, student, course):
    response = client_for(student).post('/api/payments/order/', {'course': course.pk}, format='json')
    assert response.status_code == 201
    assert response.data['order']['amount'] == 100000
    assert response.data['order']['currency'] == 'INR'
    assert response.data['order']['id'].startswith('order_')
    assert response.data['payment']['status'] == 'pending'


def test_create_order_with_coupon(client_for, student, course):
    response = client_for(student).post(
        '/api/payments/order/', {'course': course.pk, 'coupon_code': 'student20'}, format='json',
    )
    assert response.data['order']['amount'] == 80000
    payment = Payment.objects.get(order_id=response.data['order']['id'])
    assert payment.coupon_code == 'STUDENT20'
    assert payment.discount_percent == 20


def test_create_order_bad_coupon(client_for, student, course):
    response = client_for(student).post('/api/payments/order/', {'course': course.pk, 'coupon_code': 'NOPE'}, format='json')
    assert response.status_code == 400


def test_create_order_for_closed_course(client_for, student, make_course):
    draft = make_course(status='draft')
    response = client_for(student).post('/api/payments/order/', {'course': draft.pk}, format='json')
    assert response.status_code == 400


def test_teacher_cannot_order(client_for, teacher, course):
    response = client_for(teacher).post('/api/payments/order/', {'course': course.pk}, format='json')
    assert response.status_code == 403


def test_verify_creates_paid_enrollment(client_for, student, teacher, course, order):
    response = verify(client_for(student), order)
    assert response.status_code == 200
    assert response.data['payment']['status'] == 'completed'

    enrollment = Enrollment.objects.get(student=student, course=course)
    assert enrollment.payment_status == 'paid'
    assert enrollment.transaction_id == 'pay_001'
    assert enrollment.paid_amount == order.amount
    assert Notification.objects.filter(recipient=teacher, type='payment_received').exists()
    assert Notification.objects.filter(recipient=teacher, type='class_enrolled').exists()


def test_verify_updates_existing_enrollment(client_for, student, course, enrollment, order):
    verify(client_for(student), order)
    enrollment.refresh_from_db()
    assert enrollment.payment_status == 'paid'
    assert Enrollment.objects.filter(student=student, course=course).count() == 1


def test_paid_student_cannot_order_again(client_for, student, course, order):
    verify(client_for(student), order)
    response = client_for(student).post('/api/payments/order/', {'course': course.pk}, format='json')
    assert response.status_code == 400
    assert response.data['detail'] == 'You have already paid for this class'


def test_signature_mismatch_marks_failed(client_for, student, order):
    response = verify(client_for(student), order, signature='forged')
    assert response.status_code == 400
    assert response.data['detail'] == 'Payment verification failed'
    order.refresh_from_db()
    assert order.status == 'failed'
    assert not Enrollment.objects.filter(student=order.student).exists()


def test_verify_twice(client_for, student, order):
    client = client_for(student)
    verify(client, order)
    response = verify(client, order)
    assert response.status_code == 400
    assert response.data['detail'] == 'Payment already verified'


def test_verify_other_students_order(client_for, order, make_user):
    response = verify(client_for(make_user('student')), order)
    assert response.status_code == 404


def test_verify_requires_fields(client_for, student):
    response = client_for(student).post('/api/payments/verify/', {'order_id': 'x'}, format='json')
    assert response.status_code == 400


def test_history_and_detail(client_for, student, admin_user, order, make_user):
    response = client_for(student).get('/api/payments/history/')
    assert response.data['pagination']['total'] == 1

    assert client_for(student).get(f'/api/payments/{order.pk}/').status_code == 200
    assert client_for(admin_user).get(f'/api/payments/{order.pk}/').status_code == 200
    assert client_for(make_user('student')).get(f'/api/payments/{order.pk}/').status_code == 403


def test_refund(client_for, student, admin_user, course, order):
    verify(client_for(student), order)
    response = client_for(admin_user).post(
        f'/api/payments/{order.pk}/refund/', {'amount': '500', 'reason': 'Duplicate charge'}, format='json',
    )
    assert response.status_code == 200
    order.refresh_from_db()
    assert order.status == 'refunded'
    assert order.refund_amount == Decimal('500')
    assert order.refund_id.startswith('rfnd_')

    enrollment = Enrollment.objects.get(student=student, course=course)
    assert enrollment.payment_status == 'refunded'
    assert enrollment.status == 'dropped'


@pytest.mark.parametrize('amount', ['abc', '0', '-5'])
def test_refund_amount_must_be_positive_number(client_for, student, admin_user, order, amount):
    verify(client_for(student), order)
    response = client_for(admin_user).post(f'/api/payments/{order.pk}/refund/', {'amount': amount}, format='json')
    assert response.status_code == 400
    assert 'amount' in response.data
    order.refresh_from_db()
    assert order.status == 'completed'


def test_refund_cannot_exceed_amount_paid(client_for, student, admin_user, order):
    verify(client_for(student), order)
    response = client_for(admin_user).post(f'/api/payments/{order.pk}/refund/', {'amount': '999999'}, format='json')
    assert response.status_code == 400
    assert response.data['detail'] == 'Refund amount cannot exceed the amount paid'
    order.refresh_from_db()
    assert order.status == 'completed'
    assert order.refund_id == ''


def test_full_refund_by_default(client_for, student, admin_user, order):
    verify(client_for(student), order)
    response = client_for(admin_user).post(f'/api/payments/{order.pk}/refund/', {}, format='json')
    assert response.status_code == 200
    order.refresh_from_db()
    assert order.refund_amount == order.amount
    assert order.refund_reason == 'Customer request'


def test_refund_pending_payment(order):
    with pytest.raises(WorkflowError):
        payments.refund_payment(order)


def test_refund_is_admin_only(client_for, student, order):
    assert client_for(student).post(f'/api/payments/{order.pk}/refund/').status_code == 403


def test_admin_list_with_revenue(client_for, student, admin_user, course, order, make_course):
    verify(client_for(student), order)
    payments.create_order(student, make_course())

    response = client_for(admin_user).get('/api/payments/all/')
    assert response.data['pagination']['total'] == 2
    assert float(response.data['total_revenue']) == 1000.0

    response = client_for(admin_user).get('/api/payments/all/?status=pending')
    assert response.data['pagination']['total'] == 1
    assert response.data['total_revenue'] == 0
