import hashlib
import hmac
import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .constants import COUPONS
from .exceptions import WorkflowError
from .models import Enrollment, Payment
from .notifications import notify_class_enrollment, notify_payment_received

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


def coupon_discount(code):
    """Percentage discount for a coupon code, or None for an unknown code."""
    if not code:
        return None
    return COUPONS.get(code.strip().upper())


def apply_discount(amount, percent):
    amount = Decimal(amount)
    if not percent:
        return amount
    discounted = amount - amount * Decimal(percent) / Decimal(100)
    return discounted.quantize(CENTS, rounding=ROUND_HALF_UP)


def sign(order_id, payment_id, secret=None):
    secret = secret or settings.LMS['PAYMENT_KEY_SECRET']
    message = f'{order_id}|{payment_id}'.encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(order_id, payment_id, signature):
    return hmac.compare_digest(sign(order_id, payment_id), signature or '')


def create_order(student, course, coupon_code=''):
    percent = 0
    if coupon_code:
        percent = coupon_discount(coupon_code)
        if percent is None:
            raise WorkflowError('Invalid coupon code')

    amount = apply_discount(course.effective_price, percent)
    payment = Payment.objects.create(
        amount=amount,
        currency=course.currency,
        student=student,
        course=course,
        payment_method='razorpay',
        coupon_code=coupon_code.strip().upper() if coupon_code else '',
        discount_percent=percent,
    )
    logger.info('Created order %s for %s on course %s', payment.order_id, student.email, course.pk)
    return payment


def complete_payment(payment, payment_id, signature):
    """Mark an order paid and make sure the student holds a paid enrollment."""
    if payment.status == 'completed':
        raise WorkflowError('Payment already verified')

    if not verify_signature(payment.order_id, payment_id, signature):
        payment.status = 'failed'
        payment.save(update_fields=['status', 'updated_at'])
        logger.warning('Signature mismatch for order %s', payment.order_id)
        raise WorkflowError('Payment verification failed')

    return _fulfil(payment, payment_id, signature)


@transaction.atomic
def _fulfil(payment, payment_id, signature):
    now = timezone.now()
    payment.status = 'completed'
    payment.payment_id = payment_id
    payment.signature = signature
    payment.paid_at = now
    payment.save()

    enrollment, created = Enrollment.objects.get_or_create(
        student=payment.student,
        course=payment.course,
        defaults={'amount': payment.amount},
    )
    enrollment.status = 'active'
    enrollment.payment_status = 'paid'
    enrollment.amount = payment.amount
    enrollment.paid_amount = payment.amount
    enrollment.payment_date = now
    enrollment.transaction_id = payment_id
    enrollment.payment_method = payment.payment_method
    enrollment.save()

    if created:
        notify_class_enrollment(enrollment)
    notify_payment_received(payment)
    return payment, enrollment


@transaction.atomic
def refund_payment(payment, amount=None, reason=''):
    if payment.status != 'completed':
        raise WorkflowError('Can only refund completed payments')

    amount = payment.amount if amount is None else Decimal(str(amount))
    if amount > payment.amount:
        raise WorkflowError('Refund amount cannot exceed the amount paid')

    payment.status = 'refunded'
    payment.refund_id = f'rfnd_{uuid.uuid4().hex[:14]}'
    payment.refund_amount = amount
    payment.refunded_at = timezone.now()
    payment.refund_reason = reason or 'Customer request'
    payment.save()

    Enrollment.objects.filter(student=payment.student, course=payment.course).update(
        payment_status='refunded', status='dropped', updated_at=timezone.now(),
    )
    logger.info('Refunded order %s (%s)', payment.order_id, payment.refund_amount)
    return payment
