import logging
from datetime import datetime

from django.conf import settings
from django.db.models import Sum
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .. import payments
from ..models import Course, Enrollment, Payment
from ..permissions import IsAdminRole, IsStudent, is_admin
from ..serializers import EnrollmentSerializer, PaymentSerializer, RefundSerializer

logger = logging.getLogger(__name__)


@api_view(['POST'])
def validate_coupon(request):
    code = (request.data.get('code') or '').strip()
    percent = payments.coupon_discount(code)
    if percent is None:
        return Response({'detail': 'Invalid coupon code'}, status=status.HTTP_400_BAD_REQUEST)

    data = {'code': code.upper(), 'discount_percent': percent}
    course_id = request.data.get('course')
    if course_id:
        course = get_object_or_404(Course, pk=course_id)
        data['original_amount'] = course.effective_price
        data['final_amount'] = payments.apply_discount(course.effective_price, percent)
    return Response(data, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsStudent])
def create_order(request):
    course_id = request.data.get('course')
    if not course_id:
        return Response({'detail': 'Class ID is required'}, status=status.HTTP_400_BAD_REQUEST)
    course = Course.objects.filter(pk=course_id).first()
    if course is None:
        return Response({'detail': 'Class not found'}, status=status.HTTP_404_NOT_FOUND)

    already_paid = Enrollment.objects.filter(
        student=request.user, course=course, payment_status='paid', status__in=['active', 'completed'],
    ).exists()
    if already_paid:
        return Response({'detail': 'You have already paid for this class'}, status=status.HTTP_400_BAD_REQUEST)
    reason = course.enrollment_block_reason()
    if reason:
        return Response({'detail': reason}, status=status.HTTP_400_BAD_REQUEST)

    payment = payments.create_order(request.user, course, request.data.get('coupon_code') or '')
    return Response(
        {
            'order': {
                'id': payment.order_id,
                'amount': int(payment.amount * 100),
                'currency': payment.currency,
            },
            'payment': PaymentSerializer(payment).data,
            'key_id': settings.LMS['PAYMENT_KEY_ID'],
        },
        status=status.HTTP_201_CREATED,
    )


@api_view(['POST'])
@permission_classes([IsStudent])
def verify_payment(request):
    order_id = request.data.get('order_id')
    payment_id = request.data.get('payment_id')
    signature = request.data.get('signature')
    if not order_id or not payment_id or not signature:
        return Response({'detail': 'order_id, payment_id and signature are required'}, status=status.HTTP_400_BAD_REQUEST)

    payment = get_object_or_404(Payment.objects.select_related('course__teacher', 'student'), order_id=order_id, student=request.user)
    payment, enrollment = payments.complete_payment(payment, payment_id, signature)
    return Response(
        {
            'message': 'Payment verified successfully',
            'payment': PaymentSerializer(payment).data,
            'enrollment': EnrollmentSerializer(enrollment).data,
        },
        status=status.HTTP_200_OK,
    )


class PaymentHistoryView(GenericAPIView):
    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request):
        queryset = Payment.objects.filter(student=request.user).select_related('course__teacher', 'student')
        if request.query_params.get('status'):
            queryset = queryset.filter(status=request.query_params['status'])
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)


class PaymentDetailView(GenericAPIView):
    queryset = Payment.objects.select_related('course__teacher', 'student')
    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        payment = self.get_object()
        if payment.student_id != request.user.pk and not is_admin(request.user):
            return Response({'detail': 'Not authorized to view this payment'}, status=status.HTTP_403_FORBIDDEN)
        return Response(self.get_serializer(payment).data, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAdminRole])
def refund_payment(request, pk):
    payment = get_object_or_404(Payment, pk=pk)
    serializer = RefundSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    payment = payments.refund_payment(payment, data.get('amount'), data['reason'])
    return Response(
        {'message': 'Refund processed successfully', 'payment': PaymentSerializer(payment).data},
        status=status.HTTP_200_OK,
    )


def _parse_date(value):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


class AdminPaymentListView(GenericAPIView):
    serializer_class = PaymentSerializer
    permission_classes = [IsAdminRole]

    def get(self, request):
        params = request.query_params
        queryset = Payment.objects.select_related('course__teacher', 'student')
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        start = _parse_date(params.get('start_date'))
        end = _parse_date(params.get('end_date'))
        if start:
            queryset = queryset.filter(created_at__date__gte=start)
        if end:
            queryset = queryset.filter(created_at__date__lte=end)

        revenue = queryset.filter(status='completed').aggregate(total=Sum('amount'))['total'] or 0
        page = self.paginate_queryset(queryset)
        response = self.get_paginated_response(self.get_serializer(page, many=True).data)
        response.data['total_revenue'] = revenue
        return response
