import logging
from datetime import datetime

from django.db.models import Avg, Count, Q, Sum
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response

from ..models import Course, Enrollment, Payment, User
from ..notifications import send_general_notification
from ..pagination import QuerySortBackend
from ..permissions import IsAdminRole
from ..serializers import CourseSerializer, UserSerializer

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = ('student', 'teacher', 'admin')


class AdminUserListView(GenericAPIView):
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [IsAdminRole]
    filter_backends = [QuerySortBackend]
    sort_fields = ['date_joined', 'name', 'email', 'role', 'last_login']

    def get(self, request):
        params = request.query_params
        queryset = self.filter_queryset(self.get_queryset())
        if params.get('role'):
            queryset = queryset.filter(role=params['role'])
        if params.get('status') == 'active':
            queryset = queryset.filter(is_active=True)
        elif params.get('status') == 'inactive':
            queryset = queryset.filter(is_active=False)
        search = (params.get('search') or '').strip()
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(email__icontains=search))

        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)


@api_view(['PUT'])
@permission_classes([IsAdminRole])
def update_user_status(request, pk):
    user = get_object_or_404(User, pk=pk)
    is_active = request.data.get('is_active')
    if not isinstance(is_active, bool):
        return Response({'detail': 'is_active must be true or false'}, status=status.HTTP_400_BAD_REQUEST)
    if user.pk == request.user.pk and not is_active:
        return Response({'detail': 'You cannot deactivate your own account'}, status=status.HTTP_400_BAD_REQUEST)

    user.is_active = is_active
    user.save(update_fields=['is_active'])
    logger.info('%s set is_active=%s on %s', request.user.email, is_active, user.email)
    return Response(UserSerializer(user).data, status=status.HTTP_200_OK)


@api_view(['PUT'])
@permission_classes([IsAdminRole])
def update_user_role(request, pk):
    role = request.data.get('role')
    if role not in ASSIGNABLE_ROLES:
        return Response({'detail': 'Invalid role'}, status=status.HTTP_400_BAD_REQUEST)
    user = get_object_or_404(User, pk=pk)
    if user.role == 'owner':
        return Response({'detail': 'The owner role cannot be changed'}, status=status.HTTP_400_BAD_REQUEST)

    user.role = role
    user.save(update_fields=['role'])
    logger.info('%s changed role of %s to %s', request.user.email, user.email, role)
    return Response(UserSerializer(user).data, status=status.HTTP_200_OK)


@api_view(['PUT'])
@permission_classes([IsAdminRole])
def review_course(request, pk):
    course = get_object_or_404(Course.objects.select_related('teacher'), pk=pk)
    decision = request.data.get('status')
    feedback = request.data.get('feedback', '')
    if decision not in ('published', 'rejected'):
        return Response({'detail': 'Invalid status'}, status=status.HTTP_400_BAD_REQUEST)
    if course.status not in ('draft', 'pending'):
        return Response({'detail': 'Only draft or pending classes can be reviewed'}, status=status.HTTP_400_BAD_REQUEST)

    if decision == 'published':
        course.status = 'published'
        course.published_at = timezone.now()
        title = 'Class Approved'
        message = f'Your class "{course.title}" has been approved and published.'
    else:
        # rejected classes go back to the teacher as drafts
        course.status = 'draft'
        title = 'Class Rejected'
        message = f'Your class "{course.title}" was not approved. {feedback}'.strip()
    course.save(update_fields=['status', 'published_at', 'updated_at'])
    send_general_notification(course.teacher, title, message, sender=request.user, course=course)
    return Response(CourseSerializer(course).data, status=status.HTTP_200_OK)


def _date_range(params):
    bounds = {}
    for key in ('start_date', 'end_date'):
        value = params.get(key)
        if not value:
            continue
        try:
            bounds[key] = datetime.strptime(value, '%Y-%m-%d').date()
        except ValueError:
            return None
    return bounds


def revenue_report(bounds):
    payments = Payment.objects.filter(status='completed')
    if 'start_date' in bounds:
        payments = payments.filter(created_at__date__gte=bounds['start_date'])
    if 'end_date' in bounds:
        payments = payments.filter(created_at__date__lte=bounds['end_date'])

    totals = payments.aggregate(total=Sum('amount'), count=Count('id'))
    return {
        'total_revenue': {'total': totals['total'] or 0, 'count': totals['count']},
        'payments_by_method': list(
            payments.values('payment_method').order_by('payment_method').annotate(total=Sum('amount'), count=Count('id'))
        ),
        'revenue_by_class': list(
            payments.values('course', 'course__title').order_by()
            .annotate(total=Sum('amount'), count=Count('id')).order_by('-total')[:10]
        ),
    }


def enrollment_report(bounds):
    enrollments = Enrollment.objects.all()
    if 'start_date' in bounds:
        enrollments = enrollments.filter(enrolled_at__date__gte=bounds['start_date'])
    if 'end_date' in bounds:
        enrollments = enrollments.filter(enrolled_at__date__lte=bounds['end_date'])

    return {
        'total_enrollments': enrollments.count(),
        'enrollments_by_status': list(enrollments.values('status').order_by('status').annotate(count=Count('id'))),
        'enrollments_by_class': list(
            enrollments.values('course', 'course__title').order_by()
            .annotate(count=Count('id')).order_by('-count')[:10]
        ),
    }


def performance_report(bounds):
    return {
        'average_progress': Enrollment.objects.filter(status='active')
        .aggregate(avg=Avg('percentage_complete'))['avg'] or 0,
        'completion_rates': list(Enrollment.objects.values('status').order_by('status').annotate(count=Count('id'))),
        'grade_distribution': list(
            Enrollment.objects.filter(final_grade__isnull=False)
            .values('final_grade').order_by('final_grade').annotate(count=Count('id'))
        ),
    }


REPORTS = {
    'revenue': revenue_report,
    'enrollment': enrollment_report,
    'performance': performance_report,
}


@api_view(['GET'])
@permission_classes([IsAdminRole])
def generate_report(request):
    report = REPORTS.get(request.query_params.get('type'))
    if report is None:
        return Response({'detail': 'Invalid report type'}, status=status.HTTP_400_BAD_REQUEST)
    bounds = _date_range(request.query_params)
    if bounds is None:
        return Response({'detail': 'Dates must look like YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(report(bounds), status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAdminRole])
def send_announcement(request):
    title = (request.data.get('title') or '').strip()
    message = (request.data.get('message') or '').strip()
    audience = request.data.get('target_audience', 'all')
    if not title or not message:
        return Response({'detail': 'Title and message are required'}, status=status.HTTP_400_BAD_REQUEST)

    course = None
    active_users = User.objects.filter(is_active=True)
    if audience == 'all':
        recipients = active_users
    elif audience == 'students':
        recipients = active_users.filter(role='student')
    elif audience == 'teachers':
        recipients = active_users.filter(role='teacher')
    elif audience == 'class':
        course = get_object_or_404(Course, pk=request.data.get('course') or 0)
        recipients = course.enrolled_students
    else:
        return Response({'detail': 'Invalid target audience'}, status=status.HTTP_400_BAD_REQUEST)

    created = send_general_notification(list(recipients), title, message, sender=request.user, course=course)
    return Response(
        {'message': f'Announcement sent to {len(created)} recipients', 'recipients': len(created)},
        status=status.HTTP_200_OK,
    )
