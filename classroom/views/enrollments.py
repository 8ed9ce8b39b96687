import logging

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import serializers, status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Course, Enrollment, Lesson
from ..notifications import notify_class_enrollment
from ..pagination import QueryFilterBackend, QuerySortBackend
from ..permissions import is_admin, owns_course
from ..serializers import AttendanceRecordSerializer, EnrollmentDetailSerializer, EnrollmentSerializer

logger = logging.getLogger(__name__)


def can_view_enrollment(user, enrollment):
    return enrollment.student_id == user.pk or owns_course(user, enrollment.course)


class EnrollmentView(GenericAPIView):
    serializer_class = EnrollmentSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['status', 'payment_status', 'course']
    sort_fields = ['enrolled_at', 'percentage_complete', 'created_at']

    def get_queryset(self):
        return Enrollment.objects.filter(student=self.request.user).select_related('course__teacher', 'student')

    def get(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def post(self, request):
        user = request.user
        if user.role != 'student':
            return Response({'detail': 'Only students can enroll in classes'}, status=status.HTTP_403_FORBIDDEN)
        if not user.is_onboarded:
            return Response(
                {'detail': 'Please complete onboarding before enrolling in a class'},
                status=status.HTTP_403_FORBIDDEN,
            )

        course_id = request.data.get('course')
        if not course_id:
            return Response({'detail': 'Class ID is required'}, status=status.HTTP_400_BAD_REQUEST)
        course = Course.objects.filter(pk=course_id).first()
        if course is None:
            return Response({'detail': 'Class not found'}, status=status.HTTP_404_NOT_FOUND)

        enrollment = Enrollment.objects.filter(student=user, course=course).first()
        if enrollment is not None and enrollment.status != 'dropped':
            return Response({'detail': 'You are already enrolled in this class'}, status=status.HTTP_400_BAD_REQUEST)

        reason = course.enrollment_block_reason()
        if reason:
            return Response({'detail': reason}, status=status.HTTP_400_BAD_REQUEST)

        amount = course.effective_price
        if enrollment is None:
            enrollment = Enrollment(student=user, course=course)
        # a dropped enrollment comes back to life instead of duplicating
        enrollment.status = 'active'
        enrollment.enrolled_at = timezone.now()
        enrollment.amount = amount
        enrollment.payment_status = 'waived' if not amount else 'pending'
        enrollment.save()

        notify_class_enrollment(enrollment)
        logger.info('%s enrolled in course %s', user.email, course.pk)
        return Response(self.get_serializer(enrollment).data, status=status.HTTP_201_CREATED)


class EnrollmentMixin:
    """Loads ``pk`` as an enrollment visible to the requesting user."""

    def get_enrollment(self, pk):
        enrollment = get_object_or_404(Enrollment.objects.select_related('course', 'student'), pk=pk)
        if not can_view_enrollment(self.request.user, enrollment):
            return enrollment, Response(
                {'detail': 'Not authorized to access this enrollment'}, status=status.HTTP_403_FORBIDDEN,
            )
        return enrollment, None


class EnrollmentDetailView(EnrollmentMixin, GenericAPIView):
    serializer_class = EnrollmentDetailSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        enrollment, denied = self.get_enrollment(pk)
        if denied:
            return denied
        return Response(self.get_serializer(enrollment).data, status=status.HTTP_200_OK)


class LessonProgressSerializer(serializers.Serializer):
    lesson = serializers.IntegerField()
    time_spent = serializers.IntegerField(min_value=0, required=False, default=0)


class LessonProgressView(EnrollmentMixin, GenericAPIView):
    serializer_class = LessonProgressSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        enrollment, denied = self.get_enrollment(pk)
        if denied:
            return denied
        if enrollment.student_id != request.user.pk:
            return Response({'detail': 'Only the enrolled student can update progress'}, status=status.HTTP_403_FORBIDDEN)
        if enrollment.status != 'active':
            return Response({'detail': 'Enrollment is not active'}, status=status.HTTP_400_BAD_REQUEST)

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        lesson = Lesson.objects.filter(
            pk=serializer.validated_data['lesson'], module__course=enrollment.course,
        ).first()
        if lesson is None:
            return Response({'detail': 'Lesson not found in this class'}, status=status.HTTP_404_NOT_FOUND)

        enrollment.complete_lesson(lesson, serializer.validated_data['time_spent'])
        return Response(
            {
                'percentage_complete': enrollment.percentage_complete,
                'completed_lessons': enrollment.completed_lessons.count(),
                'total_lessons': enrollment.course.total_lessons(),
            },
            status=status.HTTP_200_OK,
        )


class AttendanceView(EnrollmentMixin, GenericAPIView):
    serializer_class = AttendanceRecordSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        enrollment, denied = self.get_enrollment(pk)
        if denied:
            return denied
        records = enrollment.attendance.all()
        return Response(
            {
                'records': self.get_serializer(records, many=True).data,
                'attendance_percentage': enrollment.attendance_percentage(),
                'total_sessions': records.count(),
            },
            status=status.HTTP_200_OK,
        )

    def post(self, request, pk):
        enrollment, denied = self.get_enrollment(pk)
        if denied:
            return denied

        is_self_check_in = enrollment.student_id == request.user.pk
        if is_self_check_in and enrollment.status != 'active':
            return Response({'detail': 'Enrollment is not active'}, status=status.HTTP_400_BAD_REQUEST)

        data = request.data.copy()
        if is_self_check_in:
            data.setdefault('status', 'present')
            if data.get('status') not in ('present', 'late'):
                return Response({'detail': 'Students can only check in as present or late'}, status=status.HTTP_400_BAD_REQUEST)

        serializer = self.get_serializer(data=data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        record = serializer.save(enrollment=enrollment)
        return Response(
            {
                'record': self.get_serializer(record).data,
                'attendance_percentage': enrollment.attendance_percentage(),
            },
            status=status.HTTP_201_CREATED,
        )


class DropEnrollmentView(EnrollmentMixin, GenericAPIView):
    serializer_class = EnrollmentSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        enrollment, denied = self.get_enrollment(pk)
        if denied:
            return denied
        if enrollment.student_id != request.user.pk and not is_admin(request.user):
            return Response({'detail': 'Not authorized to drop this enrollment'}, status=status.HTTP_403_FORBIDDEN)
        if enrollment.status == 'dropped':
            return Response({'detail': 'Enrollment already dropped'}, status=status.HTTP_400_BAD_REQUEST)

        enrollment.status = 'dropped'
        enrollment.save(update_fields=['status', 'updated_at'])
        return Response(self.get_serializer(enrollment).data, status=status.HTTP_200_OK)


class EnrollmentStatusView(EnrollmentMixin, GenericAPIView):
    serializer_class = EnrollmentSerializer
    permission_classes = [IsAuthenticated]

    def put(self, request, pk):
        enrollment, denied = self.get_enrollment(pk)
        if denied:
            return denied
        if not owns_course(request.user, enrollment.course):
            return Response({'detail': 'Only the teacher or an admin can change the status'}, status=status.HTTP_403_FORBIDDEN)

        new_status = request.data.get('status')
        if new_status not in dict(Enrollment.STATUS_CHOICES):
            return Response({'detail': 'Invalid status'}, status=status.HTTP_400_BAD_REQUEST)

        enrollment.status = new_status
        if new_status == 'completed' and enrollment.completion_date is None:
            enrollment.completion_date = timezone.now()
        enrollment.save()
        return Response(self.get_serializer(enrollment).data, status=status.HTTP_200_OK)

    patch = put


class CertificateView(EnrollmentMixin, GenericAPIView):
    serializer_class = EnrollmentSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        enrollment, denied = self.get_enrollment(pk)
        if denied:
            return denied
        if not enrollment.course.certificate_available:
            return Response({'detail': 'This class does not offer a certificate'}, status=status.HTTP_400_BAD_REQUEST)

        enrollment.issue_certificate()
        return Response(
            {
                'certificate_id': enrollment.certificate_id,
                'certificate_url': enrollment.certificate_url,
                'issued_at': enrollment.certificate_issued_at,
                'final_grade': enrollment.final_grade,
            },
            status=status.HTTP_200_OK,
        )


class CourseRosterView(GenericAPIView):
    serializer_class = EnrollmentSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['status', 'payment_status']
    sort_fields = ['enrolled_at', 'percentage_complete', 'grade_percentage']

    def get(self, request, pk):
        course = get_object_or_404(Course, pk=pk)
        if not owns_course(request.user, course):
            return Response({'detail': 'Not authorized to view this roster'}, status=status.HTTP_403_FORBIDDEN)

        queryset = self.filter_queryset(course.enrollments.select_related('student', 'course__teacher'))
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)
