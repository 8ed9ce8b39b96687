from datetime import timedelta

from django.db.models import Avg, Count, Sum
from django.db.models.functions import TruncMonth
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from ..models import Assignment, Course, Enrollment, LiveClass, Payment, Submission, User
from ..permissions import IsAdminRole, IsStudent, IsTeacher, owns_course
from ..scheduling import add_months
from ..serializers import (
    AssignmentSerializer, CourseSerializer, EnrollmentSerializer, LiveClassSerializer, SubmissionSerializer,
    UserSummarySerializer,
)


def month_start(now=None):
    now = timezone.localtime(now or timezone.now())
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def growth_rate(current, last):
    """Month-over-month change in percent."""
    if not last:
        return 100 if current > 0 else 0
    return round((current - last) / last * 100)


def _monthly_growth(queryset, field='created_at', value=None):
    this_month = month_start()
    last_month = add_months(this_month, -1)
    current = queryset.filter(**{f'{field}__gte': this_month})
    previous = queryset.filter(**{f'{field}__gte': last_month, f'{field}__lt': this_month})
    if value is None:
        return growth_rate(current.count(), previous.count())
    return growth_rate(
        current.aggregate(total=Sum(value))['total'] or 0,
        previous.aggregate(total=Sum(value))['total'] or 0,
    )


def overall_progress_data(student):
    enrollments = list(
        Enrollment.objects.filter(student=student, status='active')
        .select_related('course')
        .annotate(time_spent=Sum('completed_lessons__time_spent'))
    )
    if not enrollments:
        return {
            'total_classes': 0,
            'average_progress': 0,
            'completed_classes': 0,
            'in_progress_classes': 0,
            'total_time_spent': 0,
            'average_grade': 0,
            'certificates_earned': 0,
            'recent_classes': [],
        }

    graded = [e.grade_percentage for e in enrollments if e.grade_percentage is not None]
    recent = sorted(
        enrollments,
        key=lambda e: e.last_accessed_at or e.enrolled_at,
        reverse=True,
    )[:5]
    return {
        'total_classes': len(enrollments),
        'average_progress': round(sum(e.percentage_complete for e in enrollments) / len(enrollments)),
        'completed_classes': sum(1 for e in enrollments if e.percentage_complete == 100),
        'in_progress_classes': sum(1 for e in enrollments if 0 < e.percentage_complete < 100),
        # seconds -> minutes
        'total_time_spent': round(sum(e.time_spent or 0 for e in enrollments) / 60),
        'average_grade': round(sum(graded) / len(graded)) if graded else 0,
        'certificates_earned': sum(1 for e in enrollments if e.certificate_issued),
        'recent_classes': [
            {
                'course': e.course_id,
                'title': e.course.title,
                'subject': e.course.subject,
                'progress': e.percentage_complete,
                'last_accessed': e.last_accessed_at,
            }
            for e in recent
        ],
    }


@api_view(['GET'])
@permission_classes([IsStudent])
def student_dashboard(request):
    user = request.user
    now = timezone.now()
    active = Enrollment.objects.filter(student=user, status='active').select_related('course__teacher', 'student')
    course_ids = list(active.values_list('course_id', flat=True))

    upcoming_assignments = (
        Assignment.objects.filter(course_id__in=course_ids, is_published=True, due_date__gte=now)
        .select_related('created_by')
        .order_by('due_date')[:5]
    )
    recent_submissions = (
        Submission.objects.filter(student=user)
        .select_related('assignment', 'graded_by', 'student')
        .order_by('-submitted_at')[:5]
    )
    upcoming_live = (
        LiveClass.objects.filter(course_id__in=course_ids, status='scheduled', scheduled_at__gte=now)
        .select_related('course', 'teacher')
        .order_by('scheduled_at')[:5]
    )

    return Response(
        {
            'enrollments': EnrollmentSerializer(active[:6], many=True).data,
            'upcoming_assignments': AssignmentSerializer(upcoming_assignments, many=True).data,
            'upcoming_live_classes': LiveClassSerializer(upcoming_live, many=True).data,
            'recent_activity': SubmissionSerializer(recent_submissions, many=True).data,
            'progress': overall_progress_data(user),
        },
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
@permission_classes([IsTeacher])
def teacher_dashboard(request):
    user = request.user
    courses = Course.objects.filter(teacher=user).select_related('teacher')
    pending_submissions = (
        Submission.objects.filter(assignment__course__teacher=user, score__isnull=True)
        .select_related('assignment', 'student', 'graded_by')
        .order_by('-submitted_at')[:5]
    )
    upcoming_courses = courses.filter(start_date__gte=timezone.localdate()).order_by('start_date')[:5]

    payments = Payment.objects.filter(course__teacher=user, status='completed')
    this_month = payments.filter(paid_at__gte=month_start())
    total_students = (
        Enrollment.objects.filter(course__teacher=user, status__in=['active', 'completed'])
        .values('student').distinct().count()
    )

    return Response(
        {
            'courses': CourseSerializer(courses, many=True).data,
            'total_courses': courses.count(),
            'published_courses': courses.filter(status='published').count(),
            'total_students': total_students,
            'recent_submissions': SubmissionSerializer(pending_submissions, many=True).data,
            'upcoming_courses': CourseSerializer(upcoming_courses, many=True).data,
            'earnings': {
                'total': payments.aggregate(total=Sum('amount'))['total'] or 0,
                'this_month': this_month.aggregate(total=Sum('amount'))['total'] or 0,
                'payments': payments.count(),
            },
        },
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
@permission_classes([IsAdminRole])
def admin_dashboard(request):
    now = timezone.now()
    completed_payments = Payment.objects.filter(status='completed')
    students = User.objects.filter(role='student')

    recent_enrollments = Enrollment.objects.select_related('student', 'course__teacher').order_by('-enrolled_at')[:10]
    top_courses = (
        Course.objects.filter(status='published')
        .annotate(enrollment_count=Count('enrollments'))
        .order_by('-enrollment_count')[:5]
    )
    monthly_revenue = (
        completed_payments.filter(created_at__gte=now - timedelta(days=365))
        .annotate(month=TruncMonth('created_at'))
        .values('month')
        .annotate(revenue=Sum('amount'), count=Count('id'))
        .order_by('month')
    )

    return Response(
        {
            'overview': {
                'total_students': students.count(),
                'total_teachers': User.objects.filter(role='teacher').count(),
                'total_classes': Course.objects.filter(status='published').count(),
                'total_enrollments': Enrollment.objects.filter(status='active').count(),
                'total_revenue': completed_payments.aggregate(total=Sum('amount'))['total'] or 0,
                'active_students': students.filter(last_login__gte=now - timedelta(days=30)).count(),
                'pending_classes': Course.objects.filter(status='pending').count(),
                'completed_enrollments': Enrollment.objects.filter(status='completed').count(),
            },
            'recent_enrollments': EnrollmentSerializer(recent_enrollments, many=True).data,
            'top_classes': [
                {
                    'id': course.pk,
                    'title': course.title,
                    'enrollment_count': course.enrollment_count,
                    'average_rating': course.average_rating,
                    'price': course.price,
                }
                for course in top_courses
            ],
            'monthly_revenue': [
                {'year': row['month'].year, 'month': row['month'].month, 'revenue': row['revenue'], 'count': row['count']}
                for row in monthly_revenue
            ],
            'growth_rate': {
                'students': _monthly_growth(students, field='date_joined'),
                'classes': _monthly_growth(Course.objects.all()),
                'revenue': _monthly_growth(completed_payments, value='amount'),
            },
        },
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
@permission_classes([IsStudent])
def class_progress(request, pk):
    enrollment = Enrollment.objects.filter(student=request.user, course_id=pk).select_related('course').first()
    if enrollment is None:
        return Response({'detail': 'Enrollment not found'}, status=status.HTTP_404_NOT_FOUND)

    course = enrollment.course
    grades = list(enrollment.assignment_grades.all())
    average_score = (
        sum(g.score / g.max_score * 100 for g in grades if g.max_score) / len(grades) if grades else 0
    )
    attendance = enrollment.attendance.all()

    return Response(
        {
            'course': {'id': course.pk, 'title': course.title, 'description': course.description},
            'progress': {
                'percentage_complete': enrollment.percentage_complete,
                'completed_lessons': enrollment.completed_lessons.count(),
                'total_lessons': course.total_lessons(),
                'total_materials': course.materials.filter(is_active=True).count(),
                'last_accessed_at': enrollment.last_accessed_at,
            },
            'grades': {
                'assignments': {
                    'completed': len(grades),
                    'total': course.assignments.filter(is_published=True).count(),
                    'average_score': round(average_score),
                },
                'final_grade': enrollment.final_grade,
                'grade_percentage': enrollment.grade_percentage,
            },
            'attendance': {
                'percentage': enrollment.attendance_percentage(),
                'total_sessions': attendance.count(),
                'present_sessions': attendance.filter(status__in=['present', 'late']).count(),
            },
            'status': enrollment.status,
            'enrolled_at': enrollment.enrolled_at,
        },
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
@permission_classes([IsStudent])
def overall_progress(request):
    return Response(overall_progress_data(request.user), status=status.HTTP_200_OK)


@api_view(['GET'])
def teacher_class_overview(request, pk):
    course = get_object_or_404(Course, pk=pk)
    if not owns_course(request.user, course):
        return Response({'detail': 'Class not found or access denied'}, status=status.HTTP_404_NOT_FOUND)

    enrollments = list(
        course.enrollments.filter(status='active')
        .select_related('student')
        .annotate(assignments_completed=Count('assignment_grades'))
    )
    total = len(enrollments)
    rows = []
    for enrollment in enrollments:
        rows.append({
            'student': UserSummarySerializer(enrollment.student).data,
            'progress': enrollment.percentage_complete,
            'last_accessed': enrollment.last_accessed_at,
            'attendance': enrollment.attendance_percentage(),
            'grade': enrollment.final_grade,
            'grade_percentage': enrollment.grade_percentage,
            'assignments_completed': enrollment.assignments_completed,
            'status': enrollment.status,
        })
    rows.sort(key=lambda row: row['progress'], reverse=True)

    return Response(
        {
            'course': {'id': course.pk, 'title': course.title, 'total_students': total},
            'statistics': {
                'average_progress': round(sum(e.percentage_complete for e in enrollments) / total) if total else 0,
                'students_completed': sum(1 for e in enrollments if e.percentage_complete == 100),
                'students_in_progress': sum(1 for e in enrollments if 0 < e.percentage_complete < 100),
                'students_not_started': sum(1 for e in enrollments if e.percentage_complete == 0),
                'average_attendance': round(sum(row['attendance'] for row in rows) / total) if total else 0,
                'average_grade': course.enrollments.filter(grade_percentage__isnull=False)
                .aggregate(avg=Avg('grade_percentage'))['avg'] or 0,
            },
            'students': rows,
        },
        status=status.HTTP_200_OK,
    )
