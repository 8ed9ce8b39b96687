import logging

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Enrollment, LiveClass
from ..notifications import notify_class_starting
from ..permissions import is_admin, owns_course
from ..scheduling import meeting_details, recurring_dates
from ..serializers import LiveClassSerializer

logger = logging.getLogger(__name__)

UPDATE_FIELDS = ['title', 'description', 'scheduled_at', 'duration', 'max_attendees', 'password', 'recording_url']


def enrolled_course_ids(user):
    return Enrollment.objects.filter(student=user, status__in=['active', 'completed']).values_list('course_id', flat=True)


def can_view_live_class(user, live_class):
    if owns_course(user, live_class.course):
        return True
    return live_class.course_id in set(enrolled_course_ids(user))


class LiveClassView(GenericAPIView):
    serializer_class = LiveClassSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        queryset = LiveClass.objects.select_related('course', 'teacher')
        if is_admin(user):
            return queryset
        if user.role == 'teacher':
            return queryset.filter(teacher=user)
        return queryset.filter(course_id__in=list(enrolled_course_ids(user)))

    def get(self, request):
        params = request.query_params
        queryset = self.get_queryset()
        if params.get('course'):
            queryset = queryset.filter(course_id=params['course'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('upcoming') == 'true':
            queryset = queryset.filter(scheduled_at__gte=timezone.now(), status='scheduled')

        page = self.paginate_queryset(queryset.order_by('scheduled_at'))
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def post(self, request):
        if not request.data.get('course'):
            return Response({'detail': 'Class ID is required'}, status=status.HTTP_400_BAD_REQUEST)

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        course = data['course']
        if not owns_course(request.user, course):
            return Response(
                {'detail': 'You are not authorized to create live classes for this class'},
                status=status.HTTP_403_FORBIDDEN,
            )
        if data['scheduled_at'] <= timezone.now():
            return Response({'detail': 'Scheduled time must be in the future'}, status=status.HTTP_400_BAD_REQUEST)

        # the first session and its follow-ups are saved together or not at all
        with transaction.atomic():
            meeting_id, meeting_url, password = meeting_details()
            live_class = serializer.save(
                teacher=course.teacher,
                meeting_id=meeting_id,
                meeting_url=meeting_url,
                password=data.get('password') or password,
            )

            sessions = []
            if live_class.is_recurring and live_class.recurring_pattern:
                dates = recurring_dates(live_class.scheduled_at, live_class.recurring_pattern)
                for number, scheduled_at in enumerate(dates, start=2):
                    meeting_id, meeting_url, password = meeting_details()
                    sessions.append(LiveClass.objects.create(
                        course=course,
                        teacher=live_class.teacher,
                        title=f'{live_class.title} - Session {number}',
                        description=live_class.description,
                        scheduled_at=scheduled_at,
                        duration=live_class.duration,
                        meeting_id=meeting_id,
                        meeting_url=meeting_url,
                        password=password,
                        max_attendees=live_class.max_attendees,
                        is_recurring=True,
                        recurring_pattern=live_class.recurring_pattern,
                    ))
        logger.info('Live class %s scheduled with %d follow-up sessions', live_class.pk, len(sessions))

        return Response(
            {'live_class': self.get_serializer(live_class).data, 'recurring_classes_count': len(sessions)},
            status=status.HTTP_201_CREATED,
        )


class LiveClassDetailView(GenericAPIView):
    queryset = LiveClass.objects.select_related('course', 'teacher')
    serializer_class = LiveClassSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        live_class = self.get_object()
        if not can_view_live_class(request.user, live_class):
            return Response({'detail': 'Live class not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(self.get_serializer(live_class).data, status=status.HTTP_200_OK)

    def put(self, request, pk):
        live_class = self.get_object()
        if not owns_course(request.user, live_class.course):
            return Response({'detail': 'Not authorized to update this live class'}, status=status.HTTP_403_FORBIDDEN)
        if live_class.status in ('live', 'completed'):
            return Response({'detail': 'Cannot update live or completed classes'}, status=status.HTTP_400_BAD_REQUEST)

        data = {key: request.data[key] for key in UPDATE_FIELDS if key in request.data}
        serializer = self.get_serializer(live_class, data=data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_200_OK)

    patch = put

    def delete(self, request, pk):
        live_class = self.get_object()
        if not owns_course(request.user, live_class.course):
            return Response({'detail': 'Not authorized to delete this live class'}, status=status.HTTP_403_FORBIDDEN)
        if live_class.status == 'live':
            return Response(
                {'detail': 'Cannot delete a live class that is currently in session'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        live_class.delete()
        return Response({'message': 'Live class deleted successfully'}, status=status.HTTP_200_OK)


class LiveClassStartView(GenericAPIView):
    queryset = LiveClass.objects.select_related('course', 'teacher')
    serializer_class = LiveClassSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        live_class = self.get_object()
        if not owns_course(request.user, live_class.course):
            return Response({'detail': 'Only the teacher can start the class'}, status=status.HTTP_403_FORBIDDEN)
        live_class.start()
        notify_class_starting(live_class)
        return Response(
            {'message': 'Live class started successfully', 'live_class': self.get_serializer(live_class).data},
            status=status.HTTP_200_OK,
        )


class LiveClassEndView(GenericAPIView):
    queryset = LiveClass.objects.select_related('course', 'teacher')
    serializer_class = LiveClassSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        live_class = self.get_object()
        if not owns_course(request.user, live_class.course):
            return Response({'detail': 'Only the teacher can end the class'}, status=status.HTTP_403_FORBIDDEN)
        live_class.end()
        return Response(
            {'message': 'Live class ended successfully', 'live_class': self.get_serializer(live_class).data},
            status=status.HTTP_200_OK,
        )


class LiveClassJoinView(GenericAPIView):
    queryset = LiveClass.objects.select_related('course')
    serializer_class = LiveClassSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        live_class = self.get_object()
        reason = live_class.join_block_reason()
        if reason:
            return Response({'detail': reason}, status=status.HTTP_400_BAD_REQUEST)

        if request.user.role == 'student':
            enrolled = Enrollment.objects.filter(
                student=request.user, course=live_class.course, status='active',
            ).exists()
            if not enrolled:
                return Response(
                    {'detail': 'You must be enrolled in the class to join this class'},
                    status=status.HTTP_403_FORBIDDEN,
                )
            joined = live_class.attendees.filter(joined_at__isnull=False)
            if not joined.filter(student=request.user).exists() and joined.count() >= live_class.max_attendees:
                return Response({'detail': 'This class is full'}, status=status.HTTP_400_BAD_REQUEST)
            live_class.add_attendee(request.user)
        elif not owns_course(request.user, live_class.course):
            return Response({'detail': 'Not authorized to join this class'}, status=status.HTTP_403_FORBIDDEN)

        return Response(
            {
                'message': 'Successfully joined the live class',
                'meeting_url': live_class.meeting_url,
                'meeting_id': live_class.meeting_id,
                'password': live_class.password,
            },
            status=status.HTTP_200_OK,
        )


class LiveClassLeaveView(GenericAPIView):
    queryset = LiveClass.objects.all()
    serializer_class = LiveClassSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        live_class = self.get_object()
        live_class.remove_attendee(request.user)
        return Response({'message': 'Successfully left the live class'}, status=status.HTTP_200_OK)


@api_view(['POST'])
def bulk_delete_live_classes(request):
    ids = request.data.get('ids') or []
    if not isinstance(ids, list) or not ids:
        return Response({'detail': 'Please select classes to delete'}, status=status.HTTP_400_BAD_REQUEST)

    queryset = LiveClass.objects.filter(pk__in=ids, status='scheduled')
    if not is_admin(request.user):
        queryset = queryset.filter(teacher=request.user)
    if not queryset.exists():
        return Response(
            {'detail': 'No scheduled classes found that you can delete'},
            status=status.HTTP_404_NOT_FOUND,
        )

    count = queryset.count()
    queryset.delete()
    return Response(
        {'message': f'Successfully deleted {count} selected classes', 'deleted_count': count},
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
def attendance_report(request, pk):
    live_class = get_object_or_404(LiveClass.objects.select_related('course'), pk=pk)
    if not owns_course(request.user, live_class.course):
        return Response({'detail': 'Not authorized to view attendance report'}, status=status.HTTP_403_FORBIDDEN)

    attendees = {a.student_id: a for a in live_class.attendees.all()}
    report = []
    for student in live_class.course.enrolled_students.order_by('name'):
        attendee = attendees.get(student.pk)
        report.append({
            'student': {'id': student.pk, 'name': student.name, 'email': student.email},
            'attendance': bool(attendee and attendee.joined_at),
            'joined_at': attendee.joined_at if attendee else None,
            'left_at': attendee.left_at if attendee else None,
            'minutes_attended': attendee.minutes_attended if attendee else None,
        })

    return Response(
        {
            'class_title': live_class.title,
            'scheduled_at': live_class.scheduled_at,
            'total_attendees': sum(1 for row in report if row['attendance']),
            'attendance_report': report,
        },
        status=status.HTTP_200_OK,
    )
