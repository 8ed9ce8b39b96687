import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..emails import send_assignment_graded_email
from ..models import Assignment, Course, Enrollment
from ..notifications import notify_assignment_created, notify_assignment_graded, notify_assignment_submitted
from ..pagination import QueryFilterBackend, QuerySortBackend
from ..permissions import owns_course
from ..serializers import (
    AssignmentSerializer, GradeSubmissionSerializer, SubmissionSerializer, SubmitAssignmentSerializer,
)

logger = logging.getLogger(__name__)


def is_enrolled(user, course, statuses=('active', 'completed')):
    return Enrollment.objects.filter(student=user, course=course, status__in=statuses).exists()


class CourseAssignmentsView(GenericAPIView):
    serializer_class = AssignmentSerializer
    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['type', 'is_published', 'module']
    sort_fields = ['due_date', 'created_at', 'title']

    def get(self, request, pk):
        course = get_object_or_404(Course, pk=pk)
        queryset = course.assignments.select_related('created_by')
        if not owns_course(request.user, course):
            if not is_enrolled(request.user, course):
                return Response({'detail': 'You are not enrolled in this class'}, status=status.HTTP_403_FORBIDDEN)
            queryset = queryset.filter(is_published=True)

        page = self.paginate_queryset(self.filter_queryset(queryset))
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def post(self, request, pk):
        course = get_object_or_404(Course, pk=pk)
        if not owns_course(request.user, course):
            return Response({'detail': 'Not authorized to add assignments to this class'}, status=status.HTTP_403_FORBIDDEN)

        serializer = self.get_serializer(data=request.data, context={'request': request, 'course': course})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        assignment = serializer.save(course=course, created_by=request.user)
        logger.info('Assignment %s created on course %s', assignment.pk, course.pk)
        return Response(self.get_serializer(assignment).data, status=status.HTTP_201_CREATED)


class AssignmentDetailView(GenericAPIView):
    queryset = Assignment.objects.select_related('course', 'created_by')
    serializer_class = AssignmentSerializer
    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get(self, request, pk):
        assignment = self.get_object()
        data = self.get_serializer(assignment).data
        if owns_course(request.user, assignment.course):
            return Response(data, status=status.HTTP_200_OK)

        if not assignment.is_published or not is_enrolled(request.user, assignment.course):
            return Response({'detail': 'Assignment not found'}, status=status.HTTP_404_NOT_FOUND)
        submission = assignment.submissions.filter(student=request.user).first()
        data['my_submission'] = SubmissionSerializer(submission).data if submission else None
        return Response(data, status=status.HTTP_200_OK)

    def put(self, request, pk):
        assignment = self.get_object()
        if not owns_course(request.user, assignment.course):
            return Response({'detail': 'Not authorized to update this assignment'}, status=status.HTTP_403_FORBIDDEN)

        serializer = self.get_serializer(assignment, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_200_OK)

    patch = put

    def delete(self, request, pk):
        assignment = self.get_object()
        if not owns_course(request.user, assignment.course):
            return Response({'detail': 'Not authorized to delete this assignment'}, status=status.HTTP_403_FORBIDDEN)
        if assignment.submissions.exists():
            return Response(
                {'detail': 'Cannot delete an assignment that has submissions'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        assignment.delete()
        return Response({'message': 'Assignment deleted'}, status=status.HTTP_200_OK)


class AssignmentPublishView(GenericAPIView):
    queryset = Assignment.objects.select_related('course', 'created_by')
    serializer_class = AssignmentSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        assignment = self.get_object()
        if not owns_course(request.user, assignment.course):
            return Response({'detail': 'Not authorized to publish this assignment'}, status=status.HTTP_403_FORBIDDEN)
        if assignment.is_published:
            return Response({'detail': 'Assignment is already published'}, status=status.HTTP_400_BAD_REQUEST)

        assignment.is_published = True
        assignment.save(update_fields=['is_published', 'updated_at'])
        notify_assignment_created(assignment)
        return Response(self.get_serializer(assignment).data, status=status.HTTP_200_OK)


class SubmitAssignmentView(GenericAPIView):
    queryset = Assignment.objects.select_related('course', 'created_by')
    serializer_class = SubmitAssignmentSerializer
    permission_classes = [IsAuthenticated]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def post(self, request, pk):
        assignment = self.get_object()
        if request.user.role != 'student':
            return Response({'detail': 'Only students can submit assignments'}, status=status.HTTP_403_FORBIDDEN)
        if not assignment.is_published:
            return Response({'detail': 'Assignment not found'}, status=status.HTTP_404_NOT_FOUND)
        if not is_enrolled(request.user, assignment.course, statuses=('active',)):
            return Response({'detail': 'You are not enrolled in this class'}, status=status.HTTP_403_FORBIDDEN)

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        submission = assignment.submit(
            request.user,
            content=serializer.validated_data.get('content', ''),
            file=serializer.validated_data.get('file'),
        )
        notify_assignment_submitted(submission)
        return Response(SubmissionSerializer(submission).data, status=status.HTTP_201_CREATED)


class GradeSubmissionView(GenericAPIView):
    queryset = Assignment.objects.select_related('course', 'created_by')
    serializer_class = GradeSubmissionSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        assignment = self.get_object()
        if not owns_course(request.user, assignment.course):
            return Response({'detail': 'Not authorized to grade this assignment'}, status=status.HTTP_403_FORBIDDEN)

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        submission = assignment.grade(data['student'], data['score'], request.user, data['feedback'])

        enrollment = Enrollment.objects.filter(student=submission.student, course=assignment.course).first()
        if enrollment is not None:
            enrollment.record_assignment_grade(assignment, submission.score, request.user, submission.feedback)

        notify_assignment_graded(submission)
        send_assignment_graded_email(submission)
        return Response(SubmissionSerializer(submission).data, status=status.HTTP_200_OK)


class SubmissionListView(GenericAPIView):
    serializer_class = SubmissionSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['status', 'is_late']
    sort_fields = ['submitted_at', 'score', 'graded_at']

    def get(self, request, pk):
        assignment = get_object_or_404(Assignment.objects.select_related('course'), pk=pk)
        if not owns_course(request.user, assignment.course):
            return Response({'detail': 'Not authorized to view submissions'}, status=status.HTTP_403_FORBIDDEN)

        queryset = self.filter_queryset(assignment.submissions.select_related('student', 'graded_by'))
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)
