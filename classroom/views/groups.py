import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response

from ..models import Course, Enrollment, StudentGroup, User
from ..pagination import QueryFilterBackend, QuerySortBackend
from ..permissions import IsTeacherOrAdmin, is_admin, owns_course
from ..serializers import StudentGroupSerializer, UserSummarySerializer

logger = logging.getLogger(__name__)

UPDATE_FIELDS = ['name', 'description', 'type', 'color', 'is_active']


def student_ids_from(data):
    ids = data.get('students')
    if not isinstance(ids, list) or not all(isinstance(pk, int) for pk in ids):
        return None
    return ids


def enrolled_students(course, ids):
    """Active students of the class among ``ids``, or None when any of them is not enrolled."""
    students = list(User.objects.filter(
        pk__in=ids,
        enrollments__course=course,
        enrollments__status='active',
    ).distinct())
    if len(students) != len(set(ids)):
        return None
    return students


class GroupAccessMixin:
    def get_queryset(self):
        queryset = StudentGroup.objects.select_related('course', 'teacher').prefetch_related('students')
        if is_admin(self.request.user):
            return queryset
        return queryset.filter(teacher=self.request.user)

    def get_group(self, pk):
        return self.get_queryset().filter(pk=pk).first()


class StudentGroupView(GroupAccessMixin, GenericAPIView):
    serializer_class = StudentGroupSerializer
    permission_classes = [IsTeacherOrAdmin]
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['course', 'type', 'is_active']
    sort_fields = ['name', 'created_at']

    def get(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        course = serializer.validated_data['course']
        if not owns_course(request.user, course):
            return Response(
                {'detail': 'You are not authorized to create groups for this class'},
                status=status.HTTP_403_FORBIDDEN,
            )

        students = []
        if 'students' in request.data:
            ids = student_ids_from(request.data)
            if ids is None:
                return Response({'detail': 'Students must be a list of user ids'}, status=status.HTTP_400_BAD_REQUEST)
            students = enrolled_students(course, ids)
            if students is None:
                return Response(
                    {'detail': 'Some students are not enrolled in this class'},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        group = serializer.save(teacher=course.teacher)
        group.add_students(students)
        logger.info('Group %s created for class %s with %d students', group.pk, course.pk, len(students))
        return Response(self.get_serializer(group).data, status=status.HTTP_201_CREATED)


class StudentGroupDetailView(GroupAccessMixin, GenericAPIView):
    serializer_class = StudentGroupSerializer
    permission_classes = [IsTeacherOrAdmin]

    def get(self, request, pk):
        group = self.get_group(pk)
        if group is None:
            return Response({'detail': 'Group not found'}, status=status.HTTP_404_NOT_FOUND)
        data = self.get_serializer(group).data
        data['performance'] = group.performance()
        return Response(data, status=status.HTTP_200_OK)

    def put(self, request, pk):
        group = self.get_group(pk)
        if group is None:
            return Response({'detail': 'Group not found'}, status=status.HTTP_404_NOT_FOUND)

        data = {key: request.data[key] for key in UPDATE_FIELDS if key in request.data}
        serializer = self.get_serializer(group, data=data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_200_OK)

    patch = put

    def delete(self, request, pk):
        group = self.get_group(pk)
        if group is None:
            return Response({'detail': 'Group not found'}, status=status.HTTP_404_NOT_FOUND)
        group.delete()
        return Response({'message': 'Group deleted successfully'}, status=status.HTTP_200_OK)


class GroupMembersView(GroupAccessMixin, GenericAPIView):
    serializer_class = StudentGroupSerializer
    permission_classes = [IsTeacherOrAdmin]
    membership = 'add'

    def post(self, request, pk):
        group = self.get_group(pk)
        if group is None:
            return Response({'detail': 'Group not found'}, status=status.HTTP_404_NOT_FOUND)

        ids = student_ids_from(request.data)
        if not ids:
            return Response({'detail': 'Please select students'}, status=status.HTTP_400_BAD_REQUEST)

        if self.membership == 'add':
            students = enrolled_students(group.course, ids)
            if students is None:
                return Response(
                    {'detail': 'Some students are not enrolled in this class'},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            group.add_students(students)
            message = 'Students added to group successfully'
        else:
            group.remove_students(group.students.filter(pk__in=ids))
            message = 'Students removed from group successfully'

        group = self.get_group(pk)
        return Response({'message': message, 'group': self.get_serializer(group).data}, status=status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsTeacherOrAdmin])
def available_students(request, pk):
    course = get_object_or_404(Course, pk=pk)
    if not owns_course(request.user, course):
        return Response({'detail': 'Not authorized to view students of this class'}, status=status.HTTP_403_FORBIDDEN)

    enrolled = User.objects.filter(
        pk__in=Enrollment.objects.filter(course=course, status='active').values('student_id'),
    ).order_by('name')
    grouped_ids = set(
        User.objects.filter(group_memberships__course=course, group_memberships__is_active=True)
        .values_list('pk', flat=True)
    )
    available = [student for student in enrolled if student.pk not in grouped_ids]
    return Response(
        {
            'available': UserSummarySerializer(available, many=True).data,
            'grouped': len(grouped_ids),
            'total': len(enrolled),
        },
        status=status.HTTP_200_OK,
    )
