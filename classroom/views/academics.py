import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..constants import current_academic_year
from ..models import Grade, Subject, SubjectTeacher, User
from ..pagination import QueryFilterBackend, QuerySortBackend
from ..permissions import IsAdminRole, is_admin
from ..serializers import GradeSerializer, SubjectSerializer, SubjectTeacherSerializer

logger = logging.getLogger(__name__)

GRADE_UPDATE_FIELDS = ['description', 'medium', 'is_active', 'enrollment_price', 'discount_price', 'max_students']
SUBJECT_UPDATE_FIELDS = ['description', 'schedule', 'syllabus', 'total_classes', 'completed_classes', 'is_active']


class GradeView(GenericAPIView):
    queryset = Grade.objects.prefetch_related('subjects__teacher_assignments__teacher')
    serializer_class = GradeSerializer
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['name', 'board', 'academic_year', 'medium', 'is_active']
    sort_fields = ['name', 'board', 'academic_year', 'created_at']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAdminRole()]
        return [IsAuthenticated()]

    def get(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        duplicate = Grade.objects.filter(
            name=data['name'], board=data['board'], academic_year=data.get('academic_year') or current_academic_year(),
        ).exists()
        if duplicate:
            return Response(
                {'detail': 'Grade already exists for this board and academic year'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        grade = serializer.save(created_by=request.user)
        logger.info('Grade %s created by %s', grade, request.user.email)
        return Response(self.get_serializer(grade).data, status=status.HTTP_201_CREATED)


class GradesByBoardView(GenericAPIView):
    serializer_class = GradeSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request, board):
        grades = Grade.objects.filter(board=board, is_active=True).prefetch_related('subjects')
        return Response(self.get_serializer(grades, many=True).data, status=status.HTTP_200_OK)


class GradeDetailView(GenericAPIView):
    queryset = Grade.objects.all()
    serializer_class = GradeSerializer

    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsAuthenticated()]
        return [IsAdminRole()]

    def get(self, request, pk):
        return Response(self.get_serializer(self.get_object()).data, status=status.HTTP_200_OK)

    def put(self, request, pk):
        grade = self.get_object()
        data = {key: request.data[key] for key in GRADE_UPDATE_FIELDS if key in request.data}
        serializer = self.get_serializer(grade, data=data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_200_OK)

    patch = put

    def delete(self, request, pk):
        grade = self.get_object()
        if grade.enrolled_students.exists():
            return Response(
                {'detail': 'Cannot delete a grade with enrolled students'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        grade.delete()
        return Response({'message': 'Grade deleted'}, status=status.HTTP_200_OK)


class GradeEnrollView(GenericAPIView):
    queryset = Grade.objects.all()
    serializer_class = GradeSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        grade = self.get_object()
        if is_admin(request.user):
            student_id = request.data.get('student')
            if not student_id:
                return Response({'detail': 'Student ID is required'}, status=status.HTTP_400_BAD_REQUEST)
            student = get_object_or_404(User, pk=student_id, role='student')
        elif request.user.role == 'student':
            student = request.user
        else:
            return Response({'detail': 'Only students can be enrolled in a grade'}, status=status.HTTP_403_FORBIDDEN)

        if not grade.is_active:
            return Response({'detail': 'This grade is not active'}, status=status.HTTP_400_BAD_REQUEST)
        if grade.enrolled_students.filter(pk=student.pk).exists():
            return Response({'detail': 'Student is already enrolled in this grade'}, status=status.HTTP_400_BAD_REQUEST)
        if grade.enrolled_students.count() >= grade.max_students:
            return Response({'detail': 'This grade is full'}, status=status.HTTP_400_BAD_REQUEST)

        grade.enrolled_students.add(student)
        return Response(self.get_serializer(grade).data, status=status.HTTP_200_OK)


class SubjectView(GenericAPIView):
    queryset = Subject.objects.select_related('grade').prefetch_related('teacher_assignments__teacher')
    serializer_class = SubjectSerializer
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['grade', 'name', 'code', 'teachers', 'is_active']
    sort_fields = ['name', 'code', 'created_at']

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAdminRole()]
        return [IsAuthenticated()]

    def get(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        subject = serializer.save(created_by=request.user)
        return Response(self.get_serializer(subject).data, status=status.HTTP_201_CREATED)


class AssignTeacherView(GenericAPIView):
    queryset = Subject.objects.all()
    serializer_class = SubjectTeacherSerializer
    permission_classes = [IsAdminRole]

    def post(self, request, pk):
        subject = self.get_object()
        teacher_id = request.data.get('teacher')
        if not teacher_id:
            return Response({'detail': 'Teacher ID is required'}, status=status.HTTP_400_BAD_REQUEST)
        teacher = get_object_or_404(User, pk=teacher_id, role='teacher')

        assignment, created = SubjectTeacher.objects.get_or_create(
            subject=subject,
            teacher=teacher,
            defaults={
                'is_primary': str(request.data.get('is_primary', '')).lower() in ('true', '1'),
                'specialization': request.data.get('specialization', ''),
            },
        )
        if not created:
            return Response({'detail': 'Teacher is already assigned to this subject'}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(assignment).data, status=status.HTTP_201_CREATED)


class SubjectDetailView(GenericAPIView):
    queryset = Subject.objects.select_related('grade').prefetch_related('teacher_assignments__teacher')
    serializer_class = SubjectSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        return Response(self.get_serializer(self.get_object()).data, status=status.HTTP_200_OK)

    def put(self, request, pk):
        subject = self.get_object()
        user = request.user
        can_edit = (
            is_admin(user)
            or subject.created_by_id == user.pk
            or subject.teacher_assignments.filter(teacher=user).exists()
        )
        if not can_edit:
            return Response({'detail': 'Not authorized to update this subject'}, status=status.HTTP_403_FORBIDDEN)

        data = {key: request.data[key] for key in SUBJECT_UPDATE_FIELDS if key in request.data}
        serializer = self.get_serializer(subject, data=data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_200_OK)

    patch = put

    def delete(self, request, pk):
        subject = self.get_object()
        if not is_admin(request.user):
            return Response({'detail': 'Only admins can delete subjects'}, status=status.HTTP_403_FORBIDDEN)
        subject.delete()
        logger.info('Subject %s deleted by %s', subject.code, request.user.email)
        return Response({'message': 'Subject deleted successfully'}, status=status.HTTP_200_OK)


@api_view(['DELETE'])
@permission_classes([IsAdminRole])
def remove_subject_teacher(request, pk, teacher_pk):
    subject = get_object_or_404(Subject, pk=pk)
    deleted, _ = SubjectTeacher.objects.filter(subject=subject, teacher_id=teacher_pk).delete()
    if not deleted:
        return Response({'detail': 'Teacher is not assigned to this subject'}, status=status.HTTP_404_NOT_FOUND)
    subject = Subject.objects.prefetch_related('teacher_assignments__teacher').get(pk=subject.pk)
    return Response(
        {'message': 'Teacher removed successfully', 'subject': SubjectSerializer(subject).data},
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def subjects_by_teacher(request, teacher_pk=None):
    subjects = (
        Subject.objects.filter(teacher_assignments__teacher_id=teacher_pk or request.user.pk, is_active=True)
        .select_related('grade')
        .prefetch_related('teacher_assignments__teacher')
        .order_by('grade__name', 'name')
    )
    return Response(SubjectSerializer(subjects, many=True).data, status=status.HTTP_200_OK)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def subjects_by_grade(request, pk):
    grade = get_object_or_404(Grade, pk=pk)
    subjects = grade.subjects.filter(is_active=True).prefetch_related('teacher_assignments__teacher')
    return Response(SubjectSerializer(subjects, many=True).data, status=status.HTTP_200_OK)
