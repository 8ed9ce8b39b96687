import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from ..models import Course, CourseRating, Module, User
from ..pagination import QueryFilterBackend, QuerySortBackend
from ..permissions import IsTeacher, is_admin, owns_course
from ..serializers import (
    CourseDetailSerializer, CourseRatingSerializer, CourseSerializer, LessonSerializer, ModuleSerializer,
)

logger = logging.getLogger(__name__)


class CourseView(GenericAPIView):
    queryset = Course.objects.select_related('teacher')
    serializer_class = CourseSerializer
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['category', 'level', 'board', 'standard', 'subject', 'batch', 'medium', 'class_type',
                    'language', 'academic_year', 'teacher', 'title', 'price', 'duration', 'is_active']
    sort_fields = ['created_at', 'price', 'title', 'average_rating', 'published_at', 'start_date']

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request):
        params = request.query_params
        queryset = self.filter_queryset(self.get_queryset())

        queryset = queryset.filter(status=params.get('status') or 'published')
        if params.get('min_price'):
            queryset = queryset.filter(price__gte=params['min_price'])
        if params.get('max_price'):
            queryset = queryset.filter(price__lte=params['max_price'])
        search = (params.get('search') or '').strip()
        if search:
            queryset = queryset.filter(
                Q(title__icontains=search) | Q(description__icontains=search) | Q(tags__icontains=search)
            )

        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def post(self, request):
        user = request.user
        if user.role == 'teacher':
            if not user.is_onboarded:
                return Response(
                    {'detail': 'Please complete onboarding before creating a class'},
                    status=status.HTTP_403_FORBIDDEN,
                )
            teacher = user
        elif is_admin(user):
            teacher_id = request.data.get('teacher')
            teacher = get_object_or_404(User, pk=teacher_id, role='teacher') if teacher_id else user
        else:
            return Response({'detail': 'Only teachers can create a class'}, status=status.HTTP_403_FORBIDDEN)

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        course = serializer.save(teacher=teacher)
        logger.info('Course %s created by %s', course.pk, user.email)
        return Response(self.get_serializer(course).data, status=status.HTTP_201_CREATED)


class TeacherCoursesView(GenericAPIView):
    serializer_class = CourseSerializer
    permission_classes = [IsTeacher]
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['status', 'category', 'level', 'subject', 'standard', 'board', 'title', 'is_active']
    sort_fields = ['created_at', 'title', 'price', 'start_date']

    def get_queryset(self):
        return Course.objects.filter(teacher=self.request.user).select_related('teacher')

    def get(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)


class CourseDetailView(GenericAPIView):
    queryset = Course.objects.select_related('teacher').prefetch_related('modules__lessons')
    serializer_class = CourseDetailSerializer

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request, pk):
        course = self.get_object()
        if course.status != 'published' and not self.can_see_unpublished(request.user, course):
            return Response({'detail': 'Class not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(self.get_serializer(course).data, status=status.HTTP_200_OK)

    @staticmethod
    def can_see_unpublished(user, course):
        if not user.is_authenticated:
            return False
        return owns_course(user, course) or course.enrollments.filter(student=user).exists()

    def put(self, request, pk):
        course = self.get_object()
        if not owns_course(request.user, course):
            return Response({'detail': 'Not authorized to update this class'}, status=status.HTTP_403_FORBIDDEN)

        serializer = CourseSerializer(course, data=request.data, partial=True, context={'request': request})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        course = serializer.save()
        return Response(self.get_serializer(course).data, status=status.HTTP_200_OK)

    patch = put

    def delete(self, request, pk):
        course = self.get_object()
        if not owns_course(request.user, course):
            return Response({'detail': 'Not authorized to delete this class'}, status=status.HTTP_403_FORBIDDEN)
        if course.enrolled_count() > 0:
            return Response(
                {'detail': 'Cannot delete a class with enrolled students'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        course.delete()
        return Response({'message': 'Class deleted'}, status=status.HTTP_200_OK)


class CoursePublishView(GenericAPIView):
    queryset = Course.objects.all()
    serializer_class = CourseSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        course = self.get_object()
        if not owns_course(request.user, course):
            return Response({'detail': 'Not authorized to publish this class'}, status=status.HTTP_403_FORBIDDEN)
        if not course.modules.exists():
            return Response(
                {'detail': 'Add at least one module before publishing'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        course.status = 'published'
        course.published_at = timezone.now()
        course.save(update_fields=['status', 'published_at', 'updated_at'])
        return Response(self.get_serializer(course).data, status=status.HTTP_200_OK)


class ModuleView(GenericAPIView):
    queryset = Course.objects.all()
    serializer_class = ModuleSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        course = self.get_object()
        if not owns_course(request.user, course):
            return Response({'detail': 'Not authorized to modify this class'}, status=status.HTTP_403_FORBIDDEN)

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        extra = {} if 'order' in request.data else {'order': course.modules.count()}
        module = serializer.save(course=course, **extra)
        return Response(self.get_serializer(module).data, status=status.HTTP_201_CREATED)


class ModuleLookupMixin:
    def get_module(self, pk, module_pk):
        module = get_object_or_404(Module.objects.select_related('course'), pk=module_pk, course_id=pk)
        if not owns_course(self.request.user, module.course):
            return module, Response({'detail': 'Not authorized to modify this class'}, status=status.HTTP_403_FORBIDDEN)
        return module, None


class ModuleDetailView(ModuleLookupMixin, GenericAPIView):
    serializer_class = ModuleSerializer
    permission_classes = [IsAuthenticated]

    def put(self, request, pk, module_pk):
        module, denied = self.get_module(pk, module_pk)
        if denied:
            return denied
        serializer = self.get_serializer(module, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_200_OK)

    patch = put

    def delete(self, request, pk, module_pk):
        module, denied = self.get_module(pk, module_pk)
        if denied:
            return denied
        course = module.course
        module.delete()
        course.recalculate_total_lectures()
        return Response({'message': 'Module deleted'}, status=status.HTTP_200_OK)


class LessonView(ModuleLookupMixin, GenericAPIView):
    serializer_class = LessonSerializer
    permission_classes = [IsAuthenticated]

    def post(self, request, pk, module_pk):
        module, denied = self.get_module(pk, module_pk)
        if denied:
            return denied
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        extra = {} if 'order' in request.data else {'order': module.lessons.count()}
        lesson = serializer.save(module=module, **extra)
        module.course.recalculate_total_lectures()
        return Response(self.get_serializer(lesson).data, status=status.HTTP_201_CREATED)


class CourseRatingView(GenericAPIView):
    queryset = Course.objects.all()
    serializer_class = CourseRatingSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        course = self.get_object()
        page = self.paginate_queryset(course.ratings.select_related('student').order_by('-created_at'))
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def post(self, request, pk):
        course = self.get_object()
        enrolled = course.enrollments.filter(
            student=request.user, status__in=['active', 'completed'],
        ).exists()
        if not enrolled:
            return Response({'detail': 'You must be enrolled to rate this class'}, status=status.HTTP_403_FORBIDDEN)

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        rating, created = CourseRating.objects.update_or_create(
            course=course,
            student=request.user,
            defaults={
                'rating': serializer.validated_data['rating'],
                'review': serializer.validated_data.get('review', ''),
            },
        )
        course.recalculate_rating()
        return Response(
            {
                'rating': self.get_serializer(rating).data,
                'average_rating': course.average_rating,
                'total_reviews': course.total_reviews,
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )
