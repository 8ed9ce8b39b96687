import logging

from django.db.models import Count, Sum
from django.http import FileResponse, HttpResponseRedirect
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.generics import GenericAPIView
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..constants import FILE_TYPES, MATERIAL_CATEGORIES
from ..models import Course, Enrollment, StudyMaterial
from ..notifications import notify_material_uploaded
from ..pagination import QueryFilterBackend, QuerySortBackend
from ..permissions import IsTeacherOrAdmin, is_admin, owns_course
from ..serializers import StudyMaterialSerializer

logger = logging.getLogger(__name__)


def is_enrolled(user, course):
    return Enrollment.objects.filter(student=user, course=course, status__in=['active', 'completed']).exists()


def can_access_material(user, material):
    if material.uploaded_by_id == user.pk or is_admin(user):
        return True
    if material.visibility == 'private':
        return False
    if material.visibility == 'public' or owns_course(user, material.course):
        return True
    return is_enrolled(user, material.course)


class MaterialListMixin:
    serializer_class = StudyMaterialSerializer
    filter_backends = [QueryFilterBackend, QuerySortBackend]
    query_fields = ['course', 'type', 'category', 'visibility', 'module', 'title']
    sort_fields = ['created_at', 'title', 'downloads', 'views']

    def list_response(self, queryset):
        page = self.paginate_queryset(self.filter_queryset(queryset))
        return self.get_paginated_response(self.get_serializer(page, many=True).data)


class MaterialUploadView(GenericAPIView):
    serializer_class = StudyMaterialSerializer
    permission_classes = [IsTeacherOrAdmin]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def post(self, request):
        course = Course.objects.filter(pk=request.data.get('course') or None).first()
        if course is None:
            return Response({'detail': 'Class not found'}, status=status.HTTP_404_NOT_FOUND)
        if not owns_course(request.user, course):
            return Response(
                {'detail': 'Not authorized to upload materials for this class'},
                status=status.HTTP_403_FORBIDDEN,
            )

        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        material = serializer.save(uploaded_by=request.user)
        notify_material_uploaded(material)
        logger.info('Material %s uploaded to course %s', material.pk, course.pk)
        return Response(self.get_serializer(material).data, status=status.HTTP_201_CREATED)


class TeacherMaterialsView(MaterialListMixin, GenericAPIView):
    permission_classes = [IsTeacherOrAdmin]

    def get(self, request):
        queryset = StudyMaterial.objects.filter(uploaded_by=request.user, is_active=True).select_related('uploaded_by')
        return self.list_response(queryset)


class CourseMaterialsView(MaterialListMixin, GenericAPIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        course = get_object_or_404(Course, pk=pk)
        queryset = course.materials.filter(is_active=True).select_related('uploaded_by')
        if not owns_course(request.user, course):
            visible = ['public', 'enrolled'] if is_enrolled(request.user, course) else ['public']
            queryset = queryset.filter(visibility__in=visible)
        return self.list_response(queryset)


class MaterialDetailView(GenericAPIView):
    queryset = StudyMaterial.objects.filter(is_active=True).select_related('course', 'uploaded_by')
    serializer_class = StudyMaterialSerializer
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get(self, request, pk):
        material = self.get_object()
        if not can_access_material(request.user, material):
            return Response({'detail': 'Not authorized to view this material'}, status=status.HTTP_403_FORBIDDEN)
        material.increment_views(request.user)
        return Response(self.get_serializer(material).data, status=status.HTTP_200_OK)

    def put(self, request, pk):
        material = self.get_object()
        if material.uploaded_by_id != request.user.pk and not is_admin(request.user):
            return Response({'detail': 'Not authorized to update this material'}, status=status.HTTP_403_FORBIDDEN)

        serializer = self.get_serializer(material, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        if 'course' in serializer.validated_data and not owns_course(request.user, serializer.validated_data['course']):
            return Response({'detail': 'Not authorized to move material to this class'}, status=status.HTTP_403_FORBIDDEN)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_200_OK)

    patch = put

    def delete(self, request, pk):
        material = self.get_object()
        if material.uploaded_by_id != request.user.pk and not is_admin(request.user):
            return Response({'detail': 'Not authorized to delete this material'}, status=status.HTTP_403_FORBIDDEN)
        material.is_active = False
        material.save(update_fields=['is_active', 'updated_at'])
        return Response({'message': 'Material deleted successfully'}, status=status.HTTP_200_OK)


@api_view(['GET'])
def download_material(request, pk):
    material = get_object_or_404(StudyMaterial.objects.select_related('course'), pk=pk, is_active=True)
    if not can_access_material(request.user, material):
        return Response({'detail': 'Not authorized to download this material'}, status=status.HTTP_403_FORBIDDEN)

    if material.type == 'link' or not material.file:
        if not material.file_url:
            return Response({'detail': 'File not found'}, status=status.HTTP_404_NOT_FOUND)
        material.increment_downloads(request.user)
        return HttpResponseRedirect(material.file_url)

    if not material.file.storage.exists(material.file.name):
        logger.error('Material %s points at missing file %s', material.pk, material.file.name)
        return Response({'detail': 'File not found'}, status=status.HTTP_404_NOT_FOUND)
    material.increment_downloads(request.user)
    return FileResponse(
        material.file.open('rb'),
        as_attachment=True,
        filename=material.file_name or material.file.name.rsplit('/', 1)[-1],
        content_type=material.mime_type or None,
    )


@api_view(['GET'])
def material_stats(request):
    queryset = StudyMaterial.objects.filter(is_active=True)
    if not is_admin(request.user):
        queryset = queryset.filter(uploaded_by=request.user)
    if request.query_params.get('course'):
        queryset = queryset.filter(course_id=request.query_params['course'])

    totals = queryset.aggregate(
        total_materials=Count('id'), total_downloads=Sum('downloads'), total_views=Sum('views'),
        total_size=Sum('file_size'),
    )
    by_type = (
        queryset.values('type')
        .order_by('type')
        .annotate(count=Count('id'), downloads=Sum('downloads'), views=Sum('views'))
    )
    return Response(
        {
            'total_materials': totals['total_materials'],
            'total_downloads': totals['total_downloads'] or 0,
            'total_views': totals['total_views'] or 0,
            'total_size': totals['total_size'] or 0,
            'by_type': list(by_type),
        },
        status=status.HTTP_200_OK,
    )


@api_view(['GET'])
def material_categories(request):
    return Response(
        {
            'categories': [{'value': key, 'label': label} for key, label in MATERIAL_CATEGORIES.items()],
            'file_types': {
                name: {'mime_types': config['mime_types'], 'max_size': config['max_size']}
                for name, config in FILE_TYPES.items()
            },
        },
        status=status.HTTP_200_OK,
    )
