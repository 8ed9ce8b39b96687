from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response

from .. import onboarding
from ..models import User
from ..permissions import IsAdminRole
from ..serializers import GradeSerializer, SubjectSerializer, UserSerializer


class PendingUsersView(GenericAPIView):
    serializer_class = UserSerializer
    permission_classes = [IsAdminRole]

    def get(self, request):
        queryset = User.objects.filter(role__in=['student', 'teacher'], onboarding_status='pending')
        role = request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role)
        page = self.paginate_queryset(queryset.order_by('date_joined'))
        return self.get_paginated_response(self.get_serializer(page, many=True).data)


@api_view(['GET'])
@permission_classes([IsAdminRole])
def onboarding_stats(request):
    return Response(onboarding.onboarding_stats(), status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAdminRole])
def onboard_student(request, pk):
    result = onboarding.onboard_student(pk, request.user)
    return Response(
        {
            'message': 'Student onboarded successfully',
            'user': UserSerializer(result['user']).data,
            'grade': GradeSerializer(result['grade']).data,
        },
        status=status.HTTP_200_OK,
    )


@api_view(['POST'])
@permission_classes([IsAdminRole])
def onboard_teacher(request, pk):
    result = onboarding.onboard_teacher(pk, request.user)
    return Response(
        {
            'message': 'Teacher onboarded successfully',
            'user': UserSerializer(result['user']).data,
            'assigned_subjects': SubjectSerializer(result['assigned_subjects'], many=True).data,
        },
        status=status.HTTP_200_OK,
    )


@api_view(['POST'])
@permission_classes([IsAdminRole])
def bulk_onboard(request):
    user_ids = request.data.get('user_ids') or []
    action = request.data.get('action')
    if not isinstance(user_ids, list) or not user_ids:
        return Response({'detail': 'Please provide a list of user IDs'}, status=status.HTTP_400_BAD_REQUEST)
    if action not in ('approve', 'reject'):
        return Response({'detail': 'Action must be approve or reject'}, status=status.HTTP_400_BAD_REQUEST)

    results = onboarding.bulk_onboard(user_ids, action, request.user)
    return Response(
        {
            'message': f"{len(results['success'])} users processed, {len(results['failed'])} failed",
            'results': results,
        },
        status=status.HTTP_200_OK,
    )


@api_view(['POST'])
@permission_classes([IsAdminRole])
def reject_onboarding(request, pk):
    user = User.objects.filter(pk=pk, role__in=['student', 'teacher']).first()
    if user is None:
        return Response({'detail': 'User not found'}, status=status.HTTP_404_NOT_FOUND)
    if user.onboarding_status == 'completed':
        return Response({'detail': 'User already onboarded'}, status=status.HTTP_400_BAD_REQUEST)

    onboarding.reject_user(user, request.user, request.data.get('reason', ''))
    return Response(
        {'message': 'User onboarding rejected', 'user': UserSerializer(user).data},
        status=status.HTTP_200_OK,
    )
