from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Notification
from ..notifications import mark_all_as_read
from ..serializers import NotificationSerializer


class NotificationListView(GenericAPIView):
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user).select_related('sender')

    def get(self, request):
        queryset = self.get_queryset()
        is_read = request.query_params.get('is_read')
        if is_read in ('true', 'false'):
            queryset = queryset.filter(is_read=is_read == 'true')
        if request.query_params.get('type'):
            queryset = queryset.filter(type=request.query_params['type'])

        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)


@api_view(['GET'])
def unread_count(request):
    count = Notification.objects.filter(recipient=request.user, is_read=False).count()
    return Response({'count': count}, status=status.HTTP_200_OK)


class NotificationDetailView(GenericAPIView):
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        # other users' notifications are indistinguishable from missing ones
        return Notification.objects.filter(recipient=self.request.user)

    def put(self, request, pk):
        notification = self.get_object()
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=['is_read'])
        return Response(self.get_serializer(notification).data, status=status.HTTP_200_OK)

    patch = put

    def delete(self, request, pk):
        self.get_object().delete()
        return Response({'message': 'Notification deleted'}, status=status.HTTP_200_OK)


@api_view(['PUT', 'POST'])
def read_all(request):
    updated = mark_all_as_read(request.user)
    return Response({'message': 'All notifications marked as read', 'updated': updated}, status=status.HTTP_200_OK)
