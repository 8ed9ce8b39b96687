import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.models import Group
from django.contrib.auth.tokens import default_token_generator
from django.db.models import Q
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.generics import CreateAPIView, GenericAPIView, RetrieveAPIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from ..emails import send_password_reset_email, send_welcome_email
from ..models import User
from ..serializers import (
    PasswordUpdateSerializer, ProfileUpdateSerializer, ResetPasswordSerializer,
    UserRegistrationSerializer, UserSerializer,
)

logger = logging.getLogger(__name__)


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


class RegisterUserView(CreateAPIView):
    queryset = User.objects.all()
    serializer_class = UserRegistrationSerializer
    permission_classes = [AllowAny]
    throttle_classes = [LoginRateThrottle]

    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = serializer.save()
        group, _ = Group.objects.get_or_create(name=user.role.capitalize())
        user.groups.add(group)
        token, _ = Token.objects.get_or_create(user=user)
        send_welcome_email(user)
        logger.info('Registered %s as %s', user.email, user.role)

        return Response(
            {'message': 'User registered successfully!', 'token': token.key, 'user': UserSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login(request):
    email = (request.data.get('email') or '').strip().lower()
    password = request.data.get('password') or ''
    if not email or not password:
        return Response({'detail': 'Please provide an email and password'}, status=status.HTTP_400_BAD_REQUEST)

    account = User.objects.filter(email=email).first()
    if account is None:
        return Response({'detail': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

    if account.is_locked:
        return Response(
            {'detail': 'Account is temporarily locked due to too many failed login attempts. Please try again later.'},
            status=status.HTTP_423_LOCKED,
        )

    # email is the USERNAME_FIELD so it goes in as username
    user = authenticate(request, username=email, password=password)
    if user is None:
        if account.is_active:
            account.register_failed_login()
        return Response({'detail': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

    user.reset_login_attempts()
    token, _ = Token.objects.get_or_create(user=user)
    return Response(
        {'token': token.key, 'role': user.role, 'user': UserSerializer(user).data},
        status=status.HTTP_200_OK,
    )


@api_view(['POST'])
def logout(request):
    Token.objects.filter(user=request.user).delete()
    return Response({'message': 'Logged out successfully'}, status=status.HTTP_200_OK)


class MeView(GenericAPIView):
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(self.get_serializer(request.user).data, status=status.HTTP_200_OK)


class ProfileUpdateView(GenericAPIView):
    serializer_class = ProfileUpdateSerializer
    permission_classes = [IsAuthenticated]

    def put(self, request):
        serializer = self.get_serializer(request.user, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        user = serializer.save()
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)

    patch = put


class PasswordUpdateView(GenericAPIView):
    serializer_class = PasswordUpdateSerializer
    permission_classes = [IsAuthenticated]

    def put(self, request):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = request.user
        user.set_password(serializer.validated_data['new_password'])
        user.save(update_fields=['password'])

        # old sessions die with the old password
        Token.objects.filter(user=user).delete()
        token = Token.objects.create(user=user)
        return Response({'message': 'Password updated', 'token': token.key}, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def forgot_password(request):
    email = (request.data.get('email') or '').strip().lower()
    user = User.objects.filter(email=email, is_active=True).first() if email else None

    if user is not None:
        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        reset_url = f"{settings.LMS['FRONTEND_URL']}/reset-password/{uid}/{token}"
        send_password_reset_email(user, reset_url)
    else:
        logger.info('Password reset requested for unknown email %s', email)

    # same answer either way so emails can't be enumerated
    return Response(
        {'message': 'If an account exists with that email, a reset link has been sent'},
        status=status.HTTP_200_OK,
    )


class ResetPasswordView(GenericAPIView):
    serializer_class = ResetPasswordSerializer
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            user = User.objects.get(pk=force_str(urlsafe_base64_decode(data['uid'])))
        except (User.DoesNotExist, ValueError, TypeError, OverflowError):
            user = None

        if user is None or not default_token_generator.check_token(user, data['token']):
            return Response({'detail': 'Invalid or expired token'}, status=status.HTTP_400_BAD_REQUEST)

        user.set_password(data['password'])
        user.login_attempts = 0
        user.lock_until = None
        user.save(update_fields=['password', 'login_attempts', 'lock_until'])
        Token.objects.filter(user=user).delete()
        token = Token.objects.create(user=user)
        return Response({'message': 'Password reset successful', 'token': token.key}, status=status.HTTP_200_OK)


class UserProfileView(RetrieveAPIView):
    queryset = User.objects.filter(is_active=True)
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]


class UserSearchView(GenericAPIView):
    queryset = User.objects.filter(is_active=True)
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    def get(self, request):
        term = (request.query_params.get('q') or request.query_params.get('search') or '').strip()
        queryset = self.get_queryset()
        if term:
            queryset = queryset.filter(Q(name__icontains=term) | Q(email__icontains=term))
        role = request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role)

        page = self.paginate_queryset(queryset.order_by('name'))
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)
