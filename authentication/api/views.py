import logging

from django.conf import settings
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.api.serializers import LoginSerializer, UserSerializer
from authentication.models import CustomUser
from project.utils import StandardizedAPIView

logger = logging.getLogger(__name__)


class LoginView(StandardizedAPIView):
    permission_classes = []

    @method_decorator(ratelimit(key='ip', rate=settings.LOGIN_RATE_LIMIT, method='POST', block=True))
    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return self.validation_error_response(serializer.errors)

        user = serializer.validated_data['user']
        logger.info(f"User {user.pk} logged in")
        return self.success_response(
            data={
                'user': UserSerializer(user).data,
                'tokens': serializer.validated_data['tokens']
            },
            message="Login successful"
        )


class GetUserView(StandardizedAPIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return self.success_response(
            data={'user': UserSerializer(request.user).data},
            message="User data retrieved successfully"
        )


class TokenRefreshView(StandardizedAPIView):
    """
    Custom token refresh view that returns standardized response format
    """
    permission_classes = []

    def post(self, request, *args, **kwargs):
        refresh_token = request.data.get('refresh')

        if not refresh_token:
            return self.error_response(
                "Refresh token is required",
                status.HTTP_400_BAD_REQUEST
            )

        try:
            refresh = RefreshToken(refresh_token)
        except TokenError:
            return self.error_response(
                "Invalid refresh token",
                status.HTTP_401_UNAUTHORIZED
            )

        user_id = refresh.payload.get('user_id')
        try:
            user = CustomUser.objects.get(id=user_id, is_active=True)
        except CustomUser.DoesNotExist:
            return self.error_response(
                "User not found",
                status.HTTP_401_UNAUTHORIZED
            )

        # Refresh tokens rotate, so hand out a fresh pair
        new_refresh = RefreshToken.for_user(user)
        return self.success_response(
            data={
                'access': str(new_refresh.access_token),
                'refresh': str(new_refresh)
            },
            message="Token refreshed successfully"
        )
