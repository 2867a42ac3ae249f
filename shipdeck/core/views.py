import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from django.core.exceptions import ObjectDoesNotExist
from .models import AuditLog
from .responses import api_response
from .serializers import UserSerializer, UserCreateSerializer, AuditLogSerializer

logger = logging.getLogger('shipdeck.core')


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        return token


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh serializer that rejects tokens of deleted users"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class EnvelopeMixin:
    """Wrap successful simplejwt responses in the success envelope"""

    def finalize_response(self, request, response, *args, **kwargs):
        if response.status_code < 400 and isinstance(response.data, dict) and 'success' not in response.data:
            response.data = {'success': True, 'data': response.data, 'error': None}
        return super().finalize_response(request, response, *args, **kwargs)


class CustomTokenObtainPairView(EnvelopeMixin, TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshView(EnvelopeMixin, TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Registration validation failed: {serializer.errors}")
        raise ValidationError(serializer.errors)
    user = serializer.save()
    token = CustomTokenObtainPairSerializer.get_token(user)
    logger.info(f"User {user.username} registered")
    return api_response({
        'user': UserSerializer(user).data,
        'access': str(token.access_token),
        'refresh': str(token),
    }, status_code=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get the current user"""
    return api_response(UserSerializer(request.user).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_list(request):
    """List audit logs, optionally narrowed by model_name, object_id or action"""
    queryset = AuditLog.objects.select_related('user')
    model_name = request.query_params.get('model_name')
    object_id = request.query_params.get('object_id')
    action = request.query_params.get('action')

    if model_name:
        queryset = queryset.filter(model_name=model_name)
    if object_id:
        queryset = queryset.filter(object_id=object_id)
    if action:
        queryset = queryset.filter(action=action)

    serializer = AuditLogSerializer(queryset, many=True)
    return api_response(serializer.data)
