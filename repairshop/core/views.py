import logging

from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from repairshop.organizations.scoping import get_user_organization, scoped_queryset, get_scoped_object_or_404
from .models import AuditLog, UserPreference
from .serializers import (
    UserSerializer, UserCreateSerializer, ProfileSerializer, AvatarSerializer,
    UserPreferenceSerializer, AuditLogSerializer
)
from .utils import create_audit_log, paginate_queryset

User = get_user_model()
logger = logging.getLogger('repairshop.core')

SEARCH_LIMIT = 20


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
        token['role'] = user.role
        token['organization_id'] = user.organization_id
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def _forbidden_unless_org_admin(request):
    if not request.user.is_org_admin:
        logger.warning(f"User {request.user.username} denied admin-only action")
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
    return None


def _preference_for(user):
    preference, _ = UserPreference.objects.get_or_create(user=user)
    return preference


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint"""
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        logger.info(f"Registered user {user.username}")
        return Response({
            'user': UserSerializer(user, context={'request': request}).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with organization and preferences"""
    user = request.user
    user_data = UserSerializer(user, context={'request': request}).data
    if user.organization_id:
        user_data['organization_detail'] = {
            'id': user.organization.id,
            'name': user.organization.name,
        }
    else:
        user_data['organization_detail'] = None
    user_data['preferences'] = UserPreferenceSerializer(_preference_for(user)).data
    user_data['is_admin'] = user.is_org_admin
    return Response(user_data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_profile(request):
    """Update the current user's profile"""
    serializer = ProfileSerializer(request.user, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        logger.info(f"Profile updated for {request.user.username}")
        return Response(UserSerializer(request.user, context={'request': request}).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def user_avatar(request):
    """Upload a new avatar for the current user"""
    serializer = AvatarSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = request.user
    if user.avatar:
        user.avatar.delete(save=False)
    user.avatar = serializer.validated_data['avatar']
    user.save(update_fields=['avatar', 'updated_at'])
    logger.info(f"Avatar uploaded for {user.username}")
    return Response(UserSerializer(user, context={'request': request}).data)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_preferences(request):
    """Get or update the current user's preferences"""
    preference = _preference_for(request.user)
    if request.method == 'GET':
        return Response(UserPreferenceSerializer(preference).data)

    serializer = UserPreferenceSerializer(preference, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_list_create(request):
    """List the users of the caller's organization or add a new one"""
    if request.method == 'GET':
        users = scoped_queryset(User, request.user).order_by('username')
        serializer = UserSerializer(users, many=True, context={'request': request})
        return Response(serializer.data)

    denied = _forbidden_unless_org_admin(request)
    if denied:
        return denied
    organization = get_user_organization(request.user)
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save(organization=organization)
        create_audit_log(
            request=request,
            action='create',
            model_name='User',
            object_id=str(user.id),
            object_name=user.username,
            changes={'role': user.role}
        )
        return Response(UserSerializer(user, context={'request': request}).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve, update or remove a user of the caller's organization"""
    user = get_scoped_object_or_404(User, request.user, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user, context={'request': request})
        return Response(serializer.data)

    denied = _forbidden_unless_org_admin(request)
    if denied:
        return denied

    if request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH', context={'request': request})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='User',
                object_id=str(user.id),
                object_name=user.username,
                changes=dict(request.data.items()) if hasattr(request.data, 'items') else {}
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot remove yourself'}, status=status.HTTP_400_BAD_REQUEST)
        user_id = user.id
        username = user.username
        user.delete()
        create_audit_log(
            request=request,
            action='delete',
            model_name='User',
            object_id=str(user_id),
            object_name=username
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs of the caller's organization with filtering"""
    queryset = scoped_queryset(AuditLog, request.user).select_related('user')

    # Non-admins only see their own actions
    if not request.user.is_org_admin:
        queryset = queryset.filter(user=request.user)

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    reference = request.query_params.get('reference', None)
    if reference:
        queryset = queryset.filter(object_reference=reference)

    date_from = request.query_params.get('date_from', None)
    date_to = request.query_params.get('date_to', None)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at')
    return Response(paginate_queryset(request, queryset, AuditLogSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_scoped_object_or_404(AuditLog, request.user, pk=pk)

    if not request.user.is_org_admin and audit_log.user_id != request.user.id:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    return Response(AuditLogSerializer(audit_log).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """Search customers, devices, services, parts and fiscal documents of the organization"""
    query = request.query_params.get('q', '').strip()

    if not query:
        return Response({
            'customers': [],
            'devices': [],
            'services': [],
            'parts': [],
            'documents': [],
        })

    from repairshop.customers.models import Customer
    from repairshop.customers.serializers import CustomerSerializer
    from repairshop.devices.models import Device
    from repairshop.devices.serializers import DeviceSerializer
    from repairshop.services.models import ServiceOrder
    from repairshop.services.serializers import ServiceOrderSerializer
    from repairshop.inventory.models import Part
    from repairshop.inventory.serializers import PartSerializer
    from repairshop.fiscal.models import FiscalDocument
    from repairshop.fiscal.serializers import FiscalDocumentListSerializer

    user = request.user
    results = {}

    digits = ''.join(ch for ch in query if ch.isdigit())
    customer_q = Q(name__icontains=query) | Q(phone__icontains=query) | Q(email__icontains=query)
    if digits:
        customer_q |= Q(document__icontains=digits)
    customers = scoped_queryset(Customer, user).filter(customer_q)[:SEARCH_LIMIT]
    results['customers'] = CustomerSerializer(customers, many=True).data

    devices = scoped_queryset(Device, user).filter(
        Q(brand__icontains=query) |
        Q(model__icontains=query) |
        Q(imei__icontains=query) |
        Q(serial_number__icontains=query)
    ).select_related('customer')[:SEARCH_LIMIT]
    results['devices'] = DeviceSerializer(devices, many=True).data

    services = scoped_queryset(ServiceOrder, user).filter(
        Q(customer__name__icontains=query) |
        Q(device__model__icontains=query) |
        Q(device__brand__icontains=query) |
        Q(observations__icontains=query)
    ).select_related('customer', 'device', 'technician')[:SEARCH_LIMIT]
    results['services'] = ServiceOrderSerializer(services, many=True).data

    parts = scoped_queryset(Part, user).filter(
        Q(name__icontains=query) |
        Q(sku__icontains=query) |
        Q(compatibility__icontains=query)
    )[:SEARCH_LIMIT]
    results['parts'] = PartSerializer(parts, many=True).data

    documents = scoped_queryset(FiscalDocument, user).filter(
        Q(number__icontains=query) |
        Q(customer_name__icontains=query) |
        Q(access_key__icontains=query)
    )[:SEARCH_LIMIT]
    results['documents'] = FiscalDocumentListSerializer(documents, many=True).data

    return Response(results)
