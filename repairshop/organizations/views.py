import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from repairshop.core.serializers import UserSerializer
from repairshop.core.utils import create_audit_log
from .models import Organization
from .scoping import get_user_organization
from .serializers import OrganizationSerializer, MemberAssignmentSerializer

User = get_user_model()
logger = logging.getLogger('repairshop.organizations')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def organization_create(request):
    """Create an organization; the creator joins it as admin"""
    user = request.user
    if user.organization_id:
        return Response(
            {'error': 'User already belongs to an organization'},
            status=status.HTTP_400_BAD_REQUEST
        )

    serializer = OrganizationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        organization = serializer.save()
        user.organization = organization
        user.role = 'admin'
        user.save(update_fields=['organization', 'role', 'updated_at'])

    logger.info(f"Organization {organization.id} '{organization.name}' created by {user.username}")
    create_audit_log(
        request=request,
        action='create',
        model_name='Organization',
        object_id=str(organization.id),
        object_name=organization.name,
        organization=organization
    )
    return Response(OrganizationSerializer(organization).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def organization_current(request):
    """Get or rename the caller's organization"""
    organization = get_user_organization(request.user)

    if request.method == 'GET':
        return Response(OrganizationSerializer(organization).data)

    if not request.user.is_org_admin:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    old_name = organization.name
    serializer = OrganizationSerializer(organization, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        logger.info(f"Organization {organization.id} renamed from '{old_name}' to '{organization.name}'")
        create_audit_log(
            request=request,
            action='update',
            model_name='Organization',
            object_id=str(organization.id),
            object_name=organization.name,
            changes={'name': {'old': old_name, 'new': organization.name}}
        )
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def organization_members(request):
    """
    List members of the caller's organization.

    POST sets the caller's organization as the current organization of another
    user (admin only). The user must not belong to a different organization.
    """
    organization = get_user_organization(request.user)

    if request.method == 'GET':
        members = organization.members.all().order_by('username')
        return Response(UserSerializer(members, many=True, context={'request': request}).data)

    if not request.user.is_org_admin:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    serializer = MemberAssignmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    username = serializer.validated_data['username']
    try:
        member = User.objects.get(username=username)
    except User.DoesNotExist:
        return Response({'error': f'User {username} not found'}, status=status.HTTP_404_NOT_FOUND)

    if member.organization_id and member.organization_id != organization.id:
        logger.warning(f"Refused to move {username} out of organization {member.organization_id}")
        return Response(
            {'error': 'User belongs to another organization'},
            status=status.HTTP_400_BAD_REQUEST
        )

    member.organization = organization
    role = serializer.validated_data.get('role')
    if role:
        member.role = role
    member.save()
    logger.info(f"User {username} assigned to organization {organization.id}")
    create_audit_log(
        request=request,
        action='update',
        model_name='User',
        object_id=str(member.id),
        object_name=member.username,
        changes={'organization': organization.id, 'role': member.role}
    )
    return Response(UserSerializer(member, context={'request': request}).data)
