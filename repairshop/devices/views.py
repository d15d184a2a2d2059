import logging

from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from repairshop.core.utils import create_audit_log, paginate_queryset
from repairshop.organizations.scoping import (
    get_user_organization, scoped_queryset, get_scoped_object_or_404, save_with_org
)
from .models import Device
from .serializers import DeviceSerializer

logger = logging.getLogger('repairshop.devices')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def device_list_create(request):
    """List the organization's devices or register a device for a customer"""
    if request.method == 'GET':
        queryset = scoped_queryset(Device, request.user).select_related('customer').order_by('-created_at')

        customer_id = request.query_params.get('customer', None)
        if customer_id:
            queryset = queryset.filter(customer_id=customer_id)

        device_type = request.query_params.get('device_type', None)
        if device_type:
            queryset = queryset.filter(device_type=device_type)

        search = request.query_params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(brand__icontains=search) |
                Q(model__icontains=search) |
                Q(imei__icontains=search) |
                Q(serial_number__icontains=search)
            )
        return Response(paginate_queryset(request, queryset, DeviceSerializer))

    organization = get_user_organization(request.user)
    serializer = DeviceSerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        device = save_with_org(serializer, request.user)
        logger.info(f"Device {device.id} ({device}) registered for customer {device.customer_id}")
        create_audit_log(
            request=request,
            action='create',
            model_name='Device',
            object_id=str(device.id),
            object_name=str(device),
            object_reference=device.imei or device.serial_number
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def device_detail(request, pk):
    """Retrieve, update or delete a device"""
    device = get_scoped_object_or_404(
        Device, request.user, queryset=Device.objects.select_related('customer'), pk=pk
    )

    if request.method == 'GET':
        return Response(DeviceSerializer(device).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = DeviceSerializer(
            device,
            data=request.data,
            partial=request.method == 'PATCH',
            context={'organization': device.organization}
        )
        if serializer.is_valid():
            serializer.save()
            changes = {key: serializer.data.get(key) for key in serializer.validated_data if key != 'password'}
            create_audit_log(
                request=request,
                action='update',
                model_name='Device',
                object_id=str(device.id),
                object_name=str(device),
                changes=changes
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        device_id = device.id
        device_name = str(device)
        device.delete()
        logger.info(f"Device {device_id} deleted by {request.user.username}")
        create_audit_log(
            request=request,
            action='delete',
            model_name='Device',
            object_id=str(device_id),
            object_name=device_name
        )
        return Response(status=status.HTTP_204_NO_CONTENT)
