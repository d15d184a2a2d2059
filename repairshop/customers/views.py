import logging

from django.db import transaction
from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from repairshop.core.utils import create_audit_log, paginate_queryset
from repairshop.organizations.scoping import (
    get_user_organization, scoped_queryset, get_scoped_object_or_404, save_with_org
)
from .documents import only_digits
from .models import Customer
from .serializers import CustomerSerializer, CustomerContactSerializer

logger = logging.getLogger('repairshop.customers')


def _search_customers(queryset, search):
    search_filter = Q(name__icontains=search) | Q(phone__icontains=search) | Q(email__icontains=search)
    digits = only_digits(search)
    if digits:
        search_filter |= Q(document__icontains=digits)
    return queryset.filter(search_filter)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List the organization's customers or register a new one"""
    if request.method == 'GET':
        queryset = scoped_queryset(Customer, request.user).order_by('-created_at')
        search = request.query_params.get('search', '').strip()
        if search:
            queryset = _search_customers(queryset, search)
        document_type = request.query_params.get('document_type')
        if document_type:
            queryset = queryset.filter(document_type=document_type)
        return Response(paginate_queryset(request, queryset, CustomerSerializer))

    organization = get_user_organization(request.user)
    serializer = CustomerSerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        customer = save_with_org(serializer, request.user)
        logger.info(f"Customer {customer.id} '{customer.name}' created by {request.user.username}")
        create_audit_log(
            request=request,
            action='create',
            model_name='Customer',
            object_id=str(customer.id),
            object_name=customer.name,
            object_reference=customer.document
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_scoped_object_or_404(Customer, request.user, pk=pk)

    if request.method == 'GET':
        serializer = CustomerSerializer(customer)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(
            customer,
            data=request.data,
            partial=request.method == 'PATCH',
            context={'organization': customer.organization}
        )
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Customer',
                object_id=str(customer.id),
                object_name=customer.name,
                object_reference=customer.document,
                changes={key: serializer.data.get(key) for key in serializer.validated_data}
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        customer_id = customer.id
        customer_name = customer.name
        try:
            with transaction.atomic():
                services_count = customer.service_orders.count()
                devices_count = customer.devices.count()
                customer.delete()
        except Exception as e:
            logger.error(f"Error deleting customer {customer_id}: {str(e)}", exc_info=True)
            return Response(
                {'error': f'Failed to delete customer: {str(e)}'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )
        logger.info(
            f"Customer {customer_id} deleted by {request.user.username} "
            f"with {devices_count} device(s) and {services_count} service(s)"
        )
        create_audit_log(
            request=request,
            action='delete',
            model_name='Customer',
            object_id=str(customer_id),
            object_name=customer_name,
            changes={'devices_deleted': devices_count, 'services_deleted': services_count}
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_contact(request, pk):
    """Contact links (mailto, tel, sms, WhatsApp) for a customer"""
    customer = get_scoped_object_or_404(Customer, request.user, pk=pk)
    return Response(CustomerContactSerializer(customer).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_history(request, pk):
    """Devices and service orders of a customer, newest first"""
    from repairshop.devices.serializers import DeviceSerializer
    from repairshop.services.serializers import ServiceOrderSerializer

    customer = get_scoped_object_or_404(Customer, request.user, pk=pk)
    devices = customer.devices.all().order_by('-created_at')
    services = customer.service_orders.select_related('device', 'technician').order_by('-created_at')

    return Response({
        'customer': CustomerSerializer(customer).data,
        'devices': DeviceSerializer(devices, many=True).data,
        'services': ServiceOrderSerializer(services, many=True).data,
        'summary': {
            'devices_count': devices.count(),
            'services_count': services.count(),
            'open_services': services.exclude(status__in=['completed', 'delivered', 'canceled']).count(),
        },
    })
