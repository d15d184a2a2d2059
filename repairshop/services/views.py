import logging

from django.db.models import Q
from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from repairshop.core.utils import create_audit_log, paginate_queryset, parse_ordering
from repairshop.notifications.utils import send_admin_notification
from repairshop.organizations.scoping import (
    get_user_organization, scoped_queryset, get_scoped_object_or_404, save_with_org
)
from .models import ServiceOrder
from .receipts import render_service_receipt
from .serializers import ServiceOrderSerializer, ServiceStatusSerializer
from .status import apply_status

logger = logging.getLogger('repairshop.services')

ORDERING_FIELDS = ['created_at', 'price', 'status', 'priority', 'estimated_completion_date']


def _service_queryset():
    return ServiceOrder.objects.select_related('customer', 'device', 'technician')


def _notify_status_change(service, old_status):
    """Tell the organization admins about a status change"""
    try:
        send_admin_notification(
            service.organization,
            type='service',
            title=f"Serviço #{service.id} atualizado",
            description=(
                f"{service.service_name} de {service.customer.name}: "
                f"{dict(ServiceOrder.STATUS_CHOICES).get(old_status, old_status)} -> {service.get_status_display()}"
            ),
            action_link=f"/dashboard/service-registration/{service.id}",
            related_id=service.id,
        )
    except Exception as e:
        logger.error(f"Failed to notify admins about service {service.id}: {str(e)}", exc_info=True)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def service_list_create(request):
    """List service orders with filters or open a new one"""
    if request.method == 'GET':
        queryset = scoped_queryset(ServiceOrder, request.user, queryset=_service_queryset())

        status_filter = request.query_params.get('status', None)
        if status_filter:
            queryset = queryset.filter(status__in=status_filter.split(','))

        priority = request.query_params.get('priority', None)
        if priority:
            queryset = queryset.filter(priority=priority)

        technician = request.query_params.get('technician', None)
        if technician:
            queryset = queryset.filter(technician_id=technician)

        customer = request.query_params.get('customer', None)
        if customer:
            queryset = queryset.filter(customer_id=customer)

        service_type = request.query_params.get('service_type', None)
        if service_type:
            queryset = queryset.filter(service_type=service_type)

        search = request.query_params.get('search', '').strip()
        if search:
            search_filter = (
                Q(customer__name__icontains=search) |
                Q(device__brand__icontains=search) |
                Q(device__model__icontains=search) |
                Q(other_service_description__icontains=search) |
                Q(description__icontains=search)
            )
            if search.isdigit():
                search_filter |= Q(id=int(search))
            queryset = queryset.filter(search_filter)

        ordering = parse_ordering(request.query_params.get('ordering'), ORDERING_FIELDS)
        queryset = queryset.order_by(ordering, '-id')
        return Response(paginate_queryset(request, queryset, ServiceOrderSerializer))

    organization = get_user_organization(request.user)
    serializer = ServiceOrderSerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        service = save_with_org(serializer, request.user, created_by=request.user)
        logger.info(f"Service {service.id} ({service.service_type}) opened for customer {service.customer_id}")
        create_audit_log(
            request=request,
            action='create',
            model_name='ServiceOrder',
            object_id=str(service.id),
            object_name=str(service),
            changes={'price': str(service.price), 'status': service.status}
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def service_detail(request, pk):
    """Retrieve, update or delete a service order"""
    service = get_scoped_object_or_404(ServiceOrder, request.user, queryset=_service_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(ServiceOrderSerializer(service).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ServiceOrderSerializer(
            service,
            data=request.data,
            partial=request.method == 'PATCH',
            context={'organization': service.organization}
        )
        if serializer.is_valid():
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='ServiceOrder',
                object_id=str(service.id),
                object_name=str(service),
                changes={key: str(value) for key, value in serializer.validated_data.items()}
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        service_id = service.id
        service_name = str(service)
        service.delete()
        logger.info(f"Service {service_id} deleted by {request.user.username}")
        create_audit_log(
            request=request,
            action='delete',
            model_name='ServiceOrder',
            object_id=str(service_id),
            object_name=service_name
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def service_update_status(request, pk):
    """Change the status of a service order"""
    service = get_scoped_object_or_404(ServiceOrder, request.user, queryset=_service_queryset(), pk=pk)

    serializer = ServiceStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_status = serializer.validated_data['status']
    if new_status == service.status:
        return Response(ServiceOrderSerializer(service).data)

    old_status = apply_status(service, new_status)
    service.save()
    logger.info(f"Service {service.id} status {old_status} -> {new_status} by {request.user.username}")

    create_audit_log(
        request=request,
        action='status_change',
        model_name='ServiceOrder',
        object_id=str(service.id),
        object_name=str(service),
        changes={'status': {'old': old_status, 'new': new_status}}
    )
    _notify_status_change(service, old_status)
    return Response(ServiceOrderSerializer(service).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def service_receipt(request, pk):
    """Printable thermal receipt for a service order"""
    service = get_scoped_object_or_404(ServiceOrder, request.user, queryset=_service_queryset(), pk=pk)
    html = render_service_receipt(service)
    return HttpResponse(html, content_type='text/html; charset=utf-8')
