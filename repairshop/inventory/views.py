import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from repairshop.core.utils import create_audit_log, paginate_queryset
from repairshop.notifications.utils import get_organization_admins, send_low_stock_notification
from repairshop.organizations.scoping import (
    get_user_organization, scoped_queryset, get_scoped_object_or_404, save_with_org
)
from .filters import PartFilter
from .models import Part, StockMovement
from .serializers import PartSerializer, StockMovementSerializer, StockAdjustmentSerializer
from .stock import adjust_stock
from .utils import generate_sku

logger = logging.getLogger('repairshop.inventory')


def _notify_low_stock(part, acting_user):
    """Low stock notification for the acting user and the organization admins"""
    recipients = {acting_user.pk: acting_user}
    for admin in get_organization_admins(part.organization):
        recipients.setdefault(admin.pk, admin)
    try:
        for user in recipients.values():
            send_low_stock_notification(user, part.name, part.quantity, part.id)
    except Exception as e:
        logger.error(f"Failed to send low stock notification for part {part.id}: {str(e)}", exc_info=True)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def part_list_create(request):
    """List parts (search, category, low_stock) or add a part"""
    if request.method == 'GET':
        queryset = scoped_queryset(Part, request.user).order_by('name')
        part_filter = PartFilter(request.query_params, queryset=queryset)
        if not part_filter.is_valid():
            return Response(part_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(paginate_queryset(request, part_filter.qs, PartSerializer))

    organization = get_user_organization(request.user)
    serializer = PartSerializer(data=request.data, context={'organization': organization})
    if serializer.is_valid():
        sku = serializer.validated_data.get('sku') or generate_sku(
            organization,
            serializer.validated_data.get('name'),
            serializer.validated_data.get('category')
        )
        part = save_with_org(serializer, request.user, sku=sku)
        logger.info(f"Part {part.id} '{part.name}' created with SKU {part.sku}")
        create_audit_log(
            request=request,
            action='create',
            model_name='Part',
            object_id=str(part.id),
            object_name=part.name,
            object_reference=part.sku,
            changes={'quantity': part.quantity}
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def part_detail(request, pk):
    """Retrieve, update or delete a part"""
    part = get_scoped_object_or_404(Part, request.user, pk=pk)

    if request.method == 'GET':
        return Response(PartSerializer(part).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PartSerializer(
            part,
            data=request.data,
            partial=request.method == 'PATCH',
            context={'organization': part.organization}
        )
        if serializer.is_valid():
            if 'sku' in serializer.validated_data and not serializer.validated_data['sku']:
                serializer.validated_data['sku'] = part.sku
            serializer.save()
            create_audit_log(
                request=request,
                action='update',
                model_name='Part',
                object_id=str(part.id),
                object_name=part.name,
                object_reference=part.sku,
                changes={key: str(value) for key, value in serializer.validated_data.items()}
            )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        part_id = part.id
        part_name = part.name
        part_sku = part.sku
        part.delete()
        logger.info(f"Part {part_id} deleted by {request.user.username}")
        create_audit_log(
            request=request,
            action='delete',
            model_name='Part',
            object_id=str(part_id),
            object_name=part_name,
            object_reference=part_sku
        )
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def part_adjust_stock(request, pk):
    """Add or remove stock for a part"""
    part = get_scoped_object_or_404(Part, request.user, pk=pk)

    serializer = StockAdjustmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    old_quantity = part.quantity
    part, movement, low_stock = adjust_stock(
        part,
        movement_type=data['movement_type'],
        quantity=data['quantity'],
        reason=data['reason'],
        notes=data.get('notes', ''),
        user=request.user
    )

    create_audit_log(
        request=request,
        action='stock_adjust',
        model_name='Part',
        object_id=str(part.id),
        object_name=part.name,
        object_reference=part.sku,
        changes={
            'movement_type': movement.movement_type,
            'moved': movement.quantity,
            'reason': movement.reason,
            'notes': movement.notes,
            'quantity': {'old': old_quantity, 'new': part.quantity},
        }
    )
    if low_stock:
        _notify_low_stock(part, request.user)

    return Response({
        'part': PartSerializer(part).data,
        'movement': StockMovementSerializer(movement).data,
        'low_stock': low_stock,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def part_movements(request, pk):
    """Stock movements of a part, newest first"""
    part = get_scoped_object_or_404(Part, request.user, pk=pk)
    queryset = part.movements.select_related('created_by').order_by('-created_at', '-id')
    return Response(paginate_queryset(request, queryset, StockMovementSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_movement_list(request):
    """All stock movements of the organization"""
    queryset = scoped_queryset(StockMovement, request.user).select_related('part', 'created_by')
    movement_type = request.query_params.get('movement_type', None)
    if movement_type:
        queryset = queryset.filter(movement_type=movement_type)
    reason = request.query_params.get('reason', None)
    if reason:
        queryset = queryset.filter(reason=reason)
    queryset = queryset.order_by('-created_at', '-id')
    return Response(paginate_queryset(request, queryset, StockMovementSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def part_categories(request):
    """Categories in use by the organization plus the built-in ones"""
    parts = scoped_queryset(Part, request.user)
    custom = parts.exclude(custom_category__isnull=True).exclude(custom_category='') \
        .values_list('custom_category', flat=True).distinct()
    builtin = [value for value, _ in Part.CATEGORY_CHOICES]
    categories = builtin + sorted(set(custom) - set(builtin))
    return Response({'categories': categories})
