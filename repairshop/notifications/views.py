import logging

from django.utils.dateparse import parse_datetime
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from repairshop.core.utils import paginate_queryset
from .models import Notification
from .serializers import NotificationSerializer

logger = logging.getLogger('repairshop.notifications')


def _own_notification_or_404(request, pk):
    try:
        return Notification.objects.get(pk=pk, user=request.user)
    except Notification.DoesNotExist:
        return None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """
    List the caller's notifications, newest first.

    ``unread=true`` keeps unread ones only. ``since=<ISO datetime>`` returns
    what arrived after the client's last poll.
    """
    queryset = Notification.objects.filter(user=request.user).order_by('-created_at')

    unread = request.query_params.get('unread', '').lower()
    if unread in ('1', 'true', 'yes'):
        queryset = queryset.filter(read=False)

    notification_type = request.query_params.get('type', None)
    if notification_type:
        queryset = queryset.filter(type=notification_type)

    since = request.query_params.get('since', None)
    if since:
        since_dt = parse_datetime(since)
        if since_dt is None:
            return Response({'error': 'since must be an ISO 8601 datetime'}, status=status.HTTP_400_BAD_REQUEST)
        queryset = queryset.filter(created_at__gt=since_dt)

    return Response(paginate_queryset(request, queryset, NotificationSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_unread_count(request):
    count = Notification.objects.filter(user=request.user, read=False).count()
    return Response({'unread': count})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_mark_read(request, pk):
    """Mark one notification as read"""
    notification = _own_notification_or_404(request, pk)
    if notification is None:
        return Response({'error': 'Notification not found'}, status=status.HTTP_404_NOT_FOUND)
    if not notification.read:
        notification.read = True
        notification.save(update_fields=['read'])
    return Response(NotificationSerializer(notification).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_mark_all_read(request):
    updated = Notification.objects.filter(user=request.user, read=False).update(read=True)
    logger.info(f"{request.user.username} marked {updated} notification(s) as read")
    return Response({'updated': updated})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def notification_delete(request, pk):
    notification = _own_notification_or_404(request, pk)
    if notification is None:
        return Response({'error': 'Notification not found'}, status=status.HTTP_404_NOT_FOUND)
    notification.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
