"""
Helpers that create notifications.

The ``send_*`` helpers mirror the events the shop cares about: low stock,
services waiting for action, pending payments, fiscal documents and system
messages. They raise on database errors; callers that must not fail because of
a notification wrap them and log.
"""
import logging
from decimal import Decimal

from django.contrib.auth import get_user_model

from .models import Notification

logger = logging.getLogger('repairshop.notifications')

User = get_user_model()


def _plural(count, singular, plural):
    return singular if count == 1 else plural


def send_notification(user, type, title, description, action_link=None, related_id=None):
    """Create a notification for a single user"""
    notification = Notification.objects.create(
        user=user,
        organization_id=getattr(user, 'organization_id', None),
        type=type,
        title=title,
        description=description,
        action_link=action_link,
        related_id=str(related_id) if related_id is not None else None,
    )
    logger.debug(f"Notification {notification.id} ({type}) sent to {user.username}")
    return notification


def get_organization_admins(organization):
    if organization is None:
        return User.objects.none()
    return User.objects.filter(organization=organization, role='admin', is_active=True)


def send_admin_notification(organization, type, title, description, action_link=None, related_id=None):
    """Create one notification for every active admin of the organization"""
    admins = list(get_organization_admins(organization))
    if not admins:
        return []
    notifications = Notification.objects.bulk_create([
        Notification(
            user=admin,
            organization=organization,
            type=type,
            title=title,
            description=description,
            action_link=action_link,
            related_id=str(related_id) if related_id is not None else None,
        )
        for admin in admins
    ])
    logger.info(f"Admin notification '{title}' sent to {len(notifications)} admin(s) of organization {organization.id}")
    return notifications


def send_low_stock_notification(user, item_name, quantity, item_id):
    return send_notification(
        user,
        type='inventory',
        title=f"Estoque baixo: {item_name}",
        description=f"Apenas {quantity} {_plural(quantity, 'unidade restante', 'unidades restantes')}",
        action_link='/dashboard/inventory',
        related_id=item_id,
    )


def send_service_waiting_notification(user, service_number, days, service_id):
    return send_notification(
        user,
        type='service',
        title=f"Serviço #{service_number} aguardando ação",
        description=f"Sem atualização há {days} {_plural(days, 'dia', 'dias')}",
        action_link=f"/dashboard/service-registration/{service_id}",
        related_id=service_id,
    )


def format_brl(value):
    """R$ 1234,50 style amount"""
    amount = Decimal(value or 0).quantize(Decimal('0.01'))
    return f"R$ {amount}".replace('.', ',')


def send_payment_pending_notification(user, client_name, value, service_id):
    return send_notification(
        user,
        type='payment',
        title=f"Pagamento pendente de {client_name}",
        description=f"{format_brl(value)} - Vence hoje",
        action_link=f"/dashboard/service-registration/{service_id}",
        related_id=service_id,
    )


def send_document_notification(user, document_number, status_text, document_id):
    return send_notification(
        user,
        type='document',
        title=f"Documento fiscal #{document_number}",
        description=status_text,
        action_link='/dashboard/documents',
        related_id=document_id,
    )


def send_system_update_notification(user, title, description):
    return send_notification(user, type='system', title=title, description=description)
