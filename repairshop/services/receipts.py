"""Thermal (80mm) service order receipt"""
from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone


def render_service_receipt(service, printed_at=None):
    """Render the service order receipt as a standalone HTML page"""
    printed_at = printed_at or timezone.now()
    device = service.device
    context = {
        'company': settings.COMPANY_INFO,
        'service': service,
        'customer_name': service.customer.name if service.customer_id else 'Cliente não encontrado',
        'device_name': f"{device.brand} {device.model}" if device else 'Dispositivo não encontrado',
        'service_name': service.service_name,
        'description': service.description or 'Sem descrição',
        'price': format_currency(service.price),
        'created_at': timezone.localtime(service.created_at) if service.created_at else None,
        'printed_at': timezone.localtime(printed_at),
    }
    return render_to_string('services/service_receipt.html', context)


def format_currency(value):
    """R$ 1.234,56"""
    formatted = f"{value or 0:,.2f}"
    return "R$ " + formatted.replace(',', '_').replace('.', ',').replace('_', '.')
