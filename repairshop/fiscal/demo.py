"""
Demo fiscal documents.

Shown to organizations that have not issued any document yet, so the fiscal
screens have something to display. Demo documents are never persisted and are
always flagged with ``is_demo``.
"""
import copy
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

DEMO_DOCUMENTS = [
    {
        'id': None,
        'type': 'nf',
        'number': 'NF-000001/001',
        'series': 1,
        'sequence': 1,
        'status': 'authorized',
        'access_key': '35250112345678000195' '55001000000001' '1736519400',
        'customer_id': None,
        'customer_name': 'Maria Silva',
        'description': 'Troca de tela iPhone 12',
        'total_value': Decimal('450.00'),
        'issue_date': datetime(2025, 1, 10, 14, 30, tzinfo=dt_timezone.utc),
        'authorization_date': datetime(2025, 1, 10, 14, 31, tzinfo=dt_timezone.utc),
        'cancelation_date': None,
        'cancel_reason': None,
        'qr_code': None,
        'is_demo': True,
    },
    {
        'id': None,
        'type': 'nfce',
        'number': 'NFCe-000001/001',
        'series': 1,
        'sequence': 1,
        'status': 'authorized',
        'access_key': '35250112345678000195' '65001000000001' '1736690400',
        'customer_id': None,
        'customer_name': 'João Santos',
        'description': 'Bateria Samsung Galaxy A52',
        'total_value': Decimal('180.00'),
        'issue_date': datetime(2025, 1, 12, 13, 0, tzinfo=dt_timezone.utc),
        'authorization_date': datetime(2025, 1, 12, 13, 1, tzinfo=dt_timezone.utc),
        'cancelation_date': None,
        'cancel_reason': None,
        'qr_code': 'https://www.nfe.fazenda.gov.br/consulta?chave=35250112345678000195650010000000011736690400',
        'is_demo': True,
    },
    {
        'id': None,
        'type': 'nfs',
        'number': 'NFS-000001/001',
        'series': 1,
        'sequence': 1,
        'status': 'canceled',
        'access_key': '35250112345678000195' '99001000000001' '1736955000',
        'customer_id': None,
        'customer_name': 'Ana Oliveira',
        'description': 'Reparo de conector de carga',
        'total_value': Decimal('120.00'),
        'issue_date': datetime(2025, 1, 15, 15, 30, tzinfo=dt_timezone.utc),
        'authorization_date': datetime(2025, 1, 15, 15, 32, tzinfo=dt_timezone.utc),
        'cancelation_date': datetime(2025, 1, 16, 10, 0, tzinfo=dt_timezone.utc),
        'cancel_reason': 'Serviço não realizado',
        'qr_code': None,
        'is_demo': True,
    },
]


def demo_documents():
    """Fresh copy of the demo dataset"""
    return copy.deepcopy(DEMO_DOCUMENTS)


def demo_payload(document):
    """JSON friendly version of a demo document"""
    payload = {}
    for key, value in document.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = f"{value:.2f}"
        payload[key] = value
    return payload
