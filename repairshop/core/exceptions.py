"""
API exception handling.

Domain errors raised deep inside helpers are turned into the same
``{'error': message}`` payload the views return for validation problems.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from repairshop.organizations.scoping import NoOrganizationError

logger = logging.getLogger('repairshop.core')


class DomainError(Exception):
    """Base class for business rule violations reported back to the client"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code


def exception_handler(exc, context):
    """DRF exception handler that understands organization and domain errors"""
    if isinstance(exc, NoOrganizationError):
        request = context.get('request')
        username = getattr(getattr(request, 'user', None), 'username', None)
        logger.warning(f"Request by {username} rejected: no organization")
        return Response(
            {'error': 'User has no organization', 'code': 'no_organization'},
            status=status.HTTP_400_BAD_REQUEST
        )
    if isinstance(exc, DomainError):
        payload = {'error': exc.message}
        if exc.code:
            payload['code'] = exc.code
        return Response(payload, status=exc.status_code)
    return drf_exception_handler(exc, context)
