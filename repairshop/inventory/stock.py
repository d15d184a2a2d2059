"""Stock adjustments for parts"""
import logging

from django.db import transaction

from repairshop.core.exceptions import DomainError
from .models import Part, StockMovement

logger = logging.getLogger('repairshop.inventory')


class InsufficientStock(DomainError):
    def __init__(self, part, requested):
        super().__init__(
            f"Insufficient stock for {part.name}: {part.quantity} available, {requested} requested",
            code='insufficient_stock'
        )
        self.part = part
        self.requested = requested


def adjust_stock(part, movement_type, quantity, reason, notes='', user=None):
    """
    Apply an in/out movement to a part and record it.

    The part row is locked for the duration of the update. Raises
    InsufficientStock when an outgoing movement would leave a negative
    quantity. Returns (part, movement, low_stock) where low_stock is True when an
    outgoing movement left the quantity at or below the minimum stock.
    """
    if quantity <= 0:
        raise DomainError("Quantity must be positive")

    with transaction.atomic():
        locked = Part.objects.select_for_update().get(pk=part.pk)
        if movement_type == 'in':
            locked.quantity += quantity
        elif movement_type == 'out':
            if quantity > locked.quantity:
                logger.warning(f"Rejected stock out of {quantity} for part {locked.id} with {locked.quantity} in stock")
                raise InsufficientStock(locked, quantity)
            locked.quantity -= quantity
        else:
            raise DomainError(f"Unknown movement type: {movement_type}")
        locked.save(update_fields=['quantity', 'updated_at'])

        movement = StockMovement.objects.create(
            organization_id=locked.organization_id,
            part=locked,
            movement_type=movement_type,
            quantity=quantity,
            reason=reason,
            notes=notes or '',
            quantity_after=locked.quantity,
            created_by=user if user is not None and user.is_authenticated else None,
        )

    low_stock = movement_type == 'out' and locked.is_low_stock
    logger.info(f"Part {locked.id} stock {movement_type} {quantity} ({reason}), now {locked.quantity}")
    return locked, movement, low_stock
