"""
Final order record creation.

Builds the immutable Order from a confirmed session. Writing the record
is the store's job; this module never persists anything.
"""

import logging
import random
import string
import uuid
from datetime import datetime
from typing import Optional

from chatcommerce.errors import OrderCreationError
from chatcommerce.schemas.order_schema import Order, OrderSession

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.digits + string.ascii_uppercase


def generate_order_number(now: datetime, rng: Optional[random.Random] = None) -> str:
    """Order number ``ORD-<last 6 digits of epoch ms>-<3 base-36 chars>``."""
    rng = rng or random.Random()
    millis = str(int(now.timestamp() * 1000))
    suffix = "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(3))
    return f"ORD-{millis[-6:]}-{suffix}"


def create_order(session: OrderSession, now: datetime, rng: Optional[random.Random] = None) -> Order:
    """
    Create the order record for a confirmed session.

    Raises:
        OrderCreationError: If the session has no line items.
    """
    if not session.products:
        raise OrderCreationError(f"Session {session.id} has no products to order")

    info = session.customer_info
    order = Order(
        id=f"order_{uuid.uuid4().hex[:12]}",
        order_number=generate_order_number(now, rng),
        session_id=session.id,
        customer_id=session.customer_id,
        customer_name=info.name,
        customer_phone=info.phone,
        customer_email=info.email,
        products=[item.model_copy() for item in session.products],
        total_amount=session.total_amount,
        order_details=session.order_details.model_copy(),
        created_at=now,
    )
    logger.info(
        "Order created: %s for %s (%d items, total %.2f)",
        order.order_number, order.customer_id, len(order.products), order.total_amount,
    )
    return order
