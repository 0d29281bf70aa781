"""Order session and final order data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from chatcommerce.schemas.analysis_schema import ContactInfo, OrderDetails


class OrderState(str, Enum):
    """Lifecycle states of an order-collection session."""
    INQUIRY = "inquiry"
    COLLECTING_INFO = "collecting_info"
    CONFIRMING = "confirming"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({OrderState.COMPLETED, OrderState.CANCELLED})


class LineItem(BaseModel):
    product_id: str
    name: str
    price: float
    quantity: int = 1


class StateChange(BaseModel):
    """Recorded history entry for a state visit."""
    state: OrderState
    entered_at: datetime
    trigger: Optional[str] = None


class OrderSession(BaseModel):
    """
    Multi-message order dialogue for one customer.

    ``total_amount`` is always derived from the line items and is never
    stored independently of them.
    """

    id: str
    customer_id: str
    state: OrderState = OrderState.INQUIRY
    products: list[LineItem] = Field(default_factory=list)
    customer_info: ContactInfo = Field(default_factory=ContactInfo)
    order_details: OrderDetails = Field(default_factory=OrderDetails)
    history: list[StateChange] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_amount(self) -> float:
        return sum(item.price * item.quantity for item in self.products)

    def is_active(self) -> bool:
        return self.state not in TERMINAL_STATES

    def has_product(self, product_id: str) -> bool:
        return any(item.product_id == product_id for item in self.products)


class Order(BaseModel):
    """Immutable order record created when a session is confirmed."""

    model_config = {"frozen": True}

    id: str
    order_number: str
    session_id: str
    customer_id: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    products: list[LineItem]
    total_amount: float
    status: str = "confirmed"
    order_details: OrderDetails = Field(default_factory=OrderDetails)
    created_at: datetime
