"""
Finite state machine for the order-collection dialogue.

Every order session walks a fixed graph:

    inquiry -> collecting_info -> confirming -> processing -> completed
                                  confirming -> cancelled

Transitions are explicit (state, trigger) pairs. Anything not in the
table is rejected, so a session can never end up in an undefined state.

Usage:
    sm = OrderStateMachine(session)
    sm.transition(OrderTrigger.PRODUCTS_SELECTED, now)
    assert session.state == OrderState.COLLECTING_INFO
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from chatcommerce.schemas.order_schema import (
    TERMINAL_STATES,
    OrderSession,
    OrderState,
    StateChange,
)

logger = logging.getLogger(__name__)


class OrderTrigger(str, Enum):
    """Events that move an order session between states."""
    PRODUCTS_AND_CONTACT = "products_and_contact"
    PRODUCTS_SELECTED = "products_selected"
    AWAITING_PRODUCTS = "awaiting_products"
    CONTACT_COMPLETE = "contact_complete"
    CONTACT_MISSING = "contact_missing"
    CUSTOMER_CONFIRMED = "customer_confirmed"
    CUSTOMER_CANCELLED = "customer_cancelled"
    UNCLEAR_REPLY = "unclear_reply"
    ORDER_CREATED = "order_created"
    ORDER_FAILED = "order_failed"


@dataclass(frozen=True)
class Transition:
    """A single valid state transition."""
    from_state: OrderState
    to_state: OrderState
    trigger: OrderTrigger


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


TRANSITIONS: list[Transition] = [
    # --- Product selection ---
    Transition(OrderState.INQUIRY, OrderState.CONFIRMING, OrderTrigger.PRODUCTS_AND_CONTACT),
    Transition(OrderState.INQUIRY, OrderState.COLLECTING_INFO, OrderTrigger.PRODUCTS_SELECTED),
    Transition(OrderState.INQUIRY, OrderState.INQUIRY, OrderTrigger.AWAITING_PRODUCTS),

    # --- Contact collection ---
    Transition(OrderState.COLLECTING_INFO, OrderState.CONFIRMING, OrderTrigger.CONTACT_COMPLETE),
    Transition(OrderState.COLLECTING_INFO, OrderState.COLLECTING_INFO, OrderTrigger.CONTACT_MISSING),

    # --- Confirmation gate ---
    Transition(OrderState.CONFIRMING, OrderState.PROCESSING, OrderTrigger.CUSTOMER_CONFIRMED),
    Transition(OrderState.CONFIRMING, OrderState.CANCELLED, OrderTrigger.CUSTOMER_CANCELLED),
    Transition(OrderState.CONFIRMING, OrderState.CONFIRMING, OrderTrigger.UNCLEAR_REPLY),

    # --- Order creation ---
    Transition(OrderState.PROCESSING, OrderState.COMPLETED, OrderTrigger.ORDER_CREATED),
    Transition(OrderState.PROCESSING, OrderState.CONFIRMING, OrderTrigger.ORDER_FAILED),
]


class OrderStateMachine:
    """Applies transitions to an OrderSession in place and records history."""

    def __init__(self, session: OrderSession) -> None:
        self.session = session

    @property
    def current_state(self) -> OrderState:
        return self.session.state

    def transition(self, trigger: OrderTrigger, now: datetime) -> OrderState:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no transition exists for the current state.
        """
        for t in TRANSITIONS:
            if t.from_state == self.session.state and t.trigger == trigger:
                old_state = self.session.state
                self.session.state = t.to_state
                self.session.updated_at = now
                if t.to_state != old_state:
                    self.session.history.append(
                        StateChange(state=t.to_state, entered_at=now, trigger=trigger.value)
                    )
                logger.debug(
                    "Order %s: %s -> %s (trigger: %s)",
                    self.session.id, old_state.value, t.to_state.value, trigger.value,
                )
                return self.session.state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self.session.state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[OrderTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in TRANSITIONS if t.from_state == self.session.state]

    def get_state_trace(self) -> list[str]:
        return [entry.state.value for entry in self.session.history]

    def is_terminal(self) -> bool:
        return self.session.state in TERMINAL_STATES
