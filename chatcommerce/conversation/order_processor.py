"""
Order-collection flow.

Given the customer's active session (if any) and the analysis of their
latest message, decides the next session state and the reply. The
processor is pure: it works on a copy of the session and returns it in
the outcome, leaving persistence to the orchestrator.

Flow per message:
    (no session)     order intent detected          -> create in inquiry
    inquiry          products + name or phone       -> confirming
    inquiry          products only                  -> collecting_info
    collecting_info  name + (phone or email)        -> confirming
    confirming       confirmation keyword           -> processing -> completed
    confirming       cancellation keyword           -> cancelled
    confirming       neither, or both               -> confirming (clarify)
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from chatcommerce.conversation.order_state_machine import OrderStateMachine, OrderTrigger
from chatcommerce.conversation.slot_manager import OrderSlotManager
from chatcommerce.prompts import response_templates as templates
from chatcommerce.rules.loader import OrderRules
from chatcommerce.schemas.analysis_schema import MessageAnalysis
from chatcommerce.schemas.business_schema import BusinessConfig, Product
from chatcommerce.schemas.order_schema import (
    LineItem,
    Order,
    OrderSession,
    OrderState,
    StateChange,
)
from chatcommerce.tools.orders import create_order
from chatcommerce.utils import compile_patterns, find_keywords

logger = logging.getLogger(__name__)


@dataclass
class OrderIntent:
    """Advisory read of how close a customer is to ordering."""
    is_order_ready: bool
    confidence: float
    suggested_action: str


@dataclass
class OrderOutcome:
    """Result of running one message through the order flow."""
    session: Optional[OrderSession]
    response: Optional[str]
    order_status: Optional[str]
    next_action: str
    order: Optional[Order] = None
    order_total: Optional[float] = None
    quick_replies: list[dict[str, str]] = field(default_factory=list)
    created: bool = False
    missing_fields: list[str] = field(default_factory=list)


def suggest_order_action(confidence: float) -> str:
    if confidence >= 0.8:
        return "process_order"
    if confidence >= 0.6:
        return "collect_details"
    if confidence >= 0.4:
        return "qualify_interest"
    return "nurture_lead"


class OrderProcessor:
    """Drives order sessions through the order state machine."""

    def __init__(
        self,
        rules: OrderRules,
        slots: Optional[OrderSlotManager] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.rules = rules
        self.slots = slots or OrderSlotManager()
        self._rng = rng
        self._confirm = compile_patterns(rules.confirmation_keywords)
        self._cancel = compile_patterns(rules.cancellation_keywords)

    # --- Intent detection ---

    def has_strong_signal(self, analysis: MessageAnalysis, message: str = "") -> bool:
        strong = set(self.rules.strong_signals)
        if any(signal.keyword in strong for signal in analysis.buying_signals):
            return True
        return bool(message) and bool(find_keywords(message, self.rules.strong_signals))

    def order_confidence(
        self, analysis: MessageAnalysis, products: Sequence[Product], lead_score: int
    ) -> float:
        confidence = lead_score * 0.01
        if products:
            confidence += 0.3
        if not analysis.contact_info.is_empty():
            confidence += 0.4
        if not analysis.order_details.is_empty():
            confidence += 0.5
        return min(confidence, 1.0)

    def detect_order_intent(
        self,
        analysis: MessageAnalysis,
        products: Sequence[Product],
        lead_score: int,
        message: str = "",
    ) -> OrderIntent:
        """Gate for opening a new session: order intent plus a strong signal or a product."""
        has_intent = analysis.intent.value in self.rules.intents
        ready = has_intent and (self.has_strong_signal(analysis, message) or bool(products))
        confidence = self.order_confidence(analysis, products, lead_score)
        return OrderIntent(
            is_order_ready=ready,
            confidence=confidence,
            suggested_action=suggest_order_action(confidence),
        )

    # --- Flow ---

    def new_session(
        self, customer_id: str, products: Sequence[Product], now: datetime
    ) -> OrderSession:
        millis = int(now.timestamp() * 1000)
        session = OrderSession(
            id=f"order_{customer_id}_{millis}",
            customer_id=customer_id,
            state=OrderState.INQUIRY,
            products=[LineItem(product_id=p.id, name=p.name, price=p.price) for p in products],
            history=[StateChange(state=OrderState.INQUIRY, entered_at=now)],
            created_at=now,
            updated_at=now,
        )
        logger.info("Order session created: %s", session.id)
        return session

    def process(
        self,
        customer_id: str,
        session: Optional[OrderSession],
        message: str,
        analysis: MessageAnalysis,
        products: Sequence[Product],
        business: BusinessConfig,
        lead_score: int,
        now: datetime,
    ) -> OrderOutcome:
        """
        Evaluate one message against the customer's active session.

        Raises:
            OrderCreationError: If the confirmed session cannot become an order.
        """
        created = False
        if session is not None and session.is_active():
            working = session.model_copy(deep=True)
        else:
            intent = self.detect_order_intent(analysis, products, lead_score, message)
            if not intent.is_order_ready:
                return self._nurture(products, business)
            working = self.new_session(customer_id, products, now)
            created = True

        outcome = self._advance(working, message, analysis, products, business, now)
        outcome.created = created
        return outcome

    def _advance(
        self,
        session: OrderSession,
        message: str,
        analysis: MessageAnalysis,
        products: Sequence[Product],
        business: BusinessConfig,
        now: datetime,
    ) -> OrderOutcome:
        machine = OrderStateMachine(session)
        if session.state == OrderState.PROCESSING:
            # A previous order write failed mid-confirmation; ask again.
            machine.transition(OrderTrigger.ORDER_FAILED, now)

        if session.state == OrderState.INQUIRY:
            return self._handle_inquiry(machine, analysis, products, business, now)
        if session.state == OrderState.COLLECTING_INFO:
            return self._handle_collecting(machine, analysis, business, now)
        return self._handle_confirming(machine, message, business, now)

    def _merge(self, session: OrderSession, analysis: MessageAnalysis) -> None:
        self.slots.merge_contact(session, analysis.contact_info)
        self.slots.merge_order_details(session, analysis.order_details)
        quantity = session.order_details.quantity
        if quantity and len(session.products) == 1:
            session.products[0].quantity = quantity

    def _handle_inquiry(
        self,
        machine: OrderStateMachine,
        analysis: MessageAnalysis,
        products: Sequence[Product],
        business: BusinessConfig,
        now: datetime,
    ) -> OrderOutcome:
        session = machine.session
        for product in products:
            if not session.has_product(product.id):
                session.products.append(
                    LineItem(product_id=product.id, name=product.name, price=product.price)
                )
        self._merge(session, analysis)

        if session.products and self.slots.has_contact_for_confirmation(session):
            machine.transition(OrderTrigger.PRODUCTS_AND_CONTACT, now)
            return self._confirmation(session, business)
        if session.products:
            machine.transition(OrderTrigger.PRODUCTS_SELECTED, now)
            return self._outcome(
                session, templates.build_contact_request(session), "collect_contact_info"
            )
        machine.transition(OrderTrigger.AWAITING_PRODUCTS, now)
        return self._outcome(
            session, templates.build_product_selection(business), "select_products"
        )

    def _handle_collecting(
        self,
        machine: OrderStateMachine,
        analysis: MessageAnalysis,
        business: BusinessConfig,
        now: datetime,
    ) -> OrderOutcome:
        session = machine.session
        self._merge(session, analysis)
        missing = self.slots.missing_fields(session)
        if not missing:
            machine.transition(OrderTrigger.CONTACT_COMPLETE, now)
            return self._confirmation(session, business)

        machine.transition(OrderTrigger.CONTACT_MISSING, now)
        outcome = self._outcome(
            session, templates.build_missing_info_request(missing), "collect_missing_info"
        )
        outcome.missing_fields = missing
        return outcome

    def _handle_confirming(
        self,
        machine: OrderStateMachine,
        message: str,
        business: BusinessConfig,
        now: datetime,
    ) -> OrderOutcome:
        session = machine.session
        confirming = bool(self._confirm.search(message))
        cancelling = bool(self._cancel.search(message))

        if confirming and not cancelling:
            machine.transition(OrderTrigger.CUSTOMER_CONFIRMED, now)
            order = create_order(session, now, self._rng)
            machine.transition(OrderTrigger.ORDER_CREATED, now)
            outcome = self._outcome(
                session, templates.build_order_success(order, business), "order_fulfilled"
            )
            outcome.order = order
            outcome.order_total = order.total_amount
            return outcome

        if cancelling and not confirming:
            machine.transition(OrderTrigger.CUSTOMER_CANCELLED, now)
            logger.info("Order session cancelled: %s", session.id)
            return self._outcome(session, templates.build_cancellation(), "continue_browsing")

        machine.transition(OrderTrigger.UNCLEAR_REPLY, now)
        outcome = self._outcome(
            session,
            templates.build_confirmation_clarification(session, business),
            "await_confirmation",
        )
        outcome.order_total = session.total_amount
        return outcome

    def _confirmation(self, session: OrderSession, business: BusinessConfig) -> OrderOutcome:
        outcome = self._outcome(
            session, templates.build_order_confirmation(session, business), "await_confirmation"
        )
        outcome.order_total = session.total_amount
        return outcome

    def _outcome(self, session: OrderSession, response: str, next_action: str) -> OrderOutcome:
        return OrderOutcome(
            session=session,
            response=response,
            order_status=session.state.value,
            next_action=next_action,
            quick_replies=templates.quick_replies_for(next_action),
        )

    def _nurture(self, products: Sequence[Product], business: BusinessConfig) -> OrderOutcome:
        if products:
            return OrderOutcome(
                session=None,
                response=templates.build_nurture_response(products[0], business),
                order_status=None,
                next_action="qualify_interest",
                quick_replies=templates.quick_replies_for("qualify_interest"),
            )
        return OrderOutcome(
            session=None,
            response=None,
            order_status=None,
            next_action="product_discovery",
        )
