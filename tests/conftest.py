"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from chatcommerce.agents.sales_assistant import SalesAssistant
from chatcommerce.analysis.rule_analyzer import RuleBasedAnalyzer
from chatcommerce.analytics.conversion_tracker import ConversionTracker
from chatcommerce.conversation.guardrails import GuardrailPipeline
from chatcommerce.conversation.lead_scorer import LeadScorer
from chatcommerce.conversation.lead_tagger import LeadTagger
from chatcommerce.conversation.order_processor import OrderProcessor
from chatcommerce.conversation.slot_manager import OrderSlotManager
from chatcommerce.prompts.response_picker import FirstPicker
from chatcommerce.rules.loader import load_rules
from chatcommerce.schemas.analysis_schema import (
    BuyingSignal,
    ContactInfo,
    Intent,
    MessageAnalysis,
    OrderDetails,
    Sentiment,
)
from chatcommerce.schemas.business_schema import Product, default_business_config
from chatcommerce.schemas.customer_schema import ConversationContext
from chatcommerce.schemas.order_schema import LineItem, OrderSession, OrderState, StateChange
from chatcommerce.storage.store import CommerceStore
from chatcommerce.tools.catalog import ProductCatalog
from chatcommerce.tools.messenger import LoggingMessageSender

NOW = datetime(2025, 3, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def rules():
    return load_rules()


@pytest.fixture
def business():
    return default_business_config()


@pytest.fixture
def catalog(business):
    return ProductCatalog(business.products, business.faqs)


@pytest.fixture
def scorer(rules):
    return LeadScorer(rules.scoring)


@pytest.fixture
def processor(rules):
    return OrderProcessor(rules.order)


@pytest.fixture
def slot_manager():
    return OrderSlotManager()


@pytest.fixture
def tagger():
    return LeadTagger()


@pytest.fixture
def tracker():
    return ConversionTracker()


@pytest.fixture
def rule_analyzer(rules):
    return RuleBasedAnalyzer(rules)


@pytest.fixture
def guardrail_pipeline():
    return GuardrailPipeline()


@pytest.fixture
def store():
    return CommerceStore.in_memory()


@pytest.fixture
def sender():
    return LoggingMessageSender()


@pytest.fixture
def assistant(rules, business, catalog, store, sender):
    return SalesAssistant(
        business=business,
        analyzer=RuleBasedAnalyzer(rules),
        store=store,
        catalog=catalog,
        scorer=LeadScorer(rules.scoring),
        processor=OrderProcessor(rules.order),
        tagger=LeadTagger(),
        tracker=ConversionTracker(),
        picker=FirstPicker(),
        sender=sender,
    )


def make_analysis(
    intent: Intent = Intent.GENERAL,
    sentiment: Sentiment = Sentiment.NEUTRAL,
    confidence: float = 0.5,
    urgency: Optional[list[str]] = None,
    signals: Optional[list[tuple[str, str]]] = None,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    quantity: Optional[int] = None,
    address: Optional[str] = None,
    products: Optional[list[str]] = None,
) -> MessageAnalysis:
    """Helper to create a MessageAnalysis with sensible defaults."""
    return MessageAnalysis(
        intent=intent,
        sentiment=sentiment,
        confidence=confidence,
        urgency_indicators=urgency or [],
        buying_signals=[BuyingSignal(category=c, keyword=k) for c, k in (signals or [])],
        contact_info=ContactInfo(name=name, phone=phone, email=email),
        order_details=OrderDetails(quantity=quantity, address=address),
        mentioned_products=products or [],
    )


def make_context(
    customer_id: str = "cust-1",
    interaction_count: int = 0,
    previous_purchase: bool = False,
    total_lead_score: int = 0,
) -> ConversationContext:
    """Helper to create a ConversationContext."""
    return ConversationContext(
        customer_id=customer_id,
        interaction_count=interaction_count,
        previous_purchase=previous_purchase,
        total_lead_score=total_lead_score,
    )


def make_product(
    product_id: str = "p1",
    name: str = "Lavender Oil",
    price: float = 350,
    category: str = "Essential Oils",
    stock: int = 40,
    keywords: Optional[list[str]] = None,
) -> Product:
    """Helper to create a catalog Product."""
    return Product(
        id=product_id,
        name=name,
        price=price,
        category=category,
        stock=stock,
        keywords=keywords or [],
    )


def make_session(
    state: OrderState = OrderState.INQUIRY,
    customer_id: str = "cust-1",
    products: Optional[list[Product]] = None,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    created_at: datetime = NOW,
) -> OrderSession:
    """Helper to create an OrderSession already sitting in ``state``."""
    items = [
        LineItem(product_id=p.id, name=p.name, price=p.price)
        for p in (products if products is not None else [make_product()])
    ]
    return OrderSession(
        id=f"order_{customer_id}_{int(created_at.timestamp() * 1000)}",
        customer_id=customer_id,
        state=state,
        products=items,
        customer_info=ContactInfo(name=name, phone=phone),
        history=[StateChange(state=state, entered_at=created_at)],
        created_at=created_at,
        updated_at=created_at,
    )


def minutes_later(minutes: int, start: datetime = NOW) -> datetime:
    return start + timedelta(minutes=minutes)
