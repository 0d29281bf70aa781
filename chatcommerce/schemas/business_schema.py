"""Business profile: shop identity, catalog, FAQs and payment/shipping policy."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from chatcommerce.config import settings

logger = logging.getLogger(__name__)


class Product(BaseModel):
    """A sellable catalog item."""
    id: str
    name: str
    price: float
    description: str = ""
    category: str = ""
    stock: int = 0
    keywords: list[str] = Field(default_factory=list)


class FAQ(BaseModel):
    """A canned answer selected by keyword match."""
    id: str
    question: str
    answer: str
    keywords: list[str] = Field(default_factory=list)


class BusinessConfig(BaseModel):
    """
    Explicit business profile passed to every pipeline call.

    All defaults are resolved once when the profile is loaded, so call
    sites never need to fall back on missing values.
    """

    shop_name: str
    business_hours: str
    contact_phone: str
    shipping_fee: str
    free_shipping_minimum: float
    payment_methods: list[str]
    currency_symbol: str = "₱"
    products: list[Product] = Field(default_factory=list)
    faqs: list[FAQ] = Field(default_factory=list)

    def get_product(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None


DEMO_PRODUCTS: list[dict] = [
    {
        "id": "p1",
        "name": "Lavender Oil",
        "price": 350,
        "description": "Pure steam-distilled lavender essential oil, 10ml bottle.",
        "category": "Essential Oils",
        "stock": 40,
        "keywords": ["lavender"],
    },
    {
        "id": "p2",
        "name": "Peppermint Oil",
        "price": 320,
        "description": "Cooling peppermint essential oil, 10ml bottle.",
        "category": "Essential Oils",
        "stock": 25,
        "keywords": ["peppermint"],
    },
    {
        "id": "p3",
        "name": "Bamboo Diffuser",
        "price": 1250,
        "description": "Ultrasonic aroma diffuser with bamboo cover and night light.",
        "category": "Diffusers",
        "stock": 8,
        "keywords": ["diffuser", "humidifier"],
    },
    {
        "id": "p4",
        "name": "Scented Candle Set",
        "price": 680,
        "description": "Three soy wax candles: lavender, vanilla and sandalwood.",
        "category": "Candles",
        "stock": 15,
        "keywords": ["candle", "candles"],
    },
    {
        "id": "p5",
        "name": "Shiatsu Massage Chair",
        "price": 15999,
        "description": "Full-body shiatsu massage chair with heat therapy.",
        "category": "Wellness Devices",
        "stock": 3,
        "keywords": ["massage chair"],
    },
]

DEMO_FAQS: list[dict] = [
    {
        "id": "faq1",
        "question": "Do you offer warranty?",
        "answer": "Yes, devices carry a 1-year warranty with free repair or replacement.",
        "keywords": ["warranty", "guarantee", "repair", "replacement"],
    },
    {
        "id": "faq2",
        "question": "What are your payment options?",
        "answer": "We accept Cash, GCash, Bank Transfer, and Credit Card payments.",
        "keywords": ["payment", "pay", "gcash", "bank", "credit card"],
    },
    {
        "id": "faq3",
        "question": "How long is shipping?",
        "answer": "Metro Manila: 1-2 days, Provincial: 3-5 days. We ship nationwide!",
        "keywords": ["shipping", "how long", "days"],
    },
]


def default_business_config() -> BusinessConfig:
    """Build the business profile from settings plus the demo catalog."""
    shop = settings.shop
    return BusinessConfig(
        shop_name=shop.name,
        business_hours=shop.business_hours,
        contact_phone=shop.contact_phone,
        shipping_fee=shop.shipping_fee,
        free_shipping_minimum=shop.free_shipping_minimum,
        payment_methods=list(shop.payment_methods),
        currency_symbol=shop.currency_symbol,
        products=[Product(**p) for p in DEMO_PRODUCTS],
        faqs=[FAQ(**f) for f in DEMO_FAQS],
    )


def load_business_config(path: Optional[str] = None) -> BusinessConfig:
    """
    Load the business profile.

    Starts from the settings-based defaults and overlays any keys found
    in the JSON profile at ``path`` (or ``CATALOG_PATH``). A profile file
    that lists ``products`` replaces the demo catalog entirely.

    Raises:
        FileNotFoundError: If an explicit profile path does not exist.
        pydantic.ValidationError: If the merged profile is invalid.
    """
    base = default_business_config()
    profile_path = path or settings.shop.catalog_path
    if not profile_path:
        return base

    overlay = json.loads(Path(profile_path).read_text(encoding="utf-8"))
    merged = {**base.model_dump(), **overlay}
    config = BusinessConfig.model_validate(merged)
    logger.info(
        "Loaded business profile from %s (%d products, %d FAQs)",
        profile_path, len(config.products), len(config.faqs),
    )
    return config
