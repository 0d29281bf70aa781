"""
Customer-facing response text.

Plain text only: the chat channel renders no markdown. Prices use the
shop's currency symbol with thousands separators. Where several
phrasings exist, the caller's ResponsePicker chooses one.
"""

from typing import Optional, Sequence

from chatcommerce.prompts.response_picker import ResponsePicker
from chatcommerce.schemas.analysis_schema import Intent
from chatcommerce.schemas.business_schema import FAQ, BusinessConfig, Product
from chatcommerce.schemas.order_schema import Order, OrderSession
from chatcommerce.utils import format_price

FALLBACK_RESPONSE = (
    "I apologize, but I'm having trouble processing your message right now. "
    "Please try again or contact our support team."
)
HANDOFF_RESPONSE = (
    "I'd love to help you with your order! Let me connect you with our team "
    "to ensure everything goes smoothly."
)

LOW_STOCK_THRESHOLD = 10

QUICK_REPLIES: dict[str, list[dict[str, str]]] = {
    "collect_contact_info": [
        {"title": "Share my details", "payload": "SHARE_DETAILS"},
        {"title": "Talk to Agent", "payload": "HUMAN_AGENT"},
    ],
    "await_confirmation": [
        {"title": "Yes, confirm", "payload": "CONFIRM_ORDER"},
        {"title": "Cancel order", "payload": "CANCEL_ORDER"},
    ],
    "order_fulfilled": [
        {"title": "View Products", "payload": "VIEW_PRODUCTS"},
        {"title": "Shipping Info", "payload": "SHIPPING"},
    ],
    "continue_browsing": [
        {"title": "View Products", "payload": "VIEW_PRODUCTS"},
        {"title": "Check Prices", "payload": "PRICING"},
    ],
    "qualify_interest": [
        {"title": "Order Now", "payload": "ORDER_NOW"},
        {"title": "Shipping Info", "payload": "SHIPPING"},
        {"title": "More Info", "payload": "MORE_INFO"},
    ],
    "select_products": [
        {"title": "View Products", "payload": "VIEW_PRODUCTS"},
        {"title": "Check Prices", "payload": "PRICING"},
    ],
}

DEFAULT_QUICK_REPLIES: list[dict[str, str]] = [
    {"title": "View Products", "payload": "VIEW_PRODUCTS"},
    {"title": "Check Prices", "payload": "PRICING"},
    {"title": "Check Stock", "payload": "AVAILABILITY"},
    {"title": "Shipping Info", "payload": "SHIPPING"},
]


def quick_replies_for(next_action: Optional[str]) -> list[dict[str, str]]:
    if next_action is None:
        return [dict(reply) for reply in DEFAULT_QUICK_REPLIES]
    return [dict(reply) for reply in QUICK_REPLIES.get(next_action, DEFAULT_QUICK_REPLIES)]


def _money(amount: float, business: BusinessConfig) -> str:
    return f"{business.currency_symbol}{format_price(amount)}"


def _stock_line(product: Product) -> str:
    return f"{product.stock} available" if product.stock > 0 else "Checking availability"


# --- Order flow ---

def build_order_confirmation(session: OrderSession, business: BusinessConfig) -> str:
    """Read-back summary the customer must confirm."""
    info = session.customer_info
    lines = [
        "Order Confirmation",
        "",
        f"Customer: {info.name or 'Customer'}",
        f"Contact: {info.phone or info.email or 'Provided'}",
        "",
        "Items:",
    ]
    for item in session.products:
        lines.append(f"  {item.name} - {_money(item.price, business)} x {item.quantity}")
    lines.append("")
    lines.append(f"Total: {_money(session.total_amount, business)}")
    if session.order_details.address:
        lines.append(f"Delivery Address: {session.order_details.address}")
    lines.append("")
    lines.append('Is this order correct? Reply "Yes" to confirm or let me know what needs to be changed.')
    return "\n".join(lines)


def build_contact_request(session: OrderSession) -> str:
    names = ", ".join(item.name for item in session.products)
    return (
        f"Great choice with {names}!\n\n"
        "To process your order, I'll need a few details:\n"
        "  Your name\n"
        "  Phone number\n"
        "  Delivery address (if needed)\n\n"
        "You can share them all at once or one by one, whatever's easier for you."
    )


def build_missing_info_request(missing: Sequence[str]) -> str:
    return f"Almost there! I just need {' and '.join(missing)} to complete your order."


def build_product_selection(business: BusinessConfig) -> str:
    lines = ["Which product would you like to order? Here's what we have:"]
    for product in business.products:
        lines.append(f"  {product.name} - {_money(product.price, business)}")
    return "\n".join(lines)


def build_order_success(order: Order, business: BusinessConfig) -> str:
    lines = [
        "Order Confirmed!",
        "",
        f"Order #{order.order_number}",
        "",
        f"Thank you {order.customer_name or 'for your order'}! "
        "Your order has been received and will be processed shortly.",
    ]
    contact = order.customer_phone or order.customer_email
    if contact:
        lines.append(f"We'll contact you at {contact} for any updates.")
    lines.append("")
    lines.append(f"Business Hours: {business.business_hours}")
    lines.append(f"Questions? Call {business.contact_phone}")
    lines.append("")
    lines.append("We appreciate your business!")
    return "\n".join(lines)


def build_cancellation() -> str:
    return (
        "No worries at all! Your order has been cancelled.\n\n"
        "Feel free to browse our products anytime or ask if you need help with anything else."
    )


def build_confirmation_clarification(session: OrderSession, business: BusinessConfig) -> str:
    return (
        f"Just to be sure: shall I place your order for {_money(session.total_amount, business)}? "
        'Reply "Yes" to confirm or "Cancel" to cancel.'
    )


def build_nurture_response(product: Product, business: BusinessConfig) -> str:
    return (
        f"I'd be happy to help you with {product.name}!\n\n"
        f"Price: {_money(product.price, business)}\n"
        f"Stock: {'Available' if product.stock > 0 else 'Checking availability'}\n\n"
        "Would you like to learn more, check shipping options or place an order?"
    )


# --- Intent responses ---

def _greeting(business: BusinessConfig, returning: bool, picker: ResponsePicker) -> str:
    if returning:
        return (
            f"Welcome back to {business.shop_name}! Great to see you again. "
            "How can I assist you today?"
        )
    return picker.pick([
        f"Welcome to {business.shop_name}! How can I help you today?",
        f"Hi there! Thanks for visiting {business.shop_name}. What can I show you?",
        f"Hello! I'm here to help you find exactly what you need at {business.shop_name}!",
    ])


def _product(products: Sequence[Product], business: BusinessConfig) -> str:
    if products:
        product = products[0]
        details = f"\nDetails: {product.description}" if product.description else ""
        return (
            f"Great choice! Here's our {product.name}.\n\n"
            f"Price: {_money(product.price, business)}\n"
            f"Stock: {_stock_line(product)}{details}\n\n"
            "Would you like to know more or check other options?"
        )
    categories = sorted({p.category for p in business.products if p.category})
    listing = "\n".join(f"  {c}" for c in categories)
    return (
        "I'd love to help you find the perfect product! We have a great selection of:\n"
        f"{listing}\n\nWhat type of product interests you most?"
    )


def _price(products: Sequence[Product], business: BusinessConfig) -> str:
    if not products:
        return (
            "I'd be happy to help with pricing! Which product would you like to know about?"
        )
    product = products[0]
    lines = [f"{product.name} is priced at {_money(product.price, business)}."]
    if product.price >= business.free_shipping_minimum:
        lines.append("Shipping: FREE for this item.")
    else:
        lines.append(f"Shipping: {business.shipping_fee}")
    if 0 < product.stock < LOW_STOCK_THRESHOLD:
        lines.append(f"Limited stock: only {product.stock} units left!")
    lines.append("Ready to order? Just let me know!")
    return "\n".join(lines)


def _purchase(products: Sequence[Product], business: BusinessConfig) -> str:
    lines = ["That's fantastic! I'm excited to help you with your purchase!"]
    if products:
        product = products[0]
        lines.append(f"{product.name} - {_money(product.price, business)}")
        if product.stock == 0:
            lines.append(
                "Unfortunately this item is out of stock. I can check the restock date "
                "or suggest similar alternatives."
            )
            return "\n".join(lines)
    lines.append(f"Payment options: {', '.join(business.payment_methods)}")
    lines.append(f"Contact: {business.contact_phone} ({business.business_hours})")
    lines.append("Ready to proceed? Just confirm and we'll process your order right away!")
    return "\n".join(lines)


def _availability(products: Sequence[Product], business: BusinessConfig) -> str:
    if products:
        product = products[0]
        if product.stock > 0:
            return f"Good news! {product.name} is in stock ({product.stock} available). Want me to reserve one for you?"
        return f"{product.name} is currently out of stock. Would you like a similar item instead?"
    return "Which product would you like me to check stock for?"


def _support(business: BusinessConfig, picker: ResponsePicker) -> str:
    return picker.pick([
        f"I'm here to help! Tell me what's going on, or call us at {business.contact_phone}.",
        f"Sorry to hear you need help. Share the details and our team will sort it out ({business.business_hours}).",
    ])


def _comparison(products: Sequence[Product], business: BusinessConfig) -> str:
    if len(products) >= 2:
        lines = ["Here's a quick comparison:"]
        for product in products[:3]:
            lines.append(f"  {product.name} - {_money(product.price, business)} ({product.category})")
        lines.append("Which one fits what you need?")
        return "\n".join(lines)
    return "Happy to compare options for you! Which products are you deciding between?"


def _general(picker: ResponsePicker) -> str:
    return picker.pick([
        "I'd be happy to help you! Could you tell me more about what you're looking for?",
        "Thanks for your message! What can I help you find today?",
    ])


def build_intent_response(
    intent: Intent,
    products: Sequence[Product],
    business: BusinessConfig,
    picker: ResponsePicker,
    returning: bool = False,
) -> str:
    """Canned reply for a message that did not enter the order flow."""
    if intent == Intent.GREETING:
        return _greeting(business, returning, picker)
    if intent == Intent.PRODUCT_INQUIRY:
        return _product(products, business)
    if intent == Intent.PRICE_INQUIRY:
        return _price(products, business)
    if intent == Intent.PURCHASE_INTENT:
        return _purchase(products, business)
    if intent == Intent.AVAILABILITY_CHECK:
        return _availability(products, business)
    if intent == Intent.SUPPORT:
        return _support(business, picker)
    if intent == Intent.COMPARISON:
        return _comparison(products, business)
    return _general(picker)


def build_faq_response(faq: FAQ) -> str:
    return faq.answer
