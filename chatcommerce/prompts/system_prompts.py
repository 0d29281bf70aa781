"""
System prompt for the LLM-backed message analyzer.

The model must answer with a single JSON object whose keys match
MessageAnalysis, so its output can be validated with the same schema
the rule-based analyzer produces.
"""

from chatcommerce.schemas.business_schema import BusinessConfig

ANALYSIS_OUTPUT_FORMAT = """
Response format (JSON only):
{
  "intent": "greeting|product_inquiry|price_inquiry|purchase_intent|availability_check|support|comparison|general",
  "sentiment": "positive|negative|neutral",
  "confidence": 0.0-1.0,
  "urgency_indicators": ["matched urgency words, e.g. today, asap"],
  "buying_signals": [{"category": "purchase_ready|price_conscious|decision_making|availability_check", "keyword": "phrase"}],
  "contact_info": {"name": null, "phone": null, "email": null},
  "order_details": {"quantity": null, "variant": null, "address": null},
  "mentioned_products": ["exact product names from the catalog"]
}
"""

ANALYSIS_RULES = """
Rules:
- Respond with valid JSON only. No explanations, no code fences.
- Messages may be in English or Filipino; classify them the same way.
- Only list products that appear in the catalog below.
- Use null for contact and order fields the customer did not provide.
- Confidence: clear intent 0.8+, specific products 0.7+, vague messages 0.3-0.5.
"""


def build_analysis_prompt(business: BusinessConfig) -> str:
    """Build the analyzer system prompt with the shop's catalog injected."""
    catalog_lines = [
        f"- {p.name} ({p.category or 'uncategorized'})" for p in business.products
    ]
    catalog = "\n".join(catalog_lines) if catalog_lines else "- (no products listed)"
    return (
        f"You analyze customer chat messages for {business.shop_name}, an online shop.\n"
        "Return structured data about intent, sentiment, urgency, buying signals, "
        "contact details, order details and product mentions.\n"
        f"{ANALYSIS_OUTPUT_FORMAT}{ANALYSIS_RULES}\n"
        f"Catalog:\n{catalog}\n"
    )
